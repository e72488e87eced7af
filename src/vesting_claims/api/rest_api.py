"""
REST API for Vesting Claims

This module provides a FastAPI-based REST API that serves allocation proofs
and read-only claim state with full OpenAPI documentation. Claims themselves
are submitted by the claimant, not through this service.
"""

import logging
import traceback

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..allocations import AllocationError, AllocationTable
from ..authority import TrustState
from ..config import VestingSettings
from ..models.api_models import (
    ClaimProofResponse,
    ClaimStatusResponse,
    ErrorResponse,
    HealthResponse,
    VerificationResponse,
    VerifyProofRequest,
    VerifySignatureRequest,
)
from ..utils.hex_helpers import bytes_to_hex, normalize_address, to_bytes32
from .claim_service import ClaimService, ClaimServiceError, StatusUnavailableError
from .claim_status import OnChainClaimStatus

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

# Initialize FastAPI app
app = FastAPI(
    title="Vesting Claims API",
    description="""
    Serve Merkle proofs for a committed token-vesting allocation table.

    ## Features
    - **Claim Proofs**: Sibling path for any claimant in the allocation table
    - **Proof Verification**: Check a leaf and proof against the trusted root
    - **Signature Verification**: Check an admin claim authorization
    - **Claim Status**: Whether a claimant has already been settled, read from the vesting contract
    """,
    version=API_VERSION,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global claim service instance
claim_service = None


def build_claim_service(settings: VestingSettings) -> ClaimService:
    """
    Build a read-only claim service from settings.

    The trusted root defaults to the allocation table's own root and the
    admin signer to the owner. Claim status is read from the vesting
    contract when both ``rpc_url`` and ``contract_address`` are set.

    Raises:
        ValueError: If required settings are missing or malformed
        AllocationError: If the allocation table cannot be loaded
    """
    table = AllocationTable.from_file(settings.require('allocations_file'))

    signer = settings.admin_signer or settings.owner
    trust = TrustState(
        merkle_root=to_bytes32(settings.merkle_root) if settings.merkle_root else table.root,
        admin_signer=normalize_address(signer) if signer else None,
    )

    status_source = None
    if settings.rpc_url and settings.contract_address:
        status_source = OnChainClaimStatus.from_rpc_url(settings.rpc_url, settings.contract_address)
    else:
        logger.warning("VESTING_RPC_URL/VESTING_CONTRACT_ADDRESS not set; claim status unavailable")

    return ClaimService(table, trust, status_source, settings.build_cliff_policy())


def get_claim_service() -> ClaimService:
    """Dependency to get the claim service instance."""
    global claim_service
    if claim_service is None:
        claim_service = build_claim_service(VestingSettings.from_env())
    return claim_service


def _error(status_code: int, error: str, code: str, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            code=code,
            details={"error_type": type(exc).__name__},
        ).model_dump(),
    )


@app.exception_handler(ClaimServiceError)
async def claim_service_error_handler(request, exc: ClaimServiceError):
    """Handle lookups for unknown or malformed claimants."""
    logger.warning(f"Claim service error: {exc}")
    status_code = 404 if "No allocation" in str(exc) else 400
    code = "NOT_FOUND" if status_code == 404 else "VALIDATION_ERROR"
    return _error(status_code, str(exc), code, exc)


@app.exception_handler(StatusUnavailableError)
async def status_unavailable_handler(request, exc: StatusUnavailableError):
    """Handle a missing or unreachable claim status source."""
    logger.warning(f"Claim status unavailable: {exc}")
    return _error(503, str(exc), "STATUS_UNAVAILABLE", exc)


@app.exception_handler(AllocationError)
async def allocation_error_handler(request, exc: AllocationError):
    """Handle a broken allocation table."""
    logger.error(f"Allocation error: {exc}")
    return _error(503, str(exc), "ALLOCATION_ERROR", exc)


@app.exception_handler(ValueError)
async def value_error_handler(request, exc: ValueError):
    """Handle validation errors."""
    logger.error(f"Validation error: {exc}")
    return _error(400, str(exc), "VALIDATION_ERROR", exc)


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle unexpected errors."""
    logger.error(f"Unexpected error: {exc}\n{traceback.format_exc()}")
    return _error(500, "Internal server error", "INTERNAL_ERROR", exc)


@app.get("/", response_model=dict)
async def root():
    """API root endpoint with basic information."""
    return {
        "name": "Vesting Claims API",
        "version": API_VERSION,
        "description": "Serve Merkle proofs for token-vesting allocations",
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health", response_model=HealthResponse)
async def health_check(service: ClaimService = Depends(get_claim_service)):
    """Health check endpoint reporting the trusted root and table size."""
    status = "healthy" if service.trusted_root == service.table.root else "degraded"
    return HealthResponse(
        status=status,
        merkle_root=bytes_to_hex(service.trusted_root),
        allocations=len(service.table),
        version=API_VERSION,
    )


@app.get("/proofs/{address}", response_model=ClaimProofResponse)
async def get_claim_proof(address: str, service: ClaimService = Depends(get_claim_service)):
    """
    Get the Merkle proof for an address.

    The response carries everything ``claim`` needs: the committed amount,
    the unlock time and the sibling path.
    """
    return ClaimProofResponse(**service.get_claim_proof(address))


@app.post("/proofs/verify", response_model=VerificationResponse)
async def verify_proof(request: VerifyProofRequest, service: ClaimService = Depends(get_claim_service)):
    """Verify a leaf and proof against the trusted root (or the given one)."""
    result = service.verify_proof(
        request.claimant, request.amount, request.unlock_time, request.proof, request.root
    )
    return VerificationResponse(**result)


@app.post("/signatures/verify", response_model=VerificationResponse)
async def verify_signature(request: VerifySignatureRequest, service: ClaimService = Depends(get_claim_service)):
    """Verify an admin claim authorization against the trusted admin signer."""
    result = service.verify_signature(
        request.claimant,
        request.total_amount,
        request.amount,
        request.unlock_time,
        request.signature,
    )
    return VerificationResponse(**result)


@app.get("/claims/{address}", response_model=ClaimStatusResponse)
async def get_claim_status(address: str, service: ClaimService = Depends(get_claim_service)):
    """
    Settlement status for an address, read from the configured status source.

    Returns 503 when no source is configured or the source is unreachable.
    """
    return ClaimStatusResponse(**service.get_claim_status(address))


def run_server(host: str = "127.0.0.1", port: int = 8000, dev: bool = False):
    """
    Run the API server.

    Args:
        host: Host to bind to
        port: Port to bind to
        dev: Enable development mode with auto-reload
    """
    logger.info(f"Starting Vesting Claims API server on {host}:{port}")
    uvicorn.run(
        "vesting_claims.api.rest_api:app",
        host=host,
        port=port,
        reload=dev,
        log_level="info",
    )


if __name__ == "__main__":
    run_server(dev=True)
