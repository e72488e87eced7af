"""
Claims API Package

This package provides the HTTP-facing layer of the vesting claims library:

- ClaimService: proof generation and read-only claim state
- claim_status: where settlement status is read from (ledger or contract)
- rest_api: FastAPI application exposing the service

Usage:
    from vesting_claims.api import ClaimService, OnChainClaimStatus

    status = OnChainClaimStatus.from_rpc_url("http://localhost:8545", "0x...")
    service = ClaimService(AllocationTable.from_file("allocations.json"), status_source=status)
    proof = service.get_claim_proof("0x...")
"""

from .claim_service import ClaimService, ClaimServiceError, StatusUnavailableError
from .claim_status import ClaimStatusError, LedgerClaimStatus, OnChainClaimStatus

__all__ = [
    'ClaimService',
    'ClaimServiceError',
    'StatusUnavailableError',
    'ClaimStatusError',
    'LedgerClaimStatus',
    'OnChainClaimStatus',
]
