"""
API Models

This module defines Pydantic models for API request and response validation.
These models ensure proper data structure and type validation for the claims API.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..utils.hex_helpers import validate_hex_length


def _check_address(v: str) -> str:
    if not validate_hex_length(v, 20):
        raise ValueError("Address must be 20 bytes (40 hex chars) with 0x prefix")
    return v


def _check_bytes32(v: str) -> str:
    if not validate_hex_length(v, 32):
        raise ValueError("Must be a 32-byte hex string starting with '0x'")
    return v


class ErrorResponse(BaseModel):
    """
    Response model for API errors.

    Attributes:
        error: Error message
        code: Error code (string identifier)
        details: Additional error details
    """
    error: str = Field(..., description="Error message")
    code: str = Field(..., description="Error code")
    details: Optional[dict] = Field(default=None, description="Additional error details")


class HealthResponse(BaseModel):
    """
    Response model for health check endpoint.

    Attributes:
        status: Service status
        merkle_root: Currently trusted root
        allocations: Number of allocations served
        version: Service version
        timestamp: Response timestamp
    """
    status: str = Field(..., description="Service status")
    merkle_root: str = Field(..., description="Trusted Merkle root")
    allocations: int = Field(..., description="Number of allocations served")
    version: str = Field(default="0.1.0", description="Service version")
    timestamp: Optional[str] = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="Response timestamp",
    )


class ClaimProofResponse(BaseModel):
    """
    Merkle proof for one claimant's allocation.

    Attributes:
        claimant: Checksum address of the beneficiary
        amount: Committed amount (decimal string)
        unlock_time: Per-leaf unlock timestamp, if the tree carries one
        index: Leaf position in the tree
        leaf: Hashed leaf
        proof: Sibling hashes from leaf to root
        root: Root the proof was built against
        claimable_at: Earliest time the claim passes the cliff, if known
        claimed: Whether the claimant is already settled; None if unknown
    """
    claimant: str = Field(..., description="Claimant address")
    amount: str = Field(..., description="Committed amount")
    unlock_time: Optional[int] = Field(default=None, description="Unlock timestamp")
    index: int = Field(..., description="Leaf index")
    leaf: str = Field(..., description="Hashed leaf")
    proof: List[str] = Field(..., description="Proof steps as hex strings")
    root: str = Field(..., description="Merkle root")
    claimable_at: Optional[int] = Field(default=None, description="Earliest claim timestamp")
    claimed: Optional[bool] = Field(default=None, description="Whether already claimed")

    @field_validator('proof')
    @classmethod
    def validate_proof_format(cls, v):
        """Validate proof steps are proper hex strings."""
        for step in v:
            _check_bytes32(step)
        return v

    model_config = {
        "json_schema_extra": {
            "example": {
                "claimant": "0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
                "amount": "5",
                "unlock_time": 1700000000,
                "index": 2001,
                "leaf": "0x5b0e9b5d0c4d1b4a5ff6ab4b5f8b4f8c3b0e0f7e5d1c0d7b4e3a2f1c0b9a8e7d",
                "proof": [
                    "0x1b2c3d4e5f60718293a4b5c6d7e8f9011223344556677889900aabbccddeeff0",
                ],
                "root": "0x9c2a4b6d8e0f1a3c5e7092b4d6f81a3c5e7092b4d6f81a3c5e7092b4d6f81a3c",
                "claimable_at": 1763072000,
                "claimed": False,
            }
        }
    }


class VerifyProofRequest(BaseModel):
    """Request to check a leaf against the trusted (or a given) root."""
    claimant: str = Field(..., description="Claimant address")
    amount: int = Field(..., ge=0, description="Committed amount")
    unlock_time: Optional[int] = Field(default=None, ge=0, description="Unlock timestamp")
    proof: List[str] = Field(..., description="Proof steps as hex strings")
    root: Optional[str] = Field(default=None, description="Root to verify against; defaults to the trusted root")

    @field_validator('claimant')
    @classmethod
    def validate_claimant(cls, v):
        return _check_address(v)

    @field_validator('root')
    @classmethod
    def validate_root(cls, v):
        if v is not None:
            _check_bytes32(v)
        return v


class VerifySignatureRequest(BaseModel):
    """Request to check an admin claim authorization."""
    claimant: str = Field(..., description="Claimant address")
    total_amount: int = Field(..., ge=0, description="Committed amount")
    amount: int = Field(..., ge=0, description="Authorized amount")
    unlock_time: int = Field(..., ge=0, description="Unlock timestamp")
    signature: str = Field(..., description="65-byte signature as hex")

    @field_validator('claimant')
    @classmethod
    def validate_claimant(cls, v):
        return _check_address(v)

    @field_validator('signature')
    @classmethod
    def validate_signature(cls, v):
        if not validate_hex_length(v, 65):
            raise ValueError("Signature must be 65 bytes (130 hex chars) with 0x prefix")
        return v


class VerificationResponse(BaseModel):
    """Outcome of a proof or signature check."""
    valid: bool = Field(..., description="Whether the check passed")
    root: Optional[str] = Field(default=None, description="Root used for a proof check")
    signer: Optional[str] = Field(default=None, description="Recovered signer for a signature check")
    expected_signer: Optional[str] = Field(default=None, description="Trusted admin signer")


class ClaimStatusResponse(BaseModel):
    """Settlement status of a claimant."""
    claimant: str = Field(..., description="Claimant address")
    claimed: bool = Field(..., description="Whether the claimant is settled")
    amount: Optional[str] = Field(default=None, description="Settled amount")
    method: Optional[str] = Field(default=None, description="'merkle' or 'signature'")
    settled_at: Optional[float] = Field(default=None, description="Settlement time (unix)")
    source: Optional[str] = Field(default=None, description="'ledger' or 'chain'")
