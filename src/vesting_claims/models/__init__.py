"""
API Models Package

This package contains request and response models for the claims API.
It includes Pydantic models for validation and serialization of:

- Claim proofs and claim status
- Proof and signature verification requests
- Error responses and health status

Usage:
    from vesting_claims.models import VerifyProofRequest, VerificationResponse

    request = VerifyProofRequest(claimant="0x...", amount=5, unlock_time=0, proof=[])
"""

from .api_models import (
    ClaimProofResponse,
    ClaimStatusResponse,
    ErrorResponse,
    HealthResponse,
    VerificationResponse,
    VerifyProofRequest,
    VerifySignatureRequest,
)

__all__ = [
    'ClaimProofResponse',
    'ClaimStatusResponse',
    'ErrorResponse',
    'HealthResponse',
    'VerificationResponse',
    'VerifyProofRequest',
    'VerifySignatureRequest',
]
