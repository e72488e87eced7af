"""
Vesting Claims

Token-vesting claim engine: authorizes withdrawals against an allocation table
committed as a sorted-pair keccak Merkle root, or against admin signatures,
with a cliff gate and an at-most-once claim ledger.

Usage:
    from vesting_claims import AllocationTable, VestingAuthority, InMemoryToken

    table = AllocationTable.from_file("allocations.json")
    authority = VestingAuthority(owner, token.account(vault), table.root)
    proof = table.get_claim_proof(claimant)
    authority.claim(claimant, proof.amount, proof.unlock_time, proof.amount, proof.proof)
"""

from .allocations import Allocation, AllocationError, AllocationTable, ClaimProof, load_allocations
from .authority import (
    DEFAULT_VESTING_PERIOD,
    ClaimCompleted,
    CliffPolicy,
    FixedAnchor,
    PerLeafOffset,
    TrustState,
    VestingAuthority,
)
from .errors import (
    AlreadyClaimed,
    CliffNotElapsed,
    InsufficientAmount,
    InvalidProof,
    InvalidSignature,
    TransferError,
    Unauthorized,
    VestingError,
)
from .hashing import claim_digest, encode_allocation, encode_claim_authorization, keccak256, leaf_hash
from .ledger import ClaimLedger, ClaimRecord
from .merkle import MerkleTree, verify_merkle_proof
from .signature import recover_signer, sign_claim, verify_signature
from .token import InMemoryToken, TokenAccount, TokenTransfer, Web3TokenTransfer

__version__ = "0.1.0"

__all__ = [
    # Allocations
    'Allocation',
    'AllocationError',
    'AllocationTable',
    'ClaimProof',
    'load_allocations',
    # Authority
    'DEFAULT_VESTING_PERIOD',
    'ClaimCompleted',
    'CliffPolicy',
    'FixedAnchor',
    'PerLeafOffset',
    'TrustState',
    'VestingAuthority',
    # Errors
    'AlreadyClaimed',
    'CliffNotElapsed',
    'InsufficientAmount',
    'InvalidProof',
    'InvalidSignature',
    'TransferError',
    'Unauthorized',
    'VestingError',
    # Hashing
    'claim_digest',
    'encode_allocation',
    'encode_claim_authorization',
    'keccak256',
    'leaf_hash',
    # Ledger
    'ClaimLedger',
    'ClaimRecord',
    # Merkle
    'MerkleTree',
    'verify_merkle_proof',
    # Signatures
    'recover_signer',
    'sign_claim',
    'verify_signature',
    # Token
    'InMemoryToken',
    'TokenAccount',
    'TokenTransfer',
    'Web3TokenTransfer',
]
