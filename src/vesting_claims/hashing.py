"""
Hash Primitive and Claim Encodings

This module fixes the hash function and the byte-exact encodings used on both
sides of the claim engine: the off-chain tree builder and the on-chain style
verifiers. Encodings follow Solidity's ``abi.encodePacked``:

- allocation leaf:       address(20) || uint256 total || uint256 unlockTime
- short allocation leaf: address(20) || uint256 total
- claim authorization:   address(20) || uint256 total || uint256 amount || uint256 unlockTime

Any change here breaks every existing proof and signature, so it fails closed.
"""

from typing import Optional

from eth_abi.packed import encode_packed
from web3 import Web3

from .utils.hex_helpers import normalize_address

UINT256_MAX = 2**256 - 1

ALLOCATION_TYPES = ["address", "uint256", "uint256"]
SHORT_ALLOCATION_TYPES = ["address", "uint256"]
CLAIM_AUTHORIZATION_TYPES = ["address", "uint256", "uint256", "uint256"]


def keccak256(data: bytes) -> bytes:
    """Keccak-256 digest of ``data`` as 32 raw bytes."""
    return bytes(Web3.keccak(bytes(data)))


def _check_uint256(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0 or value > UINT256_MAX:
        raise ValueError(f"{name} out of uint256 range: {value}")
    return value


def encode_allocation(claimant: str, total_amount: int, unlock_time: Optional[int] = None) -> bytes:
    """
    Encode an allocation exactly as the tree builder packs its leaves.

    Args:
        claimant: EVM address of the beneficiary
        total_amount: Committed allocation amount
        unlock_time: Per-leaf unlock timestamp; omit for two-field leaves

    Returns:
        Packed leaf bytes (72 bytes, or 52 for the two-field form)
    """
    address = normalize_address(claimant)
    _check_uint256("total_amount", total_amount)
    if unlock_time is None:
        return encode_packed(SHORT_ALLOCATION_TYPES, [address, total_amount])
    _check_uint256("unlock_time", unlock_time)
    return encode_packed(ALLOCATION_TYPES, [address, total_amount, unlock_time])


def encode_claim_authorization(claimant: str, total_amount: int, amount: int, unlock_time: int) -> bytes:
    """Encode the payload an admin signs to authorize a claim out of band."""
    address = normalize_address(claimant)
    _check_uint256("total_amount", total_amount)
    _check_uint256("amount", amount)
    _check_uint256("unlock_time", unlock_time)
    return encode_packed(
        CLAIM_AUTHORIZATION_TYPES, [address, total_amount, amount, unlock_time]
    )


def leaf_hash(claimant: str, total_amount: int, unlock_time: Optional[int] = None) -> bytes:
    return keccak256(encode_allocation(claimant, total_amount, unlock_time))


def claim_digest(claimant: str, total_amount: int, amount: int, unlock_time: int) -> bytes:
    return keccak256(encode_claim_authorization(claimant, total_amount, amount, unlock_time))
