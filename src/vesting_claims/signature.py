"""
Admin Signature Verification

Claims authorized out of band are signed by the admin over the keccak digest
of the packed claim payload, using the EIP-191 "personal message" scheme
(``\\x19Ethereum Signed Message:\\n32`` prefix). Verification recovers the
signer from the prefixed hash and compares it with the trusted signer.
"""

import logging
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct

from .hashing import claim_digest
from .utils.hex_helpers import HexLike, hex_to_bytes, normalize_address, to_bytes32

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 65


def recover_signer(message_digest: HexLike, signature: HexLike) -> Optional[str]:
    """
    Recover the checksum address that signed ``message_digest``.

    Args:
        message_digest: 32-byte digest the signer passed to personal_sign
        signature: 65-byte r || s || v signature as bytes or hex

    Returns:
        The recovered address, or None if the digest or signature is malformed
    """
    try:
        digest = to_bytes32(message_digest)
        signature_bytes = hex_to_bytes(signature)
    except (TypeError, ValueError) as e:
        logger.debug(f"Malformed signature input: {e}")
        return None

    if len(signature_bytes) != SIGNATURE_LENGTH:
        logger.debug(f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature_bytes)}")
        return None

    try:
        return Account.recover_message(encode_defunct(primitive=digest), signature=signature_bytes)
    except Exception as e:
        # eth_account/eth_keys raise several types for bad v, r or s values
        logger.debug(f"Signature recovery failed: {e}")
        return None


def verify_signature(message_digest: HexLike, signature: HexLike, expected_signer: str) -> bool:
    """
    Check that ``signature`` over ``message_digest`` was made by ``expected_signer``.

    Never raises: any malformed input yields False.
    """
    try:
        expected = normalize_address(expected_signer)
    except ValueError:
        return False

    recovered = recover_signer(message_digest, signature)
    if recovered is None:
        return False
    return recovered == expected


def sign_digest(private_key: HexLike, message_digest: HexLike) -> str:
    """Personal-sign a 32-byte digest, returning the 0x-prefixed signature."""
    signed = Account.sign_message(
        encode_defunct(primitive=to_bytes32(message_digest)), private_key=private_key
    )
    return "0x" + bytes(signed.signature).hex()


def sign_claim(private_key: HexLike, claimant: str, total_amount: int, amount: int, unlock_time: int) -> str:
    """
    Produce an admin authorization for ``claim_by_admin_signature``.

    Args:
        private_key: Admin signer's private key
        claimant: Address allowed to claim
        total_amount: Amount the admin commits to the claimant
        amount: Amount the claimant is allowed to withdraw
        unlock_time: Unlock timestamp feeding the cliff gate

    Returns:
        Hex-encoded 65-byte signature
    """
    digest = claim_digest(claimant, total_amount, amount, unlock_time)
    return sign_digest(private_key, digest)
