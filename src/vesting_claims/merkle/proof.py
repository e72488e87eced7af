"""
Merkle Proof Verification

This module verifies allocation membership proofs against a trusted root.
Pairs are hashed commutatively: the two 32-byte operands are sorted before
concatenation, so a proof is a plain list of sibling hashes with no
left/right flags. Trees must be built with the same rule (see ``tree.py``).
"""

import logging
from typing import Iterable, List, Optional, Sequence

from ..hashing import keccak256
from ..utils.hex_helpers import HexLike, to_bytes32

logger = logging.getLogger(__name__)


def hash_pair(a: bytes, b: bytes) -> bytes:
    """
    Hash two sibling nodes in sorted order.

    Examples:
        >>> hash_pair(x, y) == hash_pair(y, x)
        True
    """
    if a <= b:
        return keccak256(a + b)
    return keccak256(b + a)


def compute_root_from_proof(leaf: bytes, proof: Iterable[bytes]) -> bytes:
    """
    Fold a hashed leaf with its sibling path up to the root.

    Args:
        leaf: 32-byte leaf hash (already hashed, not the raw encoding)
        proof: Sibling hashes from the leaf level upward

    Returns:
        The reconstructed 32-byte root
    """
    current = leaf
    for sibling in proof:
        current = hash_pair(current, sibling)
    return current


def parse_proof(proof: Sequence[HexLike]) -> Optional[List[bytes]]:
    """
    Coerce a proof of hex strings or bytes into 32-byte nodes.

    Returns None if any element is malformed.
    """
    if isinstance(proof, (str, bytes, bytearray)):
        return None
    try:
        return [to_bytes32(node) for node in proof]
    except (TypeError, ValueError):
        return None


def verify_merkle_proof(leaf_encoding: bytes, proof: Sequence[HexLike], root: HexLike) -> bool:
    """
    Check that ``leaf_encoding`` is a member of the tree committed by ``root``.

    The raw encoding is always hashed once before folding; a caller can never
    present an interior node as a leaf.

    Args:
        leaf_encoding: Packed allocation bytes (see ``hashing.encode_allocation``)
        proof: Sibling hashes as bytes or 0x-prefixed hex
        root: Trusted 32-byte root as bytes or hex

    Returns:
        True if the recomputed root equals ``root``; False otherwise,
        including for malformed proofs or roots
    """
    if not isinstance(leaf_encoding, (bytes, bytearray)):
        return False

    nodes = parse_proof(proof)
    if nodes is None:
        logger.debug("Rejecting malformed proof")
        return False

    try:
        expected_root = to_bytes32(root)
    except (TypeError, ValueError):
        logger.debug("Rejecting malformed root")
        return False

    computed = compute_root_from_proof(keccak256(leaf_encoding), nodes)
    return computed == expected_root
