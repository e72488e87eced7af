"""
Allocation Merkle Trees

This package provides sorted-pair Merkle tree functionality for allocation
tables:
- proof: membership verification against a trusted root
- tree: off-chain tree building and proof extraction
"""

from .proof import (
    hash_pair,
    compute_root_from_proof,
    parse_proof,
    verify_merkle_proof,
)

from .tree import (
    MerkleTree,
    build_layers,
    merkle_root,
)

__all__ = [
    # Proof functions
    "hash_pair",
    "compute_root_from_proof",
    "parse_proof",
    "verify_merkle_proof",
    # Tree utilities
    "MerkleTree",
    "build_layers",
    "merkle_root",
]
