"""
Sorted-Pair Merkle Tree Builder

Builds allocation trees compatible with ``merkletreejs`` configured with
``hashLeaves: true, sortPairs: true``:

- every leaf encoding is hashed once with keccak256
- leaves keep their input order
- each pair is sorted before hashing
- an odd trailing node is promoted to the next level unchanged

Proofs produced here verify with ``proof.verify_merkle_proof``.
"""

from typing import List, Sequence

from ..hashing import keccak256
from .proof import hash_pair


class MerkleTree:
    """
    Merkle tree over a fixed list of leaf encodings.

    Attributes:
        leaves: Hashed leaves in input order
        layers: Tree levels from leaves (index 0) to root
    """

    def __init__(self, leaf_encodings: Sequence[bytes]):
        if not leaf_encodings:
            raise ValueError("No leaves to build tree")
        self.leaves: List[bytes] = [keccak256(encoding) for encoding in leaf_encodings]
        self.layers: List[List[bytes]] = build_layers(self.leaves)
        self._positions = {}
        for index, leaf in enumerate(self.leaves):
            self._positions.setdefault(leaf, index)

    @property
    def root(self) -> bytes:
        return self.layers[-1][0]

    @property
    def hex_root(self) -> str:
        return f"0x{self.root.hex()}"

    @property
    def depth(self) -> int:
        return len(self.layers) - 1

    def __len__(self) -> int:
        return len(self.leaves)

    def index_of(self, leaf: bytes) -> int:
        """
        Position of a hashed leaf.

        Raises:
            KeyError: If the leaf is not part of the tree
        """
        return self._positions[leaf]

    def get_proof_by_index(self, index: int) -> List[bytes]:
        """
        Collect the sibling path for the leaf at ``index``.

        Levels where the node was promoted without a sibling contribute
        nothing to the proof.
        """
        if not 0 <= index < len(self.leaves):
            raise IndexError(f"Leaf index {index} out of range (0-{len(self.leaves) - 1})")

        proof = []
        position = index
        for layer in self.layers[:-1]:
            sibling = position ^ 1
            if sibling < len(layer):
                proof.append(layer[sibling])
            position //= 2
        return proof

    def get_proof(self, leaf: bytes) -> List[bytes]:
        """Sibling path for a hashed leaf; empty if the leaf is unknown."""
        index = self._positions.get(leaf)
        if index is None:
            return []
        return self.get_proof_by_index(index)

    def get_hex_proof(self, leaf: bytes) -> List[str]:
        return [f"0x{node.hex()}" for node in self.get_proof(leaf)]


def build_layers(leaves: List[bytes]) -> List[List[bytes]]:
    """
    Build every tree level from hashed leaves up to a single root.

    Examples:
        >>> layers = build_layers([a, b, c])
        >>> layers[1] == [hash_pair(a, b), c]
        True
    """
    layers = [list(leaves)]
    current = layers[0]
    while len(current) > 1:
        next_level = []
        for i in range(0, len(current), 2):
            if i + 1 < len(current):
                next_level.append(hash_pair(current[i], current[i + 1]))
            else:
                # Odd node moves up unchanged
                next_level.append(current[i])
        layers.append(next_level)
        current = next_level
    return layers


def merkle_root(leaf_encodings: Sequence[bytes]) -> bytes:
    """Root of the sorted-pair tree over ``leaf_encodings``."""
    return MerkleTree(leaf_encodings).root
