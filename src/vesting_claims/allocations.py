"""
Allocation Tables

This module loads allocation tables (claimant, amount, unlock time) from JSON
or CSV files, commits them to a sorted-pair Merkle tree and produces the
per-claimant proofs consumed by ``VestingAuthority.claim``.
"""

import csv
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .hashing import encode_allocation
from .merkle.proof import verify_merkle_proof
from .merkle.tree import MerkleTree
from .utils.hex_helpers import normalize_address

logger = logging.getLogger(__name__)


class AllocationError(Exception):
    """Raised for malformed or inconsistent allocation tables."""
    pass


@dataclass(frozen=True)
class Allocation:
    """One committed allocation."""
    claimant: str
    amount: int
    unlock_time: Optional[int] = None

    def encode(self) -> bytes:
        return encode_allocation(self.claimant, self.amount, self.unlock_time)


@dataclass
class ClaimProof:
    """Container for a claimant's proof and the values it commits to."""
    claimant: str
    amount: int
    unlock_time: Optional[int]
    index: int
    leaf: bytes
    proof: List[bytes]
    root: bytes
    metadata: Dict[str, Any] = field(default_factory=dict)

    def hex_proof(self) -> List[str]:
        return [f"0x{step.hex()}" for step in self.proof]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "claimant": self.claimant,
            "amount": str(self.amount),
            "unlock_time": self.unlock_time,
            "index": self.index,
            "leaf": f"0x{self.leaf.hex()}",
            "proof": self.hex_proof(),
            "root": f"0x{self.root.hex()}",
            "metadata": self.metadata,
        }


def parse_allocation(entry: Dict[str, Any]) -> Allocation:
    """
    Build an ``Allocation`` from a JSON/CSV record.

    Accepts ``address`` or ``claimant`` for the beneficiary and
    ``unlock_time`` or ``unlockTime`` for the unlock timestamp.
    """
    address = entry.get("address") or entry.get("claimant")
    if not address:
        raise AllocationError(f"Allocation entry missing address: {entry}")

    try:
        claimant = normalize_address(str(address).strip())
    except ValueError as e:
        raise AllocationError(str(e))

    raw_amount = entry.get("amount")
    raw_unlock = entry.get("unlock_time", entry.get("unlockTime"))
    try:
        amount = int(str(raw_amount).strip())
        unlock_time = None if raw_unlock in (None, "") else int(str(raw_unlock).strip())
    except ValueError:
        raise AllocationError(f"Allocation for {claimant} has a non-integer field: {entry}")

    if amount < 0 or (unlock_time is not None and unlock_time < 0):
        raise AllocationError(f"Allocation for {claimant} has a negative field: {entry}")

    return Allocation(claimant=claimant, amount=amount, unlock_time=unlock_time)


def load_allocations(path: str) -> List[Allocation]:
    """
    Load allocations from a ``.json`` or ``.csv`` file.

    JSON may be a list of records or an object with an ``allocations`` list.
    CSV needs a header with ``address`` and ``amount`` and optionally
    ``unlock_time``.

    Raises:
        AllocationError: If the file cannot be parsed
    """
    if not os.path.exists(path):
        raise AllocationError(f"Allocation file not found: {path}")

    if path.lower().endswith(".csv"):
        with open(path, newline="") as f:
            reader = csv.DictReader(f)
            if not reader.fieldnames or "amount" not in reader.fieldnames:
                raise AllocationError("CSV needs header: address,amount[,unlock_time]")
            records = [row for row in reader if any((v or "").strip() for v in row.values())]
    else:
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise AllocationError(f"Invalid JSON in {path}: {e}")
        records = data.get("allocations", []) if isinstance(data, dict) else data

    if not isinstance(records, list) or not records:
        raise AllocationError(f"No allocations found in {path}")

    allocations = [parse_allocation(record) for record in records]
    logger.info(f"Loaded {len(allocations)} allocations from {path}")
    return allocations


class AllocationTable:
    """
    A committed allocation table.

    Every claimant may appear once, and either every allocation carries an
    unlock time or none does.
    """

    def __init__(self, allocations: List[Allocation]):
        if not allocations:
            raise AllocationError("Allocation table is empty")

        with_unlock = {a.unlock_time is not None for a in allocations}
        if len(with_unlock) > 1:
            raise AllocationError("Mixed allocations: unlock_time must be set on all entries or none")

        self.allocations = list(allocations)
        self._by_claimant: Dict[str, int] = {}
        for index, allocation in enumerate(self.allocations):
            if allocation.claimant in self._by_claimant:
                raise AllocationError(f"Duplicate allocation for {allocation.claimant}")
            self._by_claimant[allocation.claimant] = index

        self.tree = MerkleTree([a.encode() for a in self.allocations])

    @classmethod
    def from_file(cls, path: str) -> "AllocationTable":
        return cls(load_allocations(path))

    @property
    def root(self) -> bytes:
        return self.tree.root

    @property
    def hex_root(self) -> str:
        return self.tree.hex_root

    @property
    def total_amount(self) -> int:
        return sum(a.amount for a in self.allocations)

    def __len__(self) -> int:
        return len(self.allocations)

    def __contains__(self, claimant: str) -> bool:
        try:
            return normalize_address(claimant) in self._by_claimant
        except ValueError:
            return False

    def get_allocation(self, claimant: str) -> Allocation:
        """
        Raises:
            AllocationError: If the claimant has no allocation
        """
        address = normalize_address(claimant)
        index = self._by_claimant.get(address)
        if index is None:
            raise AllocationError(f"No allocation for {address}")
        return self.allocations[index]

    def get_claim_proof(self, claimant: str) -> ClaimProof:
        """Generate the Merkle proof for ``claimant``'s allocation."""
        allocation = self.get_allocation(claimant)
        index = self._by_claimant[allocation.claimant]
        proof = self.tree.get_proof_by_index(index)

        return ClaimProof(
            claimant=allocation.claimant,
            amount=allocation.amount,
            unlock_time=allocation.unlock_time,
            index=index,
            leaf=self.tree.leaves[index],
            proof=proof,
            root=self.root,
            metadata={
                "proof_length": len(proof),
                "tree_depth": self.tree.depth,
                "leaf_count": len(self.allocations),
            },
        )

    def verify(self, allocation: Allocation, proof: List[bytes]) -> bool:
        return verify_merkle_proof(allocation.encode(), proof, self.root)

    def export(self) -> Dict[str, Any]:
        """Claims document: root, token total and every claimant's proof."""
        claims = {}
        for allocation in self.allocations:
            claim_proof = self.get_claim_proof(allocation.claimant)
            claims[allocation.claimant] = {
                "index": claim_proof.index,
                "amount": str(allocation.amount),
                "unlockTime": allocation.unlock_time,
                "proof": claim_proof.hex_proof(),
            }
        return {
            "merkleRoot": self.hex_root,
            "tokenTotal": str(self.total_amount),
            "claims": claims,
        }
