"""
Claim Service Module

This module provides a service layer over an allocation table, used by the
REST API to serve proofs and answer verification and status queries.

The service never executes claims. Trust anchors (root and admin signer) come
from an in-process ``VestingAuthority`` or a configured ``TrustState``;
settlement status comes from a ``ClaimStatusSource``.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from ..allocations import Allocation, AllocationError, AllocationTable
from ..authority import CliffPolicy, TrustState, VestingAuthority
from ..hashing import claim_digest
from ..merkle.proof import verify_merkle_proof
from ..signature import recover_signer
from ..utils.hex_helpers import bytes_to_hex, normalize_address
from .claim_status import ClaimStatusError, ClaimStatusSource, LedgerClaimStatus

logger = logging.getLogger(__name__)


class ClaimServiceError(Exception):
    """Custom exception for claim service operations."""
    pass


class StatusUnavailableError(ClaimServiceError):
    """Raised when no claim status source is configured or reachable."""
    pass


class ClaimService:
    """Serves claim proofs and read-only claim state."""

    def __init__(
        self,
        table: AllocationTable,
        trust: Optional[Union[VestingAuthority, TrustState]] = None,
        status_source: Optional[ClaimStatusSource] = None,
        cliff_policy: Optional[CliffPolicy] = None,
    ):
        """
        Initialize the claim service.

        Args:
            table: Allocation table proofs are generated from
            trust: Source of the trusted root and admin signer. A
                ``VestingAuthority`` is read live, so rotations show up
                immediately. If None, the table's own root is trusted and
                signature checks are unavailable.
            status_source: Where settlement status is read from. If None,
                status queries report the status as unavailable.
            cliff_policy: Used to report when a served claim becomes
                claimable; omitted from proofs if None
        """
        self.table = table
        self.trust = trust
        self.status_source = status_source
        self.cliff_policy = cliff_policy

        if trust is not None and trust.merkle_root != table.root:
            logger.warning(
                f"Allocation table root {table.hex_root} differs from trusted root "
                f"{bytes_to_hex(trust.merkle_root)}; served proofs will not verify"
            )

    @classmethod
    def for_authority(cls, table: AllocationTable, authority: VestingAuthority) -> "ClaimService":
        """Service embedded next to an authority, reading its ledger."""
        return cls(table, authority, LedgerClaimStatus(authority.ledger), authority.cliff_policy)

    @property
    def trusted_root(self) -> bytes:
        if self.trust is not None:
            return self.trust.merkle_root
        return self.table.root

    @property
    def admin_signer(self) -> Optional[str]:
        if self.trust is None:
            return None
        return self.trust.admin_signer

    def claimable_at(self, unlock_time: Optional[int]) -> Optional[int]:
        """Earliest timestamp a claim with ``unlock_time`` passes the cliff gate."""
        if self.cliff_policy is None:
            return None
        if unlock_time is None and self.cliff_policy.requires_unlock_time:
            return None
        return self.cliff_policy.gate(unlock_time)

    def lookup_status(self, claimant: str) -> Dict[str, Any]:
        """
        Raises:
            StatusUnavailableError: If no source is configured or it fails
        """
        if self.status_source is None:
            raise StatusUnavailableError("No claim status source configured")
        try:
            return self.status_source.lookup(claimant)
        except ClaimStatusError as e:
            raise StatusUnavailableError(str(e))

    def get_claim_proof(self, claimant: str) -> Dict[str, Any]:
        """
        Proof for ``claimant`` in the served table.

        ``claimed`` is None when no status source is available.

        Raises:
            ClaimServiceError: If the address is invalid or has no allocation
        """
        try:
            result = self.table.get_claim_proof(claimant)
        except (AllocationError, ValueError) as e:
            raise ClaimServiceError(str(e))

        payload = result.to_dict()
        payload["claimable_at"] = self.claimable_at(result.unlock_time)
        try:
            payload["claimed"] = self.lookup_status(result.claimant)["claimed"]
        except StatusUnavailableError as e:
            logger.debug(f"No claim status for {result.claimant}: {e}")
            payload["claimed"] = None
        logger.info(f"Served proof for {result.claimant} ({len(result.proof)} steps)")
        return payload

    def verify_proof(
        self,
        claimant: str,
        amount: int,
        unlock_time: Optional[int],
        proof: List[str],
        root: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Check a leaf/proof pair against ``root`` or the trusted root."""
        try:
            leaf = Allocation(normalize_address(claimant), amount, unlock_time).encode()
        except ValueError as e:
            raise ClaimServiceError(f"Validation error: {e}")

        target = root if root is not None else bytes_to_hex(self.trusted_root)
        return {
            "valid": verify_merkle_proof(leaf, proof, target),
            "root": target,
        }

    def verify_signature(
        self,
        claimant: str,
        total_amount: int,
        amount: int,
        unlock_time: int,
        signature: str,
    ) -> Dict[str, Any]:
        """Recover the signer of a claim authorization and compare it with the admin."""
        expected = self.admin_signer
        if expected is None:
            raise ClaimServiceError("No admin signer configured")

        try:
            digest = claim_digest(claimant, total_amount, amount, unlock_time)
        except ValueError as e:
            raise ClaimServiceError(f"Validation error: {e}")

        signer = recover_signer(digest, signature)
        return {
            "valid": signer is not None and signer == expected,
            "signer": signer,
            "expected_signer": expected,
        }

    def get_claim_status(self, claimant: str) -> Dict[str, Any]:
        try:
            address = normalize_address(claimant)
        except ValueError as e:
            raise ClaimServiceError(str(e))
        return self.lookup_status(address)
