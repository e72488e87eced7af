"""
Vesting Authority

This module holds the claim engine itself: the trusted Merkle root and admin
signer, the cliff policy, and the two claim entry points plus the two
administrative rotations.

Every entry point runs under one re-entrant lock, so operations are
serialized. A claim passes its gates in a fixed order:

    cliff -> amount -> proof / signature -> ledger settle -> transfer

The ledger is settled before the token transfer is attempted, so a transfer
recipient that calls back into ``claim`` finds itself already settled. If the
transfer fails, the settlement is reverted and ``TransferError`` is raised.
"""

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence

from .errors import (
    AlreadyClaimed,
    CliffNotElapsed,
    InsufficientAmount,
    InvalidProof,
    InvalidSignature,
    TransferError,
    Unauthorized,
)
from .hashing import claim_digest, encode_allocation
from .ledger import ClaimLedger
from .merkle.proof import verify_merkle_proof
from .signature import verify_signature
from .token import TokenTransfer
from .utils.hex_helpers import HexLike, normalize_address, to_bytes32

logger = logging.getLogger(__name__)

# 2 * 365 days
DEFAULT_VESTING_PERIOD = 2 * 365 * 24 * 60 * 60

METHOD_MERKLE = "merkle"
METHOD_SIGNATURE = "signature"


class CliffPolicy:
    """Maps a claim's unlock time to the earliest timestamp it may succeed."""

    requires_unlock_time = False

    def gate(self, unlock_time: Optional[int]) -> int:
        raise NotImplementedError


@dataclass(frozen=True)
class PerLeafOffset(CliffPolicy):
    """Cliff at the leaf's own ``unlock_time`` plus a fixed vesting period."""
    offset: int = DEFAULT_VESTING_PERIOD

    requires_unlock_time = True

    def gate(self, unlock_time: Optional[int]) -> int:
        if unlock_time is None:
            raise ValueError("unlock_time is required by the per-leaf cliff policy")
        return unlock_time + self.offset


@dataclass(frozen=True)
class FixedAnchor(CliffPolicy):
    """One contract-wide cliff timestamp set at construction."""
    timestamp: int

    def gate(self, unlock_time: Optional[int]) -> int:
        return self.timestamp


@dataclass(frozen=True)
class TrustState:
    """The two trust anchors; replaced wholesale on rotation."""
    merkle_root: bytes
    admin_signer: str


@dataclass(frozen=True)
class ClaimCompleted:
    """Notification emitted once per successful claim."""
    claimant: str
    amount: int
    method: str
    timestamp: int


ClaimListener = Callable[[ClaimCompleted], None]


class VestingAuthority:
    """
    Authorizes token withdrawals against a committed allocation table.

    Args:
        owner: Address allowed to rotate the root and the admin signer
        token: Transfer capability spending the authority's balance
        merkle_root: Initial trusted allocation root (bytes or hex)
        admin_signer: Address whose signatures authorize claims; defaults to owner
        cliff_policy: ``PerLeafOffset`` (default, two years) or ``FixedAnchor``
        ledger: Claim ledger; a fresh one is created if omitted
        clock: Returns the current unix time
    """

    def __init__(
        self,
        owner: str,
        token: TokenTransfer,
        merkle_root: HexLike,
        admin_signer: Optional[str] = None,
        cliff_policy: Optional[CliffPolicy] = None,
        ledger: Optional[ClaimLedger] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._owner = normalize_address(owner)
        self._trust = TrustState(
            merkle_root=to_bytes32(merkle_root),
            admin_signer=normalize_address(admin_signer or owner),
        )
        self.token = token
        self.cliff_policy = cliff_policy or PerLeafOffset()
        self.ledger = ledger if ledger is not None else ClaimLedger()
        self._clock = clock
        self._listeners: List[ClaimListener] = []
        self._lock = threading.RLock()

        logger.info(
            f"Initialized VestingAuthority owner={self._owner} "
            f"root=0x{self._trust.merkle_root.hex()} policy={self.cliff_policy}"
        )

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def trust_state(self) -> TrustState:
        return self._trust

    @property
    def merkle_root(self) -> bytes:
        return self._trust.merkle_root

    @property
    def admin_signer(self) -> str:
        return self._trust.admin_signer

    def now(self) -> int:
        return int(self._clock())

    def subscribe(self, listener: ClaimListener) -> None:
        """Register a callback for claim-completed notifications."""
        self._listeners.append(listener)

    def has_claimed(self, claimant: str) -> bool:
        return self.ledger.is_settled(claimant)

    # ------------------------------------------------------------------
    # Claim entry points
    # ------------------------------------------------------------------

    def claim(
        self,
        caller: str,
        amount: int,
        unlock_time: Optional[int],
        total_amount: int,
        proof: Sequence[HexLike],
    ) -> ClaimCompleted:
        """
        Claim ``amount`` against the caller's leaf in the trusted tree.

        Args:
            caller: Claimant address (the leaf's address field)
            amount: Amount to withdraw now
            unlock_time: Leaf unlock timestamp; None for two-field leaves
            total_amount: Committed amount recorded in the leaf
            proof: Sibling hashes from the leaf up to the root

        Returns:
            The emitted ``ClaimCompleted`` notification

        Raises:
            CliffNotElapsed, InsufficientAmount, InvalidProof,
            AlreadyClaimed, TransferError
        """
        claimant = normalize_address(caller)
        with self._lock:
            self._check_cliff(unlock_time)
            self._check_amount(amount, total_amount)

            leaf = encode_allocation(claimant, total_amount, unlock_time)
            if not verify_merkle_proof(leaf, proof, self._trust.merkle_root):
                logger.warning(f"Invalid proof from {claimant}")
                raise InvalidProof()

            return self._settle_and_transfer(claimant, amount, METHOD_MERKLE)

    def claim_by_admin_signature(
        self,
        caller: str,
        amount: int,
        total_amount: int,
        unlock_time: int,
        signature: HexLike,
    ) -> ClaimCompleted:
        """
        Claim ``amount`` authorized by an admin signature over
        ``(caller, total_amount, amount, unlock_time)``.

        Raises:
            CliffNotElapsed, InsufficientAmount, InvalidSignature,
            AlreadyClaimed, TransferError
        """
        claimant = normalize_address(caller)
        with self._lock:
            self._check_cliff(unlock_time)
            self._check_amount(amount, total_amount)

            digest = claim_digest(claimant, total_amount, amount, unlock_time)
            if not verify_signature(digest, signature, self._trust.admin_signer):
                logger.warning(f"Invalid admin signature for {claimant}")
                raise InvalidSignature()

            return self._settle_and_transfer(claimant, amount, METHOD_SIGNATURE)

    # ------------------------------------------------------------------
    # Administrative entry points
    # ------------------------------------------------------------------

    def set_new_merkle_root(self, caller: str, new_root: HexLike) -> None:
        """
        Replace the trusted root. Settled claimants stay settled; unexecuted
        proofs against the previous tree stop verifying.
        """
        with self._lock:
            self._require_owner(caller)
            root = to_bytes32(new_root)
            self._trust = replace(self._trust, merkle_root=root)
        logger.info(f"Merkle root rotated to 0x{root.hex()}")

    def set_new_admin_signer(self, caller: str, new_signer: str) -> None:
        """Replace the trusted admin signer."""
        with self._lock:
            self._require_owner(caller)
            signer = normalize_address(new_signer)
            self._trust = replace(self._trust, admin_signer=signer)
        logger.info(f"Admin signer rotated to {signer}")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_owner(self, caller: str) -> None:
        try:
            address = normalize_address(caller)
        except ValueError:
            raise Unauthorized()
        if address != self._owner:
            logger.warning(f"Unauthorized admin call from {address}")
            raise Unauthorized()

    def _check_cliff(self, unlock_time: Optional[int]) -> None:
        gate = self.cliff_policy.gate(unlock_time)
        now = self.now()
        if now < gate:
            logger.debug(f"Cliff not elapsed: now={now} gate={gate}")
            raise CliffNotElapsed()

    def _check_amount(self, amount: int, total_amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise ValueError(f"amount must be a non-negative integer, got {amount!r}")
        if amount > total_amount:
            raise InsufficientAmount()

    def _settle_and_transfer(self, claimant: str, amount: int, method: str) -> ClaimCompleted:
        if self.ledger.is_settled(claimant):
            raise AlreadyClaimed()

        with self.ledger.settlement(claimant, amount, method):
            try:
                self.token.transfer(claimant, amount)
            except TransferError:
                raise
            except Exception as e:
                raise TransferError(f"Transfer failed: {e}") from e

        event = ClaimCompleted(
            claimant=claimant,
            amount=amount,
            method=method,
            timestamp=self.now(),
        )
        logger.info(f"Claimed {amount} by {claimant} via {method}")
        self._notify(event)
        return event

    def _notify(self, event: ClaimCompleted) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # The claim is already committed; a listener cannot undo it
                logger.exception(f"Claim listener {listener!r} failed")
