"""
Claim Ledger

Process-wide record of which claimants have been settled. An entry moves from
absent (unclaimed) to settled exactly once and is never reset afterwards;
that permanence is the double-spend barrier.
"""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from .errors import AlreadyClaimed
from .utils.hex_helpers import normalize_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimRecord:
    """Settled claim: who, how much, through which path, and when."""
    claimant: str
    amount: int
    method: str
    settled_at: float


class ClaimLedger:
    """
    Mapping of claimant address to settled claim records.

    ``check_and_settle`` is atomic across threads. ``settlement`` wraps it for
    callers that must undo the settlement when a later step of the same
    operation fails.
    """

    def __init__(self):
        self._records: Dict[str, ClaimRecord] = {}
        self._lock = threading.Lock()

    def check_and_settle(self, claimant: str, amount: int = 0, method: str = "merkle") -> bool:
        """
        Mark ``claimant`` settled if it is not already.

        Returns:
            True if this call settled the claimant, False if it was already settled
        """
        address = normalize_address(claimant)
        with self._lock:
            if address in self._records:
                return False
            self._records[address] = ClaimRecord(
                claimant=address,
                amount=amount,
                method=method,
                settled_at=time.time(),
            )
        logger.debug(f"Settled {address} for {amount} via {method}")
        return True

    @contextmanager
    def settlement(self, claimant: str, amount: int = 0, method: str = "merkle") -> Iterator[ClaimRecord]:
        """
        Settle ``claimant`` for the duration of a block, reverting on failure.

        Raises:
            AlreadyClaimed: If the claimant was already settled
        """
        if not self.check_and_settle(claimant, amount, method):
            raise AlreadyClaimed()
        address = normalize_address(claimant)
        record = self._records[address]
        try:
            yield record
        except BaseException:
            with self._lock:
                # Only this operation's own entry is ever removed
                if self._records.get(address) is record:
                    del self._records[address]
            logger.warning(f"Reverted settlement of {address}")
            raise

    def is_settled(self, claimant: str) -> bool:
        return normalize_address(claimant) in self._records

    def get_record(self, claimant: str) -> Optional[ClaimRecord]:
        return self._records.get(normalize_address(claimant))

    def records(self) -> List[ClaimRecord]:
        with self._lock:
            return sorted(self._records.values(), key=lambda r: r.settled_at)

    def __contains__(self, claimant: str) -> bool:
        return self.is_settled(claimant)

    def __len__(self) -> int:
        return len(self._records)
