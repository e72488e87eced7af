"""
Claim Status Sources

The claims API does not execute claims, so it cannot learn settlement status
from its own process. It reads status from whatever holds the ledger:

- LedgerClaimStatus: a ``ClaimLedger`` shared with an in-process
  ``VestingAuthority``
- OnChainClaimStatus: the deployed vesting contract's public
  ``claimed(address)`` mapping, read through web3
"""

import logging
from typing import Any, Dict, Protocol

from web3 import Web3

from ..ledger import ClaimLedger
from ..utils.hex_helpers import normalize_address

logger = logging.getLogger(__name__)

VESTING_STATUS_ABI = [
    {
        "inputs": [{"name": "", "type": "address"}],
        "name": "claimed",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
]


class ClaimStatusError(Exception):
    """Raised when a status source cannot be reached."""
    pass


class ClaimStatusSource(Protocol):
    """Read-only view of the claim ledger."""

    def lookup(self, claimant: str) -> Dict[str, Any]:
        """Return at least ``{"claimant": ..., "claimed": bool}``."""
        ...


class LedgerClaimStatus:
    """Status read from a ledger written by an in-process authority."""

    source = "ledger"

    def __init__(self, ledger: ClaimLedger):
        self.ledger = ledger

    def lookup(self, claimant: str) -> Dict[str, Any]:
        address = normalize_address(claimant)
        record = self.ledger.get_record(address)
        if record is None:
            return {"claimant": address, "claimed": False, "source": self.source}
        return {
            "claimant": address,
            "claimed": True,
            "amount": str(record.amount),
            "method": record.method,
            "settled_at": record.settled_at,
            "source": self.source,
        }


class OnChainClaimStatus:
    """Status read from the vesting contract's ``claimed`` mapping."""

    source = "chain"

    def __init__(self, w3: Web3, contract_address: str):
        self.w3 = w3
        self.contract_address = normalize_address(contract_address)
        self.contract = w3.eth.contract(address=self.contract_address, abi=VESTING_STATUS_ABI)

    @classmethod
    def from_rpc_url(cls, rpc_url: str, contract_address: str) -> "OnChainClaimStatus":
        return cls(Web3(Web3.HTTPProvider(rpc_url)), contract_address)

    def lookup(self, claimant: str) -> Dict[str, Any]:
        """
        Raises:
            ClaimStatusError: If the contract call fails
        """
        address = normalize_address(claimant)
        try:
            claimed = self.contract.functions.claimed(address).call()
        except Exception as e:
            logger.error(f"claimed({address}) call on {self.contract_address} failed: {e}")
            raise ClaimStatusError(f"Claim status unavailable: {e}") from e
        return {"claimant": address, "claimed": bool(claimed), "source": self.source}
