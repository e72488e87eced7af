"""
Configuration

Settings are read from the environment, with a ``.env`` file loaded first
when present.

Environment variables:
    VESTING_OWNER             Owner address allowed to rotate trust anchors
    VESTING_ADMIN_SIGNER      Admin signer address (defaults to the owner)
    VESTING_MERKLE_ROOT       Initial trusted root (32-byte hex)
    VESTING_CLIFF_POLICY      "per_leaf" (default) or "fixed"
    VESTING_CLIFF_TIMESTAMP   Cliff timestamp, required for "fixed"
    VESTING_PERIOD_SECONDS    Offset added to unlock times for "per_leaf"
    VESTING_ALLOCATIONS_FILE  Allocation table (JSON or CSV)
    VESTING_RPC_URL           JSON-RPC endpoint for on-chain claim status
    VESTING_CONTRACT_ADDRESS  Deployed vesting contract exposing claimed(address)
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .authority import DEFAULT_VESTING_PERIOD, CliffPolicy, FixedAnchor, PerLeafOffset

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

CLIFF_POLICY_PER_LEAF = "per_leaf"
CLIFF_POLICY_FIXED = "fixed"


@dataclass
class VestingSettings:
    owner: Optional[str] = None
    admin_signer: Optional[str] = None
    merkle_root: Optional[str] = None
    cliff_policy: str = CLIFF_POLICY_PER_LEAF
    cliff_timestamp: Optional[int] = None
    vesting_period: int = DEFAULT_VESTING_PERIOD
    allocations_file: Optional[str] = None
    rpc_url: Optional[str] = None
    contract_address: Optional[str] = None

    @classmethod
    def from_env(cls) -> "VestingSettings":
        """Build settings from ``VESTING_*`` environment variables."""
        cliff_timestamp = os.getenv('VESTING_CLIFF_TIMESTAMP')
        vesting_period = _parse_int('VESTING_PERIOD_SECONDS', os.getenv('VESTING_PERIOD_SECONDS'))
        if vesting_period is None:
            vesting_period = DEFAULT_VESTING_PERIOD
        elif vesting_period < 0:
            raise ValueError(f"VESTING_PERIOD_SECONDS must not be negative, got {vesting_period}")
        return cls(
            owner=os.getenv('VESTING_OWNER'),
            admin_signer=os.getenv('VESTING_ADMIN_SIGNER'),
            merkle_root=os.getenv('VESTING_MERKLE_ROOT'),
            cliff_policy=os.getenv('VESTING_CLIFF_POLICY', CLIFF_POLICY_PER_LEAF).lower(),
            cliff_timestamp=_parse_int('VESTING_CLIFF_TIMESTAMP', cliff_timestamp),
            vesting_period=vesting_period,
            allocations_file=os.getenv('VESTING_ALLOCATIONS_FILE'),
            rpc_url=os.getenv('VESTING_RPC_URL'),
            contract_address=os.getenv('VESTING_CONTRACT_ADDRESS'),
        )

    def build_cliff_policy(self) -> CliffPolicy:
        """
        Resolve the configured cliff policy.

        Raises:
            ValueError: On an unknown policy name or a missing fixed timestamp
        """
        if self.cliff_policy == CLIFF_POLICY_PER_LEAF:
            return PerLeafOffset(self.vesting_period)
        if self.cliff_policy == CLIFF_POLICY_FIXED:
            if self.cliff_timestamp is None:
                raise ValueError("VESTING_CLIFF_TIMESTAMP environment variable is not set")
            return FixedAnchor(self.cliff_timestamp)
        raise ValueError(
            f"Unknown VESTING_CLIFF_POLICY '{self.cliff_policy}' "
            f"(expected '{CLIFF_POLICY_PER_LEAF}' or '{CLIFF_POLICY_FIXED}')"
        )

    def require(self, name: str) -> str:
        """Return a setting or fail naming its environment variable."""
        value = getattr(self, name)
        if value is None:
            raise ValueError(f"VESTING_{name.upper()} environment variable is not set")
        return value


def _parse_int(name: str, value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{value}'")
