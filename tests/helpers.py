"""
Shared fixtures for the vesting claims test suites.

Keys are the well-known Hardhat development accounts #0-#2.
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from web3 import Web3

from vesting_claims.allocations import Allocation, AllocationTable
from vesting_claims.authority import DEFAULT_VESTING_PERIOD, VestingAuthority
from vesting_claims.hashing import keccak256
from vesting_claims.token import InMemoryToken

OWNER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
OWNER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

CLAIMANT_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
CLAIMANT = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

OTHER_KEY = "0x5de4111afa1a4b94908f83103eb1f1706367c2e68ca870fc3fb9a804cdab365a"
OTHER = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"

VAULT = "0x000000000000000000000000000000000000dEaD"

T0 = 1_700_000_000


def make_address(seed: int) -> str:
    """Deterministic filler address."""
    return Web3.to_checksum_address("0x" + keccak256(seed.to_bytes(32, "big"))[-20:].hex())


class ManualClock:
    """Settable time source."""

    def __init__(self, now: int = T0):
        self.now = now

    def advance(self, seconds: int) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


def build_table(filler: int = 40, unlock_time=T0) -> AllocationTable:
    """
    Allocation table shaped like the deployment fixture: many filler
    allocations of 10, the owner at 10 and the claimant at 5.
    """
    allocations = [Allocation(make_address(i), 10, unlock_time) for i in range(filler)]
    allocations.append(Allocation(OWNER, 10, unlock_time))
    allocations.append(Allocation(CLAIMANT, 5, unlock_time))
    return AllocationTable(allocations)


def deploy(table: AllocationTable = None, balance: int = 10, **kwargs):
    """
    Deploy an authority funded with ``balance`` tokens.

    Returns:
        Tuple of (authority, token, table, clock)
    """
    table = table or build_table()
    token = InMemoryToken()
    token.mint(VAULT, balance)
    clock = kwargs.pop("clock", ManualClock())
    authority = VestingAuthority(
        owner=OWNER,
        token=token.account(VAULT),
        merkle_root=table.root,
        clock=clock,
        **kwargs,
    )
    return authority, token, table, clock


def past_cliff(clock: ManualClock) -> None:
    clock.advance(DEFAULT_VESTING_PERIOD)
