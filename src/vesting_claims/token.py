"""
Token Transfer Collaborators

The claim engine only needs one capability from the token: move ``amount``
from the vesting authority's balance to a claimant, or report failure with
``TransferError``. This module defines that protocol and two providers:

- InMemoryToken / TokenAccount: a balance-tracking ERC20 stand-in for local
  simulation and tests
- Web3TokenTransfer: a real ERC20 ``transfer`` sent through web3
"""

import logging
import threading
from typing import Callable, Dict, Optional, Protocol

from web3 import Web3

from .errors import TransferError
from .utils.hex_helpers import normalize_address

logger = logging.getLogger(__name__)

ERC20_ABI = [
    {
        "constant": False,
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [{"name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]


class TokenTransfer(Protocol):
    """Capability consumed by the vesting authority."""

    def transfer(self, to: str, amount: int) -> None:
        """Deliver ``amount`` to ``to`` or raise ``TransferError``."""
        ...


class InMemoryToken:
    """
    Minimal ERC20-style ledger of balances.

    Attributes:
        symbol: Display symbol
        on_transfer: Optional hook invoked after every successful transfer
            with ``(sender, recipient, amount)``
    """

    def __init__(self, symbol: str = "VEST", on_transfer: Optional[Callable[[str, str, int], None]] = None):
        self.symbol = symbol
        self.on_transfer = on_transfer
        self._balances: Dict[str, int] = {}
        self._lock = threading.Lock()

    def mint(self, to: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Cannot mint a negative amount")
        address = normalize_address(to)
        with self._lock:
            self._balances[address] = self._balances.get(address, 0) + amount

    def balance_of(self, account: str) -> int:
        return self._balances.get(normalize_address(account), 0)

    def transfer_from_to(self, sender: str, recipient: str, amount: int) -> None:
        """
        Move ``amount`` between two accounts.

        Raises:
            TransferError: On negative amounts or insufficient balance
        """
        source = normalize_address(sender)
        target = normalize_address(recipient)
        if amount < 0:
            raise TransferError(f"Negative transfer amount: {amount}")
        with self._lock:
            available = self._balances.get(source, 0)
            if available < amount:
                raise TransferError(
                    f"Transfer amount exceeds balance ({available} < {amount})"
                )
            self._balances[source] = available - amount
            self._balances[target] = self._balances.get(target, 0) + amount
        logger.debug(f"{self.symbol}: {source} -> {target} {amount}")
        if self.on_transfer is not None:
            self.on_transfer(source, target, amount)

    def account(self, holder: str) -> "TokenAccount":
        """Transfer capability that spends from ``holder``'s balance."""
        return TokenAccount(self, holder)


class TokenAccount:
    """``TokenTransfer`` bound to one holder of an ``InMemoryToken``."""

    def __init__(self, token: InMemoryToken, holder: str):
        self.token = token
        self.holder = normalize_address(holder)

    @property
    def balance(self) -> int:
        return self.token.balance_of(self.holder)

    def transfer(self, to: str, amount: int) -> None:
        self.token.transfer_from_to(self.holder, to, amount)


class Web3TokenTransfer:
    """
    ``TokenTransfer`` backed by an ERC20 contract reached through web3.

    The sending account must be unlocked on the node (or managed by a
    signing middleware) and hold the vested balance.
    """

    def __init__(self, w3: Web3, token_address: str, sender: str, receipt_timeout: int = 120):
        self.w3 = w3
        self.sender = normalize_address(sender)
        self.token_address = normalize_address(token_address)
        self.receipt_timeout = receipt_timeout
        self.contract = w3.eth.contract(address=self.token_address, abi=ERC20_ABI)

    @classmethod
    def from_rpc_url(cls, rpc_url: str, token_address: str, sender: str) -> "Web3TokenTransfer":
        return cls(Web3(Web3.HTTPProvider(rpc_url)), token_address, sender)

    def balance_of(self, account: str) -> int:
        return self.contract.functions.balanceOf(normalize_address(account)).call()

    def transfer(self, to: str, amount: int) -> None:
        """
        Send ``amount`` tokens to ``to`` and wait for the receipt.

        The call is simulated first: a token that returns ``false`` instead
        of reverting is rejected before any transaction is sent.

        Raises:
            TransferError: On a ``false`` return, an RPC failure or a reverted receipt
        """
        recipient = normalize_address(to)
        transfer_fn = self.contract.functions.transfer(recipient, amount)
        try:
            accepted = transfer_fn.call({"from": self.sender})
        except Exception as e:
            logger.error(f"ERC20 transfer of {amount} to {recipient} failed simulation: {e}")
            raise TransferError(f"Transfer failed: {e}") from e
        if not accepted:
            raise TransferError(f"Token {self.token_address} returned false for transfer to {recipient}")

        try:
            tx_hash = transfer_fn.transact({"from": self.sender})
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except Exception as e:
            logger.error(f"ERC20 transfer of {amount} to {recipient} failed: {e}")
            raise TransferError(f"Transfer failed: {e}") from e

        if receipt.get("status") != 1:
            raise TransferError(
                f"Transfer transaction {Web3.to_hex(tx_hash)} reverted"
            )
        logger.info(f"Transferred {amount} to {recipient} in {Web3.to_hex(tx_hash)}")
