"""
In-memory fungible balance store.

The asset the multi-signature account holds.  It offers the two
primitives the account consumes (``balance_of`` and ``transfer``) and an
ABI entry point so a quorum can also drive it through a generic call:

    transfer(address,uint256)   -> bool
    balanceOf(address)          -> uint256
    totalSupply()               -> uint256
"""

from __future__ import annotations

from typing import Callable

from multisig_core import abi
from multisig_core.crypto_utils import normalize_address
from multisig_core.environment import Contract, Revert

TRANSFER_SIGNATURE = "transfer(address,uint256)"
BALANCE_OF_SIGNATURE = "balanceOf(address)"
TOTAL_SUPPLY_SIGNATURE = "totalSupply()"


class FungibleToken(Contract):
    """Integer balances keyed by address."""

    def __init__(
        self,
        address: str,
        initial_holder: str | None = None,
        initial_supply: int = 0,
        symbol: str = "MOCK",
    ):
        self.address = normalize_address(address)
        self.symbol = symbol
        self.balances: dict[str, int] = {}
        self._total_supply = 0
        if initial_holder is not None and initial_supply:
            self.mint(initial_holder, initial_supply)
        self._dispatch: dict[bytes, Callable[[str, bytes], bytes]] = {
            abi.function_selector(TRANSFER_SIGNATURE): self._call_transfer,
            abi.function_selector(BALANCE_OF_SIGNATURE): self._call_balance_of,
            abi.function_selector(TOTAL_SUPPLY_SIGNATURE): self._call_total_supply,
        }

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, address: str) -> int:
        return self.balances.get(normalize_address(address), 0)

    def mint(self, to: str, amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise ValueError(f"Invalid mint amount: {amount!r}")
        to = normalize_address(to)
        self.balances[to] = self.balances.get(to, 0) + amount
        self._total_supply += amount

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """Move *amount* from *sender* to *recipient*. False if refused."""
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            return False
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)
        available = self.balances.get(sender, 0)
        if available < amount:
            return False
        self.balances[sender] = available - amount
        self.balances[recipient] = self.balances.get(recipient, 0) + amount
        return True

    # ---- Contract interface ----

    def snapshot(self) -> tuple[dict[str, int], int]:
        return dict(self.balances), self._total_supply

    def restore(self, state: tuple[dict[str, int], int]) -> None:
        balances, total = state
        self.balances = dict(balances)
        self._total_supply = total

    def handle_call(self, sender: str, value: int, calldata: bytes) -> bytes:
        if value:
            raise Revert(f"{self.symbol} does not accept native value")
        if len(calldata) < 4:
            raise Revert("Missing function selector")
        handler = self._dispatch.get(calldata[:4])
        if handler is None:
            raise Revert(f"Unknown function selector 0x{calldata[:4].hex()}")
        return handler(sender, calldata[4:])

    def _call_transfer(self, sender: str, args: bytes) -> bytes:
        try:
            recipient, amount = abi.decode(["address", "uint256"], args)
        except ValueError as exc:
            raise Revert(f"Malformed transfer arguments: {exc}") from exc
        if not self.transfer(sender, recipient, amount):
            raise Revert("Transfer amount exceeds balance")
        return abi.encode(["bool"], [True])

    def _call_balance_of(self, sender: str, args: bytes) -> bytes:
        try:
            (owner,) = abi.decode(["address"], args)
        except ValueError as exc:
            raise Revert(f"Malformed balanceOf arguments: {exc}") from exc
        return abi.encode(["uint256"], [self.balance_of(owner)])

    def _call_total_supply(self, sender: str, args: bytes) -> bytes:
        return abi.encode(["uint256"], [self._total_supply])

    def __repr__(self) -> str:
        return f"FungibleToken({self.symbol} @ {self.address})"
