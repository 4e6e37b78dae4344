"""
In-process execution environment that hosts multi-signature accounts.

Stands in for the ledger that runs the account:
  - Contracts are registered by address and receive calls through
    ``handle_call(sender, value, calldata)``
  - Native value balances are tracked per address
  - Actions are serialised with a re-entrant lock
  - ``atomic()`` snapshots every hosted contract and the native balances,
    and restores them if the block raises, so a failed action leaves no
    trace
"""

from __future__ import annotations

import contextlib
import logging
import threading
from typing import Any, Iterator

from multisig_core.crypto_utils import normalize_address

logger = logging.getLogger("multisig_environment")


class Revert(Exception):
    """Raised by a contract (or the environment) to abort a call."""

    def __init__(self, reason: str = ""):
        super().__init__(reason)
        self.reason = reason


class Contract:
    """Base class for anything hosted in an ExecutionEnvironment."""

    address: str

    def snapshot(self) -> Any:
        raise NotImplementedError

    def restore(self, state: Any) -> None:
        raise NotImplementedError

    def handle_call(self, sender: str, value: int, calldata: bytes) -> bytes:
        raise Revert(f"{type(self).__name__} does not accept calls")


class ExecutionEnvironment:
    """Hosts contracts and native balances with all-or-nothing execution."""

    def __init__(self):
        self._contracts: dict[str, Contract] = {}
        self._native: dict[str, int] = {}
        self._lock = threading.RLock()

    # ---- contracts ----

    def register(self, contract: Contract) -> Contract:
        address = normalize_address(contract.address)
        with self._lock:
            if address in self._contracts:
                raise ValueError(f"A contract is already deployed at {address}")
            self._contracts[address] = contract
        logger.info(f"Deployed {type(contract).__name__} at {address}")
        return contract

    def contract_at(self, address: str) -> Contract | None:
        return self._contracts.get(normalize_address(address))

    # ---- native value ----

    def native_balance(self, address: str) -> int:
        return self._native.get(normalize_address(address), 0)

    def fund(self, address: str, amount: int) -> None:
        """Credit native value out of thin air (genesis / test setup)."""
        if amount < 0:
            raise ValueError("Funding amount must be non-negative")
        address = normalize_address(address)
        with self._lock:
            self._native[address] = self._native.get(address, 0) + amount

    def transfer_value(self, sender: str, recipient: str, amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise Revert(f"Invalid value amount: {amount!r}")
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)
        with self._lock:
            available = self._native.get(sender, 0)
            if available < amount:
                raise Revert(f"Insufficient native balance: {available} < {amount}")
            self._native[sender] = available - amount
            self._native[recipient] = self._native.get(recipient, 0) + amount

    # ---- execution ----

    @contextlib.contextmanager
    def atomic(self) -> Iterator[ExecutionEnvironment]:
        """Run a block as one indivisible step; roll everything back on error."""
        with self._lock:
            state = self._snapshot()
            try:
                yield self
            except Exception:
                self._restore(state)
                raise

    def call(self, sender: str, target: str, value: int = 0, calldata: bytes = b"") -> bytes:
        """
        Send *value* and *calldata* from *sender* to *target*.

        Plain addresses accept any call.  Hosted contracts dispatch through
        ``handle_call``; a ``Revert`` undoes the value movement as well.
        """
        with self.atomic():
            if value:
                self.transfer_value(sender, target, value)
            contract = self.contract_at(target)
            if contract is None:
                return b""
            return contract.handle_call(normalize_address(sender), value, bytes(calldata))

    def _snapshot(self) -> tuple[dict[str, Any], dict[str, int]]:
        states = {addr: c.snapshot() for addr, c in self._contracts.items()}
        return states, dict(self._native)

    def _restore(self, state: tuple[dict[str, Any], dict[str, int]]) -> None:
        states, native = state
        for addr, contract_state in states.items():
            self._contracts[addr].restore(contract_state)
        self._native = native
        logger.debug("Rolled back environment state")
