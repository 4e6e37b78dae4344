"""
Validator registry for a multi-signature account.

An ordered, duplicate-free list of validator identities that always holds
at least one entry.  New validators are appended; removal compacts the
list while preserving the relative order of the remaining entries.

The registry only guards its own shape.  Quorum checks, nonce advancement
and event emission belong to the account that owns it.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from multisig_core.crypto_utils import normalize_address
from multisig_core.errors import DuplicateValidator, UnknownValidator, WouldEmptyRegistry


class ValidatorRegistry:
    """Ordered set of validator addresses."""

    def __init__(self, validators: Iterable[str | bytes]):
        self._validators: list[str] = []
        for validator in validators:
            self.add(validator)
        if not self._validators:
            raise WouldEmptyRegistry("A validator registry needs at least one validator")

    # ---- queries ----

    def contains(self, identity: str | bytes) -> bool:
        try:
            return normalize_address(identity) in self._validators
        except (TypeError, ValueError):
            return False

    def length(self) -> int:
        return len(self._validators)

    def at(self, index: int) -> str:
        if not 0 <= index < len(self._validators):
            raise IndexError(f"Validator index {index} out of range")
        return self._validators[index]

    def index_of(self, identity: str | bytes) -> int:
        identity = normalize_address(identity)
        try:
            return self._validators.index(identity)
        except ValueError:
            raise UnknownValidator(
                f"{identity} is not a validator", context={"validator": identity},
            ) from None

    def to_list(self) -> list[str]:
        return list(self._validators)

    # ---- pre-checks (no mutation) ----

    def check_can_add(self, identity: str | bytes) -> str:
        identity = normalize_address(identity)
        if identity in self._validators:
            raise DuplicateValidator(
                f"{identity} is already a validator", context={"validator": identity},
            )
        return identity

    def check_can_remove(self, identity: str | bytes) -> str:
        identity = normalize_address(identity)
        if identity not in self._validators:
            raise UnknownValidator(
                f"{identity} is not a validator", context={"validator": identity},
            )
        if len(self._validators) == 1:
            raise WouldEmptyRegistry(
                f"Cannot remove {identity}: it is the last validator",
                context={"validator": identity},
            )
        return identity

    # ---- mutation ----

    def add(self, identity: str | bytes) -> str:
        """Append a new validator. Returns its canonical address."""
        identity = self.check_can_add(identity)
        self._validators.append(identity)
        return identity

    def remove(self, identity: str | bytes) -> str:
        """Remove a validator, keeping the order of the others."""
        identity = self.check_can_remove(identity)
        self._validators.remove(identity)
        return identity

    # ---- rollback support ----

    def snapshot(self) -> tuple[str, ...]:
        return tuple(self._validators)

    def restore(self, state: tuple[str, ...]) -> None:
        self._validators = list(state)

    # ---- dunder ----

    def __contains__(self, identity: object) -> bool:
        if not isinstance(identity, (str, bytes, bytearray)):
            return False
        return self.contains(identity)

    def __len__(self) -> int:
        return len(self._validators)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._validators))

    def __repr__(self) -> str:
        return f"ValidatorRegistry({self._validators})"
