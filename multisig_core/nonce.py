"""
Account-wide governance nonce.

Starts at zero and advances by exactly one after every applied governance
action (add validator, remove validator, update threshold).  Governance
digests embed the current value, so an approval can be used once.
"""

from __future__ import annotations


class NonceLedger:
    """A monotonic counter scoped to one account."""

    def __init__(self, start: int = 0):
        if isinstance(start, bool) or not isinstance(start, int) or start < 0:
            raise ValueError(f"Nonce must be a non-negative integer, got {start!r}")
        self._value = start

    def current(self) -> int:
        return self._value

    def advance(self) -> int:
        """Increment by one and return the new value."""
        self._value += 1
        return self._value

    def matches(self, nonce: object) -> bool:
        return isinstance(nonce, int) and not isinstance(nonce, bool) and nonce == self._value

    def restore(self, value: int) -> None:
        """Reset to a previously captured value (transaction rollback only)."""
        self._value = value

    def __repr__(self) -> str:
        return f"NonceLedger({self._value})"
