"""
Post-action invariant checks for a multi-signature account.

  - The validator registry holds no duplicates
  - The validator registry is never empty
  - The threshold stays within [0, 100]
  - The nonce never decreases and advances by at most one per action
  - A change to the registry or threshold is always paired with a nonce
    advance

The account captures a snapshot before each action and verifies it
afterwards.  A failed check aborts the action and the environment rolls
the state back.
"""

from __future__ import annotations

from dataclasses import dataclass

from multisig_core.quorum import MAX_THRESHOLD, MIN_THRESHOLD


@dataclass(frozen=True)
class AccountSnapshot:
    """Governance state of an account before an action."""
    validators: tuple[str, ...]
    threshold: int
    nonce: int


class InvariantChecker:
    """Captures account state before an action and validates it afterwards."""

    def __init__(self):
        self._snapshot: AccountSnapshot | None = None

    def capture(self, account) -> AccountSnapshot:
        snap = AccountSnapshot(
            validators=tuple(account.get_validators()),
            threshold=account.threshold,
            nonce=account.nonce,
        )
        self._snapshot = snap
        return snap

    def verify(self, account, snapshot: AccountSnapshot | None = None) -> tuple[bool, str]:
        """
        Verify all invariants against the account's current state.
        Returns (passed, error_message).
        """
        snap = snapshot if snapshot is not None else self._snapshot
        validators = list(account.get_validators())
        threshold = account.threshold
        nonce = account.nonce
        errors: list[str] = []

        if len(set(validators)) != len(validators):
            errors.append("Validator registry contains duplicates")
        if not validators:
            errors.append("Validator registry is empty")
        if not MIN_THRESHOLD <= threshold <= MAX_THRESHOLD:
            errors.append(f"Threshold {threshold} out of range")

        if snap is not None:
            if nonce < snap.nonce:
                errors.append(f"Nonce decreased: {snap.nonce} -> {nonce}")
            elif nonce - snap.nonce > 1:
                errors.append(f"Nonce skipped: {snap.nonce} -> {nonce}")
            governance_changed = (
                tuple(validators) != snap.validators or threshold != snap.threshold
            )
            if governance_changed and nonce != snap.nonce + 1:
                errors.append("Governance state changed without a nonce advance")

        if errors:
            return False, "; ".join(errors)
        return True, ""
