"""
Multi-signature account: the authorization and dispatch engine.

The account is controlled by a registry of validators rather than by a
single key.  Every state change or value movement must carry signatures
from enough distinct validators to meet the threshold:

  Governance (nonce-bound):
    - add_validator(signatures, new_validator, nonce)
    - remove_validator(signatures, validator, nonce)
    - update_threshold(signatures, new_threshold, nonce)

  Value (not nonce-bound):
    - transfer(signatures, recipient, amount, reference)
    - call(signatures, target, value, function_signature, data, flag)

Authorization is purely signature-based; the submitter's own identity is
never consulted.  Each request is validated, checked against a freshly
computed quorum and applied inside one ``environment.atomic()`` block, so
a rejected request changes nothing.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Sequence

from multisig_core import abi, message_hash
from multisig_core.crypto_utils import normalize_address
from multisig_core.environment import Contract, ExecutionEnvironment, Revert
from multisig_core.errors import (
    InsufficientQuorum,
    InvariantViolation,
    MultiSigError,
    StaleNonce,
    TargetCallFailed,
    TransferFailed,
)
from multisig_core.invariants import InvariantChecker
from multisig_core.message_hash import ActionKind
from multisig_core.nonce import NonceLedger
from multisig_core.quorum import DEFAULT_THRESHOLD, required_count, validate_threshold
from multisig_core.registry import ValidatorRegistry
from multisig_core.token import FungibleToken
from multisig_core.verifier import Signature, verify_quorum

logger = logging.getLogger("multisig_account")


@dataclass
class AccountEvent:
    """Record of one applied action, for external observers."""
    kind: str
    nonce: int                  # nonce the action was authorised against
    approvals: list[str]        # distinct validators whose signatures counted
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "nonce": self.nonce,
            "approvals": list(self.approvals),
            "details": dict(self.details),
            "timestamp": self.timestamp,
        }


def _check_uint(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
    if value >= 1 << 256:
        raise ValueError(f"{name} does not fit in 256 bits")
    return value


class MultiSignatureAccount(Contract):
    """A self-custodying account governed by threshold signatures."""

    def __init__(
        self,
        environment: ExecutionEnvironment,
        address: str,
        validators: Iterable[str],
        token: str,
        threshold: int = DEFAULT_THRESHOLD,
    ):
        self.environment = environment
        self.address = normalize_address(address)
        self.registry = ValidatorRegistry(validators)
        self._threshold = validate_threshold(threshold)
        self.nonce_ledger = NonceLedger()
        self._token = normalize_address(token)
        self.events: list[AccountEvent] = []
        self._invariants = InvariantChecker()
        environment.register(self)
        logger.info(
            f"Account {self.address} ready: {len(self.registry)} validators, "
            f"threshold {self._threshold}%, token {self._token}"
        )

    # ---- read accessors ----

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def nonce(self) -> int:
        return self.nonce_ledger.current()

    @property
    def token_contract(self) -> str:
        return self._token

    def validators(self, index: int) -> str:
        return self.registry.at(index)

    def get_validators_length(self) -> int:
        return self.registry.length()

    def get_validators(self) -> list[str]:
        return self.registry.to_list()

    def is_validator(self, identity: str) -> bool:
        return self.registry.contains(identity)

    def required_signatures(self) -> int:
        """Quorum for the current state (recomputed on every call)."""
        return required_count(self.registry.length(), self._threshold)

    @property
    def balance_store(self) -> FungibleToken:
        store = self.environment.contract_at(self._token)
        if store is None:
            raise LookupError(f"No balance store deployed at {self._token}")
        if not isinstance(store, FungibleToken):
            raise LookupError(f"Contract at {self._token} is not a balance store")
        return store

    def held_balance(self) -> int:
        return self.balance_store.balance_of(self.address)

    def native_balance(self) -> int:
        return self.environment.native_balance(self.address)

    # ---- governance actions ----

    def add_validator(
        self, signatures: Sequence[Signature], new_validator: str, nonce: int,
    ) -> AccountEvent:
        """Append *new_validator* to the registry."""
        new_validator = normalize_address(new_validator)

        def apply() -> AccountEvent:
            self.registry.check_can_add(new_validator)
            approvals = self._authorize_governance(
                ActionKind.ADD_VALIDATOR, (new_validator,), nonce, signatures,
            )
            self.registry.add(new_validator)
            return self._advance(ActionKind.ADD_VALIDATOR, approvals, {"validator": new_validator})

        return self._execute(ActionKind.ADD_VALIDATOR, apply)

    def remove_validator(
        self, signatures: Sequence[Signature], validator: str, nonce: int,
    ) -> AccountEvent:
        """Remove *validator*, preserving the order of the others."""
        validator = normalize_address(validator)

        def apply() -> AccountEvent:
            self.registry.check_can_remove(validator)
            approvals = self._authorize_governance(
                ActionKind.REMOVE_VALIDATOR, (validator,), nonce, signatures,
            )
            self.registry.remove(validator)
            return self._advance(ActionKind.REMOVE_VALIDATOR, approvals, {"validator": validator})

        return self._execute(ActionKind.REMOVE_VALIDATOR, apply)

    def update_threshold(
        self, signatures: Sequence[Signature], new_threshold: int, nonce: int,
    ) -> AccountEvent:
        """Replace the threshold percentage."""
        def apply() -> AccountEvent:
            validate_threshold(new_threshold)
            approvals = self._authorize_governance(
                ActionKind.UPDATE_THRESHOLD, (new_threshold,), nonce, signatures,
            )
            previous = self._threshold
            self._threshold = new_threshold
            return self._advance(
                ActionKind.UPDATE_THRESHOLD, approvals,
                {"previous": previous, "threshold": new_threshold},
            )

        return self._execute(ActionKind.UPDATE_THRESHOLD, apply)

    # ---- value actions ----

    def transfer(
        self,
        signatures: Sequence[Signature],
        recipient: str,
        amount: int,
        reference: str,
    ) -> AccountEvent:
        """Move *amount* of the held asset to *recipient*."""
        recipient = normalize_address(recipient)
        _check_uint("amount", amount)
        if not isinstance(reference, str):
            raise ValueError("reference must be a string")

        def apply() -> AccountEvent:
            digest = message_hash.transfer_digest(self.address, recipient, amount, reference)
            approvals = self._verify(digest, signatures)
            try:
                store = self.balance_store
            except LookupError as exc:
                raise TransferFailed(str(exc), context={"token": self._token}) from exc
            if not store.transfer(self.address, recipient, amount):
                raise TransferFailed(
                    f"Balance store refused transfer of {amount} to {recipient}",
                    context={"amount": amount, "balance": store.balance_of(self.address)},
                )
            return AccountEvent(
                ActionKind.TRANSFER.value, self.nonce, sorted(approvals),
                {"recipient": recipient, "amount": amount, "reference": reference},
            )

        return self._execute(ActionKind.TRANSFER, apply)

    def call(
        self,
        signatures: Sequence[Signature],
        target: str,
        value: int,
        function_signature: str,
        data: bytes,
        flag: int = 0,
    ) -> AccountEvent:
        """
        Forward *value* and a payload to an arbitrary *target*.

        The payload is the selector of *function_signature* (when given)
        followed by *data*.  *flag* is bound into the digest and reported
        in the event but otherwise uninterpreted.  A revert in the target
        fails the whole action.
        """
        target = normalize_address(target)
        _check_uint("value", value)
        _check_uint("flag", flag)
        if not isinstance(function_signature, str) or not function_signature.isascii():
            raise ValueError("function_signature must be an ASCII string")
        if not isinstance(data, (bytes, bytearray)):
            raise ValueError("data must be bytes")
        data = bytes(data)

        def apply() -> AccountEvent:
            digest = message_hash.call_digest(
                self.address, target, value, function_signature, data, flag,
            )
            approvals = self._verify(digest, signatures)
            selector = abi.function_selector(function_signature) if function_signature else b""
            try:
                result = self.environment.call(self.address, target, value, selector + data)
            except Revert as exc:
                raise TargetCallFailed(
                    f"Call to {target} failed: {exc.reason}",
                    context={"target": target, "reason": exc.reason},
                ) from exc
            return AccountEvent(
                ActionKind.CALL.value, self.nonce, sorted(approvals),
                {
                    "target": target,
                    "value": value,
                    "function": function_signature,
                    "data": data.hex(),
                    "flag": flag,
                    "return_data": result.hex(),
                },
            )

        return self._execute(ActionKind.CALL, apply)

    call_forward = call

    # ---- Contract interface ----

    def snapshot(self) -> tuple[tuple[str, ...], int, int]:
        return self.registry.snapshot(), self._threshold, self.nonce_ledger.current()

    def restore(self, state: tuple[tuple[str, ...], int, int]) -> None:
        validators, threshold, nonce = state
        self.registry.restore(validators)
        self._threshold = threshold
        self.nonce_ledger.restore(nonce)

    def handle_call(self, sender: str, value: int, calldata: bytes) -> bytes:
        # Plain deposits only; every action goes through the signed entry points
        if calldata:
            raise Revert("MultiSignature account has no callable functions")
        return b""

    # ---- internals ----

    def _execute(self, kind: ActionKind, apply: Callable[[], AccountEvent]) -> AccountEvent:
        try:
            with self.environment.atomic():
                before = self._invariants.capture(self)
                event = apply()
                passed, message = self._invariants.verify(self, before)
                if not passed:
                    raise InvariantViolation(message, context={"action": kind.value})
                self.events.append(event)
        except MultiSigError as exc:
            logger.warning(f"Rejected {kind.value} on {self.address}: {exc}")
            raise
        logger.info(
            f"Applied {kind.value} on {self.address} with "
            f"{len(event.approvals)} approvals (nonce now {self.nonce})",
            extra={"action": kind.value, "account": self.address, "nonce": self.nonce},
        )
        return event

    def _authorize_governance(
        self,
        kind: ActionKind,
        params: tuple,
        nonce: int,
        signatures: Sequence[Signature],
    ) -> frozenset[str]:
        current = self.nonce_ledger.current()
        if not self.nonce_ledger.matches(nonce):
            raise StaleNonce(
                f"{kind.value} signed for nonce {nonce!r}, current nonce is {current}",
                context={
                    "supplied_nonce": nonce,
                    "nonce": current,
                    "found": 0,
                    "required": self.required_signatures(),
                },
            )
        digest = message_hash.digest(kind, params, self.address, current)
        return self._verify(digest, signatures)

    def _verify(self, digest: bytes, signatures: Sequence[Signature]) -> frozenset[str]:
        try:
            return verify_quorum(digest, signatures, self.registry, self.required_signatures())
        except InsufficientQuorum as exc:
            exc.context.setdefault("nonce", self.nonce)
            raise

    def _advance(
        self, kind: ActionKind, approvals: frozenset[str], details: dict[str, Any],
    ) -> AccountEvent:
        authorised_at = self.nonce_ledger.current()
        self.nonce_ledger.advance()
        return AccountEvent(kind.value, authorised_at, sorted(approvals), details)

    def __repr__(self) -> str:
        return (
            f"MultiSignatureAccount({self.address}, validators={len(self.registry)}, "
            f"threshold={self._threshold}, nonce={self.nonce})"
        )
