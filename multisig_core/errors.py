"""
Structured errors for the multi-signature authorization core.

Every rejection raised by the account is a ``MultiSigError`` carrying a
stable integer code and a small ``context`` dict, so that callers can
classify failures and retry correctly (for example with the current nonce
or the current required-signature count) without string matching and
without re-reading the whole account state.

Hierarchy:
  - DuplicateValidator   : identity already registered
  - UnknownValidator     : identity not registered
  - WouldEmptyRegistry   : removal of the last validator
  - BadSignature         : malformed / unrecoverable signature
  - InsufficientQuorum   : too few distinct valid approvals
      - StaleNonce       : governance request bound to an outdated nonce
  - InvalidThreshold     : threshold outside [0, 100]
  - TargetCallFailed     : call-forward target reverted
  - TransferFailed       : balance store refused a transfer
  - InvariantViolation   : post-action state check failed
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Mapping, Optional


class ErrorCode(IntEnum):
    """Stable error codes for authorization-core exceptions."""
    GENERIC              = 3000
    DUPLICATE_VALIDATOR  = 3001
    UNKNOWN_VALIDATOR    = 3002
    WOULD_EMPTY_REGISTRY = 3003
    BAD_SIGNATURE        = 3004
    INSUFFICIENT_QUORUM  = 3005
    STALE_NONCE          = 3006
    INVALID_THRESHOLD    = 3007
    TARGET_CALL_FAILED   = 3008
    TRANSFER_FAILED      = 3009
    INVARIANT_VIOLATION  = 3010


class MultiSigError(Exception):
    """
    Base class for every error raised by the authorization core.

    Parameters
    ----------
    message : str
        Human-readable description.
    code : ErrorCode | int, optional
        Overrides the class-level default code.
    context : Mapping[str, Any] | None
        Small structured fields describing the failure.
    """

    code: int = ErrorCode.GENERIC

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | int | None = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        if code is not None:
            self.code = int(code)
        else:
            self.code = int(type(self).code)
        self.context: dict[str, Any] = dict(context) if context else {}

    def __str__(self) -> str:
        tail = f" context={self.context}" if self.context else ""
        return f"[{self.code}] {self.message}{tail}"

    def to_dict(self) -> dict[str, Any]:
        """Structured view suitable for logs or API error payloads."""
        out: dict[str, Any] = {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
        }
        if self.context:
            out["context"] = dict(self.context)
        return out


class DuplicateValidator(MultiSigError):
    code = ErrorCode.DUPLICATE_VALIDATOR


class UnknownValidator(MultiSigError):
    code = ErrorCode.UNKNOWN_VALIDATOR


class WouldEmptyRegistry(MultiSigError):
    code = ErrorCode.WOULD_EMPTY_REGISTRY


class BadSignature(MultiSigError):
    code = ErrorCode.BAD_SIGNATURE


class InsufficientQuorum(MultiSigError):
    """Fewer distinct registered approvals than the quorum requires."""

    code = ErrorCode.INSUFFICIENT_QUORUM

    @property
    def found(self) -> int | None:
        return self.context.get("found")

    @property
    def required(self) -> int | None:
        return self.context.get("required")

    @property
    def nonce(self) -> int | None:
        return self.context.get("nonce")


class StaleNonce(InsufficientQuorum):
    """A governance request signed against a nonce that is no longer current."""

    code = ErrorCode.STALE_NONCE


class InvalidThreshold(MultiSigError):
    code = ErrorCode.INVALID_THRESHOLD


class TargetCallFailed(MultiSigError):
    code = ErrorCode.TARGET_CALL_FAILED


class TransferFailed(MultiSigError):
    code = ErrorCode.TRANSFER_FAILED


class InvariantViolation(MultiSigError):
    code = ErrorCode.INVARIANT_VIOLATION
