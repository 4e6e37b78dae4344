"""
Signature verification against a validator registry.

Two independent stages:

1. ``recover_signers`` turns (digest, signature) pairs into addresses.  It
   knows nothing about validators and fails on the first malformed
   signature.
2. ``evaluate`` / ``verify_quorum`` keep only registered identities, count
   each identity once, and compare the count with the required quorum.

Signatures are always checked over the personal-message hash of the
digest, matching what ``personal_sign`` produces in a wallet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Container, Iterable

from multisig_core.crypto_utils import eth_signed_message_hash, recover_address
from multisig_core.errors import BadSignature, InsufficientQuorum

logger = logging.getLogger("multisig_verifier")

Signature = bytes | bytearray | str


def signature_bytes(signature: Signature) -> bytes:
    """Accept raw bytes or a (``0x``-prefixed) hex string."""
    if isinstance(signature, (bytes, bytearray)):
        return bytes(signature)
    if isinstance(signature, str):
        text = signature[2:] if signature[:2] in ("0x", "0X") else signature
        try:
            return bytes.fromhex(text)
        except ValueError:
            raise BadSignature("Signature is not valid hex") from None
    raise BadSignature(f"Unsupported signature type: {type(signature).__name__}")


def recover_signers(digest: bytes, signatures: Iterable[Signature]) -> list[str]:
    """Recover the signer of every signature, in the order supplied."""
    msg_hash = eth_signed_message_hash(digest)
    signers: list[str] = []
    for index, signature in enumerate(signatures):
        try:
            signer = recover_address(msg_hash, signature_bytes(signature))
        except BadSignature as exc:
            raise BadSignature(
                f"Signature #{index} is malformed: {exc.message}",
                context={"index": index, **exc.context},
            ) from exc
        logger.debug(f"Signature #{index} recovered to {signer}")
        signers.append(signer)
    return signers


@dataclass(frozen=True)
class QuorumResult:
    """Outcome of counting approvals for one digest."""
    approved: frozenset[str]        # distinct registered signers
    required: int
    ignored: frozenset[str]         # recovered signers that are not validators

    @property
    def found(self) -> int:
        return len(self.approved)

    @property
    def met(self) -> bool:
        return self.found >= self.required

    def to_dict(self) -> dict:
        return {
            "approved": sorted(self.approved),
            "required": self.required,
            "found": self.found,
            "ignored": sorted(self.ignored),
            "met": self.met,
        }


def evaluate(
    digest: bytes,
    signatures: Iterable[Signature],
    registry: Container[str],
    required: int,
) -> QuorumResult:
    """Count distinct registered approvals without raising on a short quorum."""
    approved: set[str] = set()
    ignored: set[str] = set()
    for signer in recover_signers(digest, signatures):
        if signer in registry:
            approved.add(signer)
        else:
            ignored.add(signer)
    return QuorumResult(frozenset(approved), required, frozenset(ignored))


def verify_quorum(
    digest: bytes,
    signatures: Iterable[Signature],
    registry: Container[str],
    required: int,
) -> frozenset[str]:
    """Return the approving validators, or raise InsufficientQuorum."""
    result = evaluate(digest, signatures, registry, required)
    if not result.met:
        raise InsufficientQuorum(
            f"Quorum not met: {result.found}/{result.required}",
            context={"found": result.found, "required": result.required},
        )
    return result.approved
