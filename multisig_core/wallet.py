"""
Validator-side signing for multi-signature approvals.

The account never signs anything itself; approvals are produced off-line
by each validator and handed in as opaque bytes.  This wallet is that
off-line counterpart, used by tooling and tests:
  - Key-pair generation and import
  - Deterministic derivation from a seed phrase
  - Address derivation
  - ``personal_sign``-compatible signing of action digests
"""

from __future__ import annotations

import hashlib
from typing import Any, Sequence

from multisig_core import message_hash
from multisig_core.crypto_utils import (
    CURVE_ORDER,
    derive_address,
    eth_signed_message_hash,
    generate_keypair,
    personal_message_hash,
    public_key_from_private,
    sign_digest,
)
from multisig_core.message_hash import ActionKind


class Wallet:
    """A single validator key-pair."""

    def __init__(self, private_key: bytes, public_key: bytes | None = None):
        if len(private_key) != 32:
            raise ValueError("Private key must be 32 bytes")
        if not 0 < int.from_bytes(private_key, "big") < CURVE_ORDER:
            raise ValueError("Private key out of range for secp256k1")
        self.private_key = bytes(private_key)
        self.public_key = public_key or public_key_from_private(self.private_key)
        self.address = derive_address(self.public_key)

    # ---- factory methods ----

    @classmethod
    def create(cls) -> Wallet:
        """Generate a brand-new random wallet."""
        priv, pub = generate_keypair()
        return cls(priv, pub)

    @classmethod
    def from_private_key(cls, key: str | bytes) -> Wallet:
        """Import a raw 32-byte key or its (``0x``-prefixed) hex form."""
        if isinstance(key, str):
            text = key[2:] if key[:2] in ("0x", "0X") else key
            key = bytes.fromhex(text)
        return cls(bytes(key))

    @classmethod
    def from_seed(cls, seed: str) -> Wallet:
        """
        Derive a wallet deterministically from a seed phrase.

        PBKDF2-HMAC-SHA256 with 600 000 iterations and a fixed salt.
        """
        priv = hashlib.pbkdf2_hmac(
            "sha256", seed.encode("utf-8"), b"MultiSignature/seed/v1", 600_000,
        )
        return cls(priv)

    # ---- signing ----

    def sign_digest(self, digest: bytes) -> bytes:
        """Approve a 32-byte action digest (``personal_sign`` over its bytes)."""
        return sign_digest(self.private_key, eth_signed_message_hash(digest))

    def sign_message(self, message: str | bytes) -> bytes:
        """Sign an arbitrary message with the personal-message prefix."""
        if isinstance(message, str):
            message = message.encode("utf-8")
        return sign_digest(self.private_key, personal_message_hash(message))

    def sign_action(
        self,
        action_kind: ActionKind | str,
        parameters: Sequence[Any],
        account: str,
        nonce: int | None = None,
    ) -> bytes:
        """Build the digest for an action and approve it."""
        return self.sign_digest(message_hash.digest(action_kind, parameters, account, nonce))

    # ---- serialisation ----

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "public_key": self.public_key.hex(),
        }

    def __repr__(self) -> str:
        return f"Wallet({self.address})"
