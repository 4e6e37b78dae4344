"""
Cryptographic utilities for the multi-signature core.

Ethereum-compatible primitives so that approvals produced by ordinary
wallet tooling (``personal_sign``) are accepted as-is:
  - Keccak-256 hashing
  - secp256k1 key-pair generation
  - Address derivation with EIP-55 checksums
  - Personal-message ("\\x19Ethereum Signed Message") hashing
  - Deterministic signing and public-key recovery from 65-byte signatures
"""

from __future__ import annotations

import hashlib
import os

from Crypto.Hash import keccak
from ecdsa import SECP256k1, SigningKey, VerifyingKey
from ecdsa.util import sigdecode_string, sigencode_string_canonize

from multisig_core.errors import BadSignature

CURVE_ORDER = SECP256k1.order
HALF_CURVE_ORDER = CURVE_ORDER // 2

ADDRESS_LENGTH = 20
SIGNATURE_LENGTH = 65
PERSONAL_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n"


# ===================================================================
#  Hashing
# ===================================================================

def keccak256(data: bytes) -> bytes:
    """Keccak-256 digest (the pre-standard SHA-3 used by Ethereum)."""
    h = keccak.new(digest_bits=256)
    h.update(bytes(data))
    return h.digest()


def personal_message_hash(message: bytes) -> bytes:
    """Hash *message* the way ``personal_sign`` / ``signMessage`` do."""
    message = bytes(message)
    prefix = PERSONAL_MESSAGE_PREFIX + str(len(message)).encode("ascii")
    return keccak256(prefix + message)


def eth_signed_message_hash(digest: bytes) -> bytes:
    """The hash validators actually sign for a 32-byte action digest."""
    if len(digest) != 32:
        raise ValueError(f"Digest must be 32 bytes, got {len(digest)}")
    return personal_message_hash(digest)


# ===================================================================
#  Keys and addresses
# ===================================================================

def generate_keypair() -> tuple[bytes, bytes]:
    """Generate a secp256k1 key-pair. Returns (private_key, public_key)."""
    while True:
        candidate = os.urandom(32)
        if 0 < int.from_bytes(candidate, "big") < CURVE_ORDER:
            break
    return candidate, public_key_from_private(candidate)


def public_key_from_private(private_key: bytes) -> bytes:
    """Uncompressed 65-byte SEC1 public key (0x04 || X || Y)."""
    sk = SigningKey.from_string(bytes(private_key), curve=SECP256k1)
    return b"\x04" + sk.get_verifying_key().to_string()


def to_checksum_address(address: str | bytes) -> str:
    """Render an address with its EIP-55 mixed-case checksum."""
    hex_addr = _address_hex(address)
    addr_hash = keccak256(hex_addr.encode("ascii")).hex()
    return "0x" + "".join(
        c.upper() if int(addr_hash[i], 16) >= 8 else c
        for i, c in enumerate(hex_addr)
    )


def normalize_address(address: str | bytes) -> str:
    """
    Canonical form of an identity: a checksummed ``0x`` string.

    Accepts 20 raw bytes or a 40-digit hex string in any letter case,
    with or without the ``0x`` prefix.
    """
    return to_checksum_address(address)


def is_address(value: object) -> bool:
    try:
        _address_hex(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False
    return True


def address_bytes(address: str | bytes) -> bytes:
    """The 20 raw bytes behind an address."""
    return bytes.fromhex(_address_hex(address))


def derive_address(public_key: bytes) -> str:
    """Address = last 20 bytes of keccak256(X || Y)."""
    public_key = bytes(public_key)
    if len(public_key) == 65 and public_key[0] == 4:
        public_key = public_key[1:]
    if len(public_key) != 64:
        raise ValueError("Expected an uncompressed secp256k1 public key")
    return to_checksum_address(keccak256(public_key)[-ADDRESS_LENGTH:])


def _address_hex(address: str | bytes) -> str:
    if isinstance(address, (bytes, bytearray)):
        if len(address) != ADDRESS_LENGTH:
            raise ValueError(f"Address must be {ADDRESS_LENGTH} bytes, got {len(address)}")
        return bytes(address).hex()
    if not isinstance(address, str):
        raise TypeError(f"Unsupported address type: {type(address).__name__}")
    text = address[2:] if address[:2] in ("0x", "0X") else address
    if len(text) != ADDRESS_LENGTH * 2:
        raise ValueError(f"Invalid address length: {address!r}")
    try:
        bytes.fromhex(text)
    except ValueError:
        raise ValueError(f"Invalid hex address: {address!r}") from None
    return text.lower()


# ===================================================================
#  Signing and recovery
# ===================================================================

def sign_digest(private_key: bytes, msg_hash: bytes) -> bytes:
    """
    Sign a 32-byte hash with RFC 6979 nonces.

    Returns ``r || s || v`` with low ``s`` and ``v`` in {27, 28}.
    """
    if len(msg_hash) != 32:
        raise ValueError("Only 32-byte hashes can be signed")
    sk = SigningKey.from_string(bytes(private_key), curve=SECP256k1)
    rs = sk.sign_digest_deterministic(
        msg_hash, hashfunc=hashlib.sha256, sigencode=sigencode_string_canonize,
    )
    own = sk.get_verifying_key().to_string()
    candidates = VerifyingKey.from_public_key_recovery_with_digest(
        rs, msg_hash, curve=SECP256k1, sigdecode=sigdecode_string,
    )
    for recovery_id, vk in enumerate(candidates):
        if vk.to_string() == own:
            return rs + bytes([27 + recovery_id])
    raise RuntimeError("Unable to determine the recovery id of a fresh signature")


def recover_public_key(msg_hash: bytes, signature: bytes) -> bytes:
    """Recover the 65-byte public key that produced *signature* over *msg_hash*."""
    if len(msg_hash) != 32:
        raise ValueError("Only 32-byte hashes can be recovered against")
    signature = bytes(signature)
    if len(signature) != SIGNATURE_LENGTH:
        raise BadSignature(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}",
            context={"length": len(signature)},
        )
    r = int.from_bytes(signature[:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    v = signature[64]
    if v >= 27:
        v -= 27
    if v not in (0, 1):
        raise BadSignature(f"Invalid recovery id {signature[64]}")
    if not 0 < r < CURVE_ORDER or not 0 < s < CURVE_ORDER:
        raise BadSignature("Signature scalar out of range")
    # High-s signatures are the malleable twin of a valid low-s signature
    if s > HALF_CURVE_ORDER:
        raise BadSignature("Non-canonical (high-s) signature")
    try:
        candidates = VerifyingKey.from_public_key_recovery_with_digest(
            signature[:64], msg_hash, curve=SECP256k1, sigdecode=sigdecode_string,
        )
        public_key = candidates[v].to_string()
    except Exception as exc:
        raise BadSignature(f"Public key recovery failed: {exc}") from exc
    return b"\x04" + public_key


def recover_address(msg_hash: bytes, signature: bytes) -> str:
    """Recover the checksummed address that signed *msg_hash*."""
    return derive_address(recover_public_key(msg_hash, signature))
