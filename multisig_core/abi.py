"""
Minimal Solidity ABI codec.

Implements the standard (non-packed) head/tail encoding for the handful
of types the account binds into its message digests and forwards in call
payloads:

    address, bool, bytes32, uint<N>, bytes, string

Every static value occupies one 32-byte word; dynamic values are stored
in the tail as a length word followed by zero-padded data.  For a fixed
type list the encoding is injective, which is what the message binder
relies on.
"""

from __future__ import annotations

import re
from typing import Any, Sequence

from multisig_core.crypto_utils import address_bytes, keccak256, to_checksum_address

WORD = 32

_UINT_RE = re.compile(r"^uint(\d*)$")
_DYNAMIC_TYPES = ("bytes", "string")


def _uint_bits(typ: str) -> int | None:
    m = _UINT_RE.match(typ)
    if m is None:
        return None
    bits = int(m.group(1)) if m.group(1) else 256
    if bits < 8 or bits > 256 or bits % 8:
        raise ValueError(f"Unsupported integer type: {typ}")
    return bits


def _check_type(typ: str) -> None:
    if typ in ("address", "bool", "bytes32") or typ in _DYNAMIC_TYPES:
        return
    if _uint_bits(typ) is None:
        raise ValueError(f"Unsupported ABI type: {typ}")


def is_dynamic(typ: str) -> bool:
    return typ in _DYNAMIC_TYPES


def _pad_right(data: bytes) -> bytes:
    remainder = len(data) % WORD
    return data + b"\x00" * ((WORD - remainder) % WORD)


def _encode_uint(value: Any, bits: int = 256) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"uint{bits} value must be an int, got {type(value).__name__}")
    if value < 0 or value >= 1 << bits:
        raise ValueError(f"Value {value} out of range for uint{bits}")
    return value.to_bytes(WORD, "big")


def _encode_static(typ: str, value: Any) -> bytes:
    if typ == "address":
        try:
            raw = address_bytes(value)
        except TypeError as exc:
            raise ValueError(str(exc)) from exc
        return b"\x00" * 12 + raw
    if typ == "bool":
        if not isinstance(value, bool):
            raise ValueError("bool value must be True or False")
        return _encode_uint(int(value))
    if typ == "bytes32":
        if not isinstance(value, (bytes, bytearray)) or len(value) != WORD:
            raise ValueError("bytes32 value must be exactly 32 bytes")
        return bytes(value)
    bits = _uint_bits(typ)
    if bits is None:
        raise ValueError(f"Unsupported ABI type: {typ}")
    return _encode_uint(value, bits)


def _encode_dynamic(typ: str, value: Any) -> bytes:
    if typ == "string":
        if not isinstance(value, str):
            raise ValueError("string value must be str")
        data = value.encode("utf-8")
    else:
        if not isinstance(value, (bytes, bytearray)):
            raise ValueError("bytes value must be bytes")
        data = bytes(value)
    return _encode_uint(len(data)) + _pad_right(data)


def encode(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """ABI-encode *values* as the tuple ``(types...)``."""
    if len(types) != len(values):
        raise ValueError(f"Expected {len(types)} values, got {len(values)}")
    for typ in types:
        _check_type(typ)

    heads: list[bytes] = []
    tails: list[bytes] = []
    tail_offset = WORD * len(types)
    for typ, value in zip(types, values):
        if is_dynamic(typ):
            encoded = _encode_dynamic(typ, value)
            heads.append(_encode_uint(tail_offset))
            tails.append(encoded)
            tail_offset += len(encoded)
        else:
            heads.append(_encode_static(typ, value))
    return b"".join(heads) + b"".join(tails)


def _read_word(data: bytes, offset: int) -> bytes:
    if offset < 0 or offset + WORD > len(data):
        raise ValueError("ABI data too short")
    return data[offset:offset + WORD]


def _decode_static(typ: str, word: bytes) -> Any:
    if typ == "address":
        if any(word[:12]):
            raise ValueError("Dirty high bytes in address word")
        return to_checksum_address(word[12:])
    if typ == "bytes32":
        return word
    value = int.from_bytes(word, "big")
    if typ == "bool":
        if value not in (0, 1):
            raise ValueError(f"Invalid bool word: {value}")
        return bool(value)
    bits = _uint_bits(typ)
    if bits is None:
        raise ValueError(f"Unsupported ABI type: {typ}")
    if value >= 1 << bits:
        raise ValueError(f"Value out of range for {typ}")
    return value


def decode(types: Sequence[str], data: bytes) -> list[Any]:
    """Decode ABI *data* produced for the tuple ``(types...)``."""
    data = bytes(data)
    for typ in types:
        _check_type(typ)
    out: list[Any] = []
    for i, typ in enumerate(types):
        word = _read_word(data, i * WORD)
        if not is_dynamic(typ):
            out.append(_decode_static(typ, word))
            continue
        offset = int.from_bytes(word, "big")
        length = int.from_bytes(_read_word(data, offset), "big")
        start = offset + WORD
        if start + length > len(data):
            raise ValueError("ABI dynamic value overruns data")
        raw = data[start:start + length]
        out.append(raw.decode("utf-8") if typ == "string" else raw)
    return out


def function_selector(signature: str) -> bytes:
    """First four bytes of keccak256 of a canonical function signature."""
    if not signature.isascii():
        raise ValueError(f"Function signature must be ASCII: {signature!r}")
    return keccak256(signature.encode("ascii"))[:4]


def argument_types(signature: str) -> list[str]:
    if "(" not in signature or not signature.endswith(")"):
        raise ValueError(f"Malformed function signature: {signature!r}")
    inner = signature[signature.index("(") + 1:-1]
    return [t.strip() for t in inner.split(",")] if inner.strip() else []


def encode_call(signature: str, args: Sequence[Any]) -> bytes:
    """Selector followed by the ABI-encoded arguments."""
    return function_selector(signature) + encode(argument_types(signature), args)
