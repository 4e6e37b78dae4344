"""
Command-line tools for multi-signature accounts.

Usage:
    multisig address --key 0x27fe...
    multisig digest add-validator --account 0xAcc... --validator 0xNew... --nonce 0
    multisig digest transfer --account 0xAcc... --recipient 0xTo... \\
                             --amount 10 --reference someString
    multisig calldata --function "transfer(address,uint256)" --arg 0xTo... --arg 1000
    multisig sign --key 0x27fe... --digest 0x5a1b...
    multisig recover --digest 0x5a1b... --signature 0x...
    multisig quorum --validators 4 --threshold 80
    multisig config --config multisig.toml

Environment variables (see multisig_core.config):
    MULTISIG_ACCOUNT, MULTISIG_VALIDATORS, MULTISIG_TOKEN, MULTISIG_THRESHOLD
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from multisig_core import abi, message_hash
from multisig_core.config import load_config
from multisig_core.crypto_utils import is_address, normalize_address
from multisig_core.errors import MultiSigError
from multisig_core.logging_config import setup_logging
from multisig_core.quorum import required_count
from multisig_core.verifier import recover_signers
from multisig_core.wallet import Wallet

logger = logging.getLogger("multisig_cli")


def _hex_bytes(text: str) -> bytes:
    text = text[2:] if text[:2] in ("0x", "0X") else text
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a hex string: {text!r}") from None


def _digest_bytes(text: str) -> bytes:
    raw = _hex_bytes(text)
    if len(raw) != 32:
        raise argparse.ArgumentTypeError("digest must be 32 bytes")
    return raw


def _address(text: str) -> str:
    if not is_address(text):
        raise argparse.ArgumentTypeError(f"not an address: {text!r}")
    return normalize_address(text)


def _coerce_arg(typ: str, text: str):
    """Parse one command-line value for an ABI parameter of type *typ*."""
    if typ == "address":
        return text
    if typ == "bool":
        if text.lower() not in ("true", "false", "1", "0"):
            raise ValueError(f"not a bool: {text!r}")
        return text.lower() in ("true", "1")
    if typ in ("bytes", "bytes32"):
        return bytes.fromhex(text[2:] if text[:2] in ("0x", "0X") else text)
    if typ == "string":
        return text
    return int(text, 0)


# ---------------------------------------------------------------------------
# Sub-commands
# ---------------------------------------------------------------------------

def cmd_address(args: argparse.Namespace) -> int:
    print(Wallet.from_private_key(args.key).address)
    return 0


def cmd_digest(args: argparse.Namespace) -> int:
    account = args.account
    if args.action == "add-validator":
        d = message_hash.add_validator_digest(account, args.validator, args.nonce)
    elif args.action == "remove-validator":
        d = message_hash.remove_validator_digest(account, args.validator, args.nonce)
    elif args.action == "update-threshold":
        d = message_hash.update_threshold_digest(account, args.threshold, args.nonce)
    elif args.action == "transfer":
        d = message_hash.transfer_digest(account, args.recipient, args.amount, args.reference)
    else:
        d = message_hash.call_digest(
            account, args.target, args.value, args.function, args.data, args.flag,
        )
    print("0x" + d.hex())
    return 0


def cmd_calldata(args: argparse.Namespace) -> int:
    types = abi.argument_types(args.function)
    if len(types) != len(args.arg):
        raise ValueError(f"{args.function} takes {len(types)} arguments, got {len(args.arg)}")
    values = [_coerce_arg(t, v) for t, v in zip(types, args.arg)]
    print("0x" + abi.encode_call(args.function, values).hex())
    return 0


def cmd_sign(args: argparse.Namespace) -> int:
    print("0x" + Wallet.from_private_key(args.key).sign_digest(args.digest).hex())
    return 0


def cmd_recover(args: argparse.Namespace) -> int:
    for signer in recover_signers(args.digest, args.signature):
        print(signer)
    return 0


def cmd_quorum(args: argparse.Namespace) -> int:
    print(required_count(args.validators, args.threshold))
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    out = cfg.to_dict()
    if cfg.account.validators:
        out["required_signatures"] = required_count(
            len(cfg.account.validators), cfg.account.threshold,
        )
    print(json.dumps(out, indent=2))
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="multisig", description="Multi-signature account tooling",
    )
    parser.add_argument("--log-level", default="WARNING")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("address", help="derive the address of a private key")
    p.add_argument("--key", required=True)
    p.set_defaults(func=cmd_address)

    p = sub.add_parser("digest", help="compute the digest validators sign")
    p.add_argument(
        "action",
        choices=["add-validator", "remove-validator", "update-threshold", "transfer", "call"],
    )
    p.add_argument("--account", type=_address, required=True)
    p.add_argument("--nonce", type=int, default=0)
    p.add_argument("--validator", type=_address)
    p.add_argument("--threshold", type=int)
    p.add_argument("--recipient", type=_address)
    p.add_argument("--amount", type=int)
    p.add_argument("--reference", default="")
    p.add_argument("--target", type=_address)
    p.add_argument("--value", type=int, default=0)
    p.add_argument("--function", default="")
    p.add_argument("--data", type=_hex_bytes, default=b"")
    p.add_argument("--flag", type=int, default=0)
    p.set_defaults(func=cmd_digest)

    p = sub.add_parser("calldata", help="ABI-encode a function call payload")
    p.add_argument("--function", required=True)
    p.add_argument("--arg", action="append", default=[])
    p.set_defaults(func=cmd_calldata)

    p = sub.add_parser("sign", help="approve a digest with a private key")
    p.add_argument("--key", required=True)
    p.add_argument("--digest", type=_digest_bytes, required=True)
    p.set_defaults(func=cmd_sign)

    p = sub.add_parser("recover", help="recover the signers of a digest")
    p.add_argument("--digest", type=_digest_bytes, required=True)
    p.add_argument("--signature", action="append", required=True)
    p.set_defaults(func=cmd_recover)

    p = sub.add_parser("quorum", help="required signatures for a validator count")
    p.add_argument("--validators", type=int, required=True)
    p.add_argument("--threshold", type=int, required=True)
    p.set_defaults(func=cmd_quorum)

    p = sub.add_parser("config", help="print the effective configuration")
    p.add_argument("--config", default=None)
    p.set_defaults(func=cmd_config)

    return parser


_REQUIRED_DIGEST_ARGS = {
    "add-validator": ("validator",),
    "remove-validator": ("validator",),
    "update-threshold": ("threshold",),
    "transfer": ("recipient", "amount"),
    "call": ("target",),
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(level=args.log_level)

    if args.command == "digest":
        missing = [a for a in _REQUIRED_DIGEST_ARGS[args.action] if getattr(args, a) is None]
        if missing:
            parser.error(f"{args.action} requires --{', --'.join(missing)}")

    try:
        return args.func(args)
    except (MultiSigError, ValueError) as exc:
        logger.error(f"{args.command} failed: {exc}")
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
