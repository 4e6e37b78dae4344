"""
multisig-core - threshold-signature authorization for self-custodying accounts.

Key features:
- Validator registry governed by the validators themselves
- Percentage threshold quorum with ceiling rounding
- Nonce-bound governance approvals (replay protection)
- Ethereum-compatible message hashing and signature recovery
- Quorum-gated token transfers and generic call forwarding
- All-or-nothing execution with post-action invariant checks
"""

__version__ = "1.0.0"
__all__ = [
    "abi",
    "crypto_utils",
    "environment",
    "errors",
    "invariants",
    "message_hash",
    "multisig",
    "nonce",
    "quorum",
    "registry",
    "token",
    "verifier",
    "wallet",
]
