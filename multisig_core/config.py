"""
TOML-based configuration for multi-signature accounts.

Loads settings from a TOML file and/or environment variables.
Environment variables take precedence over file values.

Usage:
    from multisig_core.config import load_config
    cfg = load_config("multisig.toml")
"""

from __future__ import annotations

import os
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib  # type: ignore[import]
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[import,no-redef]

from multisig_core.quorum import DEFAULT_THRESHOLD


@dataclass
class AccountConfig:
    """Deployment parameters of one account."""
    address: str = ""
    validators: list[str] = field(default_factory=list)
    token: str = ""
    threshold: int = DEFAULT_THRESHOLD


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    format: str = "human"   # "human" or "json"
    file: str | None = None


@dataclass
class MultisigConfig:
    """Top-level configuration container."""
    account: AccountConfig = field(default_factory=AccountConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _merge(dc: Any, raw: dict[str, Any]) -> None:
    """Merge a raw dict into a dataclass instance (in-place)."""
    for key, value in raw.items():
        key_under = key.replace("-", "_")
        if hasattr(dc, key_under):
            setattr(dc, key_under, value)


def load_config(path: str | None = None) -> MultisigConfig:
    """
    Load configuration from a TOML file, then overlay environment variables.

    Env-var mapping:
        MULTISIG_ACCOUNT     -> account.address
        MULTISIG_VALIDATORS  -> account.validators  (comma-separated)
        MULTISIG_TOKEN       -> account.token
        MULTISIG_THRESHOLD   -> account.threshold
        MULTISIG_LOG_LEVEL   -> logging.level
        MULTISIG_LOG_FMT     -> logging.format
        MULTISIG_LOG_FILE    -> logging.file
    """
    cfg = MultisigConfig()

    # ── TOML file ────────────────────────────────────────────────
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, "rb") as f:
                data = tomllib.load(f)
            for section_name, section_dc in [
                ("account", cfg.account),
                ("logging", cfg.logging),
            ]:
                if section_name in data:
                    _merge(section_dc, data[section_name])

    # ── Environment variable overrides ───────────────────────────
    if v := os.environ.get("MULTISIG_ACCOUNT"):
        cfg.account.address = v
    if v := os.environ.get("MULTISIG_VALIDATORS"):
        cfg.account.validators = [a.strip() for a in v.split(",") if a.strip()]
    if v := os.environ.get("MULTISIG_TOKEN"):
        cfg.account.token = v
    if v := os.environ.get("MULTISIG_THRESHOLD"):
        cfg.account.threshold = int(v)
    if v := os.environ.get("MULTISIG_LOG_LEVEL"):
        cfg.logging.level = v.upper()
    if v := os.environ.get("MULTISIG_LOG_FMT"):
        cfg.logging.format = v
    if v := os.environ.get("MULTISIG_LOG_FILE"):
        cfg.logging.file = v

    return cfg
