"""
Tests for multisig_core.config — TOML configuration and environment overrides.

Covers:
  - Default values for all dataclass sections
  - TOML parsing and section merging
  - Environment variable overrides (precedence over TOML)
  - _merge helper edge cases
  - Missing TOML files
"""

from __future__ import annotations

import os
import tempfile
import textwrap
import unittest
from unittest.mock import patch

from multisig_core.config import (
    AccountConfig,
    LoggingConfig,
    MultisigConfig,
    _merge,
    load_config,
)

V1 = "0xc73280617F4daa107F8b2e0F4E75FA5b5239Cf24"
V2 = "0x2b0e9EB31C3F3BC06437A7dF090a2f6a4D658150"


def _write_toml(content: str) -> str:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".toml", delete=False) as f:
        f.write(textwrap.dedent(content))
    return f.name


# ═══════════════════════════════════════════════════════════════════
#  Defaults
# ═══════════════════════════════════════════════════════════════════

class TestDefaults(unittest.TestCase):

    def test_account_defaults(self):
        a = AccountConfig()
        self.assertEqual(a.address, "")
        self.assertEqual(a.validators, [])
        self.assertEqual(a.token, "")
        self.assertEqual(a.threshold, 80)

    def test_logging_defaults(self):
        lg = LoggingConfig()
        self.assertEqual(lg.level, "INFO")
        self.assertEqual(lg.format, "human")
        self.assertIsNone(lg.file)

    def test_validator_lists_not_shared(self):
        a, b = AccountConfig(), AccountConfig()
        a.validators.append(V1)
        self.assertEqual(b.validators, [])

    def test_to_dict(self):
        d = MultisigConfig().to_dict()
        self.assertEqual(d["account"]["threshold"], 80)
        self.assertEqual(d["logging"]["format"], "human")

    @patch.dict(os.environ, {}, clear=True)
    def test_load_without_path(self):
        cfg = load_config(None)
        self.assertEqual(cfg, MultisigConfig())


# ═══════════════════════════════════════════════════════════════════
#  TOML loading
# ═══════════════════════════════════════════════════════════════════

class TestTomlLoading(unittest.TestCase):

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_file_uses_defaults(self):
        cfg = load_config("/tmp/__nonexistent_multisig__.toml")
        self.assertEqual(cfg.account.threshold, 80)

    @patch.dict(os.environ, {}, clear=True)
    def test_load_toml_file(self):
        path = _write_toml(f"""\
            [account]
            address = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
            validators = ["{V1}", "{V2}"]
            token = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"
            threshold = 66

            [logging]
            level = "DEBUG"
            format = "json"
            file = "logs/multisig.log"
        """)
        try:
            cfg = load_config(path)
        finally:
            os.unlink(path)

        self.assertEqual(cfg.account.address, "0x5FbDB2315678afecb367f032d93F642f64180aa3")
        self.assertEqual(cfg.account.validators, [V1, V2])
        self.assertEqual(cfg.account.threshold, 66)
        self.assertEqual(cfg.logging.level, "DEBUG")
        self.assertEqual(cfg.logging.format, "json")
        self.assertEqual(cfg.logging.file, "logs/multisig.log")

    @patch.dict(os.environ, {}, clear=True)
    def test_unknown_sections_ignored(self):
        path = _write_toml("""\
            [node]
            port = 1

            [account]
            threshold = 75
        """)
        try:
            cfg = load_config(path)
        finally:
            os.unlink(path)
        self.assertEqual(cfg.account.threshold, 75)
        self.assertFalse(hasattr(cfg, "node"))


# ═══════════════════════════════════════════════════════════════════
#  Environment variable overrides
# ═══════════════════════════════════════════════════════════════════

class TestEnvOverrides(unittest.TestCase):

    @patch.dict(os.environ, {"MULTISIG_ACCOUNT": "0x" + "ab" * 20}, clear=False)
    def test_env_account(self):
        self.assertEqual(load_config(None).account.address, "0x" + "ab" * 20)

    @patch.dict(os.environ, {"MULTISIG_VALIDATORS": f"{V1}, {V2} ,"}, clear=False)
    def test_env_validators(self):
        self.assertEqual(load_config(None).account.validators, [V1, V2])

    @patch.dict(os.environ, {"MULTISIG_TOKEN": "0x" + "cd" * 20}, clear=False)
    def test_env_token(self):
        self.assertEqual(load_config(None).account.token, "0x" + "cd" * 20)

    @patch.dict(os.environ, {"MULTISIG_THRESHOLD": "90"}, clear=False)
    def test_env_threshold(self):
        self.assertEqual(load_config(None).account.threshold, 90)

    @patch.dict(os.environ, {"MULTISIG_THRESHOLD": "ninety"}, clear=False)
    def test_env_threshold_not_a_number(self):
        with self.assertRaises(ValueError):
            load_config(None)

    @patch.dict(os.environ, {"MULTISIG_LOG_LEVEL": "debug"}, clear=False)
    def test_env_log_level_uppercased(self):
        self.assertEqual(load_config(None).logging.level, "DEBUG")

    @patch.dict(os.environ, {"MULTISIG_LOG_FMT": "json"}, clear=False)
    def test_env_log_format(self):
        self.assertEqual(load_config(None).logging.format, "json")

    @patch.dict(os.environ, {"MULTISIG_LOG_FILE": "/tmp/ms.log"}, clear=False)
    def test_env_log_file(self):
        self.assertEqual(load_config(None).logging.file, "/tmp/ms.log")

    def test_env_beats_toml(self):
        path = _write_toml("""\
            [account]
            threshold = 60
        """)
        try:
            with patch.dict(os.environ, {"MULTISIG_THRESHOLD": "95"}, clear=False):
                cfg = load_config(path)
        finally:
            os.unlink(path)
        self.assertEqual(cfg.account.threshold, 95)


# ═══════════════════════════════════════════════════════════════════
#  _merge helper
# ═══════════════════════════════════════════════════════════════════

class TestMerge(unittest.TestCase):

    def test_known_keys(self):
        a = AccountConfig()
        _merge(a, {"threshold": 50, "token": "t"})
        self.assertEqual(a.threshold, 50)
        self.assertEqual(a.token, "t")

    def test_unknown_keys_ignored(self):
        a = AccountConfig()
        _merge(a, {"colour": "blue"})
        self.assertFalse(hasattr(a, "colour"))

    def test_hyphenated_keys(self):
        lg = LoggingConfig()
        _merge(lg, {"level": "ERROR", "file": "x.log"})
        self.assertEqual(lg.level, "ERROR")
        a = AccountConfig()
        _merge(a, {"thres-hold": 1})
        self.assertEqual(a.threshold, 80)

    def test_empty_dict(self):
        a = AccountConfig()
        _merge(a, {})
        self.assertEqual(a, AccountConfig())


if __name__ == "__main__":
    unittest.main()
