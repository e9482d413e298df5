"""
TOML-based configuration for BMail wallet tools.

Loads settings from a TOML file and/or environment variables.
Environment variables take precedence over file values.

Usage:
    from bmail_core.config import load_config
    cfg = load_config("bmail.toml")
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from bmail_core.keycrypt import DEFAULT_KDF_ITERATIONS


@dataclass
class WalletConfig:
    """Wallet storage and key protection.

    ``wallet_file`` is the default wallet used by the command line tool;
    ``wallet_dir`` is where :class:`~bmail_core.manager.WalletManager`
    keeps ``<address>.json`` records.
    """
    wallet_dir: str = "data/wallets"
    wallet_file: str = "data/wallet.json"
    kdf_iterations: int = DEFAULT_KDF_ITERATIONS


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    format: str = "human"   # "human" or "json"
    file: str | None = None


@dataclass
class BMailConfig:
    """Top-level configuration container."""
    wallet: WalletConfig = field(default_factory=WalletConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _merge(dc: Any, raw: dict[str, Any]) -> None:
    """Merge a raw dict into a dataclass instance (in-place)."""
    for key, value in raw.items():
        key_under = key.replace("-", "_")
        if hasattr(dc, key_under):
            setattr(dc, key_under, value)


def load_config(path: str | None = None) -> BMailConfig:
    """
    Load configuration from a TOML file, then overlay environment variables.

    Env-var mapping:
        BMAIL_WALLET_DIR      -> wallet.wallet_dir
        BMAIL_WALLET_FILE     -> wallet.wallet_file
        BMAIL_KDF_ITERATIONS  -> wallet.kdf_iterations
        BMAIL_LOG_LEVEL       -> logging.level
        BMAIL_LOG_FMT         -> logging.format
    """
    cfg = BMailConfig()

    # ── TOML file ────────────────────────────────────────────────
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, "rb") as f:
                data = tomllib.load(f)
            for section_name, section_dc in [
                ("wallet", cfg.wallet),
                ("logging", cfg.logging),
            ]:
                if section_name in data:
                    _merge(section_dc, data[section_name])

    # ── Environment variable overrides ───────────────────────────
    if v := os.environ.get("BMAIL_WALLET_DIR"):
        cfg.wallet.wallet_dir = v
    if v := os.environ.get("BMAIL_WALLET_FILE"):
        cfg.wallet.wallet_file = v
    if v := os.environ.get("BMAIL_KDF_ITERATIONS"):
        cfg.wallet.kdf_iterations = int(v)
    if v := os.environ.get("BMAIL_LOG_LEVEL"):
        cfg.logging.level = v.upper()
    if v := os.environ.get("BMAIL_LOG_FMT"):
        cfg.logging.format = v

    return cfg
