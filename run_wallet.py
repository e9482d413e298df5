#!/usr/bin/env python3
"""
BMail wallet command line.

Usage:
    python run_wallet.py create --alias alice@bmail
    python run_wallet.py show
    python run_wallet.py sign "hello"
    python run_wallet.py verify BM... "hello" <signature-hex>
    python run_wallet.py check-address BM...
    python run_wallet.py alias bob@bmail
    python run_wallet.py list

The passphrase is read from BMAIL_PASSPHRASE, or prompted for.
Other settings come from --config (TOML) and BMAIL_* environment variables.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import os
import sys

# ---------------------------------------------------------------------------
# Ensure the project root is in sys.path so imports work before pip install
# ---------------------------------------------------------------------------
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from bmail_core.address import is_valid  # noqa: E402
from bmail_core.config import BMailConfig, load_config  # noqa: E402
from bmail_core.exceptions import WalletError  # noqa: E402
from bmail_core.keycrypt import KeyCipher  # noqa: E402
from bmail_core.logging_config import setup_logging  # noqa: E402
from bmail_core.manager import WalletManager  # noqa: E402
from bmail_core.wallet import Wallet, verify  # noqa: E402

logger = logging.getLogger("bmail_cli")


def _read_passphrase(confirm: bool = False) -> str:
    if v := os.environ.get("BMAIL_PASSPHRASE"):
        return v
    passphrase = getpass.getpass("Passphrase: ")
    if confirm and getpass.getpass("Repeat passphrase: ") != passphrase:
        raise WalletError("passphrases do not match")
    return passphrase


def _manager(cfg: BMailConfig) -> WalletManager:
    return WalletManager(cfg.wallet.wallet_dir, cipher=KeyCipher(cfg.wallet.kdf_iterations))


# ===================================================================
#  Commands
# ===================================================================

def cmd_create(args, cfg: BMailConfig) -> int:
    if os.path.exists(args.wallet) and not args.force:
        logger.error("Wallet file %s already exists (use --force to replace it)", args.wallet)
        return 1
    manager = _manager(cfg)
    wallet = Wallet.create(_read_passphrase(confirm=True), cipher=manager.cipher)
    if args.alias:
        wallet.set_mail_name(args.alias)
    manager.save_to_path(wallet, args.wallet)
    print(wallet.address)
    return 0


def cmd_show(args, cfg: BMailConfig) -> int:
    wallet = _manager(cfg).load_from_path(args.wallet)
    print(f"address: {wallet.address}")
    print(f"bmail:   {wallet.mail_name}")
    print(f"version: {wallet.version}")
    return 0


def cmd_check_address(args, cfg: BMailConfig) -> int:
    if is_valid(args.address):
        print("valid")
        return 0
    print("invalid")
    return 1


def cmd_sign(args, cfg: BMailConfig) -> int:
    wallet = _manager(cfg).load_from_path(args.wallet)
    with wallet:
        wallet.open(_read_passphrase())
        print(wallet.sign(args.message.encode("utf-8")).hex())
    return 0


def cmd_verify(args, cfg: BMailConfig) -> int:
    try:
        signature = bytes.fromhex(args.signature)
    except ValueError:
        logger.error("Signature must be hex encoded")
        return 1
    ok = verify(args.address, args.message.encode("utf-8"), signature)
    print("valid" if ok else "invalid")
    return 0 if ok else 1


def cmd_alias(args, cfg: BMailConfig) -> int:
    manager = _manager(cfg)
    wallet = manager.load_from_path(args.wallet)
    wallet.set_mail_name(args.name)
    manager.save_to_path(wallet, args.wallet)
    return 0


def cmd_list(args, cfg: BMailConfig) -> int:
    for entry in _manager(cfg).list_wallets():
        print(f"{entry['address']}  {entry['bmail']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="BMail wallet tool")
    p.add_argument("--config", default=os.environ.get("BMAIL_CONFIG"),
                   help="Path to a TOML config file")
    p.add_argument("--wallet", default=None,
                   help="Wallet file (default: [wallet] wallet_file)")
    sub = p.add_subparsers(dest="command", required=True)

    c = sub.add_parser("create", help="Generate a new wallet")
    c.add_argument("--alias", help="Mail alias stored with the wallet")
    c.add_argument("--force", action="store_true", help="Overwrite an existing wallet file")
    c.set_defaults(func=cmd_create)

    sub.add_parser("show", help="Print the wallet address and alias").set_defaults(func=cmd_show)

    c = sub.add_parser("check-address", help="Validate an address")
    c.add_argument("address")
    c.set_defaults(func=cmd_check_address)

    c = sub.add_parser("sign", help="Sign a UTF-8 message")
    c.add_argument("message")
    c.set_defaults(func=cmd_sign)

    c = sub.add_parser("verify", help="Verify a hex signature")
    c.add_argument("address")
    c.add_argument("message")
    c.add_argument("signature")
    c.set_defaults(func=cmd_verify)

    c = sub.add_parser("alias", help="Set the mail alias")
    c.add_argument("name")
    c.set_defaults(func=cmd_alias)

    sub.add_parser("list", help="List wallets in the wallet directory").set_defaults(func=cmd_list)
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        cfg = load_config(args.config)
        setup_logging(level=cfg.logging.level, fmt=cfg.logging.format, log_file=cfg.logging.file)
        if args.wallet is None:
            args.wallet = cfg.wallet.wallet_file
        return args.func(args, cfg)
    # ValueError: bad config values; OSError: unreadable wallet or log paths
    except (WalletError, ValueError, OSError) as exc:
        logger.error("%s", exc)
        return 1


def main_sync():
    """Entry point for console_scripts."""
    sys.exit(main())


if __name__ == "__main__":
    main_sync()
