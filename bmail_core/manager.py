"""
On-disk storage of BMail wallets.

Each wallet is saved as ``<address>.json`` in a wallet directory, using the
tab-indented JSON layout produced by :meth:`Wallet.to_json`. Loaded wallets
are always locked.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from bmail_core.address import Address, parse_address
from bmail_core.exceptions import MalformedInputError
from bmail_core.keycrypt import KeyCipher
from bmail_core.wallet import Wallet

logger = logging.getLogger("bmail_manager")

FILE_MODE = 0o600


class WalletManager:
    """Creates, saves, loads and lists wallets in a directory.

    Usage:
        manager = WalletManager(Path("data/wallets"))
        wallet = manager.create_wallet("correct-horse", mail_name="alice")
        print(wallet.address)

        loaded = manager.load_from_path(manager.path_for(wallet.address))
        loaded.open("correct-horse")
    """

    DEFAULT_WALLET_DIR = Path("data/wallets")

    def __init__(self, wallet_dir: Path | str | None = None, cipher: KeyCipher | None = None):
        self._wallet_dir = Path(wallet_dir) if wallet_dir is not None else self.DEFAULT_WALLET_DIR
        self._cipher = cipher or KeyCipher()

    @property
    def wallet_dir(self) -> Path:
        return self._wallet_dir

    @property
    def cipher(self) -> KeyCipher:
        return self._cipher

    def path_for(self, address: str) -> Path:
        return self._wallet_dir / f"{parse_address(address)}.json"

    # ---- create / save ----

    def create_wallet(self, passphrase: str, mail_name: str = "") -> Wallet:
        """Create a new unlocked wallet and save it to the wallet directory."""
        wallet = Wallet.create(passphrase, cipher=self._cipher)
        if mail_name:
            wallet.set_mail_name(mail_name)
        self.save_to_path(wallet, self.path_for(wallet.address))
        return wallet

    def save_to_path(self, wallet: Wallet, path: Path | str) -> None:
        """Write the wallet record (never the private key) to *path*."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(wallet.to_json(indent="\t"))
        logger.info("Saved wallet %s to %s", wallet.address, path)

    # ---- load ----

    def load_from_path(self, path: Path | str) -> Wallet:
        """Read a locked wallet from *path*.

        Raises:
            FileNotFoundError: If the file does not exist.
            MalformedInputError: If the file is not a valid wallet record.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Wallet not found: {path}")
        wallet = Wallet.load(path.read_bytes(), cipher=self._cipher)
        logger.info("Loaded wallet %s from %s", wallet.address, path)
        return wallet

    def load_wallet_by_data(self, data: bytes | str) -> Wallet:
        return Wallet.load(data, cipher=self._cipher)

    def load_wallet(self, address: str) -> Wallet:
        return self.load_from_path(self.path_for(address))

    # ---- directory listing ----

    def list_wallets(self) -> list[dict[str, str]]:
        """Address and alias of every readable wallet in the directory."""
        wallets = []
        if not self._wallet_dir.is_dir():
            return wallets
        for wallet_file in sorted(self._wallet_dir.glob("BM*.json")):
            try:
                wallet = Wallet.load(wallet_file.read_bytes(), cipher=self._cipher)
            except (MalformedInputError, OSError) as e:
                logger.warning("Failed to read wallet %s: %s", wallet_file, e)
                continue
            wallets.append({"address": str(wallet.address), "bmail": wallet.mail_name})
        return wallets

    def wallet_exists(self, address: str) -> bool:
        if not Address(address).is_valid():
            return False
        return self.path_for(address).exists()

    def delete_wallet(self, address: str) -> bool:
        """Delete a wallet file. Returns False if there was none."""
        if not self.wallet_exists(address):
            return False
        self.path_for(address).unlink()
        logger.info("Deleted wallet %s", address)
        return True

