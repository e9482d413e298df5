"""
BMail wallet: an Ed25519 identity whose private key is kept encrypted at rest.

A wallet provides:
  - Key generation and address derivation
  - Locked / unlocked key state (``open`` / ``close``)
  - Raw and structured (canonical JSON) signing
  - Shared key derivation with a peer public key
  - JSON serialisation that never contains key material

Persisted layout::

    {"version": 1, "address": "BM...", "bmail": "alias", "cipher": "..."}
"""

from __future__ import annotations

import hmac
import json
import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Callable

from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import SigningKey, VerifyKey

from bmail_core.address import PUBLIC_KEY_SIZE, Address, parse_address, to_address
from bmail_core.exceptions import (
    AuthenticationError,
    DecryptionError,
    EncodingError,
    GenerationError,
    LockedError,
    MalformedInputError,
)
from bmail_core.keycrypt import SEED_SIZE, KeyCipher

logger = logging.getLogger("bmail_wallet")

WALLET_VERSION = 1


# ===================================================================
#  Key state
# ===================================================================

@dataclass(frozen=True)
class Locked:
    """No private key is resident."""


@dataclass
class Unlocked:
    """The 32-byte Ed25519 seed is resident in a wipeable buffer."""
    seed: bytearray

    def wipe(self) -> None:
        for i in range(len(self.seed)):
            self.seed[i] = 0


LOCKED = Locked()


def canonical_json(value: Any) -> bytes:
    """Deterministic JSON encoding used for structured signatures."""
    try:
        return json.dumps(
            value, sort_keys=True, separators=(",", ":"), ensure_ascii=False,
            allow_nan=False,
        ).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"cannot canonicalize value: {exc}") from exc


def _generate_seed(rng: Callable[[int], bytes]) -> bytearray:
    try:
        seed = rng(SEED_SIZE)
    except (OSError, NotImplementedError) as exc:
        raise GenerationError(f"random source failed: {exc}") from exc
    if not isinstance(seed, (bytes, bytearray)) or len(seed) != SEED_SIZE:
        raise GenerationError(f"random source must return {SEED_SIZE} bytes")
    return bytearray(seed)


def verify(address_or_pub: str | bytes, message: bytes, signature: bytes) -> bool:
    """Check an Ed25519 signature against an address or a raw public key."""
    if isinstance(address_or_pub, str):
        pub = Address(address_or_pub).to_pub_key()
    else:
        pub = bytes(address_or_pub)
    if pub is None or len(pub) != PUBLIC_KEY_SIZE:
        return False
    try:
        VerifyKey(pub).verify(bytes(message), bytes(signature))
        return True
    except (BadSignatureError, CryptoError):
        return False


# ===================================================================
#  Wallet
# ===================================================================

class Wallet:
    """A BMail identity: address, alias and encrypted private key."""

    def __init__(
        self,
        address: Address,
        cipher_text: str,
        mail_name: str = "",
        version: int = WALLET_VERSION,
        cipher: KeyCipher | None = None,
    ):
        self._address = Address(address)
        self._cipher_text = cipher_text
        self._mail_name = mail_name
        self._version = version
        self._cipher = cipher or KeyCipher()
        self._state: Locked | Unlocked = LOCKED
        self._lock = threading.RLock()

    # ---- factory methods ----

    @classmethod
    def create(
        cls,
        passphrase: str,
        cipher: KeyCipher | None = None,
        rng: Callable[[int], bytes] | None = None,
    ) -> Wallet:
        """Generate a fresh key pair and return it as an unlocked wallet.

        ``rng(n)`` must return *n* random bytes; it defaults to ``os.urandom``.
        """
        cipher = cipher or KeyCipher()
        seed = _generate_seed(rng or os.urandom)
        try:
            public_key = SigningKey(bytes(seed)).verify_key.encode()
        except CryptoError as exc:
            raise GenerationError(f"key generation failed: {exc}") from exc

        cipher_text = cipher.encrypt(bytes(seed), public_key, passphrase)
        wallet = cls(to_address(public_key), cipher_text, cipher=cipher)
        wallet._state = Unlocked(seed)
        logger.info("Created wallet %s", wallet.address, extra={"address": wallet.address})
        return wallet

    @classmethod
    def load(cls, data: bytes | str, cipher: KeyCipher | None = None) -> Wallet:
        """Parse a serialised wallet. The result is always locked."""
        try:
            if isinstance(data, (bytes, bytearray)):
                data = data.decode("utf-8")
            obj = json.loads(data)
        except (UnicodeDecodeError, ValueError) as exc:
            raise MalformedInputError(f"wallet data is not valid JSON: {exc}") from exc
        if not isinstance(obj, dict):
            raise MalformedInputError("wallet data must be a JSON object")

        version = obj.get("version", WALLET_VERSION)
        if not isinstance(version, int) or isinstance(version, bool):
            raise MalformedInputError("wallet version must be an integer")
        if version < 1 or version > WALLET_VERSION:
            raise MalformedInputError(f"unsupported wallet version {version}")

        cipher_text = obj.get("cipher")
        if not isinstance(cipher_text, str) or not cipher_text:
            raise MalformedInputError("wallet has no cipher text")

        mail_name = obj.get("bmail")
        if mail_name is None:
            mail_name = ""
        if not isinstance(mail_name, str):
            raise MalformedInputError("wallet bmail must be a string")

        address = parse_address(obj.get("address"))
        return cls(address, cipher_text, mail_name=mail_name, version=version, cipher=cipher)

    # ---- accessors ----

    @property
    def address(self) -> Address:
        return self._address

    @property
    def public_key(self) -> bytes | None:
        return self._address.to_pub_key()

    @property
    def cipher_text(self) -> str:
        return self._cipher_text

    @property
    def version(self) -> int:
        return self._version

    @property
    def mail_name(self) -> str:
        return self._mail_name

    def set_mail_name(self, mail_name: str) -> None:
        self._mail_name = mail_name

    # ---- lock state ----

    def is_open(self) -> bool:
        return isinstance(self._state, Unlocked)

    def open(self, passphrase: str) -> None:
        """
        Decrypt the private key and make it resident.

        The decrypted key must reproduce the public key in the address;
        otherwise AuthenticationError is raised and the wallet stays as it was.
        """
        public_key = self._address.to_pub_key()
        with self._lock:
            try:
                seed = bytearray(self._cipher.decrypt(public_key, self._cipher_text, passphrase))
                try:
                    self._check_seed(seed, public_key)
                except (AuthenticationError, DecryptionError):
                    Unlocked(seed).wipe()
                    raise
            except AuthenticationError:
                logger.warning(
                    "Failed to open wallet %s", self._address, extra={"address": self._address}
                )
                raise

            if isinstance(self._state, Unlocked):
                self._state.wipe()
            self._state = Unlocked(seed)
        logger.info("Opened wallet %s", self._address, extra={"address": self._address})

    @staticmethod
    def _check_seed(seed: bytearray, public_key: bytes) -> None:
        try:
            derived = SigningKey(bytes(seed)).verify_key.encode()
        except CryptoError as exc:
            raise DecryptionError(f"decrypted key is unusable: {exc}") from exc
        if not hmac.compare_digest(derived, public_key):
            raise AuthenticationError()

    def close(self) -> None:
        """Drop the resident private key. Closing a locked wallet does nothing."""
        with self._lock:
            state = self._state
            if isinstance(state, Unlocked):
                state.wipe()
                self._state = LOCKED
                logger.info("Closed wallet %s", self._address, extra={"address": self._address})

    def _signing_key(self) -> SigningKey:
        state = self._state
        if isinstance(state, Unlocked):
            return SigningKey(bytes(state.seed))
        raise LockedError()

    # ---- key use ----

    def sign(self, message: bytes) -> bytes:
        """Ed25519 signature (64 bytes) over raw *message* bytes."""
        with self._lock:
            return self._signing_key().sign(bytes(message)).signature

    def sign_obj(self, value: Any) -> bytes:
        """Sign the canonical JSON encoding of *value*."""
        raw = canonical_json(value)
        return self.sign(raw)

    def aes_key_of(self, peer_public_key: bytes) -> bytes:
        """Shared key with a peer, for peer-to-peer encryption."""
        with self._lock:
            state = self._state
            if not isinstance(state, Unlocked):
                raise LockedError()
            return self._cipher.aes_key_of(bytes(peer_public_key), bytes(state.seed))

    def seeds(self) -> bytes | None:
        """The raw 32-byte seed, or None while locked."""
        with self._lock:
            state = self._state
            if isinstance(state, Unlocked):
                return bytes(state.seed)
            return None

    # ---- serialisation ----

    def to_dict(self) -> dict:
        return {
            "version": self._version,
            "address": str(self._address),
            "bmail": self._mail_name,
            "cipher": self._cipher_text,
        }

    def to_json(self, indent: int | str | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def to_bytes(self) -> bytes:
        return self.to_json().encode("utf-8")

    def __str__(self) -> str:
        return self.to_json()

    def __repr__(self) -> str:
        state = "unlocked" if self.is_open() else "locked"
        return f"Wallet({self._address}, {state})"

    def __enter__(self) -> Wallet:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
