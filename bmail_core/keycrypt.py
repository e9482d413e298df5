"""
Passphrase protection of wallet private keys, and peer key agreement.

The wallet only depends on the :class:`KeyCipher` interface:

  - ``encrypt(seed, public_key, passphrase) -> cipher_text``
  - ``decrypt(public_key, cipher_text, passphrase) -> seed``
  - ``aes_key_of(peer_public_key, seed) -> shared_key``

Cipher text format (base58 string):

    salt (16) || nonce (12) || tag (16) || AES-256-GCM(seed) (32)

The AES key is PBKDF2-HMAC-SHA256(passphrase, salt, iterations) and the
owner's public key is bound as GCM associated data, so a cipher text moved
to another address no longer authenticates.

Shared keys convert both Ed25519 keys to Curve25519 and run X25519.
"""

from __future__ import annotations

import hashlib
import os

import base58
from Crypto.Cipher import AES
from nacl import bindings
from nacl.exceptions import CryptoError

from bmail_core.address import PUBLIC_KEY_SIZE
from bmail_core.exceptions import (
    AuthenticationError,
    DecryptionError,
    EncryptionError,
    KeyDerivationError,
    MalformedInputError,
)

SEED_SIZE = 32
SALT_SIZE = 16
NONCE_SIZE = 12
TAG_SIZE = 16
DEFAULT_KDF_ITERATIONS = 600_000


class KeyCipher:
    """Default encryption and key-agreement capability."""

    def __init__(self, iterations: int = DEFAULT_KDF_ITERATIONS):
        if iterations < 1:
            raise ValueError("iterations must be positive")
        self.iterations = iterations

    def _derive(self, passphrase: str, salt: bytes) -> bytes:
        return hashlib.pbkdf2_hmac(
            "sha256", passphrase.encode("utf-8"), salt, self.iterations,
        )

    # ---- at-rest encryption ----

    def encrypt(self, seed: bytes, public_key: bytes, passphrase: str) -> str:
        """Encrypt a 32-byte Ed25519 seed bound to *public_key*."""
        if len(seed) != SEED_SIZE:
            raise EncryptionError(f"private key seed must be {SEED_SIZE} bytes")
        if len(public_key) != PUBLIC_KEY_SIZE:
            raise EncryptionError(f"public key must be {PUBLIC_KEY_SIZE} bytes")
        try:
            salt = os.urandom(SALT_SIZE)
            nonce = os.urandom(NONCE_SIZE)
            cipher = AES.new(self._derive(passphrase, salt), AES.MODE_GCM, nonce=nonce)
            cipher.update(bytes(public_key))
            ciphertext, tag = cipher.encrypt_and_digest(bytes(seed))
        except (ValueError, TypeError, UnicodeError) as exc:
            raise EncryptionError(f"cannot encrypt private key: {exc}") from exc
        return base58.b58encode(salt + nonce + tag + ciphertext).decode("ascii")

    def decrypt(self, public_key: bytes, cipher_text: str, passphrase: str) -> bytes:
        """Recover the seed. Raises AuthenticationError if the tag does not verify."""
        if public_key is None or len(public_key) != PUBLIC_KEY_SIZE:
            raise DecryptionError(f"public key must be {PUBLIC_KEY_SIZE} bytes")
        try:
            raw = base58.b58decode(cipher_text)
        except (ValueError, TypeError) as exc:
            raise DecryptionError(f"cipher text is not valid base58: {exc}") from exc
        if len(raw) != SALT_SIZE + NONCE_SIZE + TAG_SIZE + SEED_SIZE:
            raise DecryptionError(f"cipher text has unexpected length {len(raw)}")

        salt = raw[:SALT_SIZE]
        nonce = raw[SALT_SIZE:SALT_SIZE + NONCE_SIZE]
        tag = raw[SALT_SIZE + NONCE_SIZE:SALT_SIZE + NONCE_SIZE + TAG_SIZE]
        ciphertext = raw[SALT_SIZE + NONCE_SIZE + TAG_SIZE:]

        try:
            key = self._derive(passphrase, salt)
        except UnicodeError as exc:
            raise DecryptionError(f"cannot encode passphrase: {exc}") from exc
        cipher = AES.new(key, AES.MODE_GCM, nonce=nonce)
        cipher.update(bytes(public_key))
        try:
            return cipher.decrypt_and_verify(ciphertext, tag)
        except ValueError as exc:
            raise AuthenticationError() from exc

    # ---- key agreement ----

    def aes_key_of(self, peer_public_key: bytes, seed: bytes) -> bytes:
        """X25519 shared secret between our Ed25519 seed and a peer's Ed25519 key."""
        if len(peer_public_key) != PUBLIC_KEY_SIZE:
            raise MalformedInputError(
                f"peer public key must be {PUBLIC_KEY_SIZE} bytes, got {len(peer_public_key)}"
            )
        try:
            _, secret = bindings.crypto_sign_seed_keypair(bytes(seed))
            curve_priv = bindings.crypto_sign_ed25519_sk_to_curve25519(secret)
            curve_pub = bindings.crypto_sign_ed25519_pk_to_curve25519(bytes(peer_public_key))
            return bindings.crypto_scalarmult(curve_priv, curve_pub)
        except CryptoError as exc:
            raise KeyDerivationError(f"cannot derive shared key: {exc}") from exc

    def __repr__(self) -> str:
        return f"KeyCipher(iterations={self.iterations})"
