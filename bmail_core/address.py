"""
BMail address encoding.

An address is the fixed prefix ``BM`` followed by the base58 encoding
(Bitcoin alphabet) of a raw 32-byte Ed25519 public key:

    BM + base58(public_key)

Validation is purely structural: length, prefix and decoded key size.
There is no checksum, so a mistyped character that still decodes to
32 bytes is indistinguishable from a genuine key at this layer.
"""

from __future__ import annotations

import base58

from bmail_core.exceptions import MalformedInputError

ACC_PREFIX = "BM"
ACC_ID_LEN = 40          # valid addresses are strictly longer than this
PUBLIC_KEY_SIZE = 32     # Ed25519

_B58_CHARS = frozenset(base58.BITCOIN_ALPHABET.decode("ascii"))


class Address(str):
    """An immutable, prefixed base58 address string."""

    __slots__ = ()

    def to_pub_key(self) -> bytes | None:
        """Decode the public key after the prefix.

        Returns None when the string is not longer than the prefix or the
        payload is not valid base58.
        """
        if len(self) <= len(ACC_PREFIX):
            return None
        payload = self[len(ACC_PREFIX):]
        # b58decode strips surrounding whitespace; an address must not carry any
        if not set(payload) <= _B58_CHARS:
            return None
        return base58.b58decode(payload)

    def is_valid(self) -> bool:
        if len(self) <= ACC_ID_LEN:
            return False
        if self[: len(ACC_PREFIX)] != ACC_PREFIX:
            return False
        pub = self.to_pub_key()
        return pub is not None and len(pub) == PUBLIC_KEY_SIZE

    def __repr__(self) -> str:
        return f"Address({str.__repr__(self)})"


def to_address(public_key: bytes) -> Address:
    """Encode raw public-key bytes as an address.

    The key length is not checked here; use :func:`is_valid` on the result.
    """
    return Address(ACC_PREFIX + base58.b58encode(bytes(public_key)).decode("ascii"))


def is_valid(addr: str) -> bool:
    return Address(addr).is_valid()


def parse_address(text: str) -> Address:
    """Return *text* as a validated :class:`Address`.

    Raises MalformedInputError if it fails structural validation.
    """
    if not isinstance(text, str):
        raise MalformedInputError(f"address must be a string, got {type(text).__name__}")
    addr = Address(text)
    if not addr.is_valid():
        raise MalformedInputError(f"invalid address: {text!r}")
    return addr
