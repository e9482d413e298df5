"""
Test suite for bmail_core.address — address encoding and validation.

Covers:
  - Encode / decode round trip for generated keys
  - Exact encoding (prefix + base58)
  - Validity rules: length, prefix, decoded key size
  - Undecodable payloads
  - parse_address errors
"""

import unittest

import base58
from nacl.signing import SigningKey

from bmail_core.address import (
    ACC_ID_LEN,
    ACC_PREFIX,
    PUBLIC_KEY_SIZE,
    Address,
    is_valid,
    parse_address,
    to_address,
)
from bmail_core.exceptions import MalformedInputError


def _pub() -> bytes:
    return SigningKey.generate().verify_key.encode()


class TestConstants(unittest.TestCase):

    def test_values(self):
        self.assertEqual(ACC_PREFIX, "BM")
        self.assertEqual(ACC_ID_LEN, 40)
        self.assertEqual(PUBLIC_KEY_SIZE, 32)


class TestEncodeDecode(unittest.TestCase):

    def test_round_trip(self):
        for _ in range(20):
            pub = _pub()
            self.assertEqual(to_address(pub).to_pub_key(), pub)

    def test_exact_encoding(self):
        pub = _pub()
        expected = "BM" + base58.b58encode(pub).decode()
        self.assertEqual(to_address(pub), expected)

    def test_returns_address_type(self):
        addr = to_address(_pub())
        self.assertIsInstance(addr, Address)
        self.assertIsInstance(addr, str)

    def test_known_vector(self):
        addr = to_address(b"\xff" * 32)
        self.assertEqual(addr, "BM" + base58.b58encode(b"\xff" * 32).decode())
        self.assertEqual(addr.to_pub_key(), b"\xff" * 32)

    def test_encode_does_not_validate(self):
        addr = to_address(b"abc")
        self.assertTrue(addr.startswith("BM"))
        self.assertEqual(addr.to_pub_key(), b"abc")
        self.assertFalse(addr.is_valid())

    def test_decode_prefix_only(self):
        self.assertIsNone(Address("BM").to_pub_key())
        self.assertIsNone(Address("").to_pub_key())
        self.assertIsNone(Address("B").to_pub_key())

    def test_decode_short_payload(self):
        self.assertEqual(Address("BM2").to_pub_key(), b"\x01")

    def test_decode_invalid_base58(self):
        # 0, O, I and l are not in the base58 alphabet
        self.assertIsNone(Address("BM" + "0OIl" * 11).to_pub_key())

    def test_repr(self):
        self.assertEqual(repr(Address("BMabc")), "Address('BMabc')")

    def test_equal_to_plain_string(self):
        pub = _pub()
        addr = to_address(pub)
        self.assertEqual(addr, str(addr))
        self.assertEqual(hash(addr), hash(str(addr)))


class TestValidity(unittest.TestCase):

    def test_generated_addresses_valid(self):
        for _ in range(50):
            addr = to_address(_pub())
            self.assertTrue(addr.is_valid())
            self.assertTrue(is_valid(str(addr)))

    def test_wrong_prefix(self):
        addr = to_address(_pub())
        self.assertFalse(is_valid("BX" + addr[2:]))
        self.assertFalse(is_valid("bm" + addr[2:]))
        self.assertFalse(is_valid(addr[2:] + "BM"))

    def test_too_short(self):
        self.assertFalse(is_valid(""))
        self.assertFalse(is_valid("BM"))
        self.assertFalse(is_valid("BM" + "2" * 38))  # exactly ACC_ID_LEN

    def test_short_despite_32_byte_payload(self):
        # Leading zero bytes encode as "1", so this key is only 32 chars long
        pub = b"\x00" * 31 + b"\x01"
        addr = to_address(pub)
        self.assertEqual(addr.to_pub_key(), pub)
        self.assertLessEqual(len(addr), ACC_ID_LEN)
        self.assertFalse(addr.is_valid())

    def test_payload_31_bytes(self):
        addr = to_address(b"\xff" * 31)
        self.assertGreater(len(addr), ACC_ID_LEN)
        self.assertFalse(addr.is_valid())

    def test_payload_33_bytes(self):
        addr = to_address(b"\xff" * 33)
        self.assertFalse(addr.is_valid())

    def test_invalid_base58_payload(self):
        self.assertFalse(is_valid("BM" + "0" * 44))

    def test_surrounding_whitespace(self):
        addr = to_address(_pub())
        for ws in (" ", "\n", "\t", "\r\n"):
            self.assertIsNone(Address(addr + ws).to_pub_key(), repr(ws))
            self.assertFalse(is_valid(addr + ws), repr(ws))
        self.assertFalse(is_valid(addr[:2] + " " + addr[2:]))

    def test_parse_rejects_trailing_newline(self):
        addr = to_address(_pub())
        with self.assertRaises(MalformedInputError):
            parse_address(addr + "\n")

    def test_no_checksum(self):
        """A changed character that still decodes to 32 bytes passes."""
        addr = to_address(b"\xaa" * 32)
        last = "2" if addr[-1] != "2" else "3"
        tampered = Address(addr[:-1] + last)
        self.assertNotEqual(tampered, addr)
        self.assertTrue(tampered.is_valid())


class TestParseAddress(unittest.TestCase):

    def test_valid(self):
        addr = to_address(_pub())
        parsed = parse_address(str(addr))
        self.assertIsInstance(parsed, Address)
        self.assertEqual(parsed, addr)

    def test_invalid_raises(self):
        with self.assertRaises(MalformedInputError):
            parse_address("BMnope")

    def test_error_is_value_error(self):
        with self.assertRaises(ValueError):
            parse_address("XX" + "2" * 44)

    def test_non_string(self):
        with self.assertRaises(MalformedInputError):
            parse_address(None)
        with self.assertRaises(MalformedInputError):
            parse_address(b"BM" + b"2" * 44)
