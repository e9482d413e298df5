"""
Shared pytest fixtures for the BMail test suite.
"""

import os
import sys

import pytest

# Make the project root importable when the package is not installed
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from bmail_core.keycrypt import KeyCipher  # noqa: E402
from bmail_core.manager import WalletManager  # noqa: E402
from bmail_core.wallet import Wallet  # noqa: E402

# Low iteration count keeps key stretching fast in tests
TEST_KDF_ITERATIONS = 1_000


@pytest.fixture
def cipher():
    return KeyCipher(iterations=TEST_KDF_ITERATIONS)


@pytest.fixture
def wallet(cipher):
    """Fresh, unlocked wallet protected by "correct-horse"."""
    return Wallet.create("correct-horse", cipher=cipher)


@pytest.fixture
def manager(tmp_path, cipher):
    """Wallet manager over a temporary directory."""
    return WalletManager(tmp_path / "wallets", cipher=cipher)
