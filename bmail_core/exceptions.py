"""Exceptions raised by the BMail wallet."""


class WalletError(Exception):
    """Base exception for wallet and address errors."""

    pass


class GenerationError(WalletError, RuntimeError):
    """Raised when the random source or key-pair generation fails."""

    pass


class EncryptionError(WalletError):
    """Raised when the private key cannot be encrypted."""

    pass


class DecryptionError(WalletError):
    """Raised when the stored cipher text cannot be decoded or decrypted."""

    pass


class AuthenticationError(WalletError):
    """Raised when a passphrase does not unlock the wallet.

    Covers both a rejected passphrase and a decrypted key that does not
    match the wallet address; callers see a single message for both.
    """

    def __init__(self, message: str = "wrong passphrase or corrupted wallet") -> None:
        super().__init__(message)


class LockedError(WalletError, RuntimeError):
    """Raised when an operation needs the private key but the wallet is locked."""

    def __init__(self, message: str = "wallet is locked") -> None:
        super().__init__(message)


class MalformedInputError(WalletError, ValueError):
    """Raised when persisted data or a supplied address is structurally invalid."""

    pass


class EncodingError(MalformedInputError):
    """Raised when a value cannot be canonicalized for signing."""

    pass


class KeyDerivationError(WalletError):
    """Raised when a shared key cannot be derived from a peer public key."""

    pass
