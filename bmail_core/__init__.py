"""
BMail - Ed25519 identity wallet for the BMail network.

Key features:
- Prefixed base58 addresses derived from Ed25519 public keys
- Private keys encrypted at rest with a passphrase (PBKDF2 + AES-256-GCM)
- Explicit locked / unlocked key state
- Raw and canonical-JSON signing
- X25519 shared keys for peer-to-peer encryption
"""

__version__ = "1.0.0"
__all__ = [
    "address",
    "config",
    "exceptions",
    "keycrypt",
    "logging_config",
    "manager",
    "wallet",
]
