"""
Cryptographic Exceptions for the Capability Mint Authority

This module defines custom exceptions for cryptographic operations.
"""


class CryptoError(Exception):
    """Base exception for all cryptographic errors."""
    pass


class InvalidKeyError(CryptoError):
    """Raised when a key is invalid or malformed."""
    pass


class InvalidSignatureError(CryptoError):
    """Raised when a signature is malformed or cannot be produced."""
    pass


class UnsupportedHashError(CryptoError):
    """Raised when a configured hash function is not supported."""
    pass
