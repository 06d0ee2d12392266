"""
Capability Mint Authority - Cryptographic Operations Module

This module provides the cryptographic primitives used to approve mints:
- secp256k1 key wrappers
- ECDSA signing and verification (DER and compact encodings)
- The stateless CryptographicVerifier consumed by the mint engine

Dependencies:
- coincurve: Fast secp256k1 operations
- hashlib: Cryptographic hash functions
"""

from .exceptions import (
    CryptoError,
    InvalidKeyError,
    InvalidSignatureError,
    UnsupportedHashError,
)
from .keys import PrivateKey, PublicKey
from .signatures import (
    ECDSASignature,
    parse_signature,
    sign_ecdsa,
    verify_ecdsa,
    normalize_signature,
    is_low_s,
)
from .verifier import CryptographicVerifier, is_valid_public_key

__version__ = "0.1.0"
__all__ = [
    # Exceptions
    "CryptoError",
    "InvalidKeyError",
    "InvalidSignatureError",
    "UnsupportedHashError",

    # Keys
    "PrivateKey",
    "PublicKey",

    # Signatures
    "ECDSASignature",
    "parse_signature",
    "sign_ecdsa",
    "verify_ecdsa",
    "normalize_signature",
    "is_low_s",

    # Verifier
    "CryptographicVerifier",
    "is_valid_public_key",
]
