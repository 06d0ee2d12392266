"""
Cryptographic Verifier

Pure, stateless wrapper around the hash and signature-verification primitives
the mint engine relies on. Verification never raises for malformed input: a
signature that cannot be parsed simply does not verify.
"""

import hashlib
import logging
from typing import Union

from .exceptions import InvalidKeyError, InvalidSignatureError, UnsupportedHashError
from .keys import PrivateKey, PublicKey
from .signatures import normalize_signature, parse_signature, sign_ecdsa, verify_ecdsa


SUPPORTED_HASHES = {
    'sha256': hashlib.sha256,
    'sha3_256': hashlib.sha3_256,
}

logger = logging.getLogger(__name__)


class CryptographicVerifier:
    """Hash + secp256k1 ECDSA verification."""

    def __init__(self, hash_name: str = 'sha256'):
        if hash_name not in SUPPORTED_HASHES:
            raise UnsupportedHashError(f"Unsupported hash function: {hash_name}")
        self.hash_name = hash_name
        self._hasher = SUPPORTED_HASHES[hash_name]

    def hash(self, data: bytes) -> bytes:
        """Return the 32-byte digest of ``data``."""
        return self._hasher(data).digest()

    def verify_signature(self, signature: bytes,
                         public_key: Union[bytes, str, PublicKey],
                         digest: bytes) -> bool:
        """
        Verify ``signature`` over ``digest``.

        High-S signatures are accepted; they are normalized to low-S first.

        Args:
            signature: 64-byte compact or DER-encoded ECDSA signature
            public_key: PublicKey, raw bytes or hex
            digest: 32-byte digest

        Returns:
            True if the signature is valid for the key
        """
        try:
            key = self._coerce_key(public_key)
            parsed = normalize_signature(parse_signature(signature))
        except (InvalidKeyError, InvalidSignatureError) as e:
            logger.debug(f"Signature rejected before verification: {e}")
            return False

        return verify_ecdsa(key, parsed, digest)

    def sign_salt(self, private_key: PrivateKey, salt: bytes) -> bytes:
        """
        Produce the compact signature a signing authority hands to a minter.
        """
        return sign_ecdsa(private_key, self.hash(salt)).to_compact()

    @staticmethod
    def _coerce_key(public_key: Union[bytes, str, PublicKey]) -> PublicKey:
        if isinstance(public_key, PublicKey):
            return public_key
        if isinstance(public_key, str):
            return PublicKey.from_hex(public_key)
        return PublicKey(public_key)


def is_valid_public_key(public_key_hex: str) -> bool:
    """Check whether ``public_key_hex`` decodes to a secp256k1 point."""
    try:
        PublicKey.from_hex(public_key_hex)
        return True
    except InvalidKeyError:
        return False
