"""
Unit tests for the CryptographicVerifier.
"""

import hashlib

import pytest

from crypto.exceptions import UnsupportedHashError
from crypto.keys import CURVE_ORDER, PrivateKey
from crypto.signatures import ECDSASignature, is_low_s, parse_signature
from crypto.verifier import CryptographicVerifier, is_valid_public_key


class TestCryptographicVerifier:

    def test_default_hash_is_sha256(self, verifier):
        assert verifier.hash(b"abc") == hashlib.sha256(b"abc").digest()

    def test_sha3_hash(self):
        verifier = CryptographicVerifier('sha3_256')
        assert verifier.hash(b"abc") == hashlib.sha3_256(b"abc").digest()

    def test_unsupported_hash(self):
        with pytest.raises(UnsupportedHashError):
            CryptographicVerifier('md5')

    def test_sign_salt_verifies(self, verifier, signing_key):
        salt = b"request-42"
        signature = verifier.sign_salt(signing_key, salt)

        assert len(signature) == 64
        assert verifier.verify_signature(signature, signing_key.public_key(), verifier.hash(salt))
        assert verifier.verify_signature(signature, signing_key.public_key().hex, verifier.hash(salt))
        assert verifier.verify_signature(signature, signing_key.public_key().bytes, verifier.hash(salt))

    def test_signature_over_other_salt_fails(self, verifier, signing_key):
        signature = verifier.sign_salt(signing_key, b"salt-a")
        assert not verifier.verify_signature(
            signature, signing_key.public_key(), verifier.hash(b"salt-b")
        )

    def test_other_key_fails(self, verifier, signing_key):
        signature = verifier.sign_salt(signing_key, b"salt")
        assert not verifier.verify_signature(
            signature, PrivateKey().public_key(), verifier.hash(b"salt")
        )

    def test_garbage_never_raises(self, verifier, signing_key):
        digest = verifier.hash(b"salt")
        assert not verifier.verify_signature(b"\x00" * 10, signing_key.public_key(), digest)
        assert not verifier.verify_signature(b"\x01" * 64, "not-a-key", digest)
        assert not verifier.verify_signature(b"\x30" * 70, signing_key.public_key(), digest)

    def test_high_s_signature_verifies(self, verifier, signing_key):
        digest = verifier.hash(b"salt")
        low = parse_signature(verifier.sign_salt(signing_key, b"salt"))
        high = ECDSASignature(r=low.r, s=CURVE_ORDER - low.s)
        assert is_low_s(low)
        assert not is_low_s(high)

        for encoded in (high.to_compact(), high.to_der()):
            assert verifier.verify_signature(encoded, signing_key.public_key(), digest)
        assert not verifier.verify_signature(
            high.to_compact(), PrivateKey().public_key(), digest
        )

    def test_hash_mismatch_between_verifiers(self, signing_key):
        sha2 = CryptographicVerifier('sha256')
        sha3 = CryptographicVerifier('sha3_256')
        signature = sha2.sign_salt(signing_key, b"salt")
        assert not sha3.verify_signature(signature, signing_key.public_key(), sha3.hash(b"salt"))


class TestPublicKeyValidation:

    def test_valid_key(self, signing_key):
        assert is_valid_public_key(signing_key.public_key().hex)

    def test_invalid_keys(self):
        assert not is_valid_public_key("")
        assert not is_valid_public_key("02" + "zz" * 32)
        assert not is_valid_public_key("04" + "00" * 64)
