"""Unit tests for external IDs and API key issuance."""

import base64
from datetime import UTC, datetime

import pytest
from uuid_utils.compat import uuid7

from orgstack.core.encryption import Encryptor, generate_key
from orgstack.core.exceptions import InternalError
from orgstack.core.secure import (
    DEFAULT_API_KEY_LENGTH,
    CryptoRandomGenerator,
    RandomStringGenerator,
    decrypt_api_key,
    new_api_key,
    new_external_id,
)

DEACTIVATION = datetime(2099, 12, 31, tzinfo=UTC)


class FixedGenerator:
    """Returns a canned string."""

    def __init__(self, value: str):
        self.value = value

    def random_string(self, n: int) -> str:
        return self.value


class FailingGenerator:
    def random_string(self, n: int) -> str:
        raise OSError("entropy source unavailable")


class TestCryptoRandomGenerator:
    """Tests for CryptoRandomGenerator."""

    def test_satisfies_protocol(self):
        assert isinstance(CryptoRandomGenerator(), RandomStringGenerator)

    def test_length_and_alphabet(self):
        value = CryptoRandomGenerator().random_string(64)
        assert len(value) == 64
        assert value.isalnum()
        assert value.isascii()

    def test_values_differ(self):
        generator = CryptoRandomGenerator()
        assert generator.random_string(32) != generator.random_string(32)

    @pytest.mark.parametrize("n", [0, -1])
    def test_non_positive_length_rejected(self, n: int):
        with pytest.raises(ValueError, match="must be positive"):
            CryptoRandomGenerator().random_string(n)


class TestExternalId:
    """Tests for new_external_id."""

    def test_unique_across_many_samples(self):
        ids = {new_external_id() for _ in range(10_000)}
        assert len(ids) == 10_000

    def test_differs_from_internal_ids(self):
        for _ in range(10_000):
            internal = uuid7()
            external = new_external_id()
            assert external != str(internal)
            assert external != internal.hex

    def test_url_safe(self):
        external = new_external_id()
        assert all(c.isalnum() or c in "-_" for c in external)


class TestNewAPIKey:
    """Tests for new_api_key."""

    def test_issues_encrypted_key(self):
        encryption_key = generate_key()
        key = new_api_key(CryptoRandomGenerator(), encryption_key, DEACTIVATION)

        assert len(key.key) == DEFAULT_API_KEY_LENGTH
        assert key.deactivation == DEACTIVATION
        assert key.ciphertext != key.key
        assert Encryptor(encryption_key).decrypt_string(key.ciphertext) == key.key

    def test_custom_length(self):
        key = new_api_key(CryptoRandomGenerator(), generate_key(), DEACTIVATION, length=48)
        assert len(key.key) == 48

    def test_ciphertext_is_base64(self):
        key = new_api_key(CryptoRandomGenerator(), generate_key(), DEACTIVATION)
        base64.b64decode(key.ciphertext, validate=True)

    def test_plaintext_not_in_repr(self):
        key = new_api_key(FixedGenerator("supersecretvalue"), generate_key(), DEACTIVATION)
        assert "supersecretvalue" not in repr(key)

    def test_generator_failure_is_internal_error(self):
        with pytest.raises(InternalError, match="generation failed"):
            new_api_key(FailingGenerator(), generate_key(), DEACTIVATION)

    def test_empty_key_is_internal_error(self):
        with pytest.raises(InternalError, match="empty"):
            new_api_key(FixedGenerator(""), generate_key(), DEACTIVATION)

    def test_bad_encryption_key_is_internal_error(self):
        with pytest.raises(InternalError, match="encryption failed"):
            new_api_key(CryptoRandomGenerator(), b"short", DEACTIVATION)

    def test_missing_encryption_key_is_internal_error(self):
        with pytest.raises(InternalError, match="must be bytes"):
            new_api_key(CryptoRandomGenerator(), None, DEACTIVATION)

    def test_naive_deactivation_is_internal_error(self):
        with pytest.raises(InternalError, match="timezone-aware"):
            new_api_key(CryptoRandomGenerator(), generate_key(), datetime(2099, 12, 31))

    def test_is_active(self):
        key = new_api_key(CryptoRandomGenerator(), generate_key(), DEACTIVATION)
        assert key.is_active(datetime(2099, 12, 30, tzinfo=UTC))
        assert not key.is_active(DEACTIVATION)


class TestDecryptAPIKey:
    """Tests for decrypt_api_key."""

    def test_restores_plaintext(self):
        encryption_key = generate_key()
        issued = new_api_key(CryptoRandomGenerator(), encryption_key, DEACTIVATION)

        restored = decrypt_api_key(issued.ciphertext, encryption_key, DEACTIVATION)

        assert restored == issued

    def test_wrong_key_is_internal_error(self):
        issued = new_api_key(CryptoRandomGenerator(), generate_key(), DEACTIVATION)
        with pytest.raises(InternalError, match="decryption failed"):
            decrypt_api_key(issued.ciphertext, generate_key(), DEACTIVATION)

    def test_missing_encryption_key_is_internal_error(self):
        issued = new_api_key(CryptoRandomGenerator(), generate_key(), DEACTIVATION)
        with pytest.raises(InternalError, match="must be bytes"):
            decrypt_api_key(issued.ciphertext, None, DEACTIVATION)
