"""Symmetric encryption for API key material at rest.

API keys are encrypted with AES-256-GCM before they are written to the
``app_api_key`` table. The stored form is base64 text of
``nonce || ciphertext || tag``.

Usage:
    from orgstack.core.encryption import Encryptor, generate_key

    encryptor = Encryptor(generate_key())
    stored = encryptor.encrypt_string("my-api-key")
    plain = encryptor.decrypt_string(stored)
"""

import base64
import binascii
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from orgstack.config.settings import Settings, get_settings
from orgstack.utils.exceptions import OrgstackError


class EncryptionError(OrgstackError):
    """Raised when encryption or decryption fails."""

    pass


class EncryptionKeyError(EncryptionError):
    """Raised when encryption key is missing or invalid."""

    pass


class DecryptionError(EncryptionError):
    """Raised when decryption fails (wrong key, corrupted data, etc.)."""

    pass


NONCE_SIZE = 12  # 96 bits recommended for AES-GCM
TAG_SIZE = 16
KEY_SIZE = 32  # 256 bits for AES-256


class Encryptor:
    """AES-256-GCM cipher for API key material.

    A fresh 96-bit nonce is drawn for every encryption, so the same API key
    never produces the same stored value twice.
    """

    def __init__(self, key: bytes):
        """Bind the cipher to ``key``.

        Args:
            key: 32-byte (256-bit) encryption key

        Raises:
            EncryptionKeyError: If key is not 32 bytes of key material
        """
        if not isinstance(key, bytes | bytearray):
            raise EncryptionKeyError(f"Encryption key must be bytes, got {type(key).__name__}")
        if len(key) != KEY_SIZE:
            raise EncryptionKeyError(f"Encryption key must be {KEY_SIZE} bytes, got {len(key)}")
        self._cipher = AESGCM(key)

    def encrypt(self, plaintext: bytes) -> bytes:
        """Encrypt bytes, returning ``nonce || ciphertext || tag``.

        Raises:
            EncryptionError: If the cipher rejects the input
        """
        nonce = secrets.token_bytes(NONCE_SIZE)
        try:
            sealed = self._cipher.encrypt(nonce, plaintext, None)
        except (OverflowError, TypeError, ValueError) as e:
            raise EncryptionError(f"Encryption failed: {e}") from e
        return nonce + sealed

    def decrypt(self, data: bytes) -> bytes:
        """Decrypt bytes produced by :meth:`encrypt`.

        Raises:
            DecryptionError: If the data is truncated, tampered with, or was
                sealed under another key
        """
        if len(data) < NONCE_SIZE + TAG_SIZE:
            raise DecryptionError("Ciphertext too short")
        nonce, sealed = data[:NONCE_SIZE], data[NONCE_SIZE:]
        try:
            return self._cipher.decrypt(nonce, sealed, None)
        except InvalidTag as e:
            raise DecryptionError("Decryption failed: authentication tag mismatch") from e

    def encrypt_string(self, plaintext: str) -> str:
        """Encrypt a string and return base64 text."""
        return base64.b64encode(self.encrypt(plaintext.encode("utf-8"))).decode("ascii")

    def decrypt_string(self, ciphertext: str) -> str:
        """Decrypt base64 text produced by :meth:`encrypt_string`."""
        try:
            raw = base64.b64decode(ciphertext, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecryptionError(f"Ciphertext is not valid base64: {e}") from e
        return self.decrypt(raw).decode("utf-8")


def generate_key() -> bytes:
    """Generate a new random 256-bit encryption key."""
    return secrets.token_bytes(KEY_SIZE)


def key_to_string(key: bytes) -> str:
    """Convert key to base64 string for storage in configuration."""
    return base64.b64encode(key).decode("ascii")


def key_from_string(key_string: str) -> bytes:
    """Convert base64 string back to key bytes.

    Raises:
        EncryptionKeyError: If key string is invalid
    """
    try:
        key = base64.b64decode(key_string, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncryptionKeyError(f"Invalid key string: {e}") from e
    if len(key) != KEY_SIZE:
        raise EncryptionKeyError(f"Key must be {KEY_SIZE} bytes, got {len(key)}")
    return key


def load_encryption_key(settings: Settings | None = None) -> bytes:
    """Load the API key encryption key from settings.

    Raises:
        EncryptionKeyError: If ENCRYPTION_KEY is not configured or invalid
    """
    settings = settings or get_settings()
    if settings.ENCRYPTION_KEY is None:
        raise EncryptionKeyError(
            "ENCRYPTION_KEY is not configured. Set it in environment variables."
        )
    return key_from_string(settings.ENCRYPTION_KEY.get_secret_value())
