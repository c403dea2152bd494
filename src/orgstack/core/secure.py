"""Opaque identifiers and API key issuance.

External identifiers are random URL-safe strings from a CSPRNG. They are
never UUID-shaped, so they can't collide with (or leak) internal IDs.
"""

import secrets
import string
from datetime import datetime
from typing import Protocol, runtime_checkable

from orgstack.core.encryption import EncryptionError, Encryptor
from orgstack.core.exceptions import InternalError
from orgstack.domain.models import APIKey

EXTERNAL_ID_BYTES = 16
DEFAULT_API_KEY_LENGTH = 32

_ALPHABET = string.ascii_letters + string.digits


@runtime_checkable
class RandomStringGenerator(Protocol):
    """Source of random strings for API key material."""

    def random_string(self, n: int) -> str:
        """Return a random string of ``n`` characters."""
        ...


class CryptoRandomGenerator:
    """RandomStringGenerator backed by the ``secrets`` module."""

    def random_string(self, n: int) -> str:
        if n <= 0:
            raise ValueError(f"random string length must be positive, got {n}")
        return "".join(secrets.choice(_ALPHABET) for _ in range(n))


def new_external_id() -> str:
    """Generate an opaque, URL-safe external identifier."""
    return secrets.token_urlsafe(EXTERNAL_ID_BYTES)


def new_api_key(
    generator: RandomStringGenerator,
    encryption_key: bytes,
    deactivation: datetime,
    length: int = DEFAULT_API_KEY_LENGTH,
) -> APIKey:
    """Issue a new API key.

    Args:
        generator: Random source for the key material
        encryption_key: 32-byte AES key used to encrypt the key at rest
        deactivation: Moment the key stops being valid (timezone-aware)
        length: Number of random characters

    Returns:
        Fully populated APIKey

    Raises:
        InternalError: If random generation or encryption fails
    """
    if deactivation.tzinfo is None:
        raise InternalError("API key deactivation must be timezone-aware")

    try:
        key = generator.random_string(length)
    except Exception as e:
        raise InternalError(f"API key generation failed: {e}") from e
    if not key:
        raise InternalError("API key generation returned an empty string")

    try:
        ciphertext = Encryptor(encryption_key).encrypt_string(key)
    except EncryptionError as e:
        raise InternalError(f"API key encryption failed: {e}") from e

    return APIKey(key=key, ciphertext=ciphertext, deactivation=deactivation)


def decrypt_api_key(
    ciphertext: str,
    encryption_key: bytes,
    deactivation: datetime,
) -> APIKey:
    """Rebuild an APIKey from its stored ciphertext.

    Raises:
        InternalError: If decryption fails
    """
    try:
        key = Encryptor(encryption_key).decrypt_string(ciphertext)
    except EncryptionError as e:
        raise InternalError(f"API key decryption failed: {e}") from e
    return APIKey(key=key, ciphertext=ciphertext, deactivation=deactivation)
