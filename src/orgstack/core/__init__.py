"""Core values and utilities for orgstack."""

from .audit import Audit, SimpleAudit, new_audit, new_simple_audit, touch, utc_now
from .exceptions import (
    DatabaseError,
    ErrorKind,
    InternalError,
    NotExistError,
    ProvisioningError,
    RowCountError,
    ValidationError,
)
from .secure import CryptoRandomGenerator, RandomStringGenerator, new_api_key, new_external_id

__all__ = [
    # Audit
    "Audit",
    "SimpleAudit",
    "new_audit",
    "new_simple_audit",
    "touch",
    "utc_now",
    # Exceptions
    "ErrorKind",
    "ProvisioningError",
    "ValidationError",
    "NotExistError",
    "DatabaseError",
    "RowCountError",
    "InternalError",
    # Secure
    "CryptoRandomGenerator",
    "RandomStringGenerator",
    "new_api_key",
    "new_external_id",
]
