"""Typed provisioning errors.

Every storage, crypto or caller-input failure raised by the provisioning
engine is one of the four kinds below. Callers branch on the exception
class (or on ``kind``) instead of inspecting messages.
"""

from enum import Enum

from orgstack.utils.exceptions import OrgstackError


class ErrorKind(str, Enum):
    """Classification of a provisioning failure."""

    VALIDATION = "validation"  # Caller input or precondition violated
    NOT_EXIST = "not_exist"  # Requested entity is absent
    DATABASE = "database"  # Storage call failed or unexpected row count
    INTERNAL = "internal"  # Crypto/random failure or broken invariant


class ProvisioningError(OrgstackError):
    """Base class for typed provisioning failures.

    Attributes:
        kind: The error classification
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str):
        super().__init__(message)

    def __str__(self) -> str:
        return f"{type(self).__name__}({self.kind.value}): {self.args[0]}"


class ValidationError(ProvisioningError):
    """Raised when caller input or a precondition is invalid."""

    kind = ErrorKind.VALIDATION


class NotExistError(ProvisioningError):
    """Raised when a requested entity does not exist.

    Attributes:
        entity: The entity type that was looked up (e.g., "org")
        external_id: The external identifier used for the lookup
    """

    kind = ErrorKind.NOT_EXIST

    def __init__(self, entity: str, external_id: str):
        super().__init__(f"no {entity} found with external ID: {external_id}")
        self.entity = entity
        self.external_id = external_id


class DatabaseError(ProvisioningError):
    """Raised when a storage call fails or affects an unexpected row count."""

    kind = ErrorKind.DATABASE


class RowCountError(DatabaseError):
    """Raised when a single-row statement affects a different number of rows.

    Attributes:
        operation: The repository operation that ran (e.g., "CreateOrg")
        expected: The number of rows the statement should have affected
        actual: The number of rows reported by the driver
    """

    def __init__(self, operation: str, actual: int, expected: int = 1):
        super().__init__(
            f"{operation}() should affect {expected} row, actual: {actual}"
        )
        self.operation = operation
        self.expected = expected
        self.actual = actual


class InternalError(ProvisioningError):
    """Raised on random-generation or encryption failure."""

    kind = ErrorKind.INTERNAL
