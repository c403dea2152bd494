"""Custom exceptions for orgstack."""


class OrgstackError(Exception):
    """Base exception for all orgstack errors."""

    pass
