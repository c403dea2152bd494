"""Utility modules for orgstack."""

from orgstack.utils.exceptions import OrgstackError

__all__ = ["OrgstackError"]
