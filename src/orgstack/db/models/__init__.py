"""Database models for orgstack."""

from .app import APIKeyRow, AppRow
from .base import AuditMixin, Base, PortableUUID, UTCDateTime
from .org import OrgKindRow, OrgRow
from .user import PersonProfileRow, PersonRow, UserRow

__all__ = [
    "Base",
    "AuditMixin",
    "PortableUUID",
    "UTCDateTime",
    "OrgKindRow",
    "OrgRow",
    "AppRow",
    "APIKeyRow",
    "PersonRow",
    "PersonProfileRow",
    "UserRow",
]
