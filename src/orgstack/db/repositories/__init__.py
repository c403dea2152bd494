"""Database repositories for row-level access."""

from .app import APIKeyRepository, AppRepository
from .base import BaseRepository, expect_one_row
from .org import OrgKindRepository, OrgRepository
from .user import PersonRepository, ProfileRepository, UserRepository

__all__ = [
    "BaseRepository",
    "expect_one_row",
    "OrgKindRepository",
    "OrgRepository",
    "AppRepository",
    "APIKeyRepository",
    "PersonRepository",
    "ProfileRepository",
    "UserRepository",
]
