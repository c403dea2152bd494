"""Domain entities and their constructors."""

from .factory import new_app, new_org, new_org_kind, new_org_profile, new_user
from .models import APIKey, App, Org, OrgKind, Person, Profile, User

__all__ = [
    # Entities
    "APIKey",
    "App",
    "Org",
    "OrgKind",
    "Person",
    "Profile",
    "User",
    # Constructors
    "new_app",
    "new_org",
    "new_org_kind",
    "new_org_profile",
    "new_user",
]
