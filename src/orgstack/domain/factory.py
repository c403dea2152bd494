"""Construction of domain entities.

Pure functions: nothing here touches storage. Each constructor assigns a
fresh internal ID (UUIDv7, time-ordered) and, where the entity is exposed
outward, a fresh external ID.
"""

from datetime import datetime

from uuid_utils.compat import uuid7

from orgstack.core.exceptions import ValidationError
from orgstack.core.secure import (
    DEFAULT_API_KEY_LENGTH,
    RandomStringGenerator,
    new_api_key,
    new_external_id,
)
from orgstack.domain.models import App, Org, OrgKind, Person, Profile, User


def new_org_kind(external_id: str, description: str) -> OrgKind:
    """Build an OrgKind lookup value."""
    external_id = external_id.strip()
    if not external_id:
        raise ValidationError("org kind external ID is required")
    return OrgKind(id=uuid7(), external_id=external_id, description=description)


def new_org(name: str, description: str, kind: OrgKind) -> Org:
    """Build an Org of a persisted kind.

    Raises:
        ValidationError: If name is blank or kind is missing
    """
    if kind is None:
        raise ValidationError("org Kind is required")
    if not name or not name.strip():
        raise ValidationError("org name is required")
    return Org(
        id=uuid7(),
        external_id=new_external_id(),
        name=name.strip(),
        description=description,
        kind=kind,
    )


def new_app(
    name: str,
    description: str,
    org: Org,
    key_generator: RandomStringGenerator,
    encryption_key: bytes,
    deactivation: datetime,
    key_length: int = DEFAULT_API_KEY_LENGTH,
) -> App:
    """Build an App with one freshly issued API key.

    Raises:
        ValidationError: If name is blank
        InternalError: If the API key cannot be issued
    """
    if not name or not name.strip():
        raise ValidationError("app name is required")
    key = new_api_key(key_generator, encryption_key, deactivation, length=key_length)
    return App(
        id=uuid7(),
        external_id=new_external_id(),
        org_id=org.id,
        name=name.strip(),
        description=description,
        api_keys=(key,),
    )


def new_org_profile(org: Org, first_name: str, last_name: str) -> Profile:
    """Build a Person in ``org`` together with its Profile."""
    person = Person(id=uuid7(), org_id=org.id)
    return Profile(
        id=uuid7(),
        person=person,
        first_name=(first_name or "").strip(),
        last_name=(last_name or "").strip(),
    )


def new_user(username: str, org: Org, profile: Profile) -> User:
    """Build a User.

    Raises:
        ValidationError: If the trimmed username is empty, or the profile's
            person belongs to a different org
    """
    username = (username or "").strip()
    if not username:
        raise ValidationError("username is required")
    if profile.person.org_id != org.id:
        raise ValidationError("user profile must belong to the user's org")
    return User(id=uuid7(), username=username, org_id=org.id, profile=profile)
