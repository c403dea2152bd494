"""Domain value types for the tenancy entities.

Entities are immutable and refer to each other by internal identifier
(an App carries ``org_id``, not an embedded Org). Internal identifiers
stay inside the package; only ``external_id`` values are ever placed in
responses.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class OrgKind:
    """Classification of an organization (genesis, test, standard, ...).

    Attributes:
        id: Internal identifier
        external_id: Public tag for the kind
        description: Human readable description
    """

    id: UUID
    external_id: str
    description: str


@dataclass(frozen=True, slots=True)
class Org:
    """An organization.

    Attributes:
        id: Internal identifier
        external_id: Opaque public identifier
        name: Display name
        description: Free-form description
        kind: Persisted kind this organization belongs to
    """

    id: UUID
    external_id: str
    name: str
    description: str
    kind: OrgKind


@dataclass(frozen=True, slots=True)
class APIKey:
    """API key material for an app.

    ``key`` is the plaintext secret and only exists in memory: at issuance
    and after decrypting a stored key. ``ciphertext`` is what gets persisted.

    Attributes:
        key: Plaintext key
        ciphertext: Base64 AES-256-GCM ciphertext of ``key``
        deactivation: Moment at/after which the key is no longer valid
    """

    key: str = field(repr=False)
    ciphertext: str = field(repr=False)
    deactivation: datetime

    def is_active(self, moment: datetime) -> bool:
        """Return True if the key is still valid at ``moment``."""
        return moment < self.deactivation


@dataclass(frozen=True, slots=True)
class App:
    """An application owned by an organization.

    Attributes:
        id: Internal identifier
        external_id: Opaque public identifier
        org_id: Internal identifier of the owning organization
        name: Display name
        description: Free-form description
        api_keys: Issued keys, oldest first
    """

    id: UUID
    external_id: str
    org_id: UUID
    name: str
    description: str
    api_keys: tuple[APIKey, ...] = ()

    def with_key(self, key: APIKey) -> "App":
        """Return a copy of the app with ``key`` appended."""
        return replace(self, api_keys=self.api_keys + (key,))


@dataclass(frozen=True, slots=True)
class Person:
    """A person belonging to an organization."""

    id: UUID
    org_id: UUID


@dataclass(frozen=True, slots=True)
class Profile:
    """Name details of a person."""

    id: UUID
    person: Person
    first_name: str
    last_name: str


@dataclass(frozen=True, slots=True)
class User:
    """A login identity for a person within an organization.

    Attributes:
        id: Internal identifier
        username: Trimmed, non-empty username
        org_id: Internal identifier of the owning organization
        profile: Profile of the person behind the user
    """

    id: UUID
    username: str
    org_id: UUID
    profile: Profile

    @property
    def first_name(self) -> str:
        return self.profile.first_name

    @property
    def last_name(self) -> str:
        return self.profile.last_name
