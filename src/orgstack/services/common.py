"""Helpers shared by the provisioning services.

Writes that more than one service performs (an org, an app with its keys,
a user with its person and profile) live here together with the mapping
from database rows back to domain values.
"""

from collections.abc import Mapping, Sequence
from typing import Any, TypeVar
from uuid import UUID

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from orgstack.core.audit import Audit, SimpleAudit
from orgstack.core.exceptions import InternalError, NotExistError, ValidationError
from orgstack.core.secure import decrypt_api_key
from orgstack.db.models.app import AppRow
from orgstack.db.models.base import AuditMixin
from orgstack.db.models.org import OrgKindRow, OrgRow
from orgstack.db.models.user import PersonProfileRow, UserRow
from orgstack.db.repositories import (
    APIKeyRepository,
    AppRepository,
    OrgKindRepository,
    OrgRepository,
    PersonRepository,
    ProfileRepository,
    UserRepository,
    expect_one_row,
)
from orgstack.domain.models import App, Org, OrgKind, Person, Profile, User

GENESIS_KIND = "genesis"
TEST_KIND = "test"
STANDARD_KIND = "standard"

RequestT = TypeVar("RequestT", bound=BaseModel)


def parse_request(model: type[RequestT], request: RequestT | Mapping[str, Any] | None) -> RequestT:
    """Coerce a request into ``model``.

    Raises:
        ValidationError: If the request is missing or fails validation
    """
    if request is None:
        raise ValidationError(f"{model.__name__} must have a value")
    if isinstance(request, model):
        return request
    try:
        return model.model_validate(request)
    except PydanticValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ValidationError(f"invalid {model.__name__}: {fields}") from e


# Row -> domain mapping


def kind_from_row(row: OrgKindRow) -> OrgKind:
    return OrgKind(
        id=row.org_kind_id,
        external_id=row.org_kind_extl_id,
        description=row.org_kind_desc,
    )


def org_from_rows(org_row: OrgRow, kind_row: OrgKindRow) -> Org:
    return Org(
        id=org_row.org_id,
        external_id=org_row.org_extl_id,
        name=org_row.org_name,
        description=org_row.org_description,
        kind=kind_from_row(kind_row),
    )


def app_from_row(row: AppRow) -> App:
    """Map an app row. Keys are not loaded."""
    return App(
        id=row.app_id,
        external_id=row.app_extl_id,
        org_id=row.org_id,
        name=row.app_name,
        description=row.app_description,
    )


def user_from_rows(user_row: UserRow, profile_row: PersonProfileRow) -> User:
    return User(
        id=user_row.user_id,
        username=user_row.username,
        org_id=user_row.org_id,
        profile=Profile(
            id=profile_row.person_profile_id,
            person=Person(id=profile_row.person_id, org_id=user_row.org_id),
            first_name=profile_row.first_name or "",
            last_name=profile_row.last_name or "",
        ),
    )


async def load_simple_audits(tx: AsyncSession, rows: Sequence[AuditMixin]) -> list[SimpleAudit]:
    """Resolve the audit columns of ``rows`` into SimpleAudit values.

    Acting apps and users are fetched in one query each.

    Raises:
        InternalError: If an acting app recorded in an audit no longer exists
    """
    app_ids: set[UUID] = set()
    user_ids: set[UUID] = set()
    for row in rows:
        app_ids.update((row.create_app_id, row.update_app_id))
        user_ids.update(u for u in (row.create_user_id, row.update_user_id) if u is not None)

    apps = await AppRepository(tx).find_by_ids(app_ids)
    users = await UserRepository(tx).find_with_profiles(user_ids)

    def audit(app_id: UUID, user_id: UUID | None, moment) -> Audit:
        app_row = apps.get(app_id)
        if app_row is None:
            raise InternalError(f"audit app {app_id} does not exist")
        user = None
        if user_id is not None and user_id in users:
            user = user_from_rows(*users[user_id])
        return Audit(app=app_from_row(app_row), user=user, moment=moment)

    return [
        SimpleAudit(
            create=audit(row.create_app_id, row.create_user_id, row.create_timestamp),
            update=audit(row.update_app_id, row.update_user_id, row.update_timestamp),
        )
        for row in rows
    ]


async def load_api_keys(tx: AsyncSession, app: App, encryption_key: bytes) -> App:
    """Return ``app`` with its stored keys decrypted, oldest first."""
    rows = await APIKeyRepository(tx).find_by_app(app.id)
    for row in rows:
        app = app.with_key(decrypt_api_key(row.api_key, encryption_key, row.deactv_date))
    return app


# Lookups


async def find_org_kind(tx: AsyncSession, extl_id: str) -> OrgKind:
    """Resolve a persisted org kind.

    Raises:
        NotExistError: If no kind has ``extl_id``
    """
    row = await OrgKindRepository(tx).find_by_extl_id(extl_id)
    if row is None:
        raise NotExistError("org kind", extl_id)
    return kind_from_row(row)


async def find_org(tx: AsyncSession, extl_id: str) -> tuple[Org, OrgRow] | None:
    found = await OrgRepository(tx).find_by_extl_id(extl_id)
    if found is None:
        return None
    org_row, kind_row = found
    return org_from_rows(org_row, kind_row), org_row


# Ordered writes


async def create_org_kind_tx(tx: AsyncSession, kind: OrgKind, audit: Audit) -> None:
    expect_one_row("CreateOrgKind", await OrgKindRepository(tx).create(kind, audit))


async def create_org_tx(tx: AsyncSession, org: Org, simple_audit: SimpleAudit) -> None:
    """Write an org. Its kind must already be persisted.

    Raises:
        ValidationError: If the org has no kind
        DatabaseError: If the insert fails or does not affect exactly one row
    """
    if org.kind is None or org.kind.id is None:
        raise ValidationError("org Kind is required")
    expect_one_row("CreateOrg", await OrgRepository(tx).create(org, simple_audit))


async def create_app_tx(tx: AsyncSession, app: App, simple_audit: SimpleAudit) -> None:
    """Write an app, then each of its keys.

    The owning org must already be written in ``tx``.
    """
    expect_one_row("CreateApp", await AppRepository(tx).create(app, simple_audit))
    keys = APIKeyRepository(tx)
    for key in app.api_keys:
        expect_one_row("CreateAppAPIKey", await keys.create(app.id, key, simple_audit.create))


async def delete_app_tx(tx: AsyncSession, app_id: UUID) -> None:
    """Delete an app's keys, then the app."""
    await APIKeyRepository(tx).delete_by_app(app_id)
    expect_one_row("DeleteApp", await AppRepository(tx).delete(app_id))


_AUDITED_REPOSITORIES = (
    OrgKindRepository,
    OrgRepository,
    AppRepository,
    APIKeyRepository,
    PersonRepository,
    ProfileRepository,
    UserRepository,
)


async def ensure_apps_unreferenced(tx: AsyncSession, app_ids: set[UUID]) -> None:
    """Refuse to leave audit columns naming a deleted app.

    Call after the deletes so rows removed in ``tx`` are not counted.

    Raises:
        ValidationError: If a remaining row was created or updated by one of ``app_ids``
    """
    for repository in _AUDITED_REPOSITORIES:
        rows = await repository(tx).count_audited_by(app_ids)
        if rows:
            raise ValidationError(
                f"app is the recorded actor on {rows} {repository.model.__tablename__} row(s)"
            )


async def create_user_tx(tx: AsyncSession, user: User, audit: Audit) -> None:
    """Write a user's person, then profile, then the user."""
    expect_one_row("CreatePerson", await PersonRepository(tx).create(user.profile.person, audit))
    expect_one_row("CreatePersonProfile", await ProfileRepository(tx).create(user.profile, audit))
    expect_one_row("CreateUser", await UserRepository(tx).create(user, audit))
