"""Org provisioning service.

Creates, updates, deletes and reads organizations. Each operation owns one
transaction from :class:`~orgstack.db.datastore.Datastore`; any failure
rolls it back and the typed error reaches the caller unchanged.
"""

from collections.abc import Mapping
from dataclasses import replace
from datetime import timedelta
from typing import Any

from orgstack.core.audit import Audit, new_simple_audit, touch
from orgstack.core.exceptions import NotExistError, ValidationError
from orgstack.core.logging import LogContext, get_logger
from orgstack.core.secure import DEFAULT_API_KEY_LENGTH, RandomStringGenerator
from orgstack.db.datastore import Datastore
from orgstack.db.repositories import AppRepository, OrgRepository, expect_one_row
from orgstack.db.schemas import (
    AppResponse,
    CreateOrgRequest,
    DeleteResponse,
    OrgResponse,
    UpdateOrgRequest,
)
from orgstack.domain.factory import new_app, new_org
from orgstack.services.common import (
    GENESIS_KIND,
    create_app_tx,
    create_org_tx,
    delete_app_tx,
    ensure_apps_unreferenced,
    find_org,
    find_org_kind,
    load_simple_audits,
    org_from_rows,
    parse_request,
)

logger = get_logger(__name__)

ORG_NOT_FOUND = "No org exists for the given external ID"


class OrgService:
    """Service for creating, updating, reading and deleting orgs.

    Attributes:
        datastore: Transaction coordinator
        key_generator: Random source for API keys of bundled apps
        encryption_key: 32-byte key API keys are encrypted with
        key_lifetime: How long a newly issued API key stays valid
        key_length: Characters of random material per API key
    """

    def __init__(
        self,
        datastore: Datastore,
        key_generator: RandomStringGenerator,
        encryption_key: bytes,
        key_lifetime: timedelta = timedelta(days=365),
        key_length: int = DEFAULT_API_KEY_LENGTH,
    ):
        self.datastore = datastore
        self.key_generator = key_generator
        self.encryption_key = encryption_key
        self.key_lifetime = key_lifetime
        self.key_length = key_length

    async def create(
        self,
        request: CreateOrgRequest | Mapping[str, Any],
        audit: Audit,
    ) -> OrgResponse:
        """Create an org, and its first app if the request bundles one.

        Writes happen in order: org, app, app API key.

        Args:
            request: What to create
            audit: Who is creating it and when

        Returns:
            The created org (and app, with its plaintext key)

        Raises:
            ValidationError: Invalid request, or the genesis kind was requested
            NotExistError: The requested org kind does not exist
            InternalError: The API key could not be issued
            DatabaseError: A write failed or affected an unexpected row count
        """
        request = parse_request(CreateOrgRequest, request)
        if request.kind == GENESIS_KIND:
            raise ValidationError("genesis orgs can only be created by the Genesis Service")

        simple_audit = new_simple_audit(audit)

        with LogContext(operation="create_org"):
            async with self.datastore.transaction() as tx:
                kind = await find_org_kind(tx, request.kind)

                org = new_org(request.name, request.description, kind)
                app = None
                if request.create_app is not None:
                    app = new_app(
                        request.create_app.name,
                        request.create_app.description,
                        org,
                        self.key_generator,
                        self.encryption_key,
                        audit.moment + self.key_lifetime,
                        key_length=self.key_length,
                    )

                await create_org_tx(tx, org, simple_audit)
                if app is not None:
                    await create_app_tx(tx, app, simple_audit)

            logger.info(
                "org_created",
                org_extl_id=org.external_id,
                kind=kind.external_id,
                app_extl_id=app.external_id if app else None,
            )

        app_response = AppResponse.from_app(app, simple_audit) if app else None
        return OrgResponse.from_org(org, simple_audit, app_response)

    async def update(
        self,
        request: UpdateOrgRequest | Mapping[str, Any],
        audit: Audit,
    ) -> OrgResponse:
        """Update an org's name and description.

        Raises:
            ValidationError: Invalid request, or no org has the external ID
            DatabaseError: The update failed or affected an unexpected row count
        """
        request = parse_request(UpdateOrgRequest, request)

        with LogContext(operation="update_org"):
            async with self.datastore.transaction() as tx:
                found = await find_org(tx, request.external_id)
                if found is None:
                    raise ValidationError(ORG_NOT_FOUND)
                org, org_row = found
                (simple_audit,) = await load_simple_audits(tx, [org_row])

                org = replace(org, name=request.name, description=request.description)
                simple_audit = touch(simple_audit, audit)

                expect_one_row("UpdateOrg", await OrgRepository(tx).update(org, audit))

            logger.info("org_updated", org_extl_id=org.external_id)

        return OrgResponse.from_org(org, simple_audit)

    async def delete(self, external_id: str) -> DeleteResponse:
        """Delete an org and every app it owns.

        Apps (and their keys) are deleted before the org so no app row is
        left pointing at a missing org.

        Raises:
            ValidationError: No org has the external ID, it is the genesis org, or
                one of its apps is still the recorded actor on another row
            DatabaseError: A delete failed or affected an unexpected row count
        """
        with LogContext(operation="delete_org"):
            async with self.datastore.transaction() as tx:
                found = await find_org(tx, external_id)
                if found is None:
                    raise ValidationError(ORG_NOT_FOUND)
                org, org_row = found
                if org.kind.external_id == GENESIS_KIND:
                    raise ValidationError("the genesis org cannot be deleted")

                app_rows = await AppRepository(tx).find_by_org(org.id)
                for app_row in app_rows:
                    await delete_app_tx(tx, app_row.app_id)

                expect_one_row("DeleteOrg", await OrgRepository(tx).delete(org.id))
                await ensure_apps_unreferenced(tx, {row.app_id for row in app_rows})

            logger.info("org_deleted", org_extl_id=external_id, apps_deleted=len(app_rows))

        return DeleteResponse(external_id=external_id, deleted=True)

    async def find_all(self) -> list[OrgResponse]:
        """List every org, oldest first."""
        async with self.datastore.transaction() as tx:
            rows = await OrgRepository(tx).find_all_with_kind()
            audits = await load_simple_audits(tx, [org_row for org_row, _ in rows])

        return [
            OrgResponse.from_org(org_from_rows(org_row, kind_row), simple_audit)
            for (org_row, kind_row), simple_audit in zip(rows, audits, strict=True)
        ]

    async def find_by_external_id(self, external_id: str) -> OrgResponse:
        """Get one org.

        Raises:
            NotExistError: No org has the external ID
        """
        async with self.datastore.transaction() as tx:
            found = await find_org(tx, external_id)
            if found is None:
                raise NotExistError("org", external_id)
            org, org_row = found
            (simple_audit,) = await load_simple_audits(tx, [org_row])

        return OrgResponse.from_org(org, simple_audit)
