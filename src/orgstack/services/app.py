"""App provisioning service.

Follows the same transactional pattern as the org service: one
transaction per operation, ordered writes, row counts asserted.
"""

from collections.abc import Mapping
from datetime import timedelta
from typing import Any

from orgstack.core.audit import Audit, new_simple_audit, touch
from orgstack.core.exceptions import NotExistError, ValidationError
from orgstack.core.logging import LogContext, get_logger
from orgstack.core.secure import DEFAULT_API_KEY_LENGTH, RandomStringGenerator, new_api_key
from orgstack.db.datastore import Datastore
from orgstack.db.repositories import APIKeyRepository, AppRepository, expect_one_row
from orgstack.db.schemas import AppResponse, CreateAppRequest, DeleteResponse
from orgstack.domain.factory import new_app
from orgstack.services.common import (
    app_from_row,
    create_app_tx,
    delete_app_tx,
    ensure_apps_unreferenced,
    find_org,
    load_api_keys,
    load_simple_audits,
    parse_request,
)

logger = get_logger(__name__)


class AppService:
    """Service for creating, rotating keys of, reading and deleting apps."""

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
        org_external_id: str,
        request: CreateAppRequest | Mapping[str, Any],
        audit: Audit,
    ) -> AppResponse:
        """Create an app, with one API key, under an existing org.

        Raises:
            ValidationError: Invalid request
            NotExistError: No org has ``org_external_id``
            InternalError: The API key could not be issued
            DatabaseError: A write failed or affected an unexpected row count
        """
        request = parse_request(CreateAppRequest, request)
        simple_audit = new_simple_audit(audit)

        with LogContext(operation="create_app"):
            async with self.datastore.transaction() as tx:
                found = await find_org(tx, org_external_id)
                if found is None:
                    raise NotExistError("org", org_external_id)
                org, _ = found

                app = new_app(
                    request.name,
                    request.description,
                    org,
                    self.key_generator,
                    self.encryption_key,
                    audit.moment + self.key_lifetime,
                    key_length=self.key_length,
                )
                await create_app_tx(tx, app, simple_audit)

            logger.info("app_created", app_extl_id=app.external_id, org_extl_id=org.external_id)

        return AppResponse.from_app(app, simple_audit)

    async def add_key(self, external_id: str, audit: Audit) -> AppResponse:
        """Issue an additional API key for an app, e.g. for rotation.

        Existing keys stay valid until their own deactivation.

        Raises:
            NotExistError: No app has ``external_id``
            InternalError: The API key could not be issued or a stored key decrypted
            DatabaseError: A write failed or affected an unexpected row count
        """
        key = new_api_key(
            self.key_generator,
            self.encryption_key,
            audit.moment + self.key_lifetime,
            length=self.key_length,
        )

        with LogContext(operation="add_app_key"):
            async with self.datastore.transaction() as tx:
                app_row = await AppRepository(tx).find_by_extl_id(external_id)
                if app_row is None:
                    raise NotExistError("app", external_id)
                (simple_audit,) = await load_simple_audits(tx, [app_row])
                app = await load_api_keys(tx, app_from_row(app_row), self.encryption_key)

                expect_one_row(
                    "CreateAppAPIKey", await APIKeyRepository(tx).create(app.id, key, audit)
                )
                expect_one_row("UpdateApp", await AppRepository(tx).touch(app.id, audit))

            logger.info("app_key_added", app_extl_id=external_id, key_count=len(app.api_keys) + 1)

        return AppResponse.from_app(app.with_key(key), touch(simple_audit, audit))

    async def delete(self, external_id: str) -> DeleteResponse:
        """Delete an app and its keys.

        Raises:
            ValidationError: No app has ``external_id``, or it is still the recorded
                actor on another row
            DatabaseError: A delete failed or affected an unexpected row count
        """
        with LogContext(operation="delete_app"):
            async with self.datastore.transaction() as tx:
                app_row = await AppRepository(tx).find_by_extl_id(external_id)
                if app_row is None:
                    raise ValidationError("No app exists for the given external ID")
                await delete_app_tx(tx, app_row.app_id)
                await ensure_apps_unreferenced(tx, {app_row.app_id})

            logger.info("app_deleted", app_extl_id=external_id)

        return DeleteResponse(external_id=external_id, deleted=True)

    async def find_by_external_id(self, external_id: str) -> AppResponse:
        """Get one app with its decrypted keys.

        Raises:
            NotExistError: No app has ``external_id``
            InternalError: A stored key could not be decrypted
        """
        async with self.datastore.transaction() as tx:
            app_row = await AppRepository(tx).find_by_extl_id(external_id)
            if app_row is None:
                raise NotExistError("app", external_id)
            (simple_audit,) = await load_simple_audits(tx, [app_row])
            app = await load_api_keys(tx, app_from_row(app_row), self.encryption_key)

        return AppResponse.from_app(app, simple_audit)
