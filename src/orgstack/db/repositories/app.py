"""App and API key repositories."""

from uuid import UUID

from orgstack.core.audit import Audit, SimpleAudit
from orgstack.db.models.app import APIKeyRow, AppRow
from orgstack.db.repositories.base import (
    BaseRepository,
    create_audit_values,
    update_audit_values,
)
from orgstack.domain.models import APIKey, App


class AppRepository(BaseRepository[AppRow]):
    """Row operations on the app table."""

    model = AppRow

    async def create(self, app: App, simple_audit: SimpleAudit) -> int:
        """Insert an app. Its API keys are written separately."""
        values = {
            "app_id": app.id,
            "app_extl_id": app.external_id,
            "org_id": app.org_id,
            "app_name": app.name,
            "app_description": app.description,
            **create_audit_values(simple_audit.create),
        }
        values.update(update_audit_values(simple_audit.update))
        return await self.insert(values)

    async def touch(self, app_id: UUID, audit: Audit) -> int:
        """Rewrite only the update audit of an app."""
        return await self.update_where([AppRow.app_id == app_id], update_audit_values(audit))

    async def delete(self, app_id: UUID) -> int:
        return await self.delete_where([AppRow.app_id == app_id])

    async def find_by_extl_id(self, extl_id: str) -> AppRow | None:
        return await self.first(AppRow.app_extl_id == extl_id)

    async def find_by_org(self, org_id: UUID) -> list[AppRow]:
        return await self.all(AppRow.org_id == org_id, order_by=AppRow.create_timestamp)

    async def find_by_ids(self, app_ids: set[UUID]) -> dict[UUID, AppRow]:
        if not app_ids:
            return {}
        rows = await self.all(AppRow.app_id.in_(app_ids))
        return {row.app_id: row for row in rows}


class APIKeyRepository(BaseRepository[APIKeyRow]):
    """Row operations on the app_api_key table."""

    model = APIKeyRow

    async def create(self, app_id: UUID, key: APIKey, audit: Audit) -> int:
        """Insert the ciphertext of an API key. The plaintext is never stored."""
        return await self.insert(
            {
                "api_key": key.ciphertext,
                "app_id": app_id,
                "deactv_date": key.deactivation,
                **create_audit_values(audit),
            }
        )

    async def find_by_app(self, app_id: UUID) -> list[APIKeyRow]:
        return await self.all(APIKeyRow.app_id == app_id, order_by=APIKeyRow.create_timestamp)

    async def delete_by_app(self, app_id: UUID) -> int:
        """Delete every key of an app. Any count, including zero, is valid."""
        return await self.delete_where([APIKeyRow.app_id == app_id])
