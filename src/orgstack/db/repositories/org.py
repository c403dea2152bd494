"""Org and OrgKind repositories."""

from uuid import UUID

from sqlalchemy import select

from orgstack.core.audit import Audit, SimpleAudit
from orgstack.db.models.org import OrgKindRow, OrgRow
from orgstack.db.repositories.base import (
    BaseRepository,
    create_audit_values,
    update_audit_values,
)
from orgstack.domain.models import Org, OrgKind


class OrgKindRepository(BaseRepository[OrgKindRow]):
    """Row operations on the org_kind lookup table."""

    model = OrgKindRow

    async def create(self, kind: OrgKind, audit: Audit) -> int:
        """Insert an org kind stamped with ``audit``."""
        return await self.insert(
            {
                "org_kind_id": kind.id,
                "org_kind_extl_id": kind.external_id,
                "org_kind_desc": kind.description,
                **create_audit_values(audit),
            }
        )

    async def find_by_extl_id(self, extl_id: str) -> OrgKindRow | None:
        return await self.first(OrgKindRow.org_kind_extl_id == extl_id)


class OrgRepository(BaseRepository[OrgRow]):
    """Row operations on the org table."""

    model = OrgRow

    async def create(self, org: Org, simple_audit: SimpleAudit) -> int:
        """Insert an org with its create/update provenance."""
        values = {
            "org_id": org.id,
            "org_extl_id": org.external_id,
            "org_name": org.name,
            "org_description": org.description,
            "org_kind_id": org.kind.id,
            **create_audit_values(simple_audit.create),
        }
        values.update(update_audit_values(simple_audit.update))
        return await self.insert(values)

    async def update(self, org: Org, audit: Audit) -> int:
        """Rewrite name/description and the update audit of an org."""
        return await self.update_where(
            [OrgRow.org_id == org.id],
            {
                "org_name": org.name,
                "org_description": org.description,
                **update_audit_values(audit),
            },
        )

    async def delete(self, org_id: UUID) -> int:
        return await self.delete_where([OrgRow.org_id == org_id])

    async def find_by_extl_id(self, extl_id: str) -> tuple[OrgRow, OrgKindRow] | None:
        """Get an org and its kind by external ID."""
        stmt = (
            select(OrgRow, OrgKindRow)
            .join(OrgKindRow, OrgKindRow.org_kind_id == OrgRow.org_kind_id)
            .where(OrgRow.org_extl_id == extl_id)
            .execution_options(populate_existing=True)
        )
        result = await self.execute(stmt)
        row = result.first()
        return (row[0], row[1]) if row is not None else None

    async def find_all_with_kind(self) -> list[tuple[OrgRow, OrgKindRow]]:
        """Get all orgs with their kinds, oldest first."""
        stmt = (
            select(OrgRow, OrgKindRow)
            .join(OrgKindRow, OrgKindRow.org_kind_id == OrgRow.org_kind_id)
            .order_by(OrgRow.create_timestamp, OrgRow.org_id)
            .execution_options(populate_existing=True)
        )
        result = await self.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def find_by_kind_extl_id(self, kind_extl_id: str) -> list[OrgRow]:
        """Get all orgs of the kind with the given external ID."""
        stmt = (
            select(OrgRow)
            .join(OrgKindRow, OrgKindRow.org_kind_id == OrgRow.org_kind_id)
            .where(OrgKindRow.org_kind_extl_id == kind_extl_id)
        )
        result = await self.execute(stmt)
        return list(result.scalars().all())
