"""Base repository with row-level statement execution.

Repositories wrap a transaction (an AsyncSession with an open transaction)
and expose single-purpose row operations. Writes return the affected row
count; callers assert it with :func:`expect_one_row`. Reads return ORM rows
or ``None`` when nothing matched. Driver errors are wrapped in
:class:`DatabaseError`.

Usage:
    from orgstack.db.repositories.base import BaseRepository

    class OrgRepository(BaseRepository[OrgRow]):
        pass

    repo = OrgRepository(tx)
    rows = await repo.insert(values)
    expect_one_row("CreateOrg", rows)
"""

from collections.abc import Collection
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import delete, func, insert, or_, select, update
from sqlalchemy.engine import Result
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.expression import Executable

from orgstack.core.audit import Audit
from orgstack.core.exceptions import DatabaseError, RowCountError
from orgstack.db.datastore import STORAGE_ERRORS
from orgstack.db.models.base import AuditMixin, Base

ModelType = TypeVar("ModelType", bound=Base)


def expect_one_row(operation: str, rows_affected: int) -> None:
    """Assert a single-row statement affected exactly one row.

    Raises:
        RowCountError: If ``rows_affected`` is not 1
    """
    if rows_affected != 1:
        raise RowCountError(operation, rows_affected)


def create_audit_values(audit: Audit) -> dict[str, Any]:
    """Audit columns for an insert: create and update both set to ``audit``."""
    return {
        "create_app_id": audit.app.id,
        "create_user_id": audit.user.id if audit.user else None,
        "create_timestamp": audit.moment,
        **update_audit_values(audit),
    }


def update_audit_values(audit: Audit) -> dict[str, Any]:
    """Audit columns rewritten on every mutation."""
    return {
        "update_app_id": audit.app.id,
        "update_user_id": audit.user.id if audit.user else None,
        "update_timestamp": audit.moment,
    }


class BaseRepository(Generic[ModelType]):
    """Generic repository for a single table.

    Type Parameters:
        ModelType: The SQLAlchemy model class

    Attributes:
        model: The model class
        db: The transaction-bound session
    """

    model: type[ModelType]

    def __init__(self, db: AsyncSession):
        """Initialize repository with a transaction-bound session.

        Args:
            db: Async SQLAlchemy session with an open transaction
        """
        self.db = db

    def __init_subclass__(cls, **kwargs):
        """Extract model type from generic parameter."""
        super().__init_subclass__(**kwargs)
        for base in getattr(cls, "__orig_bases__", []):
            args = getattr(base, "__args__", None)
            if args and len(args) >= 1:
                first_arg = args[0]
                if isinstance(first_arg, type) and issubclass(first_arg, Base):
                    cls.model = first_arg
                    break

    def _select(self, *criteria: Any):
        stmt = select(self.model).execution_options(populate_existing=True)
        if criteria:
            stmt = stmt.where(*criteria)
        return stmt

    @property
    def table(self):
        return self.model.__table__

    async def execute(self, stmt: Executable) -> Result[Any]:
        """Execute a statement, wrapping driver errors.

        Raises:
            DatabaseError: If the statement fails
        """
        try:
            return await self.db.execute(stmt)
        except STORAGE_ERRORS as e:
            raise DatabaseError(f"{self.table.name}: {e}") from e

    async def _rowcount(self, stmt: Executable) -> int:
        result = await self.execute(stmt)
        return result.rowcount  # type: ignore[attr-defined]

    async def insert(self, values: dict[str, Any]) -> int:
        """Insert one row.

        Returns:
            Number of rows inserted
        """
        return await self._rowcount(insert(self.table).values(**values))

    async def update_where(self, criteria: list[Any], values: dict[str, Any]) -> int:
        """Update rows matching ``criteria``.

        Create audit columns are never part of an update.

        Returns:
            Number of rows updated
        """
        if issubclass(self.model, AuditMixin):
            protected = {"create_app_id", "create_user_id", "create_timestamp"}
            if protected.intersection(values):
                raise DatabaseError(f"{self.table.name}: create audit columns are write-once")
        return await self._rowcount(update(self.table).where(*criteria).values(**values))

    async def delete_where(self, criteria: list[Any]) -> int:
        """Delete rows matching ``criteria``.

        Returns:
            Number of rows deleted
        """
        return await self._rowcount(delete(self.table).where(*criteria))

    async def first(self, *criteria: Any) -> ModelType | None:
        """Get the first row matching ``criteria``, or None."""
        result = await self.execute(self._select(*criteria).limit(1))
        return result.scalars().first()

    async def all(self, *criteria: Any, order_by: Any = None) -> list[ModelType]:
        """Get all rows matching ``criteria``."""
        stmt = self._select(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        result = await self.execute(stmt)
        return list(result.scalars().all())

    async def count(self, *criteria: Any) -> int:
        """Count rows matching ``criteria``."""
        stmt = select(func.count()).select_from(self.table)
        if criteria:
            stmt = stmt.where(*criteria)
        result = await self.execute(stmt)
        return result.scalar() or 0

    async def count_audited_by(self, app_ids: Collection[UUID]) -> int:
        """Count rows whose create or update audit names one of ``app_ids``."""
        if not app_ids or not issubclass(self.model, AuditMixin):
            return 0
        return await self.count(
            or_(
                self.model.create_app_id.in_(app_ids),
                self.model.update_app_id.in_(app_ids),
            )
        )
