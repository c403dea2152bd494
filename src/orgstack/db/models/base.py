"""Base models for SQLAlchemy."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import DateTime, String
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class PortableUUID(TypeDecorator):
    """UUID type that uses native UUID on PostgreSQL and String elsewhere."""

    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PGUUID(as_uuid=True))
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if dialect.name == "postgresql":
            return value
        return str(value) if isinstance(value, UUID) else value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if isinstance(value, UUID):
            return value
        return UUID(value) if value else None


class UTCDateTime(TypeDecorator):
    """Timezone-aware timestamp that always round-trips as UTC.

    Backends without a native timestamptz (SQLite) hand back naive values;
    those are read as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            raise ValueError(f"naive datetime not allowed: {value!r}")
        return value.astimezone(UTC)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class AuditMixin:
    """Create/Update provenance columns.

    The create_* columns are written once at insert; update_* columns are
    rewritten on every mutation. No foreign keys: genesis rows reference the
    genesis app and user before those rows are written. The services refuse
    to delete an app that any remaining row still names here.
    """

    create_app_id: Mapped[UUID] = mapped_column(PortableUUID(), nullable=False)
    create_user_id: Mapped[UUID | None] = mapped_column(PortableUUID(), nullable=True)
    create_timestamp: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    update_app_id: Mapped[UUID] = mapped_column(PortableUUID(), nullable=False)
    update_user_id: Mapped[UUID | None] = mapped_column(PortableUUID(), nullable=True)
    update_timestamp: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
