"""Organization and organization kind models."""

from uuid import UUID

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import AuditMixin, Base, PortableUUID


class OrgKindRow(Base, AuditMixin):
    """Lookup table of organization kinds (genesis, test, standard, ...).

    The unique constraint on org_kind_extl_id is what stops two racing
    genesis runs from both committing.
    """

    __tablename__ = "org_kind"

    org_kind_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True)
    org_kind_extl_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    org_kind_desc: Mapped[str] = mapped_column(String(4000), nullable=False)

    def __repr__(self) -> str:
        return f"<OrgKindRow(id={self.org_kind_id}, extl_id={self.org_kind_extl_id})>"


class OrgRow(Base, AuditMixin):
    """An organization. Owns apps, persons and users."""

    __tablename__ = "org"

    org_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True)
    org_extl_id: Mapped[str] = mapped_column(String(250), nullable=False, unique=True)
    org_name: Mapped[str] = mapped_column(String(500), nullable=False)
    org_description: Mapped[str] = mapped_column(String(4000), nullable=False, default="")
    org_kind_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("org_kind.org_kind_id"), nullable=False
    )

    __table_args__ = (Index("idx_org_kind", "org_kind_id"),)

    def __repr__(self) -> str:
        return f"<OrgRow(id={self.org_id}, name={self.org_name})>"
