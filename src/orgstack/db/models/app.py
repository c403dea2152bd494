"""Application and API key models."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import AuditMixin, Base, PortableUUID, UTCDateTime


class AppRow(Base, AuditMixin):
    """An application registered under an organization."""

    __tablename__ = "app"

    app_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True)
    app_extl_id: Mapped[str] = mapped_column(String(250), nullable=False, unique=True)
    org_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("org.org_id"), nullable=False
    )
    app_name: Mapped[str] = mapped_column(String(500), nullable=False)
    app_description: Mapped[str] = mapped_column(String(4000), nullable=False, default="")

    __table_args__ = (Index("idx_app_org", "org_id"),)

    def __repr__(self) -> str:
        return f"<AppRow(id={self.app_id}, name={self.app_name})>"


class APIKeyRow(Base, AuditMixin):
    """Encrypted API key issued to an app.

    Only the ciphertext is stored; it doubles as the primary key since the
    random nonce makes every ciphertext unique.
    """

    __tablename__ = "app_api_key"

    api_key: Mapped[str] = mapped_column(String(500), primary_key=True)
    app_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("app.app_id"), nullable=False
    )
    deactv_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    __table_args__ = (Index("idx_app_api_key_app", "app_id"),)

    def __repr__(self) -> str:
        return f"<APIKeyRow(app_id={self.app_id}, deactv_date={self.deactv_date})>"
