"""Person, profile and user models."""

from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import AuditMixin, Base, PortableUUID


class PersonRow(Base, AuditMixin):
    """A person belonging to an organization."""

    __tablename__ = "person"

    person_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True)
    org_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("org.org_id"), nullable=False
    )


class PersonProfileRow(Base, AuditMixin):
    """Name details for a person."""

    __tablename__ = "person_profile"

    person_profile_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True)
    person_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("person.person_id"), nullable=False
    )
    first_name: Mapped[str | None] = mapped_column(String(250), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(250), nullable=True)


class UserRow(Base, AuditMixin):
    """A login identity for a person within an organization."""

    __tablename__ = "users"

    user_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True)
    username: Mapped[str] = mapped_column(String(250), nullable=False)
    org_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("org.org_id"), nullable=False
    )
    person_profile_id: Mapped[UUID] = mapped_column(
        PortableUUID(), ForeignKey("person_profile.person_profile_id"), nullable=False
    )

    __table_args__ = (UniqueConstraint("org_id", "username", name="uq_users_org_username"),)

    def __repr__(self) -> str:
        return f"<UserRow(id={self.user_id}, username={self.username})>"
