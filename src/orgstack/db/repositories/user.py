"""Person, profile and user repositories."""

from uuid import UUID

from sqlalchemy import select

from orgstack.core.audit import Audit
from orgstack.db.models.user import PersonProfileRow, PersonRow, UserRow
from orgstack.db.repositories.base import BaseRepository, create_audit_values
from orgstack.domain.models import Person, Profile, User


class PersonRepository(BaseRepository[PersonRow]):
    """Row operations on the person table."""

    model = PersonRow

    async def create(self, person: Person, audit: Audit) -> int:
        return await self.insert(
            {
                "person_id": person.id,
                "org_id": person.org_id,
                **create_audit_values(audit),
            }
        )


class ProfileRepository(BaseRepository[PersonProfileRow]):
    """Row operations on the person_profile table."""

    model = PersonProfileRow

    async def create(self, profile: Profile, audit: Audit) -> int:
        return await self.insert(
            {
                "person_profile_id": profile.id,
                "person_id": profile.person.id,
                "first_name": profile.first_name,
                "last_name": profile.last_name,
                **create_audit_values(audit),
            }
        )


class UserRepository(BaseRepository[UserRow]):
    """Row operations on the users table."""

    model = UserRow

    async def create(self, user: User, audit: Audit) -> int:
        return await self.insert(
            {
                "user_id": user.id,
                "username": user.username,
                "org_id": user.org_id,
                "person_profile_id": user.profile.id,
                **create_audit_values(audit),
            }
        )

    async def find_with_profiles(
        self, user_ids: set[UUID]
    ) -> dict[UUID, tuple[UserRow, PersonProfileRow]]:
        """Get users and their profiles keyed by user ID."""
        if not user_ids:
            return {}
        stmt = (
            select(UserRow, PersonProfileRow)
            .join(
                PersonProfileRow,
                PersonProfileRow.person_profile_id == UserRow.person_profile_id,
            )
            .where(UserRow.user_id.in_(user_ids))
        )
        result = await self.execute(stmt)
        return {row[0].user_id: (row[0], row[1]) for row in result.all()}
