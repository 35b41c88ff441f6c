"""Profile repository."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from raitha.db.repositories.base import BaseRepository
from raitha.models import Profile


class ProfileRepository(BaseRepository[Profile]):
    """Repository for farmer and retailer profiles."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Profile)

    async def get_push_token(self, profile_id: UUID) -> str | None:
        """Get the Expo push token of a profile, if registered."""
        stmt = select(Profile.push_token).where(Profile.id == profile_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_names(self, profile_ids: list[UUID]) -> dict[UUID, str]:
        """Map profile IDs to display names."""
        if not profile_ids:
            return {}

        stmt = select(Profile.id, Profile.name).where(Profile.id.in_(profile_ids))
        result = await self.session.execute(stmt)
        return {profile_id: name for profile_id, name in result.all()}
