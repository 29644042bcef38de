"""Repository for User models."""

from typing import Optional
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.db.models import User
from catalog_api.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for accessing user data."""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup by email."""
        stmt = select(self.model).where(func.lower(self.model.email) == email.lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        return await self.get_by_email(email) is not None
