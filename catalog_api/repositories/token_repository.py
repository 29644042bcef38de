"""Repository for PersonalAccessToken models."""

from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.db.models import PersonalAccessToken
from catalog_api.repositories.base import BaseRepository


class TokenRepository(BaseRepository[PersonalAccessToken]):
    """Repository for issued bearer tokens."""

    def __init__(self, session: AsyncSession):
        super().__init__(PersonalAccessToken, session)

    async def get_by_digest(self, digest: str) -> Optional[PersonalAccessToken]:
        stmt = select(self.model).where(self.model.token == digest)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
