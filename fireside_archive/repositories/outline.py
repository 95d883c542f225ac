"""Outline repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Outline
from .base import CrudRepository


class OutlineRepository:
    """Репозиторий пользовательских outlines."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.crud = CrudRepository(Outline, db)

    async def get_by_user(self, user_id: str) -> list[Outline]:
        """Outlines пользователя, последние изменённые первыми."""
        result = await self.db.execute(
            select(Outline).where(Outline.user_id == user_id).order_by(Outline.updated_at.desc())
        )
        return list(result.scalars().all())

    async def get_public(self) -> list[Outline]:
        """
        Публичные outlines.

        SQL эквивалент:
            SELECT * FROM outlines WHERE is_public = true;
        """
        return await self.crud.find_by_field("is_public", True)
