"""Fireside repository."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Fireside, Snippet
from .base import CrudRepository


class FiresideRepository:
    """Репозиторий firesides."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.crud = CrudRepository(Fireside, db)

    async def get_by_family(self, family_id: int) -> list[Fireside]:
        """
        Firesides одного семейства, от новых к старым.

        SQL эквивалент:
            SELECT * FROM firesides
            WHERE fireside_family_id = {family_id}
            ORDER BY held_on DESC;
        """
        result = await self.db.execute(
            select(Fireside)
            .where(Fireside.fireside_family_id == family_id)
            .order_by(Fireside.held_on.desc(), Fireside.id)
        )
        return list(result.scalars().all())

    async def get_all_ordered(self, skip: int = 0, limit: int = 100) -> list[Fireside]:
        """Все firesides, от новых к старым."""
        result = await self.db.execute(
            select(Fireside)
            .order_by(Fireside.held_on.desc(), Fireside.id)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_snippets(self, fireside_id: int) -> int:
        """Сколько сниппетов в fireside."""
        result = await self.db.execute(
            select(func.count(Snippet.id)).where(Snippet.fireside_id == fireside_id)
        )
        return result.scalar_one()
