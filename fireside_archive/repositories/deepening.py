"""Deepening repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Deepening
from .base import CrudRepository, references_tag, uses_postgresql


class DeepeningRepository:
    """Репозиторий углублений (deepenings)."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.crud = CrudRepository(Deepening, db)

    async def get_by_snippet(self, snippet_id: int) -> list[Deepening]:
        """
        Углубления сниппета.

        SQL эквивалент:
            SELECT * FROM deepenings WHERE snippet_id = {snippet_id};
        """
        return await self.crud.find_by_field("snippet_id", snippet_id)

    async def get_all(self) -> list[Deepening]:
        """Все углубления (для пересчёта счётчиков тегов)."""
        result = await self.db.execute(select(Deepening).order_by(Deepening.id))
        return list(result.scalars().all())

    async def get_by_tag(self, tag_id: int) -> list[Deepening]:
        """Углубления, ссылающиеся на тег (JSONB @> на PostgreSQL)."""
        if uses_postgresql(self.db):
            result = await self.db.execute(
                select(Deepening)
                .where(references_tag(Deepening.tags, tag_id))
                .order_by(Deepening.id)
            )
            return list(result.scalars().all())

        deepenings = await self.get_all()
        return [deepening for deepening in deepenings if tag_id in deepening.tag_ids]
