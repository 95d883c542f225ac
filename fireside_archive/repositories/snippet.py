"""Snippet repository."""

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Snippet, Visibility
from .base import CrudRepository, references_tag, uses_postgresql


class SnippetRepository:
    """
    Репозиторий сниппетов.

    Теги сниппета хранятся внутри записи (JSON). Фильтр по тегу на
    PostgreSQL идёт через JSONB @>, на SQLite - в Python после выборки.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.crud = CrudRepository(Snippet, db)

    async def get_by_fireside(self, fireside_id: int, public_only: bool = False) -> list[Snippet]:
        """
        Сниппеты fireside в естественном порядке.

        Args:
            fireside_id: ID fireside
            public_only: Только публичные сниппеты

        SQL эквивалент:
            SELECT * FROM snippets
            WHERE fireside_id = {fireside_id} [AND visibility = 'public']
            ORDER BY natural_order ASC;
        """
        query = select(Snippet).where(Snippet.fireside_id == fireside_id)
        if public_only:
            query = query.where(Snippet.visibility == Visibility.PUBLIC)

        result = await self.db.execute(query.order_by(Snippet.natural_order, Snippet.id))
        return list(result.scalars().all())

    async def search(self, search_term: str, public_only: bool = False) -> list[Snippet]:
        """
        Поиск по названию и тексту.

        SQL эквивалент:
            SELECT * FROM snippets
            WHERE name ILIKE '%{term}%' OR text ILIKE '%{term}%';
        """
        pattern = f"%{search_term}%"
        query = select(Snippet).where(or_(Snippet.name.ilike(pattern), Snippet.text.ilike(pattern)))
        if public_only:
            query = query.where(Snippet.visibility == Visibility.PUBLIC)

        result = await self.db.execute(query.order_by(Snippet.natural_order, Snippet.id))
        return list(result.scalars().all())

    async def get_all(self) -> list[Snippet]:
        """Все сниппеты (для пересчёта счётчиков тегов)."""
        result = await self.db.execute(select(Snippet).order_by(Snippet.id))
        return list(result.scalars().all())

    async def get_by_tag(self, tag_id: int) -> list[Snippet]:
        """
        Сниппеты, ссылающиеся на тег.

        SQL эквивалент (PostgreSQL):
            SELECT * FROM snippets WHERE tags @> '[{"tag_id": {tag_id}}]' ORDER BY id;
        """
        if uses_postgresql(self.db):
            result = await self.db.execute(
                select(Snippet).where(references_tag(Snippet.tags, tag_id)).order_by(Snippet.id)
            )
            return list(result.scalars().all())

        snippets = await self.get_all()
        return [snippet for snippet in snippets if tag_id in snippet.tag_ids]
