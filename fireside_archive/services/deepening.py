"""Deepening service with business logic."""

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.logging import get_logger
from ..models import Deepening, dump_references
from ..repositories import DeepeningRepository, SnippetRepository, TagRepository
from .exceptions import EntityNotFoundError
from .tagging import TagInput, TaggingWorkflow
from .validation import reject_blank, require_fields

logger = get_logger(__name__)


class DeepeningService:
    """
    Сервис для работы с углублениями.

    Теги углублений учитываются в тех же счётчиках, что и теги сниппетов.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.deepening_repo = DeepeningRepository(db)
        self.snippet_repo = SnippetRepository(db)
        self.tagging = TaggingWorkflow(TagRepository(db))

    async def create_deepening(
        self,
        snippet_id: int,
        name: str,
        text: str,
        tags: list[TagInput] | None = None,
    ) -> Deepening:
        """
        Создать углубление к сниппету.

        Raises:
            ValueError: Если валидация не прошла
            EntityNotFoundError: Если сниппет не найден
            TagResolutionError: Если не удалось разрешить тег
        """
        require_fields("Deepening", snippet_id=snippet_id, name=name, text=text)

        if not await self.snippet_repo.crud.exists(snippet_id):
            raise EntityNotFoundError("Snippet", snippet_id)

        references = await self.tagging.apply([], tags or [])

        deepening = Deepening(
            snippet_id=snippet_id,
            name=name.strip(),
            text=text,
            tags=dump_references(references),
        )
        deepening = await self.deepening_repo.crud.create(deepening)

        logger.info(
            "Deepening created",
            extra={"deepening_id": deepening.id, "snippet_id": snippet_id, "tags": len(references)},
        )
        return deepening

    async def get_deepening(self, deepening_id: int) -> Deepening:
        """
        Raises:
            EntityNotFoundError: Если углубление не найдено
        """
        deepening = await self.deepening_repo.crud.get_by_id(deepening_id)
        if not deepening:
            raise EntityNotFoundError("Deepening", deepening_id)
        return deepening

    async def get_deepenings_by_snippet(self, snippet_id: int) -> list[Deepening]:
        if not await self.snippet_repo.crud.exists(snippet_id):
            raise EntityNotFoundError("Snippet", snippet_id)

        return await self.deepening_repo.get_by_snippet(snippet_id)

    async def update_deepening(
        self,
        deepening_id: int,
        name: str | None = None,
        text: str | None = None,
        tags: list[TagInput] | None = None,
    ) -> Deepening:
        """
        Обновить углубление.

        tags=None - теги не трогаем; tags=[] - убрать все теги.
        """
        deepening = await self.get_deepening(deepening_id)
        reject_blank("Deepening", name=name, text=text)

        updates: dict = {}
        if name is not None:
            updates["name"] = name.strip()
        if text is not None:
            updates["text"] = text

        if tags is not None:
            references = await self.tagging.apply(deepening.tag_references, tags)
            updates["tags"] = dump_references(references)

        if not updates:
            return deepening

        deepening = await self.deepening_repo.crud.update(deepening_id, **updates)
        logger.info(
            "Deepening updated", extra={"deepening_id": deepening_id, "fields": sorted(updates)}
        )
        return deepening

    async def delete_deepening(self, deepening_id: int) -> bool:
        """Удалить углубление, уменьшив счётчики его тегов."""
        deepening = await self.get_deepening(deepening_id)

        await self.tagging.release(deepening.tag_references)
        deleted = await self.deepening_repo.crud.delete(deepening_id)

        logger.info("Deepening deleted", extra={"deepening_id": deepening_id})
        return deleted
