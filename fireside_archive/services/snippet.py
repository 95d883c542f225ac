"""Snippet service with business logic."""

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.logging import get_logger
from ..models import Snippet, Visibility, dump_references
from ..repositories import (
    DeepeningRepository,
    FiresideRepository,
    SnippetRepository,
    TagRepository,
)
from .exceptions import EntityNotFoundError
from .tagging import TagInput, TaggingWorkflow
from .validation import reject_blank, require_fields

logger = get_logger(__name__)


class SnippetService:
    """
    Сервис для работы со сниппетами.

    Каждое сохранение проходит по одной схеме:
    валидация → разрешение тегов → сверка счётчиков → сохранение сниппета.
    Всё выполняется в одной сессии, commit делает dependency get_db.
    """

    def __init__(self, db: AsyncSession):
        """Инициализация сервиса с несколькими репозиториями."""
        self.db = db
        self.snippet_repo = SnippetRepository(db)
        self.fireside_repo = FiresideRepository(db)
        self.deepening_repo = DeepeningRepository(db)
        self.tagging = TaggingWorkflow(TagRepository(db))

    async def create_snippet(
        self,
        fireside_id: int,
        name: str,
        text: str,
        natural_order: float,
        visibility: Visibility = Visibility.PUBLIC,
        tags: list[TagInput] | None = None,
    ) -> Snippet:
        """
        Создать сниппет с тегами.

        Args:
            fireside_id: ID fireside
            name: Название
            text: Текст (Markdown)
            natural_order: Позиция внутри fireside
            visibility: public / private
            tags: Теги (существующие по id или новые по имени)

        Returns:
            Созданный сниппет

        Raises:
            ValueError: Если валидация не прошла
            EntityNotFoundError: Если fireside не найден
            TagResolutionError: Если не удалось разрешить тег

        Бизнес-правила:
        1. name, text, natural_order обязательны
        2. Fireside существует
        3. Каждый тег учитывается в счётчике ровно один раз
        """
        # 1. ВАЛИДАЦИЯ: Обязательные поля (до любых операций с тегами)
        require_fields(
            "Snippet", fireside_id=fireside_id, name=name, text=text, natural_order=natural_order
        )

        # 2. ВАЛИДАЦИЯ: Fireside существует
        if not await self.fireside_repo.crud.exists(fireside_id):
            raise EntityNotFoundError("Fireside", fireside_id)

        # 3. КООРДИНАЦИЯ: Теги (previous = ∅, все теги увеличиваются)
        references = await self.tagging.apply([], tags or [])

        # 4. СОЗДАНИЕ
        snippet = Snippet(
            fireside_id=fireside_id,
            name=name.strip(),
            text=text,
            natural_order=natural_order,
            visibility=visibility,
            tags=dump_references(references),
        )
        snippet = await self.snippet_repo.crud.create(snippet)

        logger.info(
            "Snippet created",
            extra={"snippet_id": snippet.id, "fireside_id": fireside_id, "tags": len(references)},
        )
        return snippet

    async def get_snippet(self, snippet_id: int) -> Snippet:
        """
        Получить сниппет по ID.

        Raises:
            EntityNotFoundError: Если сниппет не найден
        """
        snippet = await self.snippet_repo.crud.get_by_id(snippet_id)
        if not snippet:
            raise EntityNotFoundError("Snippet", snippet_id)
        return snippet

    async def get_snippets_by_fireside(
        self, fireside_id: int, public_only: bool = False
    ) -> list[Snippet]:
        """Сниппеты fireside в естественном порядке."""
        if not await self.fireside_repo.crud.exists(fireside_id):
            raise EntityNotFoundError("Fireside", fireside_id)

        return await self.snippet_repo.get_by_fireside(fireside_id, public_only=public_only)

    async def search_snippets(self, query: str, public_only: bool = False) -> list[Snippet]:
        """Поиск по названию и тексту."""
        if not query or not query.strip():
            return []

        return await self.snippet_repo.search(query.strip(), public_only=public_only)

    async def get_snippets_by_tag(self, tag_id: int) -> list[Snippet]:
        """Сниппеты с указанным тегом."""
        return await self.snippet_repo.get_by_tag(tag_id)

    async def update_snippet(
        self,
        snippet_id: int,
        fireside_id: int | None = None,
        name: str | None = None,
        text: str | None = None,
        natural_order: float | None = None,
        visibility: Visibility | None = None,
        tags: list[TagInput] | None = None,
    ) -> Snippet:
        """
        Обновить сниппет.

        tags=None - теги не трогаем; tags=[] - убрать все теги.
        При замене тегов увеличиваются только новые теги и уменьшаются
        только убранные, общие остаются без изменений.

        Raises:
            EntityNotFoundError: Если сниппет или новый fireside не найден
            ValueError: Если валидация не прошла
        """
        # 1. ПРОВЕРКА: Сниппет существует
        snippet = await self.get_snippet(snippet_id)

        # 2. ВАЛИДАЦИЯ: Переданные поля не пустые
        reject_blank("Snippet", name=name, text=text)

        if fireside_id is not None and fireside_id != snippet.fireside_id:
            if not await self.fireside_repo.crud.exists(fireside_id):
                raise EntityNotFoundError("Fireside", fireside_id)

        updates: dict = {}
        if fireside_id is not None:
            updates["fireside_id"] = fireside_id
        if name is not None:
            updates["name"] = name.strip()
        if text is not None:
            updates["text"] = text
        if natural_order is not None:
            updates["natural_order"] = natural_order
        if visibility is not None:
            updates["visibility"] = visibility

        # 3. КООРДИНАЦИЯ: Сверка тегов с сохранённым набором
        if tags is not None:
            references = await self.tagging.apply(snippet.tag_references, tags)
            updates["tags"] = dump_references(references)

        # 4. ОБНОВЛЕНИЕ
        if not updates:
            return snippet

        snippet = await self.snippet_repo.crud.update(snippet_id, **updates)
        logger.info("Snippet updated", extra={"snippet_id": snippet_id, "fields": sorted(updates)})
        return snippet

    async def delete_snippet(self, snippet_id: int) -> bool:
        """
        Удалить сниппет вместе с его углублениями.

        Счётчики всех тегов сниппета и его углублений уменьшаются на 1.
        """
        snippet = await self.get_snippet(snippet_id)

        # 1. КООРДИНАЦИЯ: Углубления удаляются вместе со сниппетом
        deepenings = await self.deepening_repo.get_by_snippet(snippet_id)
        for deepening in deepenings:
            await self.tagging.release(deepening.tag_references)
            await self.deepening_repo.crud.delete(deepening.id)

        # 2. КООРДИНАЦИЯ: Освободить теги сниппета
        await self.tagging.release(snippet.tag_references)

        # 3. УДАЛЕНИЕ
        deleted = await self.snippet_repo.crud.delete(snippet_id)
        logger.info(
            "Snippet deleted",
            extra={"snippet_id": snippet_id, "deepenings_deleted": len(deepenings)},
        )
        return deleted
