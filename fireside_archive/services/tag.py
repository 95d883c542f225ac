"""Tag service with business logic."""

from collections import Counter

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.logging import get_logger
from ..models import Tag, tag_key
from ..repositories import DeepeningRepository, SnippetRepository, TagRepository
from .exceptions import EntityNotFoundError

logger = get_logger(__name__)

MAX_TAG_NAME_LENGTH = 100


class TagService:
    """
    Сервис для работы с тегами.

    Счётчики ссылок здесь не увеличиваются и не уменьшаются - это делает
    TaggingWorkflow при сохранении сниппетов и углублений. Сервис отвечает
    за управление самими тегами и за пересчёт счётчиков при расхождении.
    """

    def __init__(self, db: AsyncSession):
        """Инициализация сервиса."""
        self.db = db
        self.tag_repo = TagRepository(db)
        self.snippet_repo = SnippetRepository(db)
        self.deepening_repo = DeepeningRepository(db)

    async def create_tag(self, name: str) -> Tag:
        """
        Создать новый тег (reference_count = 0).

        Raises:
            ValueError: Если валидация не прошла

        Бизнес-правила:
        1. Название обязательно
        2. Название уникально без учёта регистра
        3. Регистр сохраняется для отображения ("Purpose" остаётся "Purpose")
        """
        # 1. ВАЛИДАЦИЯ: Название
        self._validate_name(name)

        # 2. ВАЛИДАЦИЯ: Уникальность
        existing = await self.tag_repo.get_by_name(name)
        if existing:
            raise ValueError(f"Tag '{existing.name}' already exists")

        # 3. СОЗДАНИЕ
        tag = await self.tag_repo.crud.create(Tag(name=name, reference_count=0))
        logger.info("Tag created", extra={"tag_id": tag.id, "tag_name": tag.name})
        return tag

    async def get_or_create_tag(self, name: str) -> Tag:
        """
        Получить тег или создать, если не существует.

        Счётчик существующего тега не меняется.
        """
        self._validate_name(name)
        return await self.tag_repo.resolve_or_create(name)

    async def get_tag(self, tag_id: int) -> Tag:
        """
        Получить тег по ID.

        Raises:
            EntityNotFoundError: Если тег не найден
        """
        tag = await self.tag_repo.crud.get_by_id(tag_id)
        if not tag:
            raise EntityNotFoundError("Tag", tag_id)
        return tag

    async def get_tag_by_name(self, name: str) -> Tag | None:
        """Получить тег по названию (без учёта регистра)."""
        return await self.tag_repo.get_by_name(name)

    async def get_all_tags(self) -> list[Tag]:
        """Все теги по алфавиту."""
        return await self.tag_repo.get_all_ordered()

    async def get_popular_tags(self, limit: int = 10) -> list[Tag]:
        """
        Самые используемые теги.

        Бизнес-логика для отображения "облака тегов".
        """
        return await self.tag_repo.get_popular(limit)

    async def get_unused_tags(self) -> list[Tag]:
        """Теги без ссылок."""
        return await self.tag_repo.get_unused()

    async def search_tags(self, query: str) -> list[Tag]:
        """Поиск тегов по подстроке названия."""
        if not query or not query.strip():
            return []

        return await self.tag_repo.search(query)

    async def rename_tag(self, tag_id: int, new_name: str) -> Tag:
        """
        Переименовать тег.

        Ссылки хранят tag_id, поэтому переименование сразу видно
        во всех сниппетах и углублениях.

        Raises:
            EntityNotFoundError: Если тег не найден
            ValueError: Если новое имя пустое или занято другим тегом
        """
        # 1. ВАЛИДАЦИЯ: Тег существует
        tag = await self.get_tag(tag_id)

        # 2. ВАЛИДАЦИЯ: Новое название
        self._validate_name(new_name)

        # 3. ВАЛИДАЦИЯ: Ключ свободен (смена только регистра разрешена)
        if tag_key(new_name) != tag.name_key:
            existing = await self.tag_repo.get_by_name(new_name)
            if existing:
                raise ValueError(f"Tag '{existing.name}' already exists")

        # 4. ОБНОВЛЕНИЕ
        return await self.tag_repo.crud.update(tag_id, name=new_name)

    async def delete_tag(self, tag_id: int, force: bool = False) -> bool:
        """
        Удалить тег.

        Args:
            tag_id: ID тега
            force: Удалить даже если на тег есть ссылки

        Raises:
            ValueError: Если тег используется и force=False

        Бизнес-правило:
        - Ссылки на удалённый тег остаются в сниппетах; при следующем
          сохранении reconciler пропустит их с предупреждением в логе
        """
        tag = await self.get_tag(tag_id)

        if tag.reference_count > 0 and not force:
            raise ValueError(
                f"Cannot delete tag '{tag.name}' referenced {tag.reference_count} times. "
                "Use force=True to delete anyway."
            )

        deleted = await self.tag_repo.crud.delete(tag_id)
        logger.info(
            "Tag deleted",
            extra={"tag_id": tag_id, "forced": force, "reference_count": tag.reference_count},
        )
        return deleted

    async def cleanup_unused_tags(self) -> int:
        """
        Удалить все теги без ссылок.

        Returns:
            Количество удалённых тегов
        """
        unused_tags = await self.get_unused_tags()

        count = 0
        for tag in unused_tags:
            if await self.tag_repo.crud.delete(tag.id):
                count += 1

        logger.info("Unused tags removed", extra={"removed": count})
        return count

    async def get_tag_usage(self, tag_id: int) -> dict:
        """
        Статистика использования тега.

        Пример:
            {
                "tag_id": 3,
                "tag_name": "Purpose",
                "reference_count": 4,
                "snippet_count": 3,
                "deepening_count": 1
            }

        reference_count - сохранённый счётчик, snippet_count + deepening_count -
        фактическое число ссылок. Расхождение значит, что нужен пересчёт.
        """
        tag = await self.get_tag(tag_id)
        snippets = await self.snippet_repo.get_by_tag(tag_id)
        deepenings = await self.deepening_repo.get_by_tag(tag_id)

        return {
            "tag_id": tag.id,
            "tag_name": tag.name,
            "reference_count": tag.reference_count,
            "snippet_count": len(snippets),
            "deepening_count": len(deepenings),
        }

    async def recount_references(self) -> dict[int, int]:
        """
        Пересчитать reference_count всех тегов по фактическим ссылкам.

        Источник истины - TagReference в сниппетах и углублениях. Счётчик
        может разойтись после сбоя между шагами сохранения или после
        удаления тегов в обход сервиса.

        Returns:
            {tag_id: новый счётчик} для исправленных тегов
        """
        actual: Counter[int] = Counter()
        for snippet in await self.snippet_repo.get_all():
            actual.update(set(snippet.tag_ids))
        for deepening in await self.deepening_repo.get_all():
            actual.update(set(deepening.tag_ids))

        corrected: dict[int, int] = {}
        for tag in await self.tag_repo.get_all_ordered():
            expected = actual.get(tag.id, 0)
            if tag.reference_count != expected:
                await self.tag_repo.set_count(tag.id, expected)
                corrected[tag.id] = expected

        if corrected:
            logger.warning("Tag reference counts corrected", extra={"corrected": corrected})
        return corrected

    # Вспомогательные методы (private)

    def _validate_name(self, name: str) -> None:
        if not name or not name.strip():
            raise ValueError("Tag name cannot be empty")
        if len(name.strip()) > MAX_TAG_NAME_LENGTH:
            raise ValueError(f"Tag name cannot be longer than {MAX_TAG_NAME_LENGTH} characters")
