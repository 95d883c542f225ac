"""Outline service: user-composed arrangements of snippets and deepenings."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.logging import get_logger
from ..models import Outline, OutlineItemType
from ..repositories import DeepeningRepository, OutlineRepository, SnippetRepository
from .exceptions import EntityNotFoundError
from .validation import reject_blank, require_fields

logger = get_logger(__name__)

MAX_HEADING_LEVEL = 6


class OutlineService:
    """
    Сервис для работы с outlines.

    Outline - дерево ссылок на сниппеты и углубления. Из видимых
    элементов собирается единый markdown-документ.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.outline_repo = OutlineRepository(db)
        self.snippet_repo = SnippetRepository(db)
        self.deepening_repo = DeepeningRepository(db)

    async def create_outline(
        self,
        user_id: str,
        title: str,
        items: list[dict[str, Any]] | None = None,
        is_public: bool = False,
    ) -> Outline:
        """
        Создать outline.

        Args:
            user_id: Владелец
            title: Заголовок
            items: Дерево элементов
                [{"item_id": "a", "type": "snippet", "ref_id": 1,
                  "is_visible": true, "children": [...]}]
            is_public: Виден ли другим пользователям

        Raises:
            ValueError: Если элементы некорректны
            EntityNotFoundError: Если элемент ссылается на несуществующую запись
        """
        require_fields("Outline", user_id=user_id, title=title)
        normalized = await self._normalize_items(items or [])

        outline = Outline(
            user_id=user_id.strip(),
            title=title.strip(),
            items=normalized,
            is_public=is_public,
        )
        outline = await self.outline_repo.crud.create(outline)

        logger.info("Outline created", extra={"outline_id": outline.id, "user_id": user_id})
        return outline

    async def get_outline(self, outline_id: int) -> Outline:
        outline = await self.outline_repo.crud.get_by_id(outline_id)
        if not outline:
            raise EntityNotFoundError("Outline", outline_id)
        return outline

    async def get_outlines_by_user(self, user_id: str) -> list[Outline]:
        return await self.outline_repo.get_by_user(user_id)

    async def get_public_outlines(self) -> list[Outline]:
        return await self.outline_repo.get_public()

    async def update_outline(
        self,
        outline_id: int,
        title: str | None = None,
        items: list[dict[str, Any]] | None = None,
        is_public: bool | None = None,
    ) -> Outline:
        """Обновить outline. Новые items полностью заменяют старые."""
        outline = await self.get_outline(outline_id)
        reject_blank("Outline", title=title)

        updates: dict[str, Any] = {}
        if title is not None:
            updates["title"] = title.strip()
        if items is not None:
            updates["items"] = await self._normalize_items(items)
        if is_public is not None:
            updates["is_public"] = is_public
        if not updates:
            return outline

        return await self.outline_repo.crud.update(outline_id, **updates)

    async def delete_outline(self, outline_id: int) -> bool:
        await self.get_outline(outline_id)
        return await self.outline_repo.crud.delete(outline_id)

    async def compose_markdown(self, outline_id: int) -> str:
        """
        Собрать markdown-документ из видимых элементов outline.

        Правила:
        - Заголовок документа: "# {title}"
        - Каждый элемент: заголовок уровня depth + 2 (максимум 6) и его текст
        - Скрытый элемент скрывает и всё своё поддерево
        - Элементы, чьи записи уже удалены, пропускаются

        Результат сохраняется в outline.markdown.
        """
        outline = await self.get_outline(outline_id)

        parts = [f"# {outline.title}"]
        await self._render_items(outline.items, depth=0, parts=parts)
        markdown = "\n\n".join(parts) + "\n"

        await self.outline_repo.crud.update(outline_id, markdown=markdown)
        return markdown

    # Вспомогательные методы (private)

    async def _render_items(
        self, items: list[dict[str, Any]], depth: int, parts: list[str]
    ) -> None:
        for item in items:
            if not item.get("is_visible", True):
                continue

            record = await self._load_record(item["type"], item["ref_id"])
            if record is None:
                logger.warning(
                    "Outline item points at a missing record",
                    extra={"item_id": item["item_id"], "ref_id": item["ref_id"]},
                )
                continue

            level = min(depth + 2, MAX_HEADING_LEVEL)
            parts.append(f"{'#' * level} {record.name}")
            if record.text.strip():
                parts.append(record.text.strip())

            await self._render_items(item.get("children") or [], depth + 1, parts)

    async def _load_record(self, item_type: str, ref_id: int):
        if item_type == OutlineItemType.SNIPPET.value:
            return await self.snippet_repo.crud.get_by_id(ref_id)
        return await self.deepening_repo.crud.get_by_id(ref_id)

    async def _normalize_items(
        self, items: list[dict[str, Any]], seen: set[str] | None = None
    ) -> list[dict[str, Any]]:
        """
        Проверить дерево элементов и привести его к единому виду.

        Raises:
            ValueError: Пустой или повторяющийся item_id, неизвестный type
            EntityNotFoundError: ref_id не существует
        """
        seen = set() if seen is None else seen
        normalized = []

        for item in items:
            item_id = str(item.get("item_id") or "").strip()
            if not item_id:
                raise ValueError("Outline item_id cannot be empty")
            if item_id in seen:
                raise ValueError(f"Duplicate outline item_id '{item_id}'")
            seen.add(item_id)

            try:
                item_type = OutlineItemType(item.get("type"))
            except ValueError:
                raise ValueError(f"Unknown outline item type '{item.get('type')}'") from None

            ref_id = item.get("ref_id")
            repo = (
                self.snippet_repo if item_type == OutlineItemType.SNIPPET else self.deepening_repo
            )
            if ref_id is None or not await repo.crud.exists(ref_id):
                raise EntityNotFoundError(item_type.value.capitalize(), ref_id)

            normalized.append(
                {
                    "item_id": item_id,
                    "type": item_type.value,
                    "ref_id": ref_id,
                    "is_visible": bool(item.get("is_visible", True)),
                    "children": await self._normalize_items(item.get("children") or [], seen),
                }
            )

        return normalized
