"""Fireside service with business logic."""

from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.logging import get_logger
from ..models import Fireside
from ..repositories import FiresideFamilyRepository, FiresideRepository, SnippetRepository
from .exceptions import EntityNotFoundError
from .snippet import SnippetService
from .validation import reject_blank, require_fields

logger = get_logger(__name__)


class FiresideService:
    """
    Сервис для работы с firesides.

    Удаление fireside со сниппетами идёт через SnippetService,
    чтобы счётчики тегов уменьшились корректно.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.fireside_repo = FiresideRepository(db)
        self.family_repo = FiresideFamilyRepository(db)
        self.snippet_repo = SnippetRepository(db)

    async def create_fireside(
        self,
        fireside_family_id: int,
        name: str,
        description: str,
        held_on: date | None = None,
    ) -> Fireside:
        """
        Создать fireside.

        Args:
            fireside_family_id: ID семейства
            name: Название
            description: Описание
            held_on: Дата проведения (по умолчанию сегодня)

        Raises:
            ValueError: Если валидация не прошла
            EntityNotFoundError: Если семейство не найдено
        """
        require_fields(
            "Fireside",
            fireside_family_id=fireside_family_id,
            name=name,
            description=description,
        )

        if not await self.family_repo.crud.exists(fireside_family_id):
            raise EntityNotFoundError("FiresideFamily", fireside_family_id)

        fireside = Fireside(
            fireside_family_id=fireside_family_id,
            name=name.strip(),
            description=description.strip(),
            held_on=held_on or date.today(),
        )
        fireside = await self.fireside_repo.crud.create(fireside)

        logger.info("Fireside created", extra={"fireside_id": fireside.id})
        return fireside

    async def get_fireside(self, fireside_id: int) -> Fireside:
        fireside = await self.fireside_repo.crud.get_by_id(fireside_id)
        if not fireside:
            raise EntityNotFoundError("Fireside", fireside_id)
        return fireside

    async def get_firesides(self, skip: int = 0, limit: int = 100) -> list[Fireside]:
        """Все firesides, от новых к старым."""
        return await self.fireside_repo.get_all_ordered(skip=skip, limit=limit)

    async def get_firesides_by_family(self, family_id: int) -> list[Fireside]:
        if not await self.family_repo.crud.exists(family_id):
            raise EntityNotFoundError("FiresideFamily", family_id)

        return await self.fireside_repo.get_by_family(family_id)

    async def update_fireside(
        self,
        fireside_id: int,
        fireside_family_id: int | None = None,
        name: str | None = None,
        description: str | None = None,
        held_on: date | None = None,
    ) -> Fireside:
        """Обновить fireside (частичное обновление)."""
        fireside = await self.get_fireside(fireside_id)
        reject_blank("Fireside", name=name, description=description)

        if fireside_family_id is not None and fireside_family_id != fireside.fireside_family_id:
            if not await self.family_repo.crud.exists(fireside_family_id):
                raise EntityNotFoundError("FiresideFamily", fireside_family_id)

        updates = {
            key: value
            for key, value in {
                "fireside_family_id": fireside_family_id,
                "name": name.strip() if name else None,
                "description": description.strip() if description else None,
                "held_on": held_on,
            }.items()
            if value is not None
        }
        if not updates:
            return fireside

        return await self.fireside_repo.crud.update(fireside_id, **updates)

    async def delete_fireside(self, fireside_id: int, force: bool = False) -> bool:
        """
        Удалить fireside.

        Args:
            fireside_id: ID fireside
            force: Удалить вместе со сниппетами

        Raises:
            ValueError: Если у fireside есть сниппеты и force=False
        """
        fireside = await self.get_fireside(fireside_id)

        snippet_count = await self.fireside_repo.count_snippets(fireside_id)
        if snippet_count and not force:
            raise ValueError(
                f"Cannot delete fireside '{fireside.name}' with {snippet_count} snippets. "
                "Use force=True to delete anyway."
            )

        if snippet_count:
            snippet_service = SnippetService(self.db)
            for snippet in await self.snippet_repo.get_by_fireside(fireside_id):
                await snippet_service.delete_snippet(snippet.id)

        deleted = await self.fireside_repo.crud.delete(fireside_id)
        logger.info(
            "Fireside deleted",
            extra={"fireside_id": fireside_id, "snippets_deleted": snippet_count},
        )
        return deleted
