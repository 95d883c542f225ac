"""FiresideFamily service with business logic."""

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.logging import get_logger
from ..models import FiresideFamily
from ..repositories import FiresideFamilyRepository, FiresideRepository
from .exceptions import EntityNotFoundError
from .fireside import FiresideService
from .validation import reject_blank, require_fields

logger = get_logger(__name__)


class FiresideFamilyService:
    """Сервис для работы с семействами firesides."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.family_repo = FiresideFamilyRepository(db)
        self.fireside_repo = FiresideRepository(db)

    async def create_family(self, owner_uid: str, name: str, description: str) -> FiresideFamily:
        """
        Создать семейство.

        Raises:
            ValueError: Если не заполнены owner_uid, name или description
        """
        require_fields(
            "FiresideFamily", owner_uid=owner_uid, name=name, description=description
        )

        family = FiresideFamily(
            owner_uid=owner_uid.strip(),
            name=name.strip(),
            description=description.strip(),
        )
        family = await self.family_repo.crud.create(family)

        logger.info("Fireside family created", extra={"family_id": family.id})
        return family

    async def get_family(self, family_id: int) -> FiresideFamily:
        family = await self.family_repo.crud.get_by_id(family_id)
        if not family:
            raise EntityNotFoundError("FiresideFamily", family_id)
        return family

    async def get_families(self, owner_uid: str | None = None) -> list[FiresideFamily]:
        """Все семейства или только семейства владельца."""
        if owner_uid:
            return await self.family_repo.get_by_owner(owner_uid)
        return await self.family_repo.get_all_ordered()

    async def update_family(
        self,
        family_id: int,
        name: str | None = None,
        description: str | None = None,
    ) -> FiresideFamily:
        family = await self.get_family(family_id)
        reject_blank("FiresideFamily", name=name, description=description)

        updates = {}
        if name is not None:
            updates["name"] = name.strip()
        if description is not None:
            updates["description"] = description.strip()
        if not updates:
            return family

        return await self.family_repo.crud.update(family_id, **updates)

    async def delete_family(self, family_id: int, force: bool = False) -> bool:
        """
        Удалить семейство.

        force=True удаляет все его firesides (и их сниппеты) через
        FiresideService, иначе семейство с firesides удалить нельзя.
        """
        family = await self.get_family(family_id)

        fireside_count = await self.family_repo.count_firesides(family_id)
        if fireside_count and not force:
            raise ValueError(
                f"Cannot delete family '{family.name}' with {fireside_count} firesides. "
                "Use force=True to delete anyway."
            )

        if fireside_count:
            fireside_service = FiresideService(self.db)
            for fireside in await self.fireside_repo.get_by_family(family_id):
                await fireside_service.delete_fireside(fireside.id, force=True)

        deleted = await self.family_repo.crud.delete(family_id)
        logger.info(
            "Fireside family deleted",
            extra={"family_id": family_id, "firesides_deleted": fireside_count},
        )
        return deleted
