"""FiresideFamily repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Fireside, FiresideFamily
from .base import CrudRepository


class FiresideFamilyRepository:
    """Репозиторий семейств firesides."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.crud = CrudRepository(FiresideFamily, db)

    async def get_by_owner(self, owner_uid: str) -> list[FiresideFamily]:
        """
        Семейства, принадлежащие пользователю.

        SQL эквивалент:
            SELECT * FROM fireside_families WHERE owner_uid = {owner_uid};
        """
        return await self.crud.find_by_field("owner_uid", owner_uid)

    async def get_all_ordered(self) -> list[FiresideFamily]:
        """Все семейства по имени."""
        result = await self.db.execute(select(FiresideFamily).order_by(FiresideFamily.name))
        return list(result.scalars().all())

    async def count_firesides(self, family_id: int) -> int:
        """Сколько firesides в семействе."""
        from sqlalchemy import func

        result = await self.db.execute(
            select(func.count(Fireside.id)).where(Fireside.fireside_family_id == family_id)
        )
        return result.scalar_one()
