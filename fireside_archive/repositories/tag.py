"""Tag store: lookup, resolve-or-create and atomic reference counters."""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Tag, tag_key
from .base import CrudRepository


def _select_tags():
    # Счётчики меняются UPDATE-выражениями, поэтому всегда перечитываем поля
    return select(Tag).execution_options(populate_existing=True)


class TagRepository:
    """
    Репозиторий тегов.

    Все поиски по имени идут через ключ сравнения (tag_key):
    "Purpose", "purpose" и " PURPOSE " - это один и тот же тег.
    Отображаемое имя сохраняется в том регистре, в котором тег создали.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.crud = CrudRepository(Tag, db)

    async def get_by_name(self, name: str) -> Tag | None:
        """
        Получить тег по имени (без учёта регистра).

        SQL эквивалент:
            SELECT * FROM tags WHERE name_key = lower(trim({name}));
        """
        result = await self.db.execute(_select_tags().where(Tag.name_key == tag_key(name)))
        return result.scalar_one_or_none()

    async def resolve_or_create(self, name: str) -> Tag:
        """
        Вернуть существующий тег или создать новый с reference_count = 0.

        Счётчик существующего тега здесь не меняется: "создать тег" и
        "учесть использование" - разные шаги (второй делает reconciler).

        Raises:
            ValueError: Если имя пустое
            sqlalchemy.exc.IntegrityError: Если параллельная сессия успела
                создать тег с тем же ключом (уникальный индекс name_key)
        """
        if not name or not name.strip():
            raise ValueError("Tag name cannot be empty")

        tag = await self.get_by_name(name)
        if tag is None:
            tag = await self.crud.create(Tag(name=name, reference_count=0))

        return tag

    def savepoint(self):
        """
        Вложенная транзакция (SAVEPOINT) в текущей сессии.

        Ошибка внутри блока откатывает только изменения блока; внешняя
        транзакция запроса остаётся рабочей (важно для PostgreSQL, где
        упавший запрос иначе прерывает всю транзакцию).

        Пример:
            async with repo.savepoint():
                await repo.increment(tag_id)
        """
        return self.db.begin_nested()

    async def increment(self, tag_id: int) -> bool:
        """
        Атомарно увеличить счётчик ссылок на 1.

        Returns:
            False, если тега нет (например, удалён отдельно) - это не ошибка

        SQL эквивалент:
            UPDATE tags SET reference_count = reference_count + 1 WHERE id = {tag_id};
        """
        result = await self.db.execute(
            update(Tag)
            .where(Tag.id == tag_id)
            .values(reference_count=Tag.reference_count + 1)
        )
        return result.rowcount > 0

    async def decrement(self, tag_id: int) -> bool:
        """
        Атомарно уменьшить счётчик ссылок на 1, не опускаясь ниже нуля.

        Returns:
            False, если тега нет или счётчик уже 0

        SQL эквивалент:
            UPDATE tags SET reference_count = reference_count - 1
            WHERE id = {tag_id} AND reference_count > 0;
        """
        result = await self.db.execute(
            update(Tag)
            .where(Tag.id == tag_id, Tag.reference_count > 0)
            .values(reference_count=Tag.reference_count - 1)
        )
        return result.rowcount > 0

    async def set_count(self, tag_id: int, value: int) -> bool:
        """Записать счётчик напрямую (только для пересчёта при ремонте)."""
        result = await self.db.execute(
            update(Tag).where(Tag.id == tag_id).values(reference_count=max(0, value))
        )
        return result.rowcount > 0

    async def get_all_ordered(self) -> list[Tag]:
        """Все теги, отсортированные по имени без учёта регистра."""
        result = await self.db.execute(_select_tags().order_by(Tag.name_key))
        return list(result.scalars().all())

    async def get_popular(self, limit: int = 10) -> list[Tag]:
        """
        Самые используемые теги.

        Счётчик хранится в самой таблице, поэтому JOIN не нужен.

        SQL эквивалент:
            SELECT * FROM tags
            WHERE reference_count > 0
            ORDER BY reference_count DESC, name_key
            LIMIT {limit};
        """
        result = await self.db.execute(
            _select_tags()
            .where(Tag.reference_count > 0)
            .order_by(Tag.reference_count.desc(), Tag.name_key)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_unused(self) -> list[Tag]:
        """Теги, на которые никто не ссылается (reference_count = 0)."""
        result = await self.db.execute(
            _select_tags().where(Tag.reference_count == 0).order_by(Tag.name_key)
        )
        return list(result.scalars().all())

    async def search(self, search_term: str) -> list[Tag]:
        """
        Поиск тегов по подстроке имени.

        SQL эквивалент:
            SELECT * FROM tags WHERE name_key LIKE '%{term}%';
        """
        result = await self.db.execute(
            _select_tags()
            .where(Tag.name_key.contains(tag_key(search_term)))
            .order_by(Tag.name_key)
        )
        return list(result.scalars().all())
