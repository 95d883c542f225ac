"""Generic CRUD capability shared by every entity repository."""

from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, cast, delete, func, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import Base

# TypeVar для Generic класса - позволяет работать с любой моделью
ModelType = TypeVar("ModelType", bound=Base)


def uses_postgresql(db: AsyncSession) -> bool:
    """Сессия работает с PostgreSQL (доступны JSONB-операторы)."""
    return db.get_bind().dialect.name == "postgresql"


def references_tag(column: Any, tag_id: int) -> ColumnElement[bool]:
    """
    Условие "список ссылок в JSONB-колонке содержит tag_id".

    Только для PostgreSQL: на SQLite фильтр по тегу делается в Python.

    SQL эквивалент:
        tags @> '[{"tag_id": {tag_id}}]'::jsonb
    """
    return cast(column, JSONB).contains([{"tag_id": tag_id}])


class CrudRepository(Generic[ModelType]):
    """
    CRUD операции для одной модели.

    Репозитории сущностей не наследуются от этого класса, а держат его
    экземпляр (композиция):

        class SnippetRepository:
            def __init__(self, db):
                self.crud = CrudRepository(Snippet, db)

        snippet = await snippet_repo.crud.get_by_id(1)

    Временные метки created_at/updated_at проставляет TimestampMixin.
    """

    def __init__(self, model: type[ModelType], db: AsyncSession):
        """
        Args:
            model: Класс модели SQLAlchemy (например, Snippet, Tag)
            db: Асинхронная сессия базы данных
        """
        self.model = model
        self.db = db

    async def create(self, obj: ModelType) -> ModelType:
        """
        Создать новую запись в БД.

        Returns:
            Созданный объект с заполненным ID и timestamps
        """
        self.db.add(obj)
        await self.db.flush()  # flush() отправляет в БД, но не commit
        await self.db.refresh(obj)
        return obj

    async def get_by_id(self, id: int) -> ModelType | None:
        """
        Получить объект по ID.

        populate_existing=True перечитывает поля уже загруженного объекта:
        счётчики тегов меняются UPDATE-выражениями в обход identity map.

        SQL эквивалент:
            SELECT * FROM table WHERE id = {id} LIMIT 1;
        """
        result = await self.db.execute(
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_all(self, skip: int = 0, limit: int = 100) -> list[ModelType]:
        """
        Получить все записи с пагинацией.

        SQL эквивалент:
            SELECT * FROM table ORDER BY id OFFSET {skip} LIMIT {limit};
        """
        result = await self.db.execute(
            select(self.model).order_by(self.model.id).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def find_by_field(self, field: str, value: Any) -> list[ModelType]:
        """
        Найти записи по равенству поля.

        Args:
            field: Имя колонки (например, "snippet_id")
            value: Значение для сравнения

        Raises:
            ValueError: Если у модели нет такой колонки

        SQL эквивалент:
            SELECT * FROM table WHERE {field} = {value};
        """
        column = getattr(self.model, field, None)
        if column is None:
            raise ValueError(f"{self.model.__name__} has no field '{field}'")

        result = await self.db.execute(
            select(self.model).where(column == value).order_by(self.model.id)
        )
        return list(result.scalars().all())

    async def update(self, id: int, **kwargs: Any) -> ModelType | None:
        """
        Обновить запись по ID.

        Обновляются только переданные поля, неизвестные ключи игнорируются.

        Returns:
            Обновлённый объект или None, если не найден
        """
        obj = await self.get_by_id(id)
        if not obj:
            return None

        for key, value in kwargs.items():
            if hasattr(obj, key):
                setattr(obj, key, value)

        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def delete(self, id: int) -> bool:
        """
        Удалить запись по ID.

        Returns:
            True если удалено, False если не найдено
        """
        result = await self.db.execute(delete(self.model).where(self.model.id == id))
        return result.rowcount > 0

    async def exists(self, id: int) -> bool:
        """Проверить существование записи."""
        result = await self.db.execute(select(self.model.id).where(self.model.id == id))
        return result.scalar_one_or_none() is not None

    async def count(self) -> int:
        """
        Подсчитать количество записей.

        SQL эквивалент:
            SELECT COUNT(*) FROM table;
        """
        result = await self.db.execute(select(func.count()).select_from(self.model))
        return result.scalar_one()
