"""
Разрешение тегов и сверка счётчиков ссылок.

Сохранение сниппета или углубления проходит три шага в одной сессии запроса:

1. TagResolver превращает введённые теги (id или имена) в TagReference,
   создавая недостающие теги со счётчиком 0.
2. ReferenceReconciler сравнивает сохранённые id тегов с новыми и
   увеличивает/уменьшает счётчики только для разницы.
3. Вызывающий сервис сохраняет сущность с новыми ссылками.

Commit делает dependency get_db один раз в конце запроса, поэтому ошибка
на любом шаге откатывает и счётчики, и сущность.
"""

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from ..core.logging import get_logger
from ..models import TagReference, tag_key, validate_metadata
from ..repositories import TagRepository
from .exceptions import TagResolutionError

logger = get_logger(__name__)


@dataclass
class TagInput:
    """Введённый тег: id существующего тега или имя для разрешения."""

    tag_id: int | None = None
    name: str | None = None
    weight: int = 1
    distance: int = 0


@dataclass
class ReconcileResult:
    """Какие счётчики изменены, а какие корректировки пропущены."""

    incremented: list[int] = field(default_factory=list)
    decremented: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)


class TagResolver:
    """
    Разрешение введённых тегов в TagReference.

    Счётчики ссылок не трогает.
    """

    def __init__(self, tag_repo: TagRepository):
        self.tag_repo = tag_repo

    async def resolve(self, inputs: Iterable[TagInput]) -> list[TagReference]:
        """
        Разрешить пакет введённых тегов.

        Каждое имя (по ключу сравнения) запрашивается у хранилища один раз.
        Порядок ввода сохраняется, на каждый id тега - одна ссылка:
        повторный тег получает weight/distance первого вхождения.

        Args:
            inputs: Введённые теги

        Returns:
            Список TagReference

        Raises:
            ValueError: Нет ни id, ни имени, или неверные weight/distance
            TagResolutionError: Хранилище упало при разрешении имени
        """
        items = list(inputs)

        # 1. ВАЛИДАЦИЯ: весь пакет до первого обращения к хранилищу
        for item in items:
            if item.tag_id is None and (item.name is None or not item.name.strip()):
                raise ValueError("Tag input needs either a tag_id or a non-empty name")
            validate_metadata(item.weight, item.distance)

        # 2. РАЗРЕШЕНИЕ: имя → id, дубликаты по id отбрасываются
        resolved_by_key: dict[str, int] = {}
        seen: set[int] = set()
        references: list[TagReference] = []

        for item in items:
            if item.tag_id is not None:
                tag_id = item.tag_id
            else:
                key = tag_key(item.name)
                if key not in resolved_by_key:
                    resolved_by_key[key] = await self._resolve_name(item.name)
                tag_id = resolved_by_key[key]

            if tag_id in seen:
                logger.debug("Duplicate tag in batch dropped", extra={"tag_id": tag_id})
                continue

            seen.add(tag_id)
            references.append(
                TagReference(tag_id=tag_id, weight=item.weight, distance=item.distance)
            )

        return references

    async def _resolve_name(self, name: str) -> int:
        try:
            tag = await self.tag_repo.resolve_or_create(name)
        except SQLAlchemyError as e:
            logger.error("Tag resolution failed", extra={"tag_name": name}, exc_info=True)
            raise TagResolutionError(name) from e
        return tag.id


class ReferenceReconciler:
    """Поддерживает Tag.reference_count в соответствии с набором тегов сущности."""

    def __init__(self, tag_repo: TagRepository):
        self.tag_repo = tag_repo

    async def reconcile(
        self, previous_ids: Iterable[int], next_ids: Iterable[int]
    ) -> ReconcileResult:
        """
        Применить разницу счётчиков между двумя наборами id.

        ``next - previous`` увеличивается, ``previous - next`` уменьшается,
        общие id не трогаются. Неудачная корректировка (тега нет, счётчик
        уже 0, ошибка БД) логируется и пропускается, остальные выполняются.

        Каждая корректировка идёт в своём SAVEPOINT: упавший UPDATE
        откатывается один, транзакция запроса продолжает работать.

        Args:
            previous_ids: Сохранённые id тегов (пусто при создании)
            next_ids: Новые id тегов (пусто при удалении)

        SQL эквивалент (на каждый id):
            SAVEPOINT sa_1;
            UPDATE tags SET reference_count = reference_count ± 1 WHERE id = {tag_id};
            RELEASE SAVEPOINT sa_1;  -- или ROLLBACK TO SAVEPOINT sa_1
        """
        # dict.fromkeys: семантика множества с устойчивым порядком
        previous = list(dict.fromkeys(previous_ids))
        upcoming = list(dict.fromkeys(next_ids))
        previous_set = set(previous)
        upcoming_set = set(upcoming)

        result = ReconcileResult()

        for tag_id in upcoming:
            if tag_id not in previous_set:
                await self._adjust(
                    tag_id, "increment", self.tag_repo.increment, result.incremented, result
                )

        for tag_id in previous:
            if tag_id not in upcoming_set:
                await self._adjust(
                    tag_id, "decrement", self.tag_repo.decrement, result.decremented, result
                )

        return result

    async def _adjust(
        self,
        tag_id: int,
        operation: str,
        apply: Callable[[int], Awaitable[bool]],
        applied: list[int],
        result: ReconcileResult,
    ) -> None:
        try:
            async with self.tag_repo.savepoint():
                changed = await apply(tag_id)
        except SQLAlchemyError:
            logger.warning(
                "Tag count adjustment failed",
                extra={"tag_id": tag_id, "operation": operation},
                exc_info=True,
            )
            changed = False
        else:
            if not changed:
                logger.warning(
                    "Tag count adjustment skipped: tag missing or count already zero",
                    extra={"tag_id": tag_id, "operation": operation},
                )

        if changed:
            logger.debug("Tag count adjusted", extra={"tag_id": tag_id, "operation": operation})
            applied.append(tag_id)
        else:
            result.skipped.append(tag_id)


class TaggingWorkflow:
    """Разрешение, затем сверка: общий шаг сохранения сниппетов и углублений."""

    def __init__(self, tag_repo: TagRepository):
        self.resolver = TagResolver(tag_repo)
        self.reconciler = ReferenceReconciler(tag_repo)

    async def apply(
        self, previous: Iterable[TagReference], inputs: Iterable[TagInput]
    ) -> list[TagReference]:
        """
        Разрешить ``inputs`` и сверить счётчики с ``previous``.

        Returns:
            Ссылки, которые вызывающий сервис сохраняет в сущности
        """
        references = await self.resolver.resolve(inputs)
        await self.reconciler.reconcile(
            [ref.tag_id for ref in previous], [ref.tag_id for ref in references]
        )
        return references

    async def release(self, previous: Iterable[TagReference]) -> ReconcileResult:
        """Уменьшить счётчики всех тегов сущности (удаление)."""
        return await self.reconciler.reconcile([ref.tag_id for ref in previous], [])
