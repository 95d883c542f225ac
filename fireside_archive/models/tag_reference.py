"""
Ссылка на тег, встроенная в сниппеты и углубления.

TagReference не хранится отдельной таблицей: список ссылок лежит в
JSON-колонке `tags` владельца (Snippet или Deepening).
"""

from dataclasses import asdict, dataclass
from typing import Any

MIN_WEIGHT = 1
MAX_WEIGHT = 10


def validate_metadata(weight: int, distance: int) -> None:
    """
    Проверить метаданные ссылки.

    Raises:
        ValueError: weight вне [1, 10] или отрицательный distance
    """
    if not MIN_WEIGHT <= weight <= MAX_WEIGHT:
        raise ValueError(f"Tag weight must be between {MIN_WEIGHT} and {MAX_WEIGHT}, got {weight}")
    if distance < 0:
        raise ValueError(f"Tag distance cannot be negative, got {distance}")


@dataclass(frozen=True)
class TagReference:
    """Ссылка сущности на тег с собственными weight и distance."""

    tag_id: int
    weight: int = MIN_WEIGHT
    distance: int = 0

    def __post_init__(self) -> None:
        validate_metadata(self.weight, self.distance)

    def to_dict(self) -> dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TagReference":
        return cls(
            tag_id=int(data["tag_id"]),
            weight=int(data.get("weight", MIN_WEIGHT)),
            distance=int(data.get("distance", 0)),
        )


def load_references(raw: list[dict[str, Any]] | None) -> list[TagReference]:
    """JSON-колонка → список TagReference."""
    return [TagReference.from_dict(item) for item in raw or []]


def dump_references(refs: list[TagReference]) -> list[dict[str, int]]:
    """Список TagReference → JSON-колонка."""
    return [ref.to_dict() for ref in refs]
