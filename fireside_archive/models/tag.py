"""Tag model."""

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from .base import Base, TimestampMixin


def tag_key(name: str) -> str:
    """Collation key used for every tag lookup: trimmed and casefolded."""
    return name.strip().casefold()


class Tag(Base, TimestampMixin):
    """
    Tag with a persisted usage counter.

    reference_count - производное значение: число TagReference во всех
    сниппетах и углублениях, указывающих на этот тег. Меняется только
    через TagRepository.increment/decrement (и пересчёт при ремонте).
    """

    __tablename__ = "tags"
    __table_args__ = (CheckConstraint("reference_count >= 0", name="ck_tags_reference_count"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    # Уникальность по ключу сравнения гарантирует один тег на имя,
    # даже если две сессии создают его одновременно
    name_key: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    reference_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    @validates("name")
    def _sync_name_key(self, key: str, value: str) -> str:
        self.name_key = tag_key(value)
        return value.strip()

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name='{self.name}', reference_count={self.reference_count})>"
