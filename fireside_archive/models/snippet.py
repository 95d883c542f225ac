"""Snippet model."""

import enum
from typing import Any

from sqlalchemy import Float, ForeignKey, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, JSONDocument, TimestampMixin
from .tag_reference import TagReference, load_references


class Visibility(str, enum.Enum):
    """Snippet visibility enum."""

    PUBLIC = "public"
    PRIVATE = "private"


class Snippet(Base, TimestampMixin):
    """Atomic unit of archived markdown content belonging to a fireside."""

    __tablename__ = "snippets"

    id: Mapped[int] = mapped_column(primary_key=True)
    fireside_id: Mapped[int] = mapped_column(ForeignKey("firesides.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)  # Markdown
    natural_order: Mapped[float] = mapped_column(Float, nullable=False)
    visibility: Mapped[Visibility] = mapped_column(
        SQLEnum(Visibility, native_enum=False), default=Visibility.PUBLIC, nullable=False
    )
    # Встроенные TagReference: [{"tag_id": 1, "weight": 5, "distance": 0}, ...]
    tags: Mapped[list[dict[str, Any]]] = mapped_column(JSONDocument, default=list, nullable=False)

    # Relationships
    fireside: Mapped["Fireside"] = relationship("Fireside", back_populates="snippets")
    deepenings: Mapped[list["Deepening"]] = relationship("Deepening", back_populates="snippet")

    @property
    def tag_references(self) -> list[TagReference]:
        return load_references(self.tags)

    @property
    def tag_ids(self) -> list[int]:
        return [ref.tag_id for ref in self.tag_references]

    def __repr__(self) -> str:
        return f"<Snippet(id={self.id}, name='{self.name}', fireside_id={self.fireside_id})>"
