"""Deepening model."""

from typing import Any

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, JSONDocument, TimestampMixin
from .tag_reference import TagReference, load_references


class Deepening(Base, TimestampMixin):
    """Supplementary markdown content attached to a snippet."""

    __tablename__ = "deepenings"

    id: Mapped[int] = mapped_column(primary_key=True)
    snippet_id: Mapped[int] = mapped_column(ForeignKey("snippets.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)  # Markdown
    tags: Mapped[list[dict[str, Any]]] = mapped_column(JSONDocument, default=list, nullable=False)

    # Relationships
    snippet: Mapped["Snippet"] = relationship("Snippet", back_populates="deepenings")

    @property
    def tag_references(self) -> list[TagReference]:
        return load_references(self.tags)

    @property
    def tag_ids(self) -> list[int]:
        return [ref.tag_id for ref in self.tag_references]

    def __repr__(self) -> str:
        return f"<Deepening(id={self.id}, name='{self.name}', snippet_id={self.snippet_id})>"
