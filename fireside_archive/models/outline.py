"""Outline model."""

import enum
from typing import Any

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, JSONDocument, TimestampMixin


class OutlineItemType(str, enum.Enum):
    """What an outline item points at."""

    SNIPPET = "snippet"
    DEEPENING = "deepening"


class Outline(Base, TimestampMixin):
    """User-composed arrangement of snippets and deepenings."""

    __tablename__ = "outlines"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    # Дерево элементов:
    # [{"item_id": "a1", "type": "snippet", "ref_id": 3, "is_visible": true, "children": [...]}]
    items: Mapped[list[dict[str, Any]]] = mapped_column(JSONDocument, default=list, nullable=False)
    markdown: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<Outline(id={self.id}, title='{self.title}', user_id='{self.user_id}')>"
