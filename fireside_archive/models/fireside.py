"""Fireside model."""

from datetime import date

from sqlalchemy import Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class Fireside(Base, TimestampMixin):
    """A single fireside gathering; owns an ordered run of snippets."""

    __tablename__ = "firesides"

    id: Mapped[int] = mapped_column(primary_key=True)
    fireside_family_id: Mapped[int] = mapped_column(
        ForeignKey("fireside_families.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    held_on: Mapped[date] = mapped_column(Date, nullable=False)

    # Relationships
    family: Mapped["FiresideFamily"] = relationship("FiresideFamily", back_populates="firesides")
    snippets: Mapped[list["Snippet"]] = relationship(
        "Snippet", back_populates="fireside", order_by="Snippet.natural_order"
    )

    def __repr__(self) -> str:
        return f"<Fireside(id={self.id}, name='{self.name}', held_on={self.held_on})>"
