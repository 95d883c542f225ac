"""FiresideFamily model."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class FiresideFamily(Base, TimestampMixin):
    """Grouping container for firesides (a series or a theme)."""

    __tablename__ = "fireside_families"

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_uid: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # Relationships
    firesides: Mapped[list["Fireside"]] = relationship("Fireside", back_populates="family")

    def __repr__(self) -> str:
        return f"<FiresideFamily(id={self.id}, name='{self.name}')>"
