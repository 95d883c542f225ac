"""SQLAlchemy models for Fireside Archive."""

from .base import Base, TimestampMixin
from .deepening import Deepening
from .fireside import Fireside
from .fireside_family import FiresideFamily
from .outline import Outline, OutlineItemType
from .snippet import Snippet, Visibility
from .tag import Tag, tag_key
from .tag_reference import TagReference, dump_references, load_references, validate_metadata

__all__ = [
    "Base",
    "TimestampMixin",
    "FiresideFamily",
    "Fireside",
    "Snippet",
    "Visibility",
    "Deepening",
    "Outline",
    "OutlineItemType",
    "Tag",
    "tag_key",
    "TagReference",
    "load_references",
    "dump_references",
    "validate_metadata",
]
