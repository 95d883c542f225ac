"""Repository layer for data access."""

from .base import CrudRepository
from .deepening import DeepeningRepository
from .fireside import FiresideRepository
from .fireside_family import FiresideFamilyRepository
from .outline import OutlineRepository
from .snippet import SnippetRepository
from .tag import TagRepository

__all__ = [
    "CrudRepository",
    "FiresideFamilyRepository",
    "FiresideRepository",
    "SnippetRepository",
    "DeepeningRepository",
    "OutlineRepository",
    "TagRepository",
]
