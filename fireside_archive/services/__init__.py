"""Service layer with business logic."""

from .deepening import DeepeningService
from .exceptions import EntityNotFoundError, TagResolutionError
from .fireside import FiresideService
from .fireside_family import FiresideFamilyService
from .outline import OutlineService
from .snippet import SnippetService
from .tag import TagService
from .tagging import (
    ReconcileResult,
    ReferenceReconciler,
    TaggingWorkflow,
    TagInput,
    TagResolver,
)

__all__ = [
    "FiresideFamilyService",
    "FiresideService",
    "SnippetService",
    "DeepeningService",
    "OutlineService",
    "TagService",
    "TagInput",
    "TagResolver",
    "ReferenceReconciler",
    "ReconcileResult",
    "TaggingWorkflow",
    "EntityNotFoundError",
    "TagResolutionError",
]
