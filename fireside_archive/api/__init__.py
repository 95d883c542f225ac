"""API layer - FastAPI endpoints."""

from .deepenings import router as deepenings_router
from .families import router as families_router
from .firesides import router as firesides_router
from .outlines import router as outlines_router
from .snippets import router as snippets_router
from .tags import router as tags_router

__all__ = [
    "families_router",
    "firesides_router",
    "snippets_router",
    "deepenings_router",
    "outlines_router",
    "tags_router",
]
