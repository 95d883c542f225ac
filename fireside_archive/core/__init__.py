"""Core application components."""

from .config import Settings, get_settings
from .database import build_engine, build_session_factory, drop_db, init_db

__all__ = [
    "Settings",
    "get_settings",
    "build_engine",
    "build_session_factory",
    "init_db",
    "drop_db",
]
