"""Collection backends: the hosted REST endpoint and SQLAlchemy databases."""

from ..config import Settings
from .base import CollectionBackend, PageRequest, PageResponse, Row
from .postgrest import PostgrestBackend
from .sql import SqlAlchemyBackend


def create_backend(settings: Settings) -> CollectionBackend:
    """Build the backend selected by ``settings.backend_kind``."""
    if settings.backend_kind == "postgrest":
        return PostgrestBackend.from_settings(settings)
    if settings.backend_kind == "sql":
        return SqlAlchemyBackend.from_settings(settings)
    raise ValueError(f"Unknown backend kind: {settings.backend_kind}")


__all__ = [
    "CollectionBackend",
    "PageRequest",
    "PageResponse",
    "Row",
    "PostgrestBackend",
    "SqlAlchemyBackend",
    "create_backend",
]
