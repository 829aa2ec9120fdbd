"""FastAPI dependencies - store and service wiring from settings."""

from functools import lru_cache

from tripline.config import Settings, get_settings
from tripline.db.engine import create_engine_from_settings, create_schema, create_session_factory
from tripline.db.inmemory import InMemoryItineraryStore
from tripline.db.repositories import ItineraryStore
from tripline.db.sql_repositories import SqlItineraryStore
from tripline.services.segments import SegmentService


def build_store(settings: Settings) -> ItineraryStore:
    """Create the store selected by ``storage_backend``.

    Raises:
        ValueError: If the SQL backend is selected without a database URL.
    """
    if settings.storage_backend == "sql":
        engine = create_engine_from_settings(settings)
        create_schema(engine)
        return SqlItineraryStore(create_session_factory(engine))
    return InMemoryItineraryStore()


@lru_cache
def get_segment_service() -> SegmentService:
    """Get the process-wide segment service instance."""
    settings = get_settings()
    return SegmentService(build_store(settings), settings)
