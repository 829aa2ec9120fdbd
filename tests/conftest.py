"""Shared pytest fixtures for all test suites."""

from collections.abc import Iterator

import pytest
from factories import paris_trip
from fastapi.testclient import TestClient

from tripline.api.deps import get_segment_service
from tripline.config import Settings
from tripline.db.inmemory import InMemoryItineraryStore
from tripline.main import app
from tripline.models import Itinerary
from tripline.services.segments import SegmentService


@pytest.fixture
def trip() -> Itinerary:
    """The JFK to Paris itinerary."""
    return paris_trip()


@pytest.fixture
def settings() -> Settings:
    return Settings(storage_backend="memory")


@pytest.fixture
def store() -> InMemoryItineraryStore:
    return InMemoryItineraryStore()


@pytest.fixture
def service(store: InMemoryItineraryStore, settings: Settings) -> SegmentService:
    return SegmentService(store, settings)


@pytest.fixture
def client(service: SegmentService) -> Iterator[TestClient]:
    """Test client wired to a fresh in-memory service."""
    app.dependency_overrides[get_segment_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
