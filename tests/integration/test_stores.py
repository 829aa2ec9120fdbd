"""Itinerary store contract, run against the in-memory and SQLite stores."""

from collections.abc import Iterator

import pytest
from factories import activity, at, paris_trip

from tripline.db.engine import create_engine_from_url, create_schema, create_session_factory
from tripline.db.inmemory import InMemoryItineraryStore
from tripline.db.repositories import ItineraryStore
from tripline.db.sql_repositories import SqlItineraryStore
from tripline.errors import ConflictError, NotFoundError, StaleVersionError


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request: pytest.FixtureRequest) -> Iterator[ItineraryStore]:
    if request.param == "memory":
        yield InMemoryItineraryStore()
        return

    engine = create_engine_from_url("sqlite:///:memory:")
    create_schema(engine)
    yield SqlItineraryStore(create_session_factory(engine))
    engine.dispose()


class TestCreateLoad:
    def test_round_trip(self, any_store: ItineraryStore) -> None:
        created = any_store.create(paris_trip().model_copy(update={"version": 7}))

        loaded = any_store.load("itn_paris")

        assert created.version == 1
        assert loaded == created
        assert [s.id for s in loaded.segments] == ["seg_flight", "seg_hotel", "seg_louvre"]
        assert loaded.segments[0].start == at(1, 9)

    def test_duplicate_id(self, any_store: ItineraryStore) -> None:
        any_store.create(paris_trip())
        with pytest.raises(ConflictError):
            any_store.create(paris_trip())

    def test_unknown_id(self, any_store: ItineraryStore) -> None:
        with pytest.raises(NotFoundError):
            any_store.load("itn_missing")
        assert any_store.exists("itn_missing") is False

    def test_loaded_copies_are_independent(self, any_store: ItineraryStore) -> None:
        any_store.create(paris_trip())

        first = any_store.load("itn_paris")
        first.segments.pop()

        assert len(any_store.load("itn_paris").segments) == 3


class TestSave:
    def test_bumps_version(self, any_store: ItineraryStore) -> None:
        created = any_store.create(paris_trip())
        extra = activity("seg_cafe", "Paris", at(2, 10), at(2, 11))

        saved = any_store.save(created.with_segments([*created.segments, extra]))

        assert saved.version == 2
        assert saved.updated_at >= created.updated_at
        loaded = any_store.load("itn_paris")
        assert loaded.version == 2
        assert loaded.find_segment("seg_cafe") is not None

    def test_stale_version_rejected(self, any_store: ItineraryStore) -> None:
        created = any_store.create(paris_trip())
        any_store.save(created)

        with pytest.raises(StaleVersionError) as exc_info:
            any_store.save(created.with_segments([]))

        assert exc_info.value.details == {
            "itinerary_id": "itn_paris",
            "expected_version": 1,
            "stored_version": 2,
        }
        assert len(any_store.load("itn_paris").segments) == 3

    def test_save_unknown(self, any_store: ItineraryStore) -> None:
        with pytest.raises(NotFoundError):
            any_store.save(paris_trip())


class TestDeleteList:
    def test_delete(self, any_store: ItineraryStore) -> None:
        any_store.create(paris_trip())
        any_store.delete("itn_paris")

        assert any_store.exists("itn_paris") is False
        with pytest.raises(NotFoundError):
            any_store.delete("itn_paris")

    def test_list_most_recent_first(self, any_store: ItineraryStore) -> None:
        first = any_store.create(paris_trip())
        any_store.create(paris_trip().model_copy(update={"id": "itn_second"}))
        any_store.save(first)

        summaries = any_store.list_summaries()

        assert [s.id for s in summaries] == ["itn_paris", "itn_second"]
        assert summaries[0].segment_count == 3
        assert [s.id for s in any_store.list_summaries(limit=1)] == ["itn_paris"]
