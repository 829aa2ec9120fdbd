"""SQL implementation of the itinerary store."""

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from tripline.db.models import ItineraryRecord
from tripline.errors import (
    ConflictError,
    NotFoundError,
    StaleVersionError,
    StorageReadError,
    StorageWriteError,
)
from tripline.models.common import utcnow
from tripline.models.itinerary import Itinerary, ItinerarySummary

logger = logging.getLogger(__name__)


class SqlItineraryStore:
    """SQL implementation of ItineraryStore.

    Each call runs in its own session so the store can be shared across
    request threads.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def create(self, itinerary: Itinerary) -> Itinerary:
        """Store a new itinerary."""
        now = utcnow()
        stored = itinerary.model_copy(update={"version": 1, "created_at": now, "updated_at": now})

        with self._session_factory() as session:
            try:
                if session.get(ItineraryRecord, stored.id) is not None:
                    raise ConflictError(
                        f"Itinerary {stored.id} already exists", {"itinerary_id": stored.id}
                    )
                session.add(
                    ItineraryRecord(
                        itinerary_id=stored.id,
                        title=stored.title,
                        status=stored.status.value,
                        version=stored.version,
                        data=stored.model_dump(mode="json"),
                        created_at=now,
                        updated_at=now,
                    )
                )
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error("[SqlItineraryStore.create] itinerary=%s error=%s", stored.id, e)
                raise StorageWriteError(
                    f"Failed to create itinerary {stored.id}", {"itinerary_id": stored.id}
                ) from e

        return stored

    def load(self, itinerary_id: str) -> Itinerary:
        """Load an itinerary by ID."""
        with self._session_factory() as session:
            try:
                record = session.get(ItineraryRecord, itinerary_id)
            except SQLAlchemyError as e:
                logger.error("[SqlItineraryStore.load] itinerary=%s error=%s", itinerary_id, e)
                raise StorageReadError(
                    f"Failed to load itinerary {itinerary_id}", {"itinerary_id": itinerary_id}
                ) from e

            if record is None:
                raise NotFoundError(
                    f"Itinerary {itinerary_id} not found", {"itinerary_id": itinerary_id}
                )
            return Itinerary.model_validate(record.data)

    def save(self, itinerary: Itinerary) -> Itinerary:
        """Replace the stored itinerary with a conditional UPDATE on version."""
        expected = itinerary.version
        now = utcnow()
        updated = itinerary.model_copy(update={"version": expected + 1, "updated_at": now})

        with self._session_factory() as session:
            try:
                result = session.execute(
                    update(ItineraryRecord)
                    .where(
                        ItineraryRecord.itinerary_id == itinerary.id,
                        ItineraryRecord.version == expected,
                    )
                    .values(
                        title=updated.title,
                        status=updated.status.value,
                        version=updated.version,
                        data=updated.model_dump(mode="json"),
                        updated_at=now,
                    )
                )
                if result.rowcount == 0:
                    session.rollback()
                    stored_version = session.scalar(
                        select(ItineraryRecord.version).where(
                            ItineraryRecord.itinerary_id == itinerary.id
                        )
                    )
                    if stored_version is None:
                        raise NotFoundError(
                            f"Itinerary {itinerary.id} not found", {"itinerary_id": itinerary.id}
                        )
                    raise StaleVersionError(
                        f"Itinerary {itinerary.id} was modified concurrently",
                        {
                            "itinerary_id": itinerary.id,
                            "expected_version": expected,
                            "stored_version": stored_version,
                        },
                    )
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error("[SqlItineraryStore.save] itinerary=%s error=%s", itinerary.id, e)
                raise StorageWriteError(
                    f"Failed to save itinerary {itinerary.id}", {"itinerary_id": itinerary.id}
                ) from e

        return updated

    def delete(self, itinerary_id: str) -> None:
        """Delete an itinerary."""
        with self._session_factory() as session:
            try:
                record = session.get(ItineraryRecord, itinerary_id)
                if record is None:
                    raise NotFoundError(
                        f"Itinerary {itinerary_id} not found", {"itinerary_id": itinerary_id}
                    )
                session.delete(record)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error("[SqlItineraryStore.delete] itinerary=%s error=%s", itinerary_id, e)
                raise StorageWriteError(
                    f"Failed to delete itinerary {itinerary_id}", {"itinerary_id": itinerary_id}
                ) from e

    def list_summaries(self, limit: int = 100) -> list[ItinerarySummary]:
        """List itineraries, most recently updated first."""
        with self._session_factory() as session:
            try:
                records = session.scalars(
                    select(ItineraryRecord)
                    .order_by(ItineraryRecord.updated_at.desc())
                    .limit(limit)
                ).all()
            except SQLAlchemyError as e:
                logger.error("[SqlItineraryStore.list_summaries] error=%s", e)
                raise StorageReadError("Failed to list itineraries") from e

            return [
                ItinerarySummary.from_itinerary(Itinerary.model_validate(r.data)) for r in records
            ]

    def exists(self, itinerary_id: str) -> bool:
        """Whether an itinerary with this ID is stored."""
        with self._session_factory() as session:
            try:
                found = session.scalar(
                    select(ItineraryRecord.itinerary_id).where(
                        ItineraryRecord.itinerary_id == itinerary_id
                    )
                )
            except SQLAlchemyError as e:
                raise StorageReadError(
                    f"Failed to look up itinerary {itinerary_id}", {"itinerary_id": itinerary_id}
                ) from e
            return found is not None
