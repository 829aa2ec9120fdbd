"""In-memory implementation of the itinerary store."""

import threading

from tripline.errors import ConflictError, NotFoundError, StaleVersionError
from tripline.models.common import utcnow
from tripline.models.itinerary import Itinerary, ItinerarySummary


class InMemoryItineraryStore:
    """In-memory implementation of ItineraryStore.

    Itineraries are deep-copied on the way in and out so callers never share
    state with the store.
    """

    def __init__(self) -> None:
        self._itineraries: dict[str, Itinerary] = {}
        self._lock = threading.Lock()

    def create(self, itinerary: Itinerary) -> Itinerary:
        """Store a new itinerary."""
        with self._lock:
            if itinerary.id in self._itineraries:
                raise ConflictError(
                    f"Itinerary {itinerary.id} already exists", {"itinerary_id": itinerary.id}
                )
            now = utcnow()
            stored = itinerary.model_copy(
                update={"version": 1, "created_at": now, "updated_at": now}, deep=True
            )
            self._itineraries[stored.id] = stored
            return stored.model_copy(deep=True)

    def load(self, itinerary_id: str) -> Itinerary:
        """Load an itinerary by ID."""
        with self._lock:
            stored = self._itineraries.get(itinerary_id)
            if stored is None:
                raise NotFoundError(
                    f"Itinerary {itinerary_id} not found", {"itinerary_id": itinerary_id}
                )
            return stored.model_copy(deep=True)

    def save(self, itinerary: Itinerary) -> Itinerary:
        """Replace the stored itinerary if the version matches."""
        with self._lock:
            stored = self._itineraries.get(itinerary.id)
            if stored is None:
                raise NotFoundError(
                    f"Itinerary {itinerary.id} not found", {"itinerary_id": itinerary.id}
                )
            if stored.version != itinerary.version:
                raise StaleVersionError(
                    f"Itinerary {itinerary.id} was modified concurrently",
                    {
                        "itinerary_id": itinerary.id,
                        "expected_version": itinerary.version,
                        "stored_version": stored.version,
                    },
                )

            updated = itinerary.model_copy(
                update={"version": stored.version + 1, "updated_at": utcnow()}, deep=True
            )
            self._itineraries[updated.id] = updated
            return updated.model_copy(deep=True)

    def delete(self, itinerary_id: str) -> None:
        """Delete an itinerary."""
        with self._lock:
            if self._itineraries.pop(itinerary_id, None) is None:
                raise NotFoundError(
                    f"Itinerary {itinerary_id} not found", {"itinerary_id": itinerary_id}
                )

    def list_summaries(self, limit: int = 100) -> list[ItinerarySummary]:
        """List itineraries, most recently updated first."""
        with self._lock:
            results = [ItinerarySummary.from_itinerary(i) for i in self._itineraries.values()]

        # Sort by updated_at descending
        results.sort(key=lambda x: x.updated_at, reverse=True)

        return results[:limit]

    def exists(self, itinerary_id: str) -> bool:
        """Whether an itinerary with this ID is stored."""
        with self._lock:
            return itinerary_id in self._itineraries
