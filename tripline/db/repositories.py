"""Store protocol for itinerary persistence."""

from typing import Protocol

from tripline.models.itinerary import Itinerary, ItinerarySummary


class ItineraryStore(Protocol):
    """Persistence collaborator for whole itinerary aggregates.

    Every implementation enforces optimistic concurrency on ``save``: the
    incoming ``version`` must equal the stored one.
    """

    def create(self, itinerary: Itinerary) -> Itinerary:
        """Store a new itinerary.

        Args:
            itinerary: Itinerary to store; its version is reset to 1

        Returns:
            The stored itinerary

        Raises:
            ConflictError: If an itinerary with the same id exists
            StorageWriteError: If the write fails
        """
        ...

    def load(self, itinerary_id: str) -> Itinerary:
        """Load an itinerary by ID.

        Raises:
            NotFoundError: If the itinerary does not exist
            StorageReadError: If the read fails
        """
        ...

    def save(self, itinerary: Itinerary) -> Itinerary:
        """Atomically replace the stored itinerary.

        Args:
            itinerary: Itinerary carrying the version it was loaded with

        Returns:
            The stored itinerary with version incremented and updated_at set

        Raises:
            NotFoundError: If the itinerary does not exist
            StaleVersionError: If the stored version differs from ``itinerary.version``
            StorageWriteError: If the write fails
        """
        ...

    def delete(self, itinerary_id: str) -> None:
        """Delete an itinerary.

        Raises:
            NotFoundError: If the itinerary does not exist
        """
        ...

    def list_summaries(self, limit: int = 100) -> list[ItinerarySummary]:
        """List itineraries, most recently updated first."""
        ...

    def exists(self, itinerary_id: str) -> bool:
        """Whether an itinerary with this ID is stored."""
        ...
