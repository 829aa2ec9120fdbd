"""Itinerary aggregate - the unit loaded, mutated and saved as a whole."""

import uuid
from collections.abc import Sequence
from datetime import date, datetime

from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator

from tripline.models.common import ItineraryStatus, ensure_aware, utcnow
from tripline.models.segments import BaseSegment, Segment


def check_unique_ids(segments: Sequence[BaseSegment]) -> None:
    """Segment ids key the dependency graph and every edit, so they must be unique.

    Raises:
        ValueError: Naming every repeated id
    """
    seen: set[str] = set()
    duplicates: set[str] = set()
    for segment in segments:
        if segment.id in seen:
            duplicates.add(segment.id)
        seen.add(segment.id)
    if duplicates:
        raise ValueError(f"duplicate segment ids: {', '.join(sorted(duplicates))}")


class Traveler(BaseModel):
    """Traveler on an itinerary."""

    id: str = Field(default_factory=lambda: f"trv_{uuid.uuid4().hex[:12]}")
    name: str = Field(..., min_length=1)


class Itinerary(BaseModel):
    """Root aggregate owning the segment collection.

    ``version`` is compared by the store on save (optimistic concurrency);
    the scheduling engine never changes it.
    """

    id: str = Field(default_factory=lambda: f"itn_{uuid.uuid4().hex[:12]}")
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    travelers: list[Traveler] = Field(default_factory=list)
    segments: list[Segment] = Field(default_factory=list)
    status: ItineraryStatus = ItineraryStatus.draft
    version: int = Field(default=1, ge=1)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("end_date")
    @classmethod
    def validate_end_after_start(cls, v: date | None, info: ValidationInfo) -> date | None:
        """Ensure end_date >= start_date."""
        start = info.data.get("start_date")
        if v is not None and start is not None and v < start:
            raise ValueError("end_date must be >= start_date")
        return v

    @field_validator("created_at", "updated_at")
    @classmethod
    def make_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @model_validator(mode="after")
    def validate_unique_segment_ids(self) -> "Itinerary":
        check_unique_ids(self.segments)
        return self

    @property
    def traveler_count(self) -> int:
        return len(self.travelers)

    def find_segment(self, segment_id: str) -> BaseSegment | None:
        """Return the segment with ``segment_id`` or None."""
        for segment in self.segments:
            if segment.id == segment_id:
                return segment
        return None

    def with_segments(self, segments: list[BaseSegment]) -> "Itinerary":
        """Copy of this itinerary holding ``segments`` instead of its own."""
        return self.model_copy(update={"segments": list(segments)})


class ItinerarySummary(BaseModel):
    """Summary of an itinerary for listing."""

    id: str
    title: str
    status: ItineraryStatus
    start_date: date | None
    end_date: date | None
    traveler_count: int
    segment_count: int
    version: int
    updated_at: datetime

    @classmethod
    def from_itinerary(cls, itinerary: Itinerary) -> "ItinerarySummary":
        return cls(
            id=itinerary.id,
            title=itinerary.title,
            status=itinerary.status,
            start_date=itinerary.start_date,
            end_date=itinerary.end_date,
            traveler_count=itinerary.traveler_count,
            segment_count=len(itinerary.segments),
            version=itinerary.version,
            updated_at=itinerary.updated_at,
        )
