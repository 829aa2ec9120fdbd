"""Segment models - discriminated union over the segment variants.

Every variant exposes the same temporal and spatial view (``start``, ``end``,
``start_location``, ``end_location``) so scheduling code never has to switch
on the ``type`` tag.
"""

import uuid
from datetime import datetime, timedelta
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator

from tripline.models.common import (
    LocationEndpoint,
    SegmentSource,
    SegmentStatus,
    SegmentType,
    TransferType,
    ensure_aware,
)


def new_segment_id() -> str:
    """Generate a segment identifier."""
    return f"seg_{uuid.uuid4().hex[:12]}"


class BaseSegment(BaseModel):
    """Fields shared by all segment variants."""

    type: SegmentType
    id: str = Field(default_factory=new_segment_id, min_length=1)
    start: datetime
    end: datetime
    status: SegmentStatus = SegmentStatus.tentative
    source: SegmentSource = SegmentSource.manual
    inferred: bool = False
    inferred_reason: str | None = None
    notes: str | None = None
    traveler_ids: list[str] = Field(default_factory=list)
    depends_on: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("start", "end")
    @classmethod
    def make_aware(cls, v: datetime) -> datetime:
        """Treat naive instants as UTC."""
        return ensure_aware(v)

    @model_validator(mode="after")
    def validate_end_after_start(self) -> "BaseSegment":
        """Ensure end >= start."""
        if self.end < self.start:
            raise ValueError("end must be >= start")
        return self

    @property
    def start_location(self) -> LocationEndpoint | None:
        """Where the traveler is when the segment begins."""
        return None

    @property
    def end_location(self) -> LocationEndpoint | None:
        """Where the traveler is when the segment ends."""
        return self.start_location

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def is_connector(self) -> bool:
        """True for segments that move the traveler between places."""
        return False

    def endpoints(self) -> tuple[LocationEndpoint | None, LocationEndpoint | None]:
        """Return (from, to) locations."""
        return self.start_location, self.end_location

    def shifted(self, delta: timedelta) -> "BaseSegment":
        """Copy of this segment moved by ``delta``, duration preserved."""
        return self.model_copy(update={"start": self.start + delta, "end": self.end + delta})

    def rescheduled(self, start: datetime, end: datetime) -> "BaseSegment":
        """Copy of this segment with new start and end."""
        return self.model_copy(update={"start": start, "end": end})

    def label(self) -> str:
        """Short description used in issue messages."""
        return self.id


class FlightSegment(BaseSegment):
    """Flight from an origin to a destination airport."""

    type: Literal[SegmentType.flight] = SegmentType.flight
    airline: str = Field(..., min_length=1)
    flight_number: str = Field(..., pattern=r"^[A-Z0-9]{2,3}\d{1,4}$")
    origin: LocationEndpoint
    destination: LocationEndpoint
    cabin_class: str | None = None

    @property
    def start_location(self) -> LocationEndpoint | None:
        return self.origin

    @property
    def end_location(self) -> LocationEndpoint | None:
        return self.destination

    @property
    def is_connector(self) -> bool:
        return True

    def label(self) -> str:
        return f"flight {self.flight_number}"


class HotelSegment(BaseSegment):
    """Lodging stay."""

    type: Literal[SegmentType.hotel] = SegmentType.hotel
    property_name: str = Field(..., min_length=1)
    location: LocationEndpoint
    room_type: str | None = None

    @property
    def start_location(self) -> LocationEndpoint | None:
        return self.location

    def label(self) -> str:
        return f"hotel {self.property_name}"


class ActivitySegment(BaseSegment):
    """Activity at a single location."""

    type: Literal[SegmentType.activity] = SegmentType.activity
    name: str = Field(..., min_length=1)
    location: LocationEndpoint
    category: str | None = None
    description: str | None = None

    @property
    def start_location(self) -> LocationEndpoint | None:
        return self.location

    def label(self) -> str:
        return f"activity {self.name}"


class TransferSegment(BaseSegment):
    """Ground transfer from a pickup to a dropoff location."""

    type: Literal[SegmentType.transfer] = SegmentType.transfer
    transfer_type: TransferType = TransferType.ground
    pickup: LocationEndpoint
    dropoff: LocationEndpoint

    @property
    def start_location(self) -> LocationEndpoint | None:
        return self.pickup

    @property
    def end_location(self) -> LocationEndpoint | None:
        return self.dropoff

    @property
    def is_connector(self) -> bool:
        return True

    def label(self) -> str:
        return f"{self.transfer_type.value} transfer {self.pickup.name} -> {self.dropoff.name}"


class CustomSegment(BaseSegment):
    """Free-form entry, optionally located."""

    type: Literal[SegmentType.custom] = SegmentType.custom
    title: str = Field(..., min_length=1)
    location: LocationEndpoint | None = None
    description: str | None = None

    @property
    def start_location(self) -> LocationEndpoint | None:
        return self.location

    def label(self) -> str:
        return f"custom {self.title}"


Segment = Annotated[
    FlightSegment | HotelSegment | ActivitySegment | TransferSegment | CustomSegment,
    Field(discriminator="type"),
]

SEGMENT_VARIANTS: dict[SegmentType, type[BaseSegment]] = {
    SegmentType.flight: FlightSegment,
    SegmentType.hotel: HotelSegment,
    SegmentType.activity: ActivitySegment,
    SegmentType.transfer: TransferSegment,
    SegmentType.custom: CustomSegment,
}

_segment_adapter: TypeAdapter[Segment] = TypeAdapter(Segment)

# Fields a partial update may never change
IMMUTABLE_SEGMENT_FIELDS = frozenset({"id", "type"})


def parse_segment(data: dict[str, Any]) -> BaseSegment:
    """Validate a raw payload into the matching segment variant.

    Raises:
        pydantic.ValidationError: If the payload is malformed or the type tag unknown.
    """
    return _segment_adapter.validate_python(data)


def apply_segment_update(segment: BaseSegment, changes: dict[str, Any]) -> BaseSegment:
    """Merge ``changes`` into ``segment`` and re-validate the result.

    Raises:
        ValueError: If ``changes`` touches an immutable field.
        pydantic.ValidationError: If the merged payload is invalid.
    """
    forbidden = IMMUTABLE_SEGMENT_FIELDS & changes.keys()
    if forbidden:
        raise ValueError(f"cannot change segment fields: {', '.join(sorted(forbidden))}")

    merged = segment.model_dump(mode="python")
    merged.update(changes)
    return parse_segment(merged)
