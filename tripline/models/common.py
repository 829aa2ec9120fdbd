"""Common types and enums shared across all models."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class SegmentType(str, Enum):
    """Segment variant discriminator."""

    flight = "flight"
    hotel = "hotel"
    activity = "activity"
    transfer = "transfer"
    custom = "custom"


class SegmentStatus(str, Enum):
    """Booking status of a segment."""

    tentative = "tentative"
    confirmed = "confirmed"
    waitlisted = "waitlisted"
    cancelled = "cancelled"
    completed = "completed"


class SegmentSource(str, Enum):
    """Where a segment came from."""

    import_ = "import"
    agent = "agent"
    manual = "manual"


class TransferType(str, Enum):
    """Ground transfer mode."""

    taxi = "taxi"
    shuttle = "shuttle"
    private = "private"
    public = "public"
    ride_share = "ride_share"
    rental_car = "rental_car"
    rail = "rail"
    ferry = "ferry"
    walking = "walking"
    ground = "ground"
    other = "other"


class ItineraryStatus(str, Enum):
    """Itinerary lifecycle status."""

    draft = "draft"
    planned = "planned"
    confirmed = "confirmed"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class Coordinates(BaseModel):
    """Geographic coordinates (WGS84)."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocationEndpoint(BaseModel):
    """A place a segment starts or ends at.

    Only ``name`` is required. ``code`` is an IATA-like airport or city code,
    ``country`` an ISO 3166-1 alpha-2 code. Both are upper-cased on input.
    """

    name: str = Field(..., min_length=1)
    code: str | None = Field(default=None, min_length=3, max_length=3)
    coordinates: Coordinates | None = None
    city: str | None = None
    country: str | None = Field(default=None, min_length=2, max_length=2)
    street: str | None = None

    @field_validator("code", "country")
    @classmethod
    def upper_case_codes(cls, v: str | None) -> str | None:
        """Normalize codes to upper case."""
        return v.upper() if v else v

    def display_name(self) -> str:
        """Human-readable label, with code or city when known."""
        if self.code:
            return f"{self.name} ({self.code})"
        if self.city and self.city.lower() not in self.name.lower():
            return f"{self.name}, {self.city}"
        return self.name


def ensure_aware(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)
