"""Scheduling policy - every threshold the engine reads, in one immutable object."""

from dataclasses import dataclass, field
from datetime import timedelta

from tripline.config import Settings
from tripline.models.common import SegmentType, TransferType


@dataclass(frozen=True)
class SchedulingPolicy:
    """Thresholds and heuristics for validation, gap filling and cascades.

    Engine functions take a policy argument instead of reading settings so
    they stay pure; ``from_settings`` builds one from configuration.
    """

    timeline_gap_threshold: timedelta = timedelta(hours=4)
    proximity_threshold_km: float = 30.0
    stackable_types: frozenset[SegmentType] = field(
        default_factory=lambda: frozenset({SegmentType.custom})
    )
    container_types: frozenset[SegmentType] = field(
        default_factory=lambda: frozenset({SegmentType.hotel})
    )
    default_transfer_type: TransferType = TransferType.ground
    default_transfer_duration: timedelta = timedelta(minutes=60)
    min_fill_confidence: float = 0.0
    free_time_label: str = "Free time"
    skip_overnight_location_gaps: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "SchedulingPolicy":
        """Build a policy from application settings.

        Raises:
            ValueError: If a configured type name is not a known enum value.
        """
        return cls(
            timeline_gap_threshold=timedelta(minutes=settings.timeline_gap_threshold_minutes),
            proximity_threshold_km=settings.proximity_threshold_km,
            stackable_types=frozenset(SegmentType(t) for t in settings.stackable_types),
            container_types=frozenset(SegmentType(t) for t in settings.container_types),
            default_transfer_type=TransferType(settings.default_transfer_type),
            default_transfer_duration=timedelta(minutes=settings.default_transfer_minutes),
            min_fill_confidence=settings.min_fill_confidence,
            free_time_label=settings.free_time_label,
            skip_overnight_location_gaps=settings.skip_overnight_location_gaps,
        )


DEFAULT_POLICY = SchedulingPolicy()
