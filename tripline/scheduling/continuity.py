"""Continuity validator - temporal and geographic coherence of a segment sequence."""

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta

from tripline.models.common import LocationEndpoint, SegmentType
from tripline.models.issues import (
    GapCandidate,
    GapKind,
    GapType,
    Issue,
    IssueKind,
    IssueSeverity,
    ValidationReport,
)
from tripline.models.itinerary import Itinerary
from tripline.models.segments import BaseSegment
from tripline.scheduling.locations import are_continuous, classify_gap, describe_gap
from tripline.scheduling.policy import DEFAULT_POLICY, SchedulingPolicy

logger = logging.getLogger(__name__)

# A break this long between two stationary segments means a night back at the lodging
OVERNIGHT_GAP = timedelta(hours=8)
EVENING_HOUR = 18
MORNING_HOUR = 15


class UnsortedSegmentsError(ValueError):
    """Raised when the validator is handed a sequence not sorted by start."""


def sort_chronologically(segments: Sequence[BaseSegment]) -> list[BaseSegment]:
    """Stable sort by (start, end)."""
    return sorted(segments, key=lambda s: (s.start, s.end))


def is_chronological(segments: Sequence[BaseSegment]) -> bool:
    return all(a.start <= b.start for a, b in zip(segments, segments[1:], strict=False))


def overlap_allowed(a: BaseSegment, b: BaseSegment, policy: SchedulingPolicy) -> bool:
    """Whether ``a`` and ``b`` may overlap in time.

    Two stackable segments may always overlap. A container (hotel stay by
    default) may be overlapped by a segment that starts or ends where the
    container is, or by one with no location at all.
    """
    if a.type in policy.stackable_types and b.type in policy.stackable_types:
        return True

    for container, other in ((a, b), (b, a)):
        if container.type not in policy.container_types:
            continue
        place = container.start_location
        other_places = [loc for loc in other.endpoints() if loc is not None]
        if place is None or not other_places:
            return True
        if any(
            are_continuous(place, loc, policy.proximity_threshold_km) is not False
            for loc in other_places
        ):
            return True
    return False


def segments_collide(a: BaseSegment, b: BaseSegment, policy: SchedulingPolicy) -> bool:
    """True when the two segments overlap in time and the overlap is not allowed."""
    if not (a.start < b.end and b.start < a.end):
        return False
    return not overlap_allowed(a, b, policy)


def is_overnight_gap(end: datetime, start: datetime) -> bool:
    """Whether the break from ``end`` to ``start`` spans a night.

    True for any break longer than ``OVERNIGHT_GAP``, or for an evening end
    followed by a morning or early-afternoon start on a later day.
    """
    if start - end > OVERNIGHT_GAP:
        return True
    return start.date() > end.date() and end.hour >= EVENING_HOUR and start.hour <= MORNING_HOUR


def _slept_in_between(before: BaseSegment, after: BaseSegment, policy: SchedulingPolicy) -> bool:
    """Two stationary segments separated by a night, so no transfer joins them directly."""
    for segment in (before, after):
        if segment.is_connector or segment.type in policy.container_types:
            return False
    return is_overnight_gap(before.end, after.start)


def gap_confidence(gap_type: GapType, before: BaseSegment, after: BaseSegment) -> float:
    """How sure we are that a ground transfer is the right fill for a geographic gap."""
    if before.is_connector or after.is_connector:
        return 0.95
    if before.type == SegmentType.hotel and after.type == SegmentType.hotel:
        return 0.9
    if gap_type == GapType.local:
        return 0.85
    if gap_type == GapType.domestic:
        return 0.8
    if gap_type == GapType.international:
        return 0.6
    return 0.5


def _find_bridge(
    segments: Sequence[BaseSegment],
    before: BaseSegment,
    after: BaseSegment,
    start_place: LocationEndpoint,
    end_place: LocationEndpoint,
    policy: SchedulingPolicy,
) -> BaseSegment | None:
    """A transfer elsewhere in the sequence that connects ``start_place`` to ``end_place``."""
    for candidate in segments:
        if candidate.type != SegmentType.transfer or candidate.id in (before.id, after.id):
            continue
        if not (before.start <= candidate.start and candidate.end <= after.end):
            continue
        pickup, dropoff = candidate.endpoints()
        if pickup is None or dropoff is None:
            continue
        if (
            are_continuous(start_place, pickup, policy.proximity_threshold_km)
            and are_continuous(dropoff, end_place, policy.proximity_threshold_km)
        ):
            return candidate
    return None


def _unjustified_inferred(
    segments: Sequence[BaseSegment], policy: SchedulingPolicy
) -> list[Issue]:
    """Inferred segments whose neighbours no longer justify them."""
    issues: list[Issue] = []
    last = len(segments) - 1

    for i, segment in enumerate(segments):
        if not segment.inferred:
            continue

        reason: str | None = None
        if i == 0 or i == last:
            reason = "no longer bounded by segments on both sides"
        else:
            prev_place = segments[i - 1].end_location
            next_place = segments[i + 1].start_location
            start_place, end_place = segment.endpoints()
            if (
                prev_place is not None
                and start_place is not None
                and are_continuous(prev_place, start_place, policy.proximity_threshold_km) is False
            ):
                reason = f"starts away from where {segments[i - 1].label()} ends"
            elif (
                next_place is not None
                and end_place is not None
                and are_continuous(end_place, next_place, policy.proximity_threshold_km) is False
            ):
                reason = f"ends away from where {segments[i + 1].label()} starts"

        if reason:
            issues.append(
                Issue(
                    severity=IssueSeverity.warning,
                    kind=IssueKind.unjustified_inferred,
                    segment_ids=[segment.id],
                    message=f"Inferred {segment.label()} {reason}; review or remove it.",
                    details={"inferred_reason": segment.inferred_reason},
                )
            )
    return issues


def validate_continuity(
    segments: Sequence[BaseSegment], policy: SchedulingPolicy = DEFAULT_POLICY
) -> ValidationReport:
    """Check each consecutive pair for overlap, location jumps and long gaps.

    Args:
        segments: Segments sorted by start time
        policy: Thresholds and overlap rules

    Returns:
        Report with issues and the gap candidates the gap filler can act on

    Raises:
        UnsortedSegmentsError: If ``segments`` is not sorted by start time
    """
    if not is_chronological(segments):
        raise UnsortedSegmentsError("segments must be sorted by start time")

    issues: list[Issue] = []
    candidates: list[GapCandidate] = []
    if not segments:
        return ValidationReport()

    # Latest end seen so far; a hotel stay keeps the timeline covered overnight
    covered_until: datetime = segments[0].end
    # Last known position of the traveler and the segment that put them there
    last_place = segments[0].end_location
    last_placed = segments[0]

    for a, b in zip(segments, segments[1:], strict=False):
        if b.start < a.end and not overlap_allowed(a, b, policy):
            issues.append(
                Issue(
                    severity=IssueSeverity.error,
                    kind=IssueKind.overlap,
                    segment_ids=[a.id, b.id],
                    message=f"{b.label()} starts before {a.label()} ends.",
                    details={
                        "overlap_minutes": round((a.end - b.start).total_seconds() / 60, 1),
                    },
                )
            )

        next_place = b.start_location
        continuous: bool | None = None
        if last_place is not None and next_place is not None:
            continuous = are_continuous(last_place, next_place, policy.proximity_threshold_km)
        if (
            continuous is False
            and policy.skip_overnight_location_gaps
            and _slept_in_between(last_placed, b, policy)
        ):
            continuous = None

        if continuous is False and last_place is not None and next_place is not None:
            bridge = _find_bridge(segments, last_placed, b, last_place, next_place, policy)
            if bridge is None:
                gap_type = classify_gap(last_place, next_place)
                description = describe_gap(last_place, next_place, gap_type)
                issues.append(
                    Issue(
                        severity=IssueSeverity.error,
                        kind=IssueKind.location_gap,
                        segment_ids=[last_placed.id, b.id],
                        message=f"{description}.",
                        details={"gap_type": gap_type.value},
                    )
                )
                candidates.append(
                    GapCandidate(
                        kind=GapKind.geographic,
                        before_id=last_placed.id,
                        after_id=b.id,
                        start=covered_until,
                        end=max(covered_until, b.start),
                        from_location=last_place,
                        to_location=next_place,
                        gap_type=gap_type,
                        confidence=gap_confidence(gap_type, last_placed, b),
                        description=description,
                    )
                )
        elif b.start - covered_until > policy.timeline_gap_threshold:
            hours = round((b.start - covered_until).total_seconds() / 3600, 1)
            issues.append(
                Issue(
                    severity=IssueSeverity.warning,
                    kind=IssueKind.timeline_gap,
                    segment_ids=[a.id, b.id],
                    message=f"{hours}h without plans between {a.label()} and {b.label()}.",
                    details={"gap_hours": hours},
                )
            )
            candidates.append(
                GapCandidate(
                    kind=GapKind.timeline,
                    before_id=a.id,
                    after_id=b.id,
                    start=covered_until,
                    end=b.start,
                    from_location=last_place,
                    to_location=next_place,
                    description=f"Timeline gap of {hours}h",
                )
            )

        covered_until = max(covered_until, b.end)
        if b.end_location is not None:
            last_place = b.end_location
            last_placed = b

    issues.extend(_unjustified_inferred(segments, policy))

    logger.debug(
        "[validate_continuity] segments=%d issues=%d candidates=%d",
        len(segments),
        len(issues),
        len(candidates),
    )
    return ValidationReport(issues=issues, gap_candidates=candidates)


def validate_itinerary(
    itinerary: Itinerary, policy: SchedulingPolicy = DEFAULT_POLICY
) -> ValidationReport:
    """Validate an itinerary's segments in chronological order.

    Also warns about segments falling outside the itinerary's date range.
    The itinerary itself is not modified.
    """
    report = validate_continuity(sort_chronologically(itinerary.segments), policy)

    for segment in itinerary.segments:
        before = itinerary.start_date is not None and segment.start.date() < itinerary.start_date
        after = itinerary.end_date is not None and segment.end.date() > itinerary.end_date
        if before or after:
            report.issues.append(
                Issue(
                    severity=IssueSeverity.warning,
                    kind=IssueKind.outside_date_range,
                    segment_ids=[segment.id],
                    message=f"{segment.label()} falls outside the itinerary dates.",
                    details={
                        "start_date": str(itinerary.start_date),
                        "end_date": str(itinerary.end_date),
                    },
                )
            )
    return report
