"""Cascade rescheduler - moves a segment and propagates the shift to its dependents."""

import logging
from datetime import datetime, timedelta

from tripline.errors import CascadeConflictError, NotFoundError, ValidationFailure
from tripline.models.common import ensure_aware
from tripline.models.graph import STRONG_EDGE_KINDS
from tripline.models.itinerary import Itinerary
from tripline.models.results import CascadeMode, CascadeResult
from tripline.models.segments import BaseSegment
from tripline.scheduling.continuity import (
    segments_collide,
    sort_chronologically,
    validate_continuity,
)
from tripline.scheduling.graph import build_graph
from tripline.scheduling.policy import DEFAULT_POLICY, SchedulingPolicy

logger = logging.getLogger(__name__)


def move_segment_with_cascade(
    itinerary: Itinerary,
    segment_id: str,
    new_start: datetime,
    mode: CascadeMode = CascadeMode.auto,
    policy: SchedulingPolicy = DEFAULT_POLICY,
    duration: timedelta | None = None,
) -> CascadeResult:
    """Move one segment to ``new_start`` and shift the segments that depend on it.

    The full shifted collection is computed and checked before anything is
    returned; the input itinerary is never mutated, so a failure leaves the
    caller holding exactly what it passed in.

    Args:
        itinerary: Itinerary containing the segment
        segment_id: Segment to move
        new_start: New start instant (naive values are UTC)
        mode: ``auto`` shifts everything reachable over any edge;
            ``dependencies-only`` follows location and explicit edges only
        policy: Overlap rules and thresholds
        duration: Optional new duration for the moved segment; dependents then
            shift by the change of its end so their gap to it is preserved

    Returns:
        CascadeResult with the re-sorted itinerary, the shifted ids, the
        post-move validation report and the issues the move introduced

    Raises:
        NotFoundError: If ``segment_id`` is not in the itinerary
        ValidationFailure: If ``duration`` is negative
        CascadeConflictError: If a shifted segment would collide with an
            unshifted segment that comes before the moved one
    """
    target = itinerary.find_segment(segment_id)
    if target is None:
        raise NotFoundError(f"Segment {segment_id} not found", {"segment_id": segment_id})
    if duration is not None and duration < timedelta(0):
        raise ValidationFailure("duration must not be negative", {"segment_id": segment_id})

    new_start = ensure_aware(new_start)
    new_end = new_start + (duration if duration is not None else target.duration)
    dependent_delta = new_end - target.end

    graph = build_graph(itinerary.segments, policy)
    kinds = None if mode == CascadeMode.auto else STRONG_EDGE_KINDS
    dependents = graph.descendants(segment_id, kinds)

    originals = {s.id: s for s in itinerary.segments}
    moved: dict[str, BaseSegment] = {segment_id: target.rescheduled(new_start, new_end)}
    for dependent_id in dependents:
        moved[dependent_id] = originals[dependent_id].shifted(dependent_delta)

    target_index = graph.index_of(segment_id)
    upstream = [
        s
        for s in itinerary.segments
        if s.id not in moved and graph.index_of(s.id) < target_index
    ]
    conflicts = [
        (shifted.id, fixed.id)
        for shifted in moved.values()
        for fixed in upstream
        if segments_collide(shifted, fixed, policy)
        and not segments_collide(originals[shifted.id], fixed, policy)
    ]
    if conflicts:
        logger.info(
            "[move_segment_with_cascade] itinerary=%s segment=%s conflicts=%d",
            itinerary.id,
            segment_id,
            len(conflicts),
        )
        raise CascadeConflictError(
            f"Moving segment {segment_id} would overlap segments that are not shifted",
            {
                "segment_id": segment_id,
                "conflicts": [
                    {"shifted_id": shifted_id, "unshifted_id": fixed_id}
                    for shifted_id, fixed_id in conflicts
                ],
            },
        )

    before = validate_continuity(sort_chronologically(itinerary.segments), policy)
    updated = sort_chronologically([moved.get(s.id, s) for s in itinerary.segments])
    after = validate_continuity(updated, policy)

    known = {issue.key() for issue in before.issues}
    introduced = [issue.as_warning() for issue in after.issues if issue.key() not in known]

    shifted_ids = [s.id for s in updated if s.id in moved]
    logger.info(
        "[move_segment_with_cascade] itinerary=%s segment=%s mode=%s shifted=%d new_issues=%d",
        itinerary.id,
        segment_id,
        mode.value,
        len(shifted_ids),
        len(introduced),
    )
    return CascadeResult(
        itinerary=itinerary.with_segments(updated),
        mode=mode,
        moved_segment_id=segment_id,
        shifted_segment_ids=shifted_ids,
        report=after,
        warnings=introduced,
    )
