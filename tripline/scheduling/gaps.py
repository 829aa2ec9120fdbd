"""Gap detector and filler - synthesizes inferred segments for timeline and location gaps."""

import logging
from collections.abc import Sequence

from tripline.models.common import SegmentSource, SegmentStatus
from tripline.models.issues import GapCandidate, GapKind, IssueKind
from tripline.models.itinerary import Itinerary
from tripline.models.results import GapFillFailure, GapFillResult, SkippedGap
from tripline.models.segments import (
    ActivitySegment,
    BaseSegment,
    CustomSegment,
    TransferSegment,
)
from tripline.scheduling.continuity import sort_chronologically, validate_continuity
from tripline.scheduling.policy import DEFAULT_POLICY, SchedulingPolicy

logger = logging.getLogger(__name__)

TIMELINE_GAP_REASON = "timeline gap"
GEOGRAPHIC_GAP_REASON = "geographic gap"


def _is_occupied(candidate: GapCandidate, segments: Sequence[BaseSegment]) -> bool:
    """Whether an inferred segment already owns this gap."""
    for segment in segments:
        if not segment.inferred:
            continue
        if segment.id in (candidate.before_id, candidate.after_id):
            return True
        if candidate.start <= segment.start and segment.end <= candidate.end:
            return True
    return False


def detect_gaps(
    segments: Sequence[BaseSegment], policy: SchedulingPolicy = DEFAULT_POLICY
) -> list[GapCandidate]:
    """Gap candidates in chronologically sorted ``segments`` not yet filled by inferred segments."""
    report = validate_continuity(segments, policy)
    return [c for c in report.gap_candidates if not _is_occupied(c, segments)]


def synthesize_segment(
    candidate: GapCandidate, policy: SchedulingPolicy = DEFAULT_POLICY
) -> BaseSegment:
    """Build the inferred segment that fills ``candidate``.

    Timeline gaps get a "free time" activity spanning the whole gap. Geographic
    gaps get a transfer leaving at the start of the gap, lasting the default
    transfer duration or the gap, whichever is shorter. A gap with no room
    still gets a default-length transfer; the caller's overlap check rejects it.
    """
    common = {
        "status": SegmentStatus.tentative,
        "source": SegmentSource.agent,
        "inferred": True,
        "notes": candidate.description,
        "metadata": {"gap_kind": candidate.kind.value, "confidence": candidate.confidence},
    }

    if candidate.kind == GapKind.geographic:
        if candidate.duration.total_seconds() > 0:
            length = min(policy.default_transfer_duration, candidate.duration)
        else:
            length = policy.default_transfer_duration
        return TransferSegment(
            start=candidate.start,
            end=candidate.start + length,
            transfer_type=policy.default_transfer_type,
            pickup=candidate.from_location,
            dropoff=candidate.to_location,
            inferred_reason=GEOGRAPHIC_GAP_REASON,
            **common,
        )

    place = candidate.from_location or candidate.to_location
    if place is None:
        return CustomSegment(
            start=candidate.start,
            end=candidate.end,
            title=policy.free_time_label,
            inferred_reason=TIMELINE_GAP_REASON,
            **common,
        )
    return ActivitySegment(
        start=candidate.start,
        end=candidate.end,
        name=policy.free_time_label,
        location=place,
        category="free_time",
        inferred_reason=TIMELINE_GAP_REASON,
        **common,
    )


def fill_gaps(
    itinerary: Itinerary,
    policy: SchedulingPolicy = DEFAULT_POLICY,
    auto_apply: bool = False,
) -> GapFillResult:
    """Propose, and optionally insert, inferred segments for every open gap.

    The input itinerary is never mutated.

    Args:
        itinerary: Itinerary to inspect
        policy: Gap thresholds and transfer defaults
        auto_apply: Insert the proposals instead of only returning them

    Returns:
        GapFillResult. With auto_apply, proposals that would overlap an existing
        segment are listed in ``failed`` while the others are committed.
    """
    ordered = sort_chronologically(itinerary.segments)
    report = validate_continuity(ordered, policy)

    proposals: list[BaseSegment] = []
    skipped: list[SkippedGap] = []
    for candidate in report.gap_candidates:
        if _is_occupied(candidate, ordered):
            skipped.append(
                SkippedGap(candidate=candidate, reason="already filled by an inferred segment")
            )
            continue
        if candidate.confidence < policy.min_fill_confidence:
            skipped.append(
                SkippedGap(
                    candidate=candidate,
                    reason=f"confidence {candidate.confidence} below {policy.min_fill_confidence}",
                )
            )
            continue
        proposals.append(synthesize_segment(candidate, policy))

    if not auto_apply:
        return GapFillResult(
            itinerary=itinerary,
            auto_applied=False,
            proposals=proposals,
            skipped=skipped,
            report=report,
        )

    current = ordered
    applied: list[BaseSegment] = []
    failed: list[GapFillFailure] = []
    for proposal in proposals:
        trial = sort_chronologically([*current, proposal])
        collisions = [
            issue
            for issue in validate_continuity(trial, policy).of_kind(IssueKind.overlap)
            if proposal.id in issue.segment_ids
        ]
        if collisions:
            failed.append(
                GapFillFailure(
                    segment=proposal,
                    reason="inferred segment would overlap an existing segment",
                    issues=collisions,
                )
            )
            continue
        current = trial
        applied.append(proposal)

    final_report = validate_continuity(current, policy)
    logger.info(
        "[fill_gaps] itinerary=%s proposals=%d applied=%d failed=%d skipped=%d",
        itinerary.id,
        len(proposals),
        len(applied),
        len(failed),
        len(skipped),
    )
    return GapFillResult(
        itinerary=itinerary.with_segments(current),
        auto_applied=True,
        proposals=proposals,
        applied=applied,
        failed=failed,
        skipped=skipped,
        report=final_report,
    )
