"""Reorder engine - applies an explicit segment order without touching times."""

import logging
from collections import Counter
from collections.abc import Sequence

from tripline.errors import ValidationFailure
from tripline.models.issues import Issue, IssueKind, IssueSeverity
from tripline.models.itinerary import Itinerary
from tripline.models.results import ReorderResult
from tripline.scheduling.continuity import sort_chronologically, validate_continuity
from tripline.scheduling.policy import DEFAULT_POLICY, SchedulingPolicy

logger = logging.getLogger(__name__)


def check_permutation(existing_ids: Sequence[str], segment_ids: Sequence[str]) -> None:
    """Raise ValidationFailure unless ``segment_ids`` is a permutation of ``existing_ids``."""
    known = set(existing_ids)
    counts = Counter(segment_ids)
    missing = sorted(known - counts.keys())
    unknown = sorted(counts.keys() - known)
    duplicates = sorted(sid for sid, n in counts.items() if n > 1)

    if missing or unknown or duplicates:
        raise ValidationFailure(
            "segment_ids must list every segment of the itinerary exactly once",
            {"missing": missing, "unknown": unknown, "duplicates": duplicates},
        )


def reorder_segments(
    itinerary: Itinerary,
    segment_ids: Sequence[str],
    policy: SchedulingPolicy = DEFAULT_POLICY,
) -> ReorderResult:
    """Put the segments in the order given by ``segment_ids``.

    Start and end times are left alone. Pairs whose new order contradicts
    their times are reported, as is every continuity finding on the
    chronological view; all of them as warnings.

    Raises:
        ValidationFailure: If ``segment_ids`` is not a permutation of the
            itinerary's segment ids.
    """
    check_permutation([s.id for s in itinerary.segments], segment_ids)

    by_id = {s.id: s for s in itinerary.segments}
    reordered = [by_id[sid] for sid in segment_ids]

    warnings: list[Issue] = []
    for previous, current in zip(reordered, reordered[1:], strict=False):
        if current.start < previous.start:
            warnings.append(
                Issue(
                    severity=IssueSeverity.warning,
                    kind=IssueKind.out_of_order,
                    segment_ids=[previous.id, current.id],
                    message=f"{current.label()} is placed after {previous.label()} "
                    "but starts earlier.",
                )
            )

    report = validate_continuity(sort_chronologically(reordered), policy)
    warnings.extend(issue.as_warning() for issue in report.issues)

    logger.info(
        "[reorder_segments] itinerary=%s segments=%d warnings=%d",
        itinerary.id,
        len(reordered),
        len(warnings),
    )
    return ReorderResult(itinerary=itinerary.with_segments(reordered), warnings=warnings)
