"""Pure segment editing helpers used by the segment service."""

from typing import Any

from pydantic import ValidationError

from tripline.errors import NotFoundError, ValidationFailure
from tripline.models.itinerary import Itinerary
from tripline.models.segments import BaseSegment, apply_segment_update


def _require_segment(itinerary: Itinerary, segment_id: str) -> BaseSegment:
    segment = itinerary.find_segment(segment_id)
    if segment is None:
        raise NotFoundError(
            f"Segment {segment_id} not found",
            {"itinerary_id": itinerary.id, "segment_id": segment_id},
        )
    return segment


def check_within_dates(itinerary: Itinerary, segment: BaseSegment) -> None:
    """Raise ValidationFailure if ``segment`` falls outside the itinerary dates."""
    if itinerary.start_date is not None and segment.start.date() < itinerary.start_date:
        raise ValidationFailure(
            f"{segment.label()} starts before the itinerary start date",
            {"segment_id": segment.id, "start_date": str(itinerary.start_date)},
        )
    if itinerary.end_date is not None and segment.end.date() > itinerary.end_date:
        raise ValidationFailure(
            f"{segment.label()} ends after the itinerary end date",
            {"segment_id": segment.id, "end_date": str(itinerary.end_date)},
        )


def insert_segment(
    itinerary: Itinerary, segment: BaseSegment, enforce_dates: bool = False
) -> Itinerary:
    """Copy of ``itinerary`` with ``segment`` added.

    The segment goes in front of the first segment that starts after it, so
    a manual order of the existing segments is kept.

    Raises:
        ValidationFailure: On a duplicate id, or when ``enforce_dates`` is set
            and the segment is outside the itinerary dates.
    """
    if itinerary.find_segment(segment.id) is not None:
        raise ValidationFailure(
            f"Segment {segment.id} already exists", {"segment_id": segment.id}
        )
    if enforce_dates:
        check_within_dates(itinerary, segment)

    segments = list(itinerary.segments)
    position = next(
        (i for i, existing in enumerate(segments) if existing.start > segment.start),
        len(segments),
    )
    segments.insert(position, segment)
    return itinerary.with_segments(segments)


def replace_segment(
    itinerary: Itinerary,
    segment_id: str,
    changes: dict[str, Any],
    enforce_dates: bool = False,
) -> tuple[Itinerary, BaseSegment]:
    """Copy of ``itinerary`` with ``changes`` merged into one segment.

    Returns:
        (updated itinerary, updated segment)

    Raises:
        NotFoundError: If the segment does not exist
        ValidationFailure: If the merged segment is invalid or touches ``id``/``type``
    """
    current = _require_segment(itinerary, segment_id)
    try:
        updated = apply_segment_update(current, changes)
    except ValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        raise ValidationFailure(
            f"Invalid update for segment {segment_id}",
            {"segment_id": segment_id, "errors": errors},
        ) from e
    except ValueError as e:
        raise ValidationFailure(str(e), {"segment_id": segment_id}) from e

    if enforce_dates:
        check_within_dates(itinerary, updated)

    segments = [updated if s.id == segment_id else s for s in itinerary.segments]
    return itinerary.with_segments(segments), updated


def remove_segment(itinerary: Itinerary, segment_id: str) -> Itinerary:
    """Copy of ``itinerary`` without the segment; other segments stop depending on it.

    Raises:
        NotFoundError: If the segment does not exist
    """
    _require_segment(itinerary, segment_id)

    segments: list[BaseSegment] = []
    for segment in itinerary.segments:
        if segment.id == segment_id:
            continue
        if segment_id in segment.depends_on:
            segment = segment.model_copy(
                update={"depends_on": [d for d in segment.depends_on if d != segment_id]}
            )
        segments.append(segment)
    return itinerary.with_segments(segments)
