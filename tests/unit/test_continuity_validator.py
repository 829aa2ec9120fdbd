"""Tests for the continuity validator."""

from datetime import date, timedelta

import pytest
from factories import activity, at, custom, flight, hotel, itinerary, paris_trip, place, transfer

from tripline.models import (
    Coordinates,
    GapKind,
    GapType,
    IssueKind,
    IssueSeverity,
    LocationEndpoint,
    SegmentType,
    ValidationReport,
)
from tripline.scheduling.continuity import (
    UnsortedSegmentsError,
    is_overnight_gap,
    sort_chronologically,
    validate_continuity,
    validate_itinerary,
)
from tripline.scheduling.policy import SchedulingPolicy


def kinds(report: ValidationReport) -> list[IssueKind]:
    return [issue.kind for issue in report.issues]


def test_worked_example_has_no_issues() -> None:
    """JFK to CDG, overnight hotel in Paris, Louvre during the stay."""
    report = validate_itinerary(paris_trip())

    assert report.issues == []
    assert report.gap_candidates == []
    assert not report.has_errors


def test_empty_sequence() -> None:
    report = validate_continuity([])
    assert report.issues == []


def test_unsorted_input_is_a_caller_bug() -> None:
    segments = [
        activity("late", "Paris", at(2, 14), at(2, 15)),
        activity("early", "Paris", at(2, 9), at(2, 10)),
    ]
    with pytest.raises(UnsortedSegmentsError):
        validate_continuity(segments)


class TestOverlap:
    def test_overlapping_activities(self) -> None:
        segments = [
            activity("a", "Paris", at(2, 10), at(2, 12)),
            activity("b", "Paris", at(2, 11), at(2, 13)),
        ]
        report = validate_continuity(segments)

        assert kinds(report) == [IssueKind.overlap]
        issue = report.issues[0]
        assert issue.severity == IssueSeverity.error
        assert issue.segment_ids == ["a", "b"]
        assert issue.details["overlap_minutes"] == 60.0

    def test_touching_segments_do_not_overlap(self) -> None:
        segments = [
            activity("a", "Paris", at(2, 10), at(2, 12)),
            activity("b", "Paris", at(2, 12), at(2, 13)),
        ]
        assert validate_continuity(segments).issues == []

    def test_hotel_stay_contains_activity_in_another_city_is_overlap(self) -> None:
        segments = [
            hotel("h", "Paris", at(1, 15), at(3, 10)),
            activity("a", "Lyon", at(2, 10), at(2, 12)),
        ]
        assert IssueKind.overlap in kinds(validate_continuity(segments))

    def test_stackable_types_may_overlap(self) -> None:
        segments = [custom("c1", at(2, 10), at(2, 12)), custom("c2", at(2, 11), at(2, 13))]
        assert validate_continuity(segments).issues == []

    def test_stackable_types_come_from_policy(self) -> None:
        segments = [
            activity("a", "Paris", at(2, 10), at(2, 12)),
            activity("b", "Paris", at(2, 11), at(2, 13)),
        ]
        policy = SchedulingPolicy(stackable_types=frozenset({SegmentType.activity}))
        assert validate_continuity(segments, policy).issues == []


class TestLocationGap:
    def test_jump_between_cities(self) -> None:
        segments = [
            activity("a", "Paris", at(2, 10), at(2, 12)),
            activity("b", "Lyon", at(2, 14), at(2, 16)),
        ]
        report = validate_continuity(segments)

        assert kinds(report) == [IssueKind.location_gap]
        assert report.issues[0].details["gap_type"] == GapType.domestic.value

        [candidate] = report.gap_candidates
        assert candidate.kind == GapKind.geographic
        assert (candidate.before_id, candidate.after_id) == ("a", "b")
        assert (candidate.start, candidate.end) == (at(2, 12), at(2, 14))
        assert candidate.gap_type == GapType.domestic

    def test_transfer_between_them_is_continuous(self) -> None:
        segments = [
            activity("a", "Paris", at(2, 10), at(2, 12)),
            transfer("t", place("Paris", "Paris"), place("Lyon", "Lyon"), at(2, 12), at(2, 14)),
            activity("b", "Lyon", at(2, 14), at(2, 16)),
        ]
        assert validate_continuity(segments).issues == []

    def test_unknown_location_is_not_checked(self) -> None:
        segments = [
            activity("a", "Paris", at(2, 10), at(2, 12)),
            custom("c", at(2, 12), at(2, 13)),
        ]
        assert validate_continuity(segments).issues == []

    def test_location_carries_across_unlocated_segment(self) -> None:
        segments = [
            activity("a", "Paris", at(2, 10), at(2, 12)),
            custom("c", at(2, 12), at(2, 13)),
            activity("b", "Lyon", at(2, 13), at(2, 15)),
        ]
        report = validate_continuity(segments)

        [issue] = report.of_kind(IssueKind.location_gap)
        assert issue.segment_ids == ["a", "b"]

    def test_airport_and_hotel_of_one_city_are_continuous(self) -> None:
        dulles = LocationEndpoint(
            name="Dulles International",
            code="IAD",
            country="US",
            coordinates=Coordinates(latitude=38.9531, longitude=-77.4565),
        )
        arrival = flight("f", "JFK", "IAD", at(2, 8), at(2, 9, 30))
        downtown = LocationEndpoint(
            name="Hotel Washington",
            city="Washington",
            country="US",
            coordinates=Coordinates(latitude=38.8977, longitude=-77.0365),
        )
        stay = hotel("h", "Washington", at(2, 11), at(4, 10))
        trip = itinerary(
            arrival.model_copy(update={"destination": dulles}),
            stay.model_copy(update={"location": downtown}),
        )

        report = validate_itinerary(trip)

        assert report.of_kind(IssueKind.location_gap) == []
        assert report.gap_candidates == []


class TestOvernightGap:
    def test_is_overnight_gap(self) -> None:
        assert is_overnight_gap(at(4, 21), at(5, 12))
        assert is_overnight_gap(at(4, 23), at(5, 1))
        assert is_overnight_gap(at(4, 8), at(4, 17))
        assert not is_overnight_gap(at(4, 10), at(4, 17))
        assert not is_overnight_gap(at(4, 17), at(5, 1))

    def test_dinner_then_next_day_lunch_elsewhere_is_not_a_location_gap(self) -> None:
        segments = [
            activity("dinner", "Paris", at(4, 19), at(4, 21)),
            activity("lunch", "Versailles", at(5, 12), at(5, 13)),
        ]

        report = validate_continuity(segments)

        assert report.of_kind(IssueKind.location_gap) == []
        assert [c.kind for c in report.gap_candidates] == [GapKind.timeline]

    def test_long_same_day_break_is_not_a_location_gap(self) -> None:
        segments = [
            activity("a", "Paris", at(2, 8), at(2, 9)),
            activity("b", "Lyon", at(2, 18), at(2, 19)),
        ]
        assert kinds(validate_continuity(segments)) == [IssueKind.timeline_gap]

    def test_travel_segments_are_still_checked(self) -> None:
        segments = [
            hotel("h", "Paris", at(3, 15), at(4, 10)),
            activity("lunch", "Lyon", at(5, 12), at(5, 13)),
        ]
        assert kinds(validate_continuity(segments)) == [IssueKind.location_gap]

    def test_rule_can_be_turned_off(self) -> None:
        segments = [
            activity("dinner", "Paris", at(4, 19), at(4, 21)),
            activity("lunch", "Versailles", at(5, 12), at(5, 13)),
        ]
        policy = SchedulingPolicy(skip_overnight_location_gaps=False)

        assert kinds(validate_continuity(segments, policy)) == [IssueKind.location_gap]


class TestTimelineGap:
    def test_long_gap_is_a_warning_with_candidate(self) -> None:
        segments = [
            activity("a", "Paris", at(2, 9), at(2, 10)),
            activity("b", "Paris", at(2, 16), at(2, 17)),
        ]
        report = validate_continuity(segments)

        assert kinds(report) == [IssueKind.timeline_gap]
        assert report.issues[0].severity == IssueSeverity.warning
        assert report.issues[0].details["gap_hours"] == 6.0
        [candidate] = report.gap_candidates
        assert candidate.kind == GapKind.timeline
        assert candidate.duration == timedelta(hours=6)

    def test_gap_at_threshold_is_fine(self) -> None:
        segments = [
            activity("a", "Paris", at(2, 9), at(2, 10)),
            activity("b", "Paris", at(2, 14), at(2, 15)),
        ]
        assert validate_continuity(segments).issues == []

    def test_threshold_comes_from_policy(self) -> None:
        segments = [
            activity("a", "Paris", at(2, 9), at(2, 10)),
            activity("b", "Paris", at(2, 12), at(2, 13)),
        ]
        policy = SchedulingPolicy(timeline_gap_threshold=timedelta(hours=1))
        assert kinds(validate_continuity(segments, policy)) == [IssueKind.timeline_gap]

    def test_hotel_stay_covers_the_night(self) -> None:
        segments = sort_chronologically(
            [
                hotel("h", "Paris", at(1, 20), at(3, 10)),
                activity("a", "Paris", at(1, 21), at(1, 22)),
                activity("b", "Paris", at(2, 15), at(2, 16)),
            ]
        )
        assert validate_continuity(segments).issues == []


class TestInferredSegments:
    def test_inferred_segment_at_the_edge_is_flagged(self) -> None:
        segments = [
            activity("a", "Paris", at(2, 9), at(2, 10)),
            transfer(
                "t", place("Paris", "Paris"), place("Lyon", "Lyon"), at(2, 10), at(2, 12), True
            ),
        ]
        report = validate_continuity(segments)

        [issue] = report.of_kind(IssueKind.unjustified_inferred)
        assert issue.severity == IssueSeverity.warning
        assert issue.segment_ids == ["t"]

    def test_inferred_transfer_that_no_longer_connects(self) -> None:
        segments = [
            activity("a", "Paris", at(2, 9), at(2, 10)),
            transfer(
                "t", place("Paris", "Paris"), place("Lyon", "Lyon"), at(2, 10), at(2, 12), True
            ),
            activity("b", "Nice", at(2, 13), at(2, 14)),
        ]
        report = validate_continuity(segments)

        assert [i.segment_ids for i in report.of_kind(IssueKind.unjustified_inferred)] == [["t"]]

    def test_justified_inferred_transfer_is_quiet(self) -> None:
        segments = [
            activity("a", "Paris", at(2, 9), at(2, 10)),
            transfer(
                "t", place("Paris", "Paris"), place("Lyon", "Lyon"), at(2, 10), at(2, 12), True
            ),
            activity("b", "Lyon", at(2, 13), at(2, 14)),
        ]
        assert validate_continuity(segments).issues == []


def test_validate_itinerary_sorts_a_copy() -> None:
    late = activity("late", "Paris", at(2, 14), at(2, 15))
    early = activity("early", "Paris", at(2, 12), at(2, 13))
    trip = itinerary(late, early)

    report = validate_itinerary(trip)

    assert report.issues == []
    assert [s.id for s in trip.segments] == ["late", "early"]


def test_segments_outside_itinerary_dates() -> None:
    trip = itinerary(activity("a", "Paris", at(1, 10), at(1, 11))).model_copy(
        update={"start_date": date(2025, 6, 2), "end_date": date(2025, 6, 5)}
    )
    report = validate_itinerary(trip)

    [issue] = report.issues
    assert issue.kind == IssueKind.outside_date_range
    assert issue.severity == IssueSeverity.warning
