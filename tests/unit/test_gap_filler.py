"""Tests for gap detection and filling."""

from datetime import timedelta

from factories import activity, at, custom, hotel, itinerary

from tripline.models import (
    ActivitySegment,
    CustomSegment,
    IssueKind,
    Itinerary,
    SegmentSource,
    SegmentStatus,
    TransferSegment,
    TransferType,
)
from tripline.scheduling.continuity import sort_chronologically, validate_itinerary
from tripline.scheduling.gaps import detect_gaps, fill_gaps
from tripline.scheduling.policy import SchedulingPolicy


PARIS_HOTEL = hotel("h", "Paris", at(1, 15), at(3, 10))


def paris_then_lyon(lyon_start_hour: int = 14) -> Itinerary:
    return itinerary(
        PARIS_HOTEL,
        activity("lyon", "Lyon", at(3, lyon_start_hour), at(3, lyon_start_hour + 1)),
    )


class TestProposals:
    def test_timeline_gap_gets_free_time_at_shared_location(self) -> None:
        morning = activity("a", "Paris", at(2, 9), at(2, 10))
        trip = itinerary(morning, activity("b", "Paris", at(2, 16), at(2, 17)))

        result = fill_gaps(trip)

        assert not result.auto_applied
        assert result.itinerary == trip
        assert result.applied == []
        [proposal] = result.proposals
        assert isinstance(proposal, ActivitySegment)
        assert proposal.name == "Free time"
        assert (proposal.start, proposal.end) == (at(2, 10), at(2, 16))
        assert proposal.location == morning.location
        assert proposal.inferred
        assert proposal.inferred_reason == "timeline gap"
        assert proposal.source == SegmentSource.agent
        assert proposal.status == SegmentStatus.tentative

    def test_timeline_gap_without_location_gets_custom_entry(self) -> None:
        trip = itinerary(custom("c1", at(2, 9), at(2, 10)), custom("c2", at(2, 16), at(2, 17)))

        [proposal] = fill_gaps(trip).proposals

        assert isinstance(proposal, CustomSegment)
        assert proposal.title == "Free time"

    def test_geographic_gap_gets_transfer_clamped_to_gap(self) -> None:
        trip = itinerary(
            activity("a", "Paris", at(2, 10), at(2, 12)),
            activity("b", "Lyon", at(2, 12, 30), at(2, 14)),
        )

        [proposal] = fill_gaps(trip).proposals

        assert isinstance(proposal, TransferSegment)
        assert proposal.transfer_type == TransferType.ground
        assert proposal.start == at(2, 12)
        assert proposal.duration == timedelta(minutes=30)
        assert proposal.inferred_reason == "geographic gap"

    def test_low_confidence_gap_is_skipped(self) -> None:
        trip = itinerary(
            activity("a", "Paris", at(2, 10), at(2, 12)),
            activity("b", "Lyon", at(2, 15), at(2, 16)),
        )
        policy = SchedulingPolicy(min_fill_confidence=0.9)

        result = fill_gaps(trip, policy)

        assert result.proposals == []
        [skipped] = result.skipped
        assert "confidence" in skipped.reason

    def test_no_transfer_overnight_between_activities(self) -> None:
        trip = itinerary(
            activity("dinner", "Paris", at(4, 19), at(4, 21)),
            activity("lunch", "Versailles", at(5, 12), at(5, 13)),
        )

        result = fill_gaps(trip)

        assert not any(isinstance(p, TransferSegment) for p in result.proposals)
        assert result.report.of_kind(IssueKind.location_gap) == []
        assert result.succeeded


class TestAutoApply:
    def test_inserts_transfer_and_leaves_no_errors(self) -> None:
        trip = paris_then_lyon()
        assert validate_itinerary(trip).has_errors

        result = fill_gaps(trip, auto_apply=True)

        assert result.auto_applied
        assert result.succeeded
        [inserted] = result.applied
        assert isinstance(inserted, TransferSegment)
        assert (inserted.start, inserted.end) == (at(3, 10), at(3, 11))
        assert inserted.pickup == PARIS_HOTEL.location
        assert inserted.dropoff == trip.segments[1].endpoints()[0]
        assert [s.id for s in result.itinerary.segments] == ["h", inserted.id, "lyon"]
        assert not validate_itinerary(result.itinerary).has_errors
        assert len(trip.segments) == 2

    def test_second_run_inserts_nothing(self) -> None:
        # The leftover stretch after the transfer is a timeline gap next to it
        first = fill_gaps(paris_then_lyon(lyon_start_hour=20), auto_apply=True)
        assert len(first.applied) == 1
        assert first.report.of_kind(IssueKind.timeline_gap)

        second = fill_gaps(first.itinerary, auto_apply=True)

        assert second.applied == []
        assert second.proposals == []
        assert [s.reason for s in second.skipped] == ["already filled by an inferred segment"]
        assert second.itinerary.segments == first.itinerary.segments
        assert detect_gaps(sort_chronologically(first.itinerary.segments)) == []

    def test_overlapping_proposal_is_reported_and_not_inserted(self) -> None:
        trip = itinerary(
            activity("a", "Paris", at(2, 10), at(2, 12)),
            activity("b", "Lyon", at(2, 11, 30), at(2, 13)),
        )

        result = fill_gaps(trip, auto_apply=True)

        assert result.applied == []
        [failure] = result.failed
        assert failure.issues[0].kind == IssueKind.overlap
        assert not result.succeeded
        assert [s.id for s in result.itinerary.segments] == ["a", "b"]
