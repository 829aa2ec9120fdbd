"""Models package - re-exports for convenience."""

from tripline.models.common import (
    Coordinates,
    ItineraryStatus,
    LocationEndpoint,
    SegmentSource,
    SegmentStatus,
    SegmentType,
    TransferType,
)
from tripline.models.graph import DependencyEdge, DependencyGraph, EdgeKind
from tripline.models.issues import (
    GapCandidate,
    GapKind,
    GapType,
    Issue,
    IssueKind,
    IssueSeverity,
    ValidationReport,
)
from tripline.models.itinerary import Itinerary, ItinerarySummary, Traveler
from tripline.models.results import (
    CascadeMode,
    CascadeResult,
    GapFillFailure,
    GapFillResult,
    ReorderResult,
    SkippedGap,
)
from tripline.models.segments import (
    ActivitySegment,
    BaseSegment,
    CustomSegment,
    FlightSegment,
    HotelSegment,
    Segment,
    TransferSegment,
    apply_segment_update,
    parse_segment,
)

__all__ = [
    # Common
    "Coordinates",
    "LocationEndpoint",
    "SegmentType",
    "SegmentStatus",
    "SegmentSource",
    "TransferType",
    "ItineraryStatus",
    # Segments
    "BaseSegment",
    "FlightSegment",
    "HotelSegment",
    "ActivitySegment",
    "TransferSegment",
    "CustomSegment",
    "Segment",
    "parse_segment",
    "apply_segment_update",
    # Itinerary
    "Itinerary",
    "ItinerarySummary",
    "Traveler",
    # Issues
    "Issue",
    "IssueKind",
    "IssueSeverity",
    "GapCandidate",
    "GapKind",
    "GapType",
    "ValidationReport",
    # Graph
    "DependencyEdge",
    "DependencyGraph",
    "EdgeKind",
    # Results
    "CascadeMode",
    "CascadeResult",
    "GapFillFailure",
    "GapFillResult",
    "ReorderResult",
    "SkippedGap",
]
