"""Results returned by the scheduling engine's mutating operations."""

from enum import Enum

from pydantic import BaseModel, Field, computed_field

from tripline.models.issues import GapCandidate, Issue, ValidationReport
from tripline.models.itinerary import Itinerary
from tripline.models.segments import Segment


class CascadeMode(str, Enum):
    """How far a segment move propagates."""

    auto = "auto"
    dependencies_only = "dependencies-only"


class GapFillFailure(BaseModel):
    """A proposal that could not be committed."""

    segment: Segment
    reason: str
    issues: list[Issue] = Field(default_factory=list)


class SkippedGap(BaseModel):
    """A gap candidate the filler deliberately left alone."""

    candidate: GapCandidate
    reason: str


class GapFillResult(BaseModel):
    """Outcome of a fill-gaps run.

    With ``auto_apply`` off, ``itinerary`` is the unchanged input and
    ``proposals`` holds the synthesized segments for the caller to insert.
    """

    itinerary: Itinerary
    auto_applied: bool
    proposals: list[Segment] = Field(default_factory=list)
    applied: list[Segment] = Field(default_factory=list)
    failed: list[GapFillFailure] = Field(default_factory=list)
    skipped: list[SkippedGap] = Field(default_factory=list)
    report: ValidationReport

    @computed_field  # type: ignore[prop-decorator]
    @property
    def succeeded(self) -> bool:
        """No aborted fill and no remaining continuity error."""
        return not self.failed and not self.report.has_errors


class CascadeResult(BaseModel):
    """Outcome of a move-with-cascade."""

    itinerary: Itinerary
    mode: CascadeMode
    moved_segment_id: str
    shifted_segment_ids: list[str]
    report: ValidationReport
    warnings: list[Issue] = Field(default_factory=list)


class ReorderResult(BaseModel):
    """Outcome of an explicit reorder."""

    itinerary: Itinerary
    warnings: list[Issue] = Field(default_factory=list)
