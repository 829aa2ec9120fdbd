"""Continuity issues and gap candidates found during validation."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from tripline.models.common import LocationEndpoint

# JSON-serializable value types for issue details
JsonValue = str | int | float | bool | None | dict[str, Any] | list[Any]


class IssueSeverity(str, Enum):
    """Errors block validate-before-commit flows; warnings are advisory."""

    error = "error"
    warning = "warning"


class IssueKind(str, Enum):
    """Categories of continuity findings."""

    overlap = "overlap"
    location_gap = "location_gap"
    timeline_gap = "timeline_gap"
    out_of_order = "out_of_order"
    unjustified_inferred = "unjustified_inferred"
    outside_date_range = "outside_date_range"


class Issue(BaseModel):
    """A single continuity finding."""

    severity: IssueSeverity
    kind: IssueKind
    segment_ids: list[str]
    message: str  # Human-readable description (1 sentence)
    details: dict[str, JsonValue] = Field(default_factory=dict)

    def as_warning(self) -> "Issue":
        """Same finding downgraded to advisory severity."""
        return self.model_copy(update={"severity": IssueSeverity.warning})

    def key(self) -> tuple[IssueKind, tuple[str, ...]]:
        """Identity used to compare findings across validation runs."""
        return self.kind, tuple(self.segment_ids)


class GapKind(str, Enum):
    """What a gap candidate is missing."""

    timeline = "timeline"
    geographic = "geographic"


class GapType(str, Enum):
    """Geographic classification of a gap."""

    local = "local"
    domestic = "domestic"
    international = "international"
    unknown = "unknown"


class GapCandidate(BaseModel):
    """A stretch between two consecutive segments that the gap filler may fill."""

    kind: GapKind
    before_id: str
    after_id: str
    start: datetime
    end: datetime
    from_location: LocationEndpoint | None
    to_location: LocationEndpoint | None
    gap_type: GapType | None = None
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    description: str

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


class ValidationReport(BaseModel):
    """Result of a continuity validation run."""

    issues: list[Issue] = Field(default_factory=list)
    gap_candidates: list[GapCandidate] = Field(default_factory=list)

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == IssueSeverity.error]

    @property
    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == IssueSeverity.warning]

    @property
    def has_errors(self) -> bool:
        return any(i.severity == IssueSeverity.error for i in self.issues)

    def of_kind(self, kind: IssueKind) -> list[Issue]:
        return [i for i in self.issues if i.kind == kind]

    def involving(self, segment_id: str) -> list[Issue]:
        """Issues that reference ``segment_id``."""
        return [i for i in self.issues if segment_id in i.segment_ids]
