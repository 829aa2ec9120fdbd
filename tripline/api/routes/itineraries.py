"""Itinerary and segment endpoints.

Handlers are plain ``def`` so FastAPI runs them in its threadpool; the
service blocks on per-itinerary locks and store I/O.
"""

from datetime import date, datetime, timedelta
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Query, Response, status
from pydantic import BaseModel, Field, field_validator

from tripline.api.deps import get_segment_service
from tripline.models.common import ItineraryStatus
from tripline.models.graph import EdgeKind
from tripline.models.issues import Issue, ValidationReport
from tripline.models.itinerary import Itinerary, ItinerarySummary, Traveler, check_unique_ids
from tripline.models.results import CascadeMode, CascadeResult, GapFillResult
from tripline.models.segments import Segment
from tripline.services.segments import SegmentService, SegmentWriteResult

router = APIRouter(prefix="/itineraries", tags=["itineraries"])

ServiceDep = Annotated[SegmentService, Depends(get_segment_service)]


class CreateItineraryRequest(BaseModel):
    """Request body for POST /itineraries."""

    id: str | None = Field(None, min_length=1, description="Client-chosen id; generated if absent")
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    travelers: list[Traveler] = Field(default_factory=list)
    segments: list[Segment] = Field(default_factory=list)
    status: ItineraryStatus = ItineraryStatus.draft

    @field_validator("segments")
    @classmethod
    def validate_unique_ids(cls, v: list[Segment]) -> list[Segment]:
        check_unique_ids(v)
        return v


class SegmentResponse(BaseModel):
    """Response for segment writes."""

    segment: Segment | None
    version: int
    report: ValidationReport

    @classmethod
    def from_result(cls, result: SegmentWriteResult) -> "SegmentResponse":
        return cls(segment=result.segment, version=result.itinerary.version, report=result.report)


class ReorderRequest(BaseModel):
    """Request body for POST /itineraries/{id}/segments/reorder."""

    segment_ids: list[str]


class ReorderResponse(BaseModel):
    """Response for reorder: the segments in their new order."""

    segments: list[Segment]
    version: int
    warnings: list[Issue]


class MoveRequest(BaseModel):
    """Request body for POST /itineraries/{id}/segments/{sid}/move."""

    new_start_datetime: datetime
    cascade_mode: CascadeMode = CascadeMode.auto
    duration_minutes: int | None = Field(
        None, ge=0, description="New duration of the moved segment"
    )


class FillGapsRequest(BaseModel):
    """Request body for POST /itineraries/{id}/fill-gaps."""

    auto_apply: bool = False


class EdgeResponse(BaseModel):
    upstream_id: str
    downstream_id: str
    kind: EdgeKind


class DependencyGraphResponse(BaseModel):
    """Response for GET /itineraries/{id}/dependencies."""

    order: list[str]
    edges: list[EdgeResponse]
    ignored_references: list[tuple[str, str]]


# Itineraries


@router.post("", response_model=Itinerary, status_code=status.HTTP_201_CREATED)
def create_itinerary(request: CreateItineraryRequest, service: ServiceDep) -> Itinerary:
    """Create an itinerary, optionally with initial segments."""
    fields = request.model_dump(exclude={"id", "segments", "travelers"}, exclude_none=True)
    if request.id is not None:
        fields["id"] = request.id
    itinerary = Itinerary(**fields, travelers=request.travelers, segments=request.segments)
    return service.create_itinerary(itinerary)


@router.get("", response_model=list[ItinerarySummary])
def list_itineraries(
    service: ServiceDep, limit: Annotated[int, Query(ge=1, le=500)] = 100
) -> list[ItinerarySummary]:
    return service.list_itineraries(limit)


@router.get("/{itinerary_id}", response_model=Itinerary)
def get_itinerary(itinerary_id: str, service: ServiceDep) -> Itinerary:
    return service.get_itinerary(itinerary_id)


@router.delete("/{itinerary_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_itinerary(itinerary_id: str, service: ServiceDep) -> Response:
    service.delete_itinerary(itinerary_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Segments


@router.get("/{itinerary_id}/segments", response_model=list[Segment])
def get_segments(itinerary_id: str, service: ServiceDep) -> list[Any]:
    return service.get_segments(itinerary_id)


@router.post(
    "/{itinerary_id}/segments",
    response_model=SegmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_segment(
    itinerary_id: str,
    segment: Annotated[Segment, Body()],
    service: ServiceDep,
    validate_before_commit: bool = False,
) -> SegmentResponse:
    """Add a segment; with ``validate_before_commit`` new continuity errors reject it."""
    result = service.add_segment(itinerary_id, segment, validate_before_commit)
    return SegmentResponse.from_result(result)


@router.post("/{itinerary_id}/segments/reorder", response_model=ReorderResponse)
def reorder_segments(
    itinerary_id: str, request: ReorderRequest, service: ServiceDep
) -> ReorderResponse:
    """Apply an explicit segment order; times are not changed."""
    result = service.reorder_segments(itinerary_id, request.segment_ids)
    return ReorderResponse(
        segments=result.itinerary.segments,
        version=result.itinerary.version,
        warnings=result.warnings,
    )


@router.patch("/{itinerary_id}/segments/{segment_id}", response_model=SegmentResponse)
def update_segment(
    itinerary_id: str,
    segment_id: str,
    changes: Annotated[dict[str, Any], Body()],
    service: ServiceDep,
    validate_before_commit: bool = False,
) -> SegmentResponse:
    """Partially update a segment; ``id`` and ``type`` cannot change."""
    result = service.update_segment(itinerary_id, segment_id, changes, validate_before_commit)
    return SegmentResponse.from_result(result)


@router.delete("/{itinerary_id}/segments/{segment_id}", response_model=SegmentResponse)
def delete_segment(itinerary_id: str, segment_id: str, service: ServiceDep) -> SegmentResponse:
    result = service.delete_segment(itinerary_id, segment_id)
    return SegmentResponse.from_result(result)


@router.post("/{itinerary_id}/segments/{segment_id}/move", response_model=CascadeResult)
def move_segment(
    itinerary_id: str, segment_id: str, request: MoveRequest, service: ServiceDep
) -> CascadeResult:
    """Move a segment and cascade the shift to its dependents."""
    duration = (
        timedelta(minutes=request.duration_minutes)
        if request.duration_minutes is not None
        else None
    )
    return service.move_segment(
        itinerary_id, segment_id, request.new_start_datetime, request.cascade_mode, duration
    )


# Consistency


@router.post("/{itinerary_id}/fill-gaps", response_model=GapFillResult)
def fill_gaps(
    itinerary_id: str,
    service: ServiceDep,
    request: Annotated[FillGapsRequest | None, Body()] = None,
) -> GapFillResult:
    """Propose inferred segments for gaps; insert them with ``auto_apply``."""
    auto_apply = request.auto_apply if request is not None else False
    return service.fill_gaps(itinerary_id, auto_apply)


@router.get("/{itinerary_id}/continuity", response_model=ValidationReport)
def validate_continuity(itinerary_id: str, service: ServiceDep) -> ValidationReport:
    return service.validate(itinerary_id)


@router.get("/{itinerary_id}/dependencies", response_model=DependencyGraphResponse)
def get_dependencies(itinerary_id: str, service: ServiceDep) -> DependencyGraphResponse:
    graph = service.dependency_graph(itinerary_id)
    return DependencyGraphResponse(
        order=graph.order,
        edges=[
            EdgeResponse(upstream_id=e.upstream_id, downstream_id=e.downstream_id, kind=e.kind)
            for e in graph.edges
        ],
        ignored_references=graph.ignored_references,
    )
