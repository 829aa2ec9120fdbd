"""Segment service - load, run one engine operation, save.

Each mutation is a critical section per itinerary id. The store's version
check still catches writers that bypass this service (another process, a
second service instance).
"""

import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from tripline.config import Settings, get_settings
from tripline.db.repositories import ItineraryStore
from tripline.errors import TriplineError, ValidationFailure
from tripline.models.graph import DependencyGraph
from tripline.models.issues import Issue, ValidationReport
from tripline.models.itinerary import Itinerary, ItinerarySummary
from tripline.models.results import CascadeMode, CascadeResult, GapFillResult, ReorderResult
from tripline.models.segments import BaseSegment
from tripline.scheduling.cascade import move_segment_with_cascade
from tripline.scheduling.continuity import validate_itinerary
from tripline.scheduling.editing import insert_segment, remove_segment, replace_segment
from tripline.scheduling.gaps import fill_gaps
from tripline.scheduling.graph import build_graph
from tripline.scheduling.policy import SchedulingPolicy
from tripline.scheduling.reorder import reorder_segments
from tripline.utils.logging import StructuredOperationLogger
from tripline.utils.metrics import PrometheusEngineMetrics


@dataclass
class SegmentWriteResult:
    """Saved itinerary plus the segment written and the post-write report."""

    itinerary: Itinerary
    segment: BaseSegment | None
    report: ValidationReport


def introduced_errors(before: ValidationReport, after: ValidationReport) -> list[Issue]:
    """Errors in ``after`` that ``before`` did not have."""
    known = {issue.key() for issue in before.errors}
    return [issue for issue in after.errors if issue.key() not in known]


class SegmentService:
    """Orchestrates engine operations against an itinerary store."""

    def __init__(
        self,
        store: ItineraryStore,
        settings: Settings | None = None,
        metrics: PrometheusEngineMetrics | None = None,
        op_logger: StructuredOperationLogger | None = None,
    ) -> None:
        self._store = store
        self._settings = settings or get_settings()
        self._policy = SchedulingPolicy.from_settings(self._settings)
        self._metrics = metrics or PrometheusEngineMetrics()
        self._op_logger = op_logger or StructuredOperationLogger()
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    @property
    def policy(self) -> SchedulingPolicy:
        return self._policy

    def _lock_for(self, itinerary_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(itinerary_id)
            if lock is None:
                lock = self._locks[itinerary_id] = threading.Lock()
            return lock

    @contextmanager
    def _operation(
        self,
        operation: str,
        itinerary_id: str,
        segment_id: str | None = None,
        exclusive: bool = True,
    ) -> Iterator[dict[str, Any]]:
        """Time, log and count one operation; hold the itinerary lock when ``exclusive``.

        Yields a dict the caller can fill with extra structured log fields.
        """
        lock = self._lock_for(itinerary_id) if exclusive else None
        fields: dict[str, Any] = {}
        started = time.perf_counter()
        if lock is not None:
            lock.acquire()
        try:
            yield fields
        except TriplineError as e:
            latency_ms = (time.perf_counter() - started) * 1000
            self._metrics.record_operation(operation, e.code.value, latency_ms)
            self._op_logger.log_operation(
                operation,
                itinerary_id,
                "error",
                latency_ms,
                segment_id=segment_id,
                error_code=e.code.value,
                **fields,
            )
            raise
        else:
            latency_ms = (time.perf_counter() - started) * 1000
            self._metrics.record_operation(operation, "success", latency_ms)
            self._op_logger.log_operation(
                operation, itinerary_id, "success", latency_ms, segment_id=segment_id, **fields
            )
        finally:
            if lock is not None:
                lock.release()

    # Itineraries

    def create_itinerary(self, itinerary: Itinerary) -> Itinerary:
        with self._operation("create_itinerary", itinerary.id):
            return self._store.create(itinerary)

    def get_itinerary(self, itinerary_id: str) -> Itinerary:
        return self._store.load(itinerary_id)

    def list_itineraries(self, limit: int = 100) -> list[ItinerarySummary]:
        return self._store.list_summaries(limit)

    def delete_itinerary(self, itinerary_id: str) -> None:
        with self._operation("delete_itinerary", itinerary_id):
            self._store.delete(itinerary_id)
        with self._registry_lock:
            self._locks.pop(itinerary_id, None)

    # Segments

    def get_segments(self, itinerary_id: str) -> list[BaseSegment]:
        return list(self._store.load(itinerary_id).segments)

    def add_segment(
        self, itinerary_id: str, segment: BaseSegment, validate_before_commit: bool = False
    ) -> SegmentWriteResult:
        """Insert a segment and save.

        Raises:
            NotFoundError: Unknown itinerary
            ValidationFailure: Duplicate id, outside the dates when enforced, or
                new continuity errors under ``validate_before_commit``
            StaleVersionError: The itinerary changed since it was loaded
        """
        with self._operation("add_segment", itinerary_id, segment.id):
            itinerary = self._store.load(itinerary_id)
            updated = insert_segment(itinerary, segment, self._settings.enforce_date_range)
            report = self._check_commit(itinerary, updated, validate_before_commit)
            saved = self._store.save(updated)
            return SegmentWriteResult(saved, saved.find_segment(segment.id), report)

    def update_segment(
        self,
        itinerary_id: str,
        segment_id: str,
        changes: dict[str, Any],
        validate_before_commit: bool = False,
    ) -> SegmentWriteResult:
        """Merge ``changes`` into a segment and save.

        Raises:
            NotFoundError: Unknown itinerary or segment
            ValidationFailure: Invalid merged segment, or new continuity errors
                under ``validate_before_commit``
            StaleVersionError: The itinerary changed since it was loaded
        """
        with self._operation("update_segment", itinerary_id, segment_id):
            itinerary = self._store.load(itinerary_id)
            updated, _ = replace_segment(
                itinerary, segment_id, changes, self._settings.enforce_date_range
            )
            report = self._check_commit(itinerary, updated, validate_before_commit)
            saved = self._store.save(updated)
            return SegmentWriteResult(saved, saved.find_segment(segment_id), report)

    def delete_segment(self, itinerary_id: str, segment_id: str) -> SegmentWriteResult:
        """Remove a segment and save.

        Inferred segments that depended on it are kept and show up as
        ``unjustified_inferred`` warnings in the returned report.
        """
        with self._operation("delete_segment", itinerary_id, segment_id):
            itinerary = self._store.load(itinerary_id)
            updated = remove_segment(itinerary, segment_id)
            saved = self._store.save(updated)
            return SegmentWriteResult(saved, None, validate_itinerary(saved, self._policy))

    def reorder_segments(self, itinerary_id: str, segment_ids: list[str]) -> ReorderResult:
        with self._operation("reorder_segments", itinerary_id) as fields:
            itinerary = self._store.load(itinerary_id)
            result = reorder_segments(itinerary, segment_ids, self._policy)
            saved = self._store.save(result.itinerary)
            fields["warnings"] = len(result.warnings)
            return result.model_copy(update={"itinerary": saved})

    def move_segment(
        self,
        itinerary_id: str,
        segment_id: str,
        new_start: datetime,
        mode: CascadeMode = CascadeMode.auto,
        duration: timedelta | None = None,
    ) -> CascadeResult:
        """Move a segment with cascade and save; nothing is saved on conflict."""
        with self._operation("move_segment", itinerary_id, segment_id) as fields:
            itinerary = self._store.load(itinerary_id)
            result = move_segment_with_cascade(
                itinerary, segment_id, new_start, mode, self._policy, duration
            )
            saved = self._store.save(result.itinerary)
            self._metrics.observe_cascade(len(result.shifted_segment_ids))
            fields["mode"] = mode.value
            fields["shifted"] = len(result.shifted_segment_ids)
            return result.model_copy(update={"itinerary": saved})

    def fill_gaps(self, itinerary_id: str, auto_apply: bool = False) -> GapFillResult:
        """Propose, or insert and save, inferred segments for open gaps."""
        with self._operation("fill_gaps", itinerary_id) as fields:
            itinerary = self._store.load(itinerary_id)
            result = fill_gaps(itinerary, self._policy, auto_apply)
            fields["proposals"] = len(result.proposals)
            if not result.applied:
                return result

            saved = self._store.save(result.itinerary)
            for segment in result.applied:
                self._metrics.inc_inferred(segment.type.value)
            fields["applied"] = len(result.applied)
            fields["failed"] = len(result.failed)
            return result.model_copy(update={"itinerary": saved})

    def validate(self, itinerary_id: str) -> ValidationReport:
        with self._operation("validate", itinerary_id, exclusive=False):
            return validate_itinerary(self._store.load(itinerary_id), self._policy)

    def dependency_graph(self, itinerary_id: str) -> DependencyGraph:
        itinerary = self._store.load(itinerary_id)
        return build_graph(itinerary.segments, self._policy)

    def _check_commit(
        self, before: Itinerary, after: Itinerary, validate_before_commit: bool
    ) -> ValidationReport:
        """Validate ``after``; under ``validate_before_commit`` new errors block the save."""
        report = validate_itinerary(after, self._policy)
        if not validate_before_commit:
            return report

        new_errors = introduced_errors(validate_itinerary(before, self._policy), report)
        if new_errors:
            raise ValidationFailure(
                "Change introduces continuity errors",
                {"issues": [issue.model_dump(mode="json") for issue in new_errors]},
            )
        return report
