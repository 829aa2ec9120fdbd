"""Dependency graph builder - derives ordering and location constraints between segments."""

import logging
from collections.abc import Sequence

from tripline.models.common import SegmentType
from tripline.models.graph import DependencyEdge, DependencyGraph, EdgeKind
from tripline.models.segments import BaseSegment
from tripline.scheduling.continuity import sort_chronologically
from tripline.scheduling.locations import are_continuous
from tripline.scheduling.policy import DEFAULT_POLICY, SchedulingPolicy

logger = logging.getLogger(__name__)


def _location_edges(
    ordered: Sequence[BaseSegment], policy: SchedulingPolicy
) -> list[DependencyEdge]:
    """Edges from each connector to the segments that happen at its destination.

    Linkage runs until the next connector. That connector is linked too when
    it is a ground transfer leaving from the destination; a following flight
    is a fixed booking and only resets the location.
    """
    edges: list[DependencyEdge] = []

    for i, connector in enumerate(ordered):
        if not connector.is_connector or connector.end_location is None:
            continue
        destination = connector.end_location

        for downstream in ordered[i + 1 :]:
            place = downstream.start_location
            matches = place is not None and bool(
                are_continuous(destination, place, policy.proximity_threshold_km)
            )
            if downstream.is_connector:
                if matches and downstream.type == SegmentType.transfer:
                    edges.append(DependencyEdge(connector.id, downstream.id, EdgeKind.location))
                break
            if matches:
                edges.append(DependencyEdge(connector.id, downstream.id, EdgeKind.location))

    return edges


def build_graph(
    segments: Sequence[BaseSegment], policy: SchedulingPolicy = DEFAULT_POLICY
) -> DependencyGraph:
    """Build the dependency graph for ``segments``.

    This is a pure function with no I/O or side effects. The graph is
    recomputed on every structural operation, never stored.

    Edge sources:
        - chronological: each segment depends on its immediate predecessor
        - location: segments at a connector's destination depend on the connector
        - explicit: ``depends_on`` references to earlier segments

    Args:
        segments: Segments in any order; they are sorted chronologically here
        policy: Supplies the proximity threshold for location matching

    Returns:
        Acyclic graph whose edges all point forward in time
    """
    ordered = sort_chronologically(segments)
    graph = DependencyGraph(order=[s.id for s in ordered])

    for upstream, downstream in zip(ordered, ordered[1:], strict=False):
        graph.add_edge(DependencyEdge(upstream.id, downstream.id, EdgeKind.chronological))

    for edge in _location_edges(ordered, policy):
        graph.add_edge(edge)

    known = set(graph.order)
    for segment in ordered:
        for upstream_id in segment.depends_on:
            backward = (
                upstream_id not in known
                or graph.index_of(upstream_id) >= graph.index_of(segment.id)
            )
            if backward:
                # Unknown or backward references would break acyclicity
                graph.ignored_references.append((upstream_id, segment.id))
                continue
            graph.add_edge(DependencyEdge(upstream_id, segment.id, EdgeKind.explicit))

    if graph.ignored_references:
        logger.warning(
            "[build_graph] ignored %d depends_on references that do not point back in time",
            len(graph.ignored_references),
        )
    return graph
