"""Dependency graph models - derived from the segment collection, never stored."""

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum


class EdgeKind(str, Enum):
    """Why a downstream segment depends on an upstream one."""

    chronological = "chronological"
    location = "location"
    explicit = "explicit"


# Edges that mean "happens because the traveler was placed somewhere"
STRONG_EDGE_KINDS = frozenset({EdgeKind.location, EdgeKind.explicit})


@dataclass(frozen=True)
class DependencyEdge:
    """Directed constraint: downstream starts after upstream ends."""

    upstream_id: str
    downstream_id: str
    kind: EdgeKind


@dataclass
class DependencyGraph:
    """Adjacency structure over segment ids in chronological order.

    ``order`` is the arena: every edge points from a lower index to a higher
    one, so the graph is acyclic.
    """

    order: list[str]
    edges: list[DependencyEdge] = field(default_factory=list)
    ignored_references: list[tuple[str, str]] = field(default_factory=list)
    _out: dict[str, list[DependencyEdge]] = field(default_factory=dict, init=False, repr=False)
    _in: dict[str, list[DependencyEdge]] = field(default_factory=dict, init=False, repr=False)
    _index: dict[str, int] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self._index = {segment_id: i for i, segment_id in enumerate(self.order)}
        edges, self.edges = self.edges, []
        for edge in edges:
            self.add_edge(edge)

    def add_edge(self, edge: DependencyEdge) -> None:
        """Add ``edge`` unless it already exists.

        Raises:
            ValueError: If the edge would point backward in chronological order.
        """
        if self._index[edge.upstream_id] >= self._index[edge.downstream_id]:
            raise ValueError(
                f"edge {edge.upstream_id} -> {edge.downstream_id} does not point forward in time"
            )
        if edge in self._out.get(edge.upstream_id, []):
            return
        self.edges.append(edge)
        self._out.setdefault(edge.upstream_id, []).append(edge)
        self._in.setdefault(edge.downstream_id, []).append(edge)

    def index_of(self, segment_id: str) -> int:
        return self._index[segment_id]

    def successors(self, segment_id: str, kinds: Iterable[EdgeKind] | None = None) -> list[str]:
        allowed = set(kinds) if kinds is not None else None
        return [
            e.downstream_id
            for e in self._out.get(segment_id, [])
            if allowed is None or e.kind in allowed
        ]

    def predecessors(self, segment_id: str, kinds: Iterable[EdgeKind] | None = None) -> list[str]:
        allowed = set(kinds) if kinds is not None else None
        return [
            e.upstream_id
            for e in self._in.get(segment_id, [])
            if allowed is None or e.kind in allowed
        ]

    def edges_of_kind(self, kind: EdgeKind) -> list[DependencyEdge]:
        return [e for e in self.edges if e.kind == kind]

    def descendants(self, segment_id: str, kinds: Iterable[EdgeKind] | None = None) -> set[str]:
        """All segments reachable from ``segment_id`` over edges of ``kinds``.

        The start segment itself is not included.
        """
        allowed = list(kinds) if kinds is not None else None
        seen: set[str] = set()
        queue = deque([segment_id])
        while queue:
            current = queue.popleft()
            for nxt in self.successors(current, allowed):
                if nxt not in seen:
                    seen.add(nxt)
                    queue.append(nxt)
        return seen
