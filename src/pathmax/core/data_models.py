"""Core data models shared by the graph, heuristic and search layers."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Hashable, List, NamedTuple, Optional

INF = float('inf')

# Vertices are opaque; the engine only hashes them and compares for equality.
Vertex = Hashable


class Edge(NamedTuple):
    """Directed weighted edge."""
    source: Vertex
    target: Vertex
    weight: float = 1.0


class VertexStatus(Enum):
    """Lifecycle of a vertex within one search."""
    UNVISITED = "unvisited"
    OPEN = "open"
    CLOSED = "closed"


@dataclass
class ScoreEntry:
    """Per-vertex search record.

    ``h`` is only ever raised during a search, ``g`` is only ever lowered.
    """
    g: float = INF
    h: float = 0.0
    parent: Optional[Vertex] = None
    status: VertexStatus = VertexStatus.UNVISITED
    expansions: int = 0

    @property
    def f_score(self) -> float:
        """Total estimated cost f = g + h."""
        return self.g + self.h


@dataclass
class FrontierEntry:
    """Entry in the frontier heap.

    Ordering: lower f first, then higher g (deeper), then earlier insertion.
    The vertex itself never takes part in comparisons, so vertices need not
    be orderable.
    """
    f: float
    g: float
    sequence: int
    vertex: Vertex = field(compare=False)
    removed: bool = field(default=False, compare=False)

    def __lt__(self, other: 'FrontierEntry') -> bool:
        if self.f != other.f:
            return self.f < other.f
        # Tie-breaking: prefer the deeper (more expensive to reach) entry
        if self.g != other.g:
            return self.g > other.g
        return self.sequence < other.sequence


class SearchOutcome(Enum):
    """Terminal outcome of a search."""
    FOUND = "found"
    UNREACHABLE = "unreachable"
    BUDGET_EXHAUSTED = "budget_exhausted"


@dataclass
class SearchStatistics:
    """Counters collected over one search."""
    nodes_expanded: int = 0
    nodes_reexpanded: int = 0
    nodes_generated: int = 0
    heuristic_computations: int = 0
    heuristic_repairs: int = 0
    expanded_repairs: int = 0
    successor_repairs: int = 0
    stale_entries_skipped: int = 0
    max_frontier_size: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert statistics to dictionary."""
        return {
            'nodes_expanded': self.nodes_expanded,
            'nodes_reexpanded': self.nodes_reexpanded,
            'nodes_generated': self.nodes_generated,
            'heuristic_computations': self.heuristic_computations,
            'heuristic_repairs': self.heuristic_repairs,
            'expanded_repairs': self.expanded_repairs,
            'successor_repairs': self.successor_repairs,
            'stale_entries_skipped': self.stale_entries_skipped,
            'max_frontier_size': self.max_frontier_size,
        }


@dataclass
class SearchResult:
    """Result from A* search."""
    outcome: SearchOutcome
    start: Vertex
    target: Vertex
    path: Optional[List[Vertex]] = None
    cost: Optional[float] = None
    termination_reason: str = "unknown"
    computation_time: float = 0.0
    repair_enabled: bool = False
    statistics: SearchStatistics = field(default_factory=SearchStatistics)

    @property
    def found(self) -> bool:
        return self.outcome is SearchOutcome.FOUND

    @property
    def unreachable(self) -> bool:
        return self.outcome is SearchOutcome.UNREACHABLE

    @property
    def nodes_expanded(self) -> int:
        return self.statistics.nodes_expanded

    @property
    def nodes_reexpanded(self) -> int:
        return self.statistics.nodes_reexpanded

    def __len__(self) -> int:
        """Number of edges on the path (0 when no path was found)."""
        return len(self.path) - 1 if self.path else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'outcome': self.outcome.value,
            'start': self.start,
            'target': self.target,
            'path': list(self.path) if self.path is not None else None,
            'cost': self.cost,
            'termination_reason': self.termination_reason,
            'computation_time': self.computation_time,
            'repair_enabled': self.repair_enabled,
            'statistics': self.statistics.to_dict(),
        }
