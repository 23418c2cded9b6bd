"""Per-search score bookkeeping.

``ScoreTable`` holds g, parent and status for every vertex a search touches.
Heuristic values live in a ``HeuristicScoreMap``, the mapping handed to the
repair operations of inconsistent heuristics; the table reads h from it so
the two can never disagree.
"""

import logging
import math
from typing import Any, Callable, Dict, Iterator, List, MutableMapping, Optional

from pathmax.core.data_models import INF, ScoreEntry, Vertex, VertexStatus
from pathmax.core.exceptions import InvalidHeuristicRepair

logger = logging.getLogger(__name__)


class HeuristicScoreMap(MutableMapping):
    """Vertex -> heuristic value mapping whose values can only go up.

    Assigning a lower value than the stored one, assigning NaN, or deleting
    an entry keeps the stored value and raises ``InvalidHeuristicRepair``.
    """

    def __init__(self, target: Vertex):
        self.target = target
        self._values: Dict[Vertex, float] = {}
        self.raises = 0

    def __getitem__(self, vertex: Vertex) -> float:
        return self._values[vertex]

    def __setitem__(self, vertex: Vertex, value: float) -> None:
        value = float(value)
        previous = self._values.get(vertex)
        if math.isnan(value):
            raise InvalidHeuristicRepair(vertex, previous, value)
        if previous is not None:
            if value < previous:
                raise InvalidHeuristicRepair(vertex, previous, value)
            if value > previous:
                self.raises += 1
        self._values[vertex] = value

    def __delitem__(self, vertex: Vertex) -> None:
        raise InvalidHeuristicRepair(vertex, self._values.get(vertex, INF), -INF)

    def __iter__(self) -> Iterator[Vertex]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"HeuristicScoreMap(target={self.target!r}, size={len(self._values)})"


class ScoreTable:
    """Mutable g/h/parent/status table for one search towards a fixed target."""

    def __init__(self, target: Vertex, estimate: Callable[[Vertex, Vertex], float]):
        """Initialize score table.

        Args:
            target: Target of the search
            estimate: Base heuristic ``estimate(vertex, target)`` used to seed h
        """
        self.target = target
        self._estimate = estimate
        self._entries: Dict[Vertex, ScoreEntry] = {}
        self.h_scores = HeuristicScoreMap(target)
        self.heuristic_computations = 0

    def _seed(self, vertex: Vertex) -> ScoreEntry:
        entry = ScoreEntry()
        if vertex not in self.h_scores:
            self.h_scores[vertex] = self._estimate(vertex, self.target)
            self.heuristic_computations += 1
        self._entries[vertex] = entry
        return entry

    def get(self, vertex: Vertex) -> ScoreEntry:
        """Return the entry for ``vertex``, seeding it on first access."""
        entry = self._entries.get(vertex)
        if entry is None:
            entry = self._seed(vertex)
        entry.h = self.h_scores[vertex]
        return entry

    def __contains__(self, vertex: Vertex) -> bool:
        return vertex in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def g(self, vertex: Vertex) -> float:
        entry = self._entries.get(vertex)
        return entry.g if entry is not None else INF

    def h(self, vertex: Vertex) -> float:
        return self.get(vertex).h

    def f(self, vertex: Vertex) -> float:
        return self.get(vertex).f_score

    def status(self, vertex: Vertex) -> VertexStatus:
        entry = self._entries.get(vertex)
        return entry.status if entry is not None else VertexStatus.UNVISITED

    def parent(self, vertex: Vertex) -> Optional[Vertex]:
        entry = self._entries.get(vertex)
        return entry.parent if entry is not None else None

    def relax(self, vertex: Vertex, candidate_g: float, parent: Optional[Vertex]) -> bool:
        """Record a cheaper path to ``vertex``; strict improvements only.

        Returns:
            True if g and parent were updated
        """
        entry = self.get(vertex)
        if candidate_g < entry.g:
            entry.g = candidate_g
            entry.parent = parent
            return True
        return False

    def set_h(self, vertex: Vertex, new_h: float) -> bool:
        """Raise the heuristic value of ``vertex``.

        Returns:
            True if the stored value changed

        Raises:
            InvalidHeuristicRepair: if ``new_h`` is below the stored value
        """
        entry = self.get(vertex)
        previous = entry.h
        self.h_scores[vertex] = new_h
        entry.h = self.h_scores[vertex]
        return entry.h != previous

    def mark_open(self, vertex: Vertex) -> None:
        self.get(vertex).status = VertexStatus.OPEN

    def mark_closed(self, vertex: Vertex) -> None:
        entry = self.get(vertex)
        entry.status = VertexStatus.CLOSED
        entry.expansions += 1

    def reconstruct_path(self, target: Vertex) -> List[Vertex]:
        """Follow parent pointers back from ``target``."""
        path = [target]
        seen = {target}
        vertex = self.parent(target)
        while vertex is not None:
            if vertex in seen:
                raise RuntimeError(f"Parent pointers form a cycle at {vertex!r}")
            seen.add(vertex)
            path.append(vertex)
            vertex = self.parent(vertex)
        path.reverse()
        return path

    def snapshot(self) -> Dict[Vertex, Dict[str, Any]]:
        """Plain-dict view of every entry, for debugging and tests."""
        return {
            vertex: {
                'g': entry.g,
                'h': self.h_scores[vertex],
                'parent': entry.parent,
                'status': entry.status.value,
                'expansions': entry.expansions,
            }
            for vertex, entry in self._entries.items()
        }
