"""Open list for A* search.

A binary heap (``heapq``) of ``FrontierEntry`` objects with lazy invalidation:
re-keying a vertex marks its current entry removed and pushes a fresh one, so
both decrease-key and increase-key cost O(log n). Removed entries are dropped
when they reach the top of the heap.
"""

import heapq
import itertools
from typing import Dict, List, Optional

from pathmax.core.data_models import FrontierEntry, Vertex


class Frontier:
    """Min-priority queue over (vertex, f) with deterministic tie-breaking.

    Ordering follows ``FrontierEntry``: lower f, then higher g, then earlier
    insertion.
    """

    def __init__(self):
        self._heap: List[FrontierEntry] = []
        self._entries: Dict[Vertex, FrontierEntry] = {}
        self._counter = itertools.count()
        self.pushes = 0
        self.updates = 0
        self.discarded = 0

    def push_or_update(self, vertex: Vertex, f: float, g: float = 0.0) -> None:
        """Insert ``vertex`` or move it to priority ``f`` (up or down)."""
        current = self._entries.get(vertex)
        if current is not None:
            if current.f == f and current.g == g:
                return
            current.removed = True
            self.updates += 1
        else:
            self.pushes += 1

        entry = FrontierEntry(f=f, g=g, sequence=next(self._counter), vertex=vertex)
        self._entries[vertex] = entry
        heapq.heappush(self._heap, entry)

    def remove(self, vertex: Vertex) -> bool:
        """Drop ``vertex`` from the frontier; returns False if it was absent."""
        entry = self._entries.pop(vertex, None)
        if entry is None:
            return False
        entry.removed = True
        return True

    def _discard_removed(self) -> None:
        while self._heap and self._heap[0].removed:
            heapq.heappop(self._heap)
            self.discarded += 1

    def pop_min_entry(self) -> FrontierEntry:
        """Remove and return the live entry with the smallest key.

        Raises:
            IndexError: if the frontier is empty
        """
        self._discard_removed()
        if not self._heap:
            raise IndexError("pop from an empty frontier")
        entry = heapq.heappop(self._heap)
        del self._entries[entry.vertex]
        return entry

    def pop_min(self) -> Vertex:
        """Remove and return the vertex with the smallest key."""
        return self.pop_min_entry().vertex

    def peek_f(self) -> Optional[float]:
        """Smallest f in the frontier, or None when empty."""
        self._discard_removed()
        return self._heap[0].f if self._heap else None

    def priority(self, vertex: Vertex) -> Optional[float]:
        entry = self._entries.get(vertex)
        return entry.f if entry is not None else None

    def contains(self, vertex: Vertex) -> bool:
        return vertex in self._entries

    def __contains__(self, vertex: Vertex) -> bool:
        return vertex in self._entries

    def is_empty(self) -> bool:
        return not self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)
