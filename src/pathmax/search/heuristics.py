"""Admissible heuristics for A* search.

Two capability levels are recognised:

- ``AdmissibleHeuristic``: a lower bound ``estimate(vertex, target)`` on the
  remaining cost. This is all plain A* needs.
- ``InconsistentHeuristic``: an admissible heuristic that is not guaranteed
  consistent and therefore also offers the BPMX-style update operations
  ``update_expanded_heuristic`` and ``update_successor_heuristic``.

The search engine decides whether to call the update operations with
``supports_repair``, a duck-typed capability query, so third-party heuristics
do not have to inherit from these classes.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, MutableMapping, Optional, Sequence

import numpy as np

from pathmax.core.data_models import Vertex
from pathmax.core.exceptions import TargetMismatch
from pathmax.graph.distances import shortest_path_costs

logger = logging.getLogger(__name__)

# Absolute slack used when comparing floating point heuristic values.
CONSISTENCY_TOLERANCE = 1e-9


class AdmissibleHeuristic(ABC):
    """Abstract base class for admissible heuristics.

    Implementations must never overestimate the true remaining cost and must
    return 0 for ``estimate(target, target)``. ``estimate`` should be free of
    side effects so one instance can serve concurrent searches.
    """

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @property
    def bound_target(self) -> Optional[Vertex]:
        """Target this heuristic was built for, or None if it serves any target."""
        return None

    @abstractmethod
    def estimate(self, vertex: Vertex, target: Vertex) -> float:
        """Lower bound on the cost of reaching ``target`` from ``vertex``."""
        pass

    def __call__(self, vertex: Vertex, target: Vertex) -> float:
        return self.estimate(vertex, target)

    def prepare(self, target: Vertex) -> None:
        """Hook called once at the start of every search towards ``target``."""
        bound = self.bound_target
        if bound is not None and bound != target:
            raise TargetMismatch(bound, target)

    def is_consistent(self, graph: Any, targets: Optional[Iterable[Vertex]] = None) -> bool:
        """Check ``h(u, t) <= w + h(v, t)`` for every edge and target.

        Args:
            graph: Graph exposing ``edges()`` and ``vertices()``
            targets: Targets to check (defaults to every vertex)

        Returns:
            True if no edge violates consistency for any checked target
        """
        if targets is None:
            targets = [self.bound_target] if self.bound_target is not None else graph.vertices()
        edges = list(graph.edges())

        for target in targets:
            for source, destination, weight in edges:
                if source == destination:
                    continue
                h_source = self.estimate(source, target)
                h_destination = self.estimate(destination, target)
                if h_source > weight + h_destination + CONSISTENCY_TOLERANCE:
                    logger.debug(f"{self.name} inconsistent on {source!r} -> {destination!r} "
                                 f"for target {target!r}: {h_source} > {weight} + {h_destination}")
                    return False
        return True


class InconsistentHeuristic(AdmissibleHeuristic):
    """Admissible heuristic that may be inconsistent and can repair itself.

    Both update operations keep their results in ``h_score_map``, the
    per-search table of current heuristic values owned by the search engine.
    They may only raise stored values.
    """

    @abstractmethod
    def update_expanded_heuristic(self, expanded: Vertex, target: Vertex,
                                  h_score_map: MutableMapping[Vertex, float]) -> float:
        """Possibly raise the heuristic of the vertex being expanded.

        Called once per expansion, before the vertex's successors are looked
        at. The (possibly unchanged) value must be written back into
        ``h_score_map`` before it is returned.

        Args:
            expanded: Vertex being expanded
            target: Target of the running search
            h_score_map: Current heuristic values for this search

        Returns:
            Updated heuristic value for ``expanded``
        """
        pass

    @abstractmethod
    def update_successor_heuristic(self, successor: Vertex, target: Vertex,
                                   h_parent: float, edge_weight: float,
                                   h_score_map: MutableMapping[Vertex, float]) -> bool:
        """Possibly raise a successor's heuristic from its parent's value.

        Args:
            successor: Successor being generated
            target: Target of the running search
            h_parent: Current heuristic value of the expanded parent
            edge_weight: Weight of the edge parent -> successor
            h_score_map: Current heuristic values for this search

        Returns:
            True if the stored value for ``successor`` changed
        """
        pass

    def is_consistent(self, graph: Any, targets: Optional[Iterable[Vertex]] = None) -> bool:
        """Assumed inconsistent; use ``AdmissibleHeuristic`` for consistent ones."""
        return False


def supports_repair(heuristic: Any) -> bool:
    """Return True if ``heuristic`` offers the BPMX update operations."""
    return (callable(getattr(heuristic, 'update_expanded_heuristic', None)) and
            callable(getattr(heuristic, 'update_successor_heuristic', None)))


class ZeroHeuristic(AdmissibleHeuristic):
    """h = 0 everywhere; A* degenerates to Dijkstra."""

    def estimate(self, vertex: Vertex, target: Vertex) -> float:
        return 0.0

    def is_consistent(self, graph: Any, targets: Optional[Iterable[Vertex]] = None) -> bool:
        return True


class CallableHeuristic(AdmissibleHeuristic):
    """Adapter turning a plain ``fn(vertex, target)`` into a heuristic."""

    def __init__(self, fn: Callable[[Vertex, Vertex], float], name: Optional[str] = None):
        self.fn = fn
        self._name = name or getattr(fn, '__name__', 'callable')

    @property
    def name(self) -> str:
        return self._name

    def estimate(self, vertex: Vertex, target: Vertex) -> float:
        return float(self.fn(vertex, target))


class TableHeuristic(AdmissibleHeuristic):
    """Heuristic values for one fixed target, read from a mapping.

    Vertices missing from the table get ``default``; the target itself
    always gets 0.
    """

    def __init__(self, values: Dict[Vertex, float], target: Vertex, default: float = 0.0):
        self.values = dict(values)
        self.target = target
        self.default = float(default)

    @property
    def bound_target(self) -> Optional[Vertex]:
        return self.target

    def estimate(self, vertex: Vertex, target: Vertex) -> float:
        if target != self.target:
            raise TargetMismatch(self.target, target)
        if vertex == target:
            return 0.0
        return float(self.values.get(vertex, self.default))


class MaxHeuristic(AdmissibleHeuristic):
    """Pointwise maximum of several admissible heuristics (still admissible)."""

    def __init__(self, *heuristics: Any):
        if not heuristics:
            raise ValueError("MaxHeuristic needs at least one heuristic")
        self.heuristics = [as_heuristic(h) for h in heuristics]

    @property
    def bound_target(self) -> Optional[Vertex]:
        for heuristic in self.heuristics:
            bound = getattr(heuristic, 'bound_target', None)
            if bound is not None:
                return bound
        return None

    def prepare(self, target: Vertex) -> None:
        for heuristic in self.heuristics:
            prepare = getattr(heuristic, 'prepare', None)
            if prepare is not None:
                prepare(target)

    def estimate(self, vertex: Vertex, target: Vertex) -> float:
        return max(h.estimate(vertex, target) for h in self.heuristics)


class LandmarkHeuristic(AdmissibleHeuristic):
    """ALT (A*, landmarks, triangle inequality) heuristic.

    For each landmark L the distances d(L, v) and d(v, L) are precomputed with
    scipy. The bound is

        h(v, t) = max_L max(d(L, t) - d(L, v), d(v, L) - d(t, L), 0)

    which is admissible and, using all landmarks for every vertex, consistent.
    The tables are immutable after construction.
    """

    def __init__(self, graph: Any, landmarks: Sequence[Vertex]):
        if not landmarks:
            raise ValueError("LandmarkHeuristic needs at least one landmark")
        self.landmarks = list(landmarks)
        self.from_landmark, self.index = shortest_path_costs(graph, self.landmarks)
        self.to_landmark, _ = shortest_path_costs(graph, self.landmarks, reverse=True)
        self.from_landmark.setflags(write=False)
        self.to_landmark.setflags(write=False)

        logger.info(f"Landmark heuristic initialized with {len(self.landmarks)} landmarks "
                    f"over {len(self.index)} vertices")

    def bound(self, vertex: Vertex, target: Vertex, rows: Optional[np.ndarray] = None) -> float:
        """Triangle-inequality bound using the landmark ``rows`` (all by default)."""
        if vertex == target:
            return 0.0
        v = self.index.get(vertex)
        t = self.index.get(target)
        if v is None or t is None:
            return 0.0

        if rows is None:
            forward = self.from_landmark[:, t] - self.from_landmark[:, v]
            backward = self.to_landmark[:, v] - self.to_landmark[:, t]
        else:
            forward = self.from_landmark[rows, t] - self.from_landmark[rows, v]
            backward = self.to_landmark[rows, v] - self.to_landmark[rows, t]

        # inf - inf carries no information
        candidates = np.concatenate([forward, backward])
        candidates = candidates[~np.isnan(candidates)]
        if candidates.size == 0:
            return 0.0
        return float(max(0.0, candidates.max()))

    def estimate(self, vertex: Vertex, target: Vertex) -> float:
        return self.bound(vertex, target)


def as_heuristic(heuristic: Any) -> Any:
    """Normalize a user-supplied heuristic.

    Accepts an ``AdmissibleHeuristic``, any object with an ``estimate`` method
    (returned unchanged), a plain callable ``fn(vertex, target)`` or None
    (``ZeroHeuristic``).
    """
    if heuristic is None:
        return ZeroHeuristic()
    if isinstance(heuristic, AdmissibleHeuristic):
        return heuristic
    if callable(getattr(heuristic, 'estimate', None)):
        return heuristic
    if callable(heuristic):
        return CallableHeuristic(heuristic)
    raise TypeError(f"Cannot use {type(heuristic).__name__} as a heuristic")
