"""BPMX (bidirectional pathmax) repair for inconsistent heuristics.

For an edge u -> v of weight w, admissibility of h(u) implies

    h*(v) >= h*(u) - w >= h(u) - w

so h(v) may be raised to ``max(h(v), h(u) - w)`` without ever
overestimating. Applied from the expanded vertex to its successors
(``update_successor_heuristic``) and from already scored predecessors to the
expanded vertex (``update_expanded_heuristic``), this propagates large values
across edges and removes many of the re-expansions an inconsistent heuristic
would otherwise cause. It does not make the heuristic fully consistent.
"""

import logging
from typing import Any, List, MutableMapping, Optional, Sequence

import numpy as np

from pathmax.config import get_parameter
from pathmax.core.data_models import Vertex
from pathmax.core.exceptions import TargetMismatch
from pathmax.graph.distances import shortest_path_costs
from pathmax.search.heuristics import InconsistentHeuristic, LandmarkHeuristic, as_heuristic

logger = logging.getLogger(__name__)


class BPMXHeuristic(InconsistentHeuristic):
    """Adds BPMX repair to any admissible heuristic.

    Base estimates come from ``base``. Predecessor pathmax needs a graph with
    ``incoming_edges``; without one only successor pathmax is applied. The
    instance keeps no per-search state (everything lives in the map passed by
    the engine), so it can be shared between concurrent searches.
    """

    def __init__(self, base: Any = None, graph: Any = None, use_predecessors: bool = True):
        self.base = as_heuristic(base)
        self.graph = graph
        self.use_predecessors = (use_predecessors and graph is not None and
                                 callable(getattr(graph, 'incoming_edges', None)))

    @property
    def name(self) -> str:
        return f"BPMX({getattr(self.base, 'name', type(self.base).__name__)})"

    @property
    def bound_target(self) -> Optional[Vertex]:
        return getattr(self.base, 'bound_target', None)

    def prepare(self, target: Vertex) -> None:
        prepare = getattr(self.base, 'prepare', None)
        if prepare is not None:
            prepare(target)
        else:
            super().prepare(target)

    def estimate(self, vertex: Vertex, target: Vertex) -> float:
        return self.base.estimate(vertex, target)

    def _current(self, vertex: Vertex, target: Vertex,
                 h_score_map: MutableMapping[Vertex, float]) -> float:
        # Every map handed out by the engine carries the search target
        map_target = getattr(h_score_map, 'target', target)
        if map_target != target:
            raise TargetMismatch(map_target, target)
        value = h_score_map.get(vertex)
        if value is None:
            value = self.estimate(vertex, target)
        return value

    def update_expanded_heuristic(self, expanded: Vertex, target: Vertex,
                                  h_score_map: MutableMapping[Vertex, float]) -> float:
        """Raise h(expanded) to the best ``h(p) - w(p, expanded)`` over scored predecessors."""
        best = self._current(expanded, target, h_score_map)

        if self.use_predecessors:
            for predecessor, weight in self.graph.incoming_edges(expanded):
                if predecessor == expanded:
                    continue
                h_predecessor = h_score_map.get(predecessor)
                if h_predecessor is None:
                    continue
                candidate = h_predecessor - weight
                if candidate > best:
                    best = candidate

        h_score_map[expanded] = best
        return best

    def update_successor_heuristic(self, successor: Vertex, target: Vertex,
                                   h_parent: float, edge_weight: float,
                                   h_score_map: MutableMapping[Vertex, float]) -> bool:
        """Raise h(successor) to ``h_parent - edge_weight`` when that is larger."""
        current = self._current(successor, target, h_score_map)
        candidate = h_parent - edge_weight

        if candidate > current:
            h_score_map[successor] = candidate
            return True
        if successor not in h_score_map:
            h_score_map[successor] = current
        return False


class ALTInconsistentHeuristic(BPMXHeuristic):
    """Landmark heuristic that consults only a subset of landmarks per vertex.

    Each vertex is assigned ``landmarks_per_vertex`` landmarks, drawn with a
    seeded numpy generator. Every per-vertex bound is admissible, but
    neighbouring vertices look at different landmarks, so the heuristic is
    generally inconsistent. BPMX repair is inherited.
    """

    def __init__(self, graph: Any, landmarks: Sequence[Vertex],
                 landmarks_per_vertex: int = 1, seed: Optional[int] = 0,
                 use_predecessors: bool = True):
        landmark_table = LandmarkHeuristic(graph, landmarks)
        super().__init__(base=landmark_table, graph=graph, use_predecessors=use_predecessors)

        count = len(landmark_table.landmarks)
        if not 1 <= landmarks_per_vertex <= count:
            raise ValueError(f"landmarks_per_vertex must be between 1 and {count}, "
                             f"got {landmarks_per_vertex}")
        self.landmarks_per_vertex = landmarks_per_vertex

        rng = np.random.default_rng(seed)
        self._rows = {
            vertex: np.sort(rng.choice(count, size=landmarks_per_vertex, replace=False))
            for vertex in landmark_table.index
        }
        logger.info(f"ALT inconsistent heuristic initialized: {count} landmarks, "
                    f"{landmarks_per_vertex} per vertex")

    @property
    def name(self) -> str:
        return "ALTInconsistent"

    def landmarks_for(self, vertex: Vertex) -> list:
        """Landmarks consulted when estimating from ``vertex``."""
        rows = self._rows.get(vertex)
        if rows is None:
            return []
        return [self.base.landmarks[i] for i in rows]

    def estimate(self, vertex: Vertex, target: Vertex) -> float:
        rows = self._rows.get(vertex)
        if rows is None:
            return 0.0
        return self.base.bound(vertex, target, rows=rows)


def select_landmarks(graph: Any, count: int, seed: Optional[int] = 0) -> List[Vertex]:
    """Pick ``count`` landmarks by farthest-point selection.

    The first landmark is drawn at random; each next one is the vertex whose
    distance from the nearest chosen landmark is largest. Vertices no chosen
    landmark reaches count as farthest.
    """
    vertices = list(graph.vertices())
    if not 1 <= count <= len(vertices):
        raise ValueError(f"count must be between 1 and {len(vertices)}, got {count}")

    rng = np.random.default_rng(seed)
    chosen = [vertices[int(rng.integers(len(vertices)))]]
    while len(chosen) < count:
        distances, index = shortest_path_costs(graph, chosen)
        nearest = distances.min(axis=0)
        for vertex in chosen:
            nearest[index[vertex]] = -np.inf
        position = int(np.argmax(nearest))
        chosen.append(next(v for v, i in index.items() if i == position))
    return chosen


def create_alt_heuristic(graph: Any,
                         landmarks: Optional[Sequence[Vertex]] = None,
                         num_landmarks: Optional[int] = None,
                         landmarks_per_vertex: Optional[int] = None,
                         seed: Optional[int] = None) -> ALTInconsistentHeuristic:
    """Factory function to create an ALT inconsistent heuristic.

    Unset arguments are read from ``search.heuristics`` of the loaded
    configuration, falling back to 4 landmarks, 1 per vertex, seed 0.

    Args:
        graph: Graph the distance tables are computed on
        landmarks: Explicit landmarks; selected with ``select_landmarks`` if None
        num_landmarks: Number of landmarks to select (capped at the vertex count)
        landmarks_per_vertex: Landmarks consulted per vertex
        seed: Seed for landmark selection and per-vertex assignment

    Returns:
        Configured ALTInconsistentHeuristic instance
    """
    if seed is None:
        seed = get_parameter('search.heuristics.seed', 0)
    if landmarks is None:
        if num_landmarks is None:
            num_landmarks = get_parameter('search.heuristics.num_landmarks', 4)
        num_landmarks = min(num_landmarks, len(list(graph.vertices())))
        landmarks = select_landmarks(graph, num_landmarks, seed)
    if landmarks_per_vertex is None:
        landmarks_per_vertex = min(get_parameter('search.heuristics.landmarks_per_vertex', 1),
                                   len(landmarks))

    return ALTInconsistentHeuristic(graph, landmarks,
                                    landmarks_per_vertex=landmarks_per_vertex, seed=seed)
