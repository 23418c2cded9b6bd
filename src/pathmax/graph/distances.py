"""Exact shortest-path distance tables backed by ``scipy.sparse.csgraph``.

Used to build landmark tables and as the reference oracle when checking
search results.
"""

import logging
from typing import Dict, Iterable, Sequence, Tuple

import numpy as np
from scipy.sparse.csgraph import dijkstra

from pathmax.core.data_models import Vertex
from pathmax.graph.weighted_graph import WeightedGraph

logger = logging.getLogger(__name__)


def shortest_path_costs(graph: WeightedGraph, sources: Sequence[Vertex],
                        reverse: bool = False) -> Tuple[np.ndarray, Dict[Vertex, int]]:
    """Compute single-source distances from each of ``sources``.

    Args:
        graph: Graph to measure
        sources: Source vertices (rows of the result)
        reverse: If True, measure distances *to* each source instead

    Returns:
        ``(distances, index)``: a ``len(sources) x |V|`` float matrix with
        ``inf`` for unreachable pairs, and the vertex -> column mapping
    """
    matrix, index = graph.to_csgraph()
    if reverse:
        matrix = matrix.transpose().tocsr()

    missing = [s for s in sources if s not in index]
    if missing:
        raise KeyError(f"Source vertices not in graph: {missing!r}")

    if not sources or matrix.shape[0] == 0:
        return np.zeros((len(sources), matrix.shape[0])), index

    rows = [index[s] for s in sources]
    distances = dijkstra(matrix, directed=True, indices=rows)
    distances = np.atleast_2d(np.asarray(distances, dtype=np.float64))
    logger.debug(f"Computed {'reverse ' if reverse else ''}distances from {len(rows)} sources")
    return distances, index


def shortest_path_cost(graph: WeightedGraph, source: Vertex, target: Vertex) -> float:
    """Exact shortest-path cost from ``source`` to ``target`` (``inf`` if none)."""
    distances, index = shortest_path_costs(graph, [source])
    return float(distances[0, index[target]])


def all_pairs_costs(graph: WeightedGraph) -> Tuple[np.ndarray, Dict[Vertex, int]]:
    """All-pairs shortest-path costs (intended for small graphs)."""
    return shortest_path_costs(graph, graph.vertices())


def distances_to(graph: WeightedGraph, target: Vertex) -> Dict[Vertex, float]:
    """Exact remaining cost from every vertex to ``target``."""
    distances, index = shortest_path_costs(graph, [target], reverse=True)
    return {vertex: float(distances[0, col]) for vertex, col in index.items()}


def vertices_reaching(graph: WeightedGraph, target: Vertex) -> Iterable[Vertex]:
    """Vertices from which ``target`` is reachable."""
    return [v for v, cost in distances_to(graph, target).items() if np.isfinite(cost)]
