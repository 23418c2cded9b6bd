"""Weighted graph used as the search collaborator.

The search engine only needs ``outgoing_edges``; ``incoming_edges`` feeds
predecessor pathmax, and ``vertices``/``edges`` feed the consistency check and
the scipy distance tables.
"""

import logging
from typing import Dict, Hashable, Iterable, Iterator, List, Optional, Protocol, Tuple, runtime_checkable

import numpy as np
from scipy.sparse import csr_matrix

from pathmax.core.data_models import Edge, Vertex
from pathmax.core.exceptions import NegativeEdgeWeight

logger = logging.getLogger(__name__)


@runtime_checkable
class GraphLike(Protocol):
    """Minimal graph contract required by the search engine."""

    def outgoing_edges(self, vertex: Vertex) -> Iterable[Tuple[Vertex, float]]:
        ...


class WeightedGraph:
    """Adjacency-list graph with non-negative edge weights.

    Parallel edges are kept as separate entries; the search relaxes each of
    them and therefore ends up using the cheapest. For undirected graphs each
    edge is reported in both directions.
    """

    def __init__(self, directed: bool = True):
        self.directed = directed
        self._out: Dict[Vertex, List[Tuple[Vertex, float]]] = {}
        self._in: Dict[Vertex, List[Tuple[Vertex, float]]] = {}
        self._edge_count = 0

    @classmethod
    def from_edges(cls, edges: Iterable[Tuple], directed: bool = True,
                   vertices: Optional[Iterable[Vertex]] = None) -> 'WeightedGraph':
        """Build a graph from ``(u, v)`` or ``(u, v, weight)`` tuples."""
        graph = cls(directed=directed)
        for vertex in vertices or ():
            graph.add_vertex(vertex)
        for edge in edges:
            if len(edge) == 2:
                graph.add_edge(edge[0], edge[1])
            else:
                graph.add_edge(edge[0], edge[1], edge[2])
        return graph

    def add_vertex(self, vertex: Vertex) -> None:
        if vertex not in self._out:
            self._out[vertex] = []
            self._in[vertex] = []

    def add_edge(self, source: Vertex, target: Vertex, weight: float = 1.0) -> Edge:
        """Add an edge, creating missing endpoints.

        Raises:
            NegativeEdgeWeight: if ``weight`` is negative or NaN
        """
        weight = float(weight)
        if not weight >= 0.0:
            raise NegativeEdgeWeight(source, target, weight)

        self.add_vertex(source)
        self.add_vertex(target)
        self._out[source].append((target, weight))
        self._in[target].append((source, weight))
        if not self.directed and source != target:
            self._out[target].append((source, weight))
            self._in[source].append((target, weight))
        self._edge_count += 1
        return Edge(source, target, weight)

    def has_vertex(self, vertex: Vertex) -> bool:
        return vertex in self._out

    def outgoing_edges(self, vertex: Vertex) -> List[Tuple[Vertex, float]]:
        """Return ``(destination, weight)`` pairs leaving ``vertex``."""
        return list(self._out.get(vertex, ()))

    def incoming_edges(self, vertex: Vertex) -> List[Tuple[Vertex, float]]:
        """Return ``(source, weight)`` pairs entering ``vertex``."""
        return list(self._in.get(vertex, ()))

    def vertices(self) -> List[Vertex]:
        return list(self._out)

    def edges(self) -> Iterator[Edge]:
        """Iterate over every directed edge (undirected edges appear twice)."""
        for source, adjacent in self._out.items():
            for target, weight in adjacent:
                yield Edge(source, target, weight)

    def number_of_vertices(self) -> int:
        return len(self._out)

    def number_of_edges(self) -> int:
        """Number of edges added (an undirected edge counts once)."""
        return self._edge_count

    def __contains__(self, vertex: Hashable) -> bool:
        return vertex in self._out

    def __len__(self) -> int:
        return len(self._out)

    def to_csgraph(self) -> Tuple[csr_matrix, Dict[Vertex, int]]:
        """Export as a scipy sparse matrix for ``scipy.sparse.csgraph``.

        Parallel edges collapse to their minimum weight and zero-weight edges
        are kept as explicit entries so csgraph still sees them.

        Returns:
            ``(matrix, index)`` where ``index`` maps vertex -> row/column
        """
        index = {vertex: i for i, vertex in enumerate(self._out)}
        n = len(index)

        best: Dict[Tuple[int, int], float] = {}
        for source, target, weight in self.edges():
            key = (index[source], index[target])
            if key not in best or weight < best[key]:
                best[key] = weight

        # Keys are unique, so the COO constructor has nothing to sum
        rows = np.fromiter((i for i, _ in best), dtype=np.int32, count=len(best))
        cols = np.fromiter((j for _, j in best), dtype=np.int32, count=len(best))
        data = np.fromiter(best.values(), dtype=np.float64, count=len(best))

        matrix = csr_matrix((data, (rows, cols)), shape=(n, n))
        logger.debug(f"Exported graph to csgraph: {n} vertices, {len(best)} edges")
        return matrix, index
