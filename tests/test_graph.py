"""Tests for the weighted graph and scipy-backed distance tables."""

import math

import numpy as np
import pytest

from pathmax.core.exceptions import NegativeEdgeWeight
from pathmax.graph import (
    GraphLike, WeightedGraph, all_pairs_costs, distances_to, shortest_path_cost,
    shortest_path_costs, vertices_reaching
)


class TestWeightedGraph:
    """Test graph construction and adjacency queries."""

    @pytest.fixture
    def graph(self):
        """Small directed graph."""
        return WeightedGraph.from_edges([
            ('S', 'A', 1), ('S', 'B', 4), ('A', 'B', 1), ('A', 'T', 5), ('B', 'T', 1)
        ])

    def test_adjacency(self, graph):
        """Outgoing and incoming edges are reported with weights."""
        assert graph.outgoing_edges('S') == [('A', 1.0), ('B', 4.0)]
        assert graph.incoming_edges('T') == [('A', 5.0), ('B', 1.0)]
        assert graph.outgoing_edges('T') == []
        assert graph.outgoing_edges('missing') == []

    def test_counts(self, graph):
        """Vertex and edge counts."""
        assert graph.number_of_vertices() == 4
        assert graph.number_of_edges() == 5
        assert len(graph) == 4
        assert 'A' in graph
        assert graph.has_vertex('T')
        assert not graph.has_vertex('Z')
        assert isinstance(graph, GraphLike)

    def test_negative_weight_rejected(self, graph):
        """Negative and NaN weights are refused at insertion."""
        with pytest.raises(NegativeEdgeWeight):
            graph.add_edge('A', 'S', -1.0)
        with pytest.raises(NegativeEdgeWeight):
            graph.add_edge('A', 'S', float('nan'))
        assert graph.number_of_edges() == 5

    def test_undirected_mirrors_edges(self):
        """Undirected edges are visible from both ends."""
        graph = WeightedGraph.from_edges([('a', 'b', 2.0)], directed=False)

        assert graph.outgoing_edges('a') == [('b', 2.0)]
        assert graph.outgoing_edges('b') == [('a', 2.0)]
        assert graph.incoming_edges('a') == [('b', 2.0)]
        assert graph.number_of_edges() == 1
        assert len(list(graph.edges())) == 2

    def test_default_weight_and_isolated_vertices(self):
        """Two-tuples get unit weight; extra vertices can be declared."""
        graph = WeightedGraph.from_edges([('a', 'b')], vertices=['z'])

        assert graph.outgoing_edges('a') == [('b', 1.0)]
        assert set(graph.vertices()) == {'a', 'b', 'z'}

    def test_parallel_edges_kept(self):
        """Parallel edges stay separate in the adjacency list."""
        graph = WeightedGraph()
        graph.add_edge('a', 'b', 3.0)
        graph.add_edge('a', 'b', 1.0)

        assert graph.outgoing_edges('a') == [('b', 3.0), ('b', 1.0)]


class TestCsgraphExport:
    """Test conversion to scipy sparse matrices."""

    def test_parallel_edges_collapse_to_minimum(self):
        """The exported matrix keeps the cheapest parallel edge."""
        graph = WeightedGraph()
        graph.add_edge('a', 'b', 3.0)
        graph.add_edge('a', 'b', 1.0)

        matrix, index = graph.to_csgraph()

        assert matrix.shape == (2, 2)
        assert matrix[index['a'], index['b']] == 1.0
        assert matrix.nnz == 1

    def test_matrix_matches_edges(self):
        """Every edge lands in its row and column; isolated vertices stay empty."""
        graph = WeightedGraph.from_edges(
            [('a', 'c', 2.0), ('c', 'a', 4.0), ('b', 'c', 1.5), ('a', 'b', 3.0)],
            vertices=['d'])

        matrix, index = graph.to_csgraph()
        dense = matrix.toarray()

        assert matrix.format == 'csr'
        assert matrix.nnz == 4
        assert dense[index['a'], index['c']] == 2.0
        assert dense[index['c'], index['a']] == 4.0
        assert dense[index['b'], index['c']] == 1.5
        assert dense[index['a'], index['b']] == 3.0
        assert dense[index['d']].sum() == 0.0

    def test_zero_weight_edges_are_explicit(self):
        """Zero-weight edges survive as stored entries."""
        graph = WeightedGraph.from_edges([('a', 'b', 0.0), ('b', 'c', 2.0)])

        matrix, index = graph.to_csgraph()

        assert matrix.nnz == 2
        assert 0.0 in matrix.data


class TestDistances:
    """Test exact distance helpers."""

    @pytest.fixture
    def graph(self):
        """Directed graph with one vertex that cannot reach the others."""
        return WeightedGraph.from_edges([
            ('S', 'A', 1), ('S', 'B', 4), ('A', 'B', 1), ('A', 'T', 5), ('B', 'T', 1)
        ], vertices=['X'])

    def test_shortest_path_cost(self, graph):
        """Costs match hand-computed values."""
        assert shortest_path_cost(graph, 'S', 'T') == 3.0
        assert shortest_path_cost(graph, 'A', 'T') == 2.0
        assert math.isinf(shortest_path_cost(graph, 'T', 'S'))
        assert math.isinf(shortest_path_cost(graph, 'X', 'T'))

    def test_distances_to(self, graph):
        """Remaining costs towards a target use reversed edges."""
        remaining = distances_to(graph, 'T')

        assert remaining['S'] == 3.0
        assert remaining['A'] == 2.0
        assert remaining['B'] == 1.0
        assert remaining['T'] == 0.0
        assert math.isinf(remaining['X'])
        assert set(vertices_reaching(graph, 'T')) == {'S', 'A', 'B', 'T'}

    def test_multiple_sources(self, graph):
        """One row per source."""
        distances, index = shortest_path_costs(graph, ['S', 'A'])

        assert distances.shape == (2, 5)
        assert distances[0, index['B']] == 2.0
        assert distances[1, index['B']] == 1.0

    def test_all_pairs(self, graph):
        """All-pairs matrix has a zero diagonal."""
        distances, index = all_pairs_costs(graph)

        assert distances.shape == (5, 5)
        assert np.all(np.diag(distances) == 0.0)

    def test_unknown_source(self, graph):
        """Sources must belong to the graph."""
        with pytest.raises(KeyError):
            shortest_path_costs(graph, ['nowhere'])
