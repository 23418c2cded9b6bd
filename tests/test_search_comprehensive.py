"""Comprehensive tests for A* search on random graphs.

Tests all search layer functionality including:
- Optimality against scipy Dijkstra for consistent and inconsistent heuristics
- Admissibility of every value produced by BPMX repair
- Monotone heuristic values within one search
- Path validity
- Independence of concurrent searches sharing one heuristic
"""

import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from pathmax.core.data_models import SearchOutcome
from pathmax.graph import WeightedGraph, all_pairs_costs, distances_to
from pathmax.search.astar import AStarSearcher, SearchConfig
from pathmax.search.bpmx import ALTInconsistentHeuristic, BPMXHeuristic
from pathmax.search.heuristics import (
    LandmarkHeuristic, MaxHeuristic, TableHeuristic, ZeroHeuristic
)

logger = logging.getLogger(__name__)

SEEDS = [0, 1, 2, 3]


def random_graph(seed: int, num_vertices: int = 30, num_edges: int = 90) -> WeightedGraph:
    """Directed graph with integer weights in [1, 9]."""
    rng = np.random.default_rng(seed)
    graph = WeightedGraph()
    for v in range(num_vertices):
        graph.add_vertex(v)
    for _ in range(num_edges):
        source, target = rng.integers(0, num_vertices, size=2)
        graph.add_edge(int(source), int(target), float(rng.integers(1, 10)))
    return graph


def sample_pairs(seed: int, num_vertices: int = 30, count: int = 12):
    rng = np.random.default_rng(seed + 100)
    return [(int(s), int(t)) for s, t in rng.integers(0, num_vertices, size=(count, 2))]


def noisy_table(graph: WeightedGraph, target, seed: int) -> TableHeuristic:
    """True remaining cost scaled by independent random factors: admissible, inconsistent."""
    rng = np.random.default_rng(seed)
    values = {
        v: cost * rng.uniform(0.1, 1.0)
        for v, cost in distances_to(graph, target).items()
    }
    return TableHeuristic(values, target=target)


def min_edge_weights(graph: WeightedGraph):
    weights = {}
    for source, target, weight in graph.edges():
        key = (source, target)
        weights[key] = min(weight, weights.get(key, weight))
    return weights


def check_result(result, start, target, distances, index, edge_weights):
    """Compare a search result with the exact distance and validate its path."""
    expected = distances[index[start], index[target]]
    if np.isinf(expected):
        assert result.outcome is SearchOutcome.UNREACHABLE
        return

    assert result.outcome is SearchOutcome.FOUND
    assert result.cost == pytest.approx(expected)
    assert result.path[0] == start
    assert result.path[-1] == target
    path_cost = sum(edge_weights[(u, v)] for u, v in zip(result.path, result.path[1:]))
    assert path_cost == pytest.approx(result.cost)


class CheckedBPMX(BPMXHeuristic):
    """BPMX heuristic that checks every repaired value against the true remaining cost."""

    def __init__(self, base, graph, truth):
        super().__init__(base, graph)
        self.truth = truth
        self.violations = []
        self.history = {}

    def _check(self, h_score_map):
        for vertex, value in h_score_map.items():
            if value > self.truth[vertex] + 1e-9:
                self.violations.append((vertex, value, self.truth[vertex]))
            self.history.setdefault(vertex, []).append(value)

    def update_expanded_heuristic(self, expanded, target, h_score_map):
        value = super().update_expanded_heuristic(expanded, target, h_score_map)
        self._check(h_score_map)
        return value

    def update_successor_heuristic(self, successor, target, h_parent, edge_weight, h_score_map):
        changed = super().update_successor_heuristic(
            successor, target, h_parent, edge_weight, h_score_map)
        self._check(h_score_map)
        return changed


class TestOptimality:
    """Test A* returns exact shortest-path costs for every heuristic kind."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_zero_heuristic(self, seed):
        graph = random_graph(seed)
        distances, index = all_pairs_costs(graph)
        weights = min_edge_weights(graph)
        searcher = AStarSearcher(SearchConfig())

        for start, target in sample_pairs(seed):
            result = searcher.search(start, target, graph, ZeroHeuristic())
            check_result(result, start, target, distances, index, weights)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_landmark_heuristic(self, seed):
        graph = random_graph(seed)
        distances, index = all_pairs_costs(graph)
        weights = min_edge_weights(graph)
        heuristic = LandmarkHeuristic(graph, [0, 7, 15, 22])
        searcher = AStarSearcher(SearchConfig())

        for start, target in sample_pairs(seed):
            result = searcher.search(start, target, graph, heuristic)
            check_result(result, start, target, distances, index, weights)
            if result.found:
                # consistent heuristic: no vertex is ever re-opened
                assert result.nodes_reexpanded == 0

    @pytest.mark.parametrize("seed", SEEDS)
    @pytest.mark.parametrize("policy", ['always', 'never'])
    def test_alt_inconsistent_heuristic(self, seed, policy):
        graph = random_graph(seed)
        distances, index = all_pairs_costs(graph)
        weights = min_edge_weights(graph)
        heuristic = ALTInconsistentHeuristic(graph, [0, 7, 15, 22], landmarks_per_vertex=1, seed=seed)
        searcher = AStarSearcher(SearchConfig(repair_policy=policy))

        for start, target in sample_pairs(seed):
            result = searcher.search(start, target, graph, heuristic)
            check_result(result, start, target, distances, index, weights)
            assert result.repair_enabled == (policy == 'always')

    @pytest.mark.parametrize("seed", SEEDS)
    @pytest.mark.parametrize("policy", ['always', 'never'])
    def test_noisy_table_heuristic(self, seed, policy):
        graph = random_graph(seed)
        distances, index = all_pairs_costs(graph)
        weights = min_edge_weights(graph)
        searcher = AStarSearcher(SearchConfig(repair_policy=policy))

        for start, target in sample_pairs(seed):
            heuristic = BPMXHeuristic(noisy_table(graph, target, seed), graph)
            result = searcher.search(start, target, graph, heuristic)
            check_result(result, start, target, distances, index, weights)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_max_heuristic(self, seed):
        graph = random_graph(seed)
        distances, index = all_pairs_costs(graph)
        weights = min_edge_weights(graph)
        landmarks = LandmarkHeuristic(graph, [3, 11])
        searcher = AStarSearcher(SearchConfig())

        for start, target in sample_pairs(seed):
            heuristic = BPMXHeuristic(MaxHeuristic(landmarks, noisy_table(graph, target, seed)), graph)
            result = searcher.search(start, target, graph, heuristic)
            check_result(result, start, target, distances, index, weights)


class TestRepairInvariants:
    """Test admissibility and monotonicity of repaired values."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_repairs_stay_admissible(self, seed):
        graph = random_graph(seed)
        searcher = AStarSearcher(SearchConfig(repair_policy='always'))
        total_repairs = 0

        for start, target in sample_pairs(seed):
            truth = distances_to(graph, target)
            heuristic = CheckedBPMX(noisy_table(graph, target, seed), graph, truth)

            result = searcher.search(start, target, graph, heuristic)
            total_repairs += result.statistics.heuristic_repairs

            assert heuristic.violations == []
            for values in heuristic.history.values():
                assert values == sorted(values)

        logger.info(f"seed {seed}: {total_repairs} repairs")

    @pytest.mark.parametrize("seed", SEEDS)
    def test_alt_repairs_stay_admissible(self, seed):
        graph = random_graph(seed)
        base = ALTInconsistentHeuristic(graph, [0, 7, 15, 22], seed=seed)
        searcher = AStarSearcher(SearchConfig(repair_policy='always'))

        for start, target in sample_pairs(seed):
            heuristic = CheckedBPMX(base, graph, distances_to(graph, target))
            searcher.search(start, target, graph, heuristic)

            assert heuristic.violations == []

    def test_statistics_are_consistent(self):
        graph = random_graph(5)
        heuristic = ALTInconsistentHeuristic(graph, [0, 7, 15, 22], seed=5)
        searcher = AStarSearcher(SearchConfig(repair_policy='always'))

        for start, target in sample_pairs(5):
            stats = searcher.search(start, target, graph, heuristic).statistics

            assert stats.heuristic_repairs == stats.expanded_repairs + stats.successor_repairs
            assert stats.nodes_reexpanded <= stats.nodes_expanded
            assert stats.heuristic_computations <= stats.nodes_generated + 1


class TestConcurrentSearches:
    """Test searches sharing one heuristic instance do not interfere."""

    def test_shared_heuristic_across_threads(self):
        graph = random_graph(11, num_vertices=40, num_edges=140)
        distances, index = all_pairs_costs(graph)
        weights = min_edge_weights(graph)
        heuristic = ALTInconsistentHeuristic(graph, [0, 10, 20, 30], seed=11)
        pairs = sample_pairs(11, num_vertices=40, count=24)

        def run(pair):
            start, target = pair
            return AStarSearcher(SearchConfig(repair_policy='always')).search(
                start, target, graph, heuristic)

        with ThreadPoolExecutor(max_workers=4) as executor:
            results = list(executor.map(run, pairs))

        for (start, target), result in zip(pairs, results):
            check_result(result, start, target, distances, index, weights)

    def test_repeated_search_is_deterministic(self):
        """The same query gives the same path and counters every time."""
        graph = random_graph(12)
        heuristic = ALTInconsistentHeuristic(graph, [0, 7, 15, 22], seed=12)
        searcher = AStarSearcher(SearchConfig(repair_policy='always'))

        for start, target in sample_pairs(12):
            first = searcher.search(start, target, graph, heuristic)
            second = searcher.search(start, target, graph, heuristic)

            assert first.path == second.path
            assert first.statistics.to_dict() == second.statistics.to_dict()
