"""A* search for admissible, possibly inconsistent heuristics.

Closed vertices are re-opened whenever a strictly cheaper path to them is
found, so the first time the target leaves the frontier its cost is optimal
even when the heuristic is inconsistent. When the heuristic supports BPMX
repair, heuristic values are raised during the search: once for every
expanded vertex (from its scored predecessors) and once for every generated
successor (from the expanded vertex).
"""

import logging
import os
import time
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, Optional

from omegaconf import DictConfig, OmegaConf

from pathmax.config import get_config
from pathmax.core.data_models import (
    SearchOutcome, SearchResult, SearchStatistics, Vertex, VertexStatus
)
from pathmax.core.exceptions import (
    InvalidHeuristicRepair, NegativeEdgeWeight, SearchError, TargetMismatch
)
from pathmax.search.frontier import Frontier
from pathmax.search.heuristics import as_heuristic, supports_repair
from pathmax.search.score_table import ScoreTable

logger = logging.getLogger(__name__)

REPAIR_POLICIES = ('auto', 'always', 'never')


@dataclass
class SearchConfig:
    """Configuration for A* search."""
    max_nodes_expanded: Optional[int] = None  # None: unlimited
    max_computation_time: Optional[float] = None  # seconds, None: unlimited
    repair_policy: str = 'auto'  # auto | always | never
    strict_target_check: bool = True  # reject heuristics bound to another target
    validate_edge_weights: bool = True  # reject negative / NaN weights
    log_progress_every: int = 0  # expansions between progress lines, 0 disables

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if self.repair_policy not in REPAIR_POLICIES:
            raise ValueError(f"repair_policy must be one of {REPAIR_POLICIES}, "
                             f"got {self.repair_policy!r}")
        if self.max_nodes_expanded is not None and self.max_nodes_expanded <= 0:
            raise ValueError(f"max_nodes_expanded must be positive, got {self.max_nodes_expanded}")
        if self.max_computation_time is not None and self.max_computation_time <= 0:
            raise ValueError(f"max_computation_time must be positive, got {self.max_computation_time}")
        if self.log_progress_every < 0:
            raise ValueError(f"log_progress_every must be >= 0, got {self.log_progress_every}")

    @classmethod
    def from_config(cls, cfg: Optional[DictConfig] = None) -> 'SearchConfig':
        """Build a config from ``search.astar`` of a Hydra config.

        Falls back to the globally loaded config, then to defaults.
        Environment variables override file values for quick experiments:
        ``PATHMAX_MAX_NODES``, ``PATHMAX_MAX_TIME``, ``PATHMAX_REPAIR_POLICY``.
        """
        config = cls()
        if cfg is None:
            cfg = get_config()

        if cfg is not None:
            astar_cfg = OmegaConf.select(cfg, 'search.astar', default=None)
            if astar_cfg is not None:
                for f in fields(cls):
                    if f.name in astar_cfg:
                        setattr(config, f.name, astar_cfg[f.name])

        if 'PATHMAX_MAX_NODES' in os.environ:
            config.max_nodes_expanded = int(os.environ['PATHMAX_MAX_NODES'])
        if 'PATHMAX_MAX_TIME' in os.environ:
            config.max_computation_time = float(os.environ['PATHMAX_MAX_TIME'])
        if 'PATHMAX_REPAIR_POLICY' in os.environ:
            config.repair_policy = os.environ['PATHMAX_REPAIR_POLICY'].lower()

        config.validate()
        return config


class AStarSearcher:
    """A* search with re-expansion and optional BPMX heuristic repair."""

    def __init__(self, config: Optional[SearchConfig] = None):
        """Initialize A* searcher.

        Args:
            config: Search configuration; defaults come from the loaded
                Hydra config (if any) and the environment
        """
        self.config = config or SearchConfig.from_config()
        self.statistics = SearchStatistics()
        self.last_result: Optional[SearchResult] = None

        logger.info(f"A* searcher initialized with repair_policy={self.config.repair_policy}, "
                    f"max_nodes={self.config.max_nodes_expanded}, "
                    f"max_time={self.config.max_computation_time}")

    def repair_enabled(self, heuristic: Any, graph: Any) -> bool:
        """Decide whether the BPMX update operations are called.

        Skipping repair never changes the returned cost, only the amount of
        work, so ``is_consistent`` is treated as a hint.
        """
        policy = self.config.repair_policy
        if policy == 'never' or not supports_repair(heuristic):
            return False
        if policy == 'always':
            return True
        is_consistent = getattr(heuristic, 'is_consistent', None)
        if is_consistent is None:
            return True
        return not is_consistent(graph)

    def search(self, start: Vertex, target: Vertex, graph: Any,
               heuristic: Any = None,
               should_stop: Optional[Callable[[], bool]] = None) -> SearchResult:
        """Find a cheapest path from ``start`` to ``target``.

        Args:
            start: Start vertex
            target: Target vertex (fixed for the whole search)
            graph: Object exposing ``outgoing_edges(vertex)``
            heuristic: Admissible heuristic, plain callable or None (Dijkstra)
            should_stop: Optional callable checked once per iteration; a true
                value ends the search with ``BUDGET_EXHAUSTED``

        Returns:
            SearchResult with the path and its cost, or an UNREACHABLE /
            BUDGET_EXHAUSTED outcome

        Raises:
            NegativeEdgeWeight: the graph reported a negative or NaN weight
            InvalidHeuristicRepair: a repair step tried to lower a value
            TargetMismatch: the heuristic was built for a different target
        """
        start_time = time.perf_counter()
        self.statistics = SearchStatistics()
        heuristic = as_heuristic(heuristic)

        try:
            self._prepare_heuristic(heuristic, target)
            repair = self.repair_enabled(heuristic, graph)

            logger.info(f"Starting A* search: {start!r} -> {target!r} "
                        f"(heuristic={getattr(heuristic, 'name', type(heuristic).__name__)}, "
                        f"repair={repair})")

            result = self._run(start, target, graph, heuristic, repair, start_time, should_stop)

        except SearchError as e:
            logger.error(f"A* search aborted: {e}")
            raise

        result.computation_time = time.perf_counter() - start_time
        self.last_result = result
        logger.info(f"A* search finished: {result.outcome.value} ({result.termination_reason}), "
                    f"cost={result.cost}, expanded={self.statistics.nodes_expanded}, "
                    f"reexpanded={self.statistics.nodes_reexpanded}, "
                    f"repairs={self.statistics.heuristic_repairs}")
        return result

    def _prepare_heuristic(self, heuristic: Any, target: Vertex) -> None:
        if self.config.strict_target_check:
            bound = getattr(heuristic, 'bound_target', None)
            if bound is not None and bound != target:
                raise TargetMismatch(bound, target)
        prepare = getattr(heuristic, 'prepare', None)
        if prepare is not None:
            prepare(target)

    def _run(self, start: Vertex, target: Vertex, graph: Any, heuristic: Any,
             repair: bool, start_time: float,
             should_stop: Optional[Callable[[], bool]]) -> SearchResult:
        stats = self.statistics
        table = ScoreTable(target, heuristic.estimate)
        frontier = Frontier()

        def finish(outcome: SearchOutcome, reason: str, path=None, cost=None) -> SearchResult:
            stats.heuristic_computations = table.heuristic_computations
            stats.heuristic_repairs = stats.expanded_repairs + stats.successor_repairs
            stats.stale_entries_skipped = frontier.discarded
            return SearchResult(
                outcome=outcome,
                start=start,
                target=target,
                path=path,
                cost=cost,
                termination_reason=reason,
                repair_enabled=repair,
                statistics=stats,
            )

        table.relax(start, 0.0, None)
        table.mark_open(start)
        frontier.push_or_update(start, table.f(start), 0.0)

        max_nodes = self.config.max_nodes_expanded
        deadline = (start_time + self.config.max_computation_time
                    if self.config.max_computation_time is not None else None)

        while frontier:
            # Budget checks, once per iteration
            if max_nodes is not None and stats.nodes_expanded >= max_nodes:
                return finish(SearchOutcome.BUDGET_EXHAUSTED, "max_nodes_reached")
            if deadline is not None and time.perf_counter() > deadline:
                return finish(SearchOutcome.BUDGET_EXHAUSTED, "timeout")
            if should_stop is not None and should_stop():
                return finish(SearchOutcome.BUDGET_EXHAUSTED, "stopped")

            current = frontier.pop_min()

            if current == target:
                path = table.reconstruct_path(target)
                return finish(SearchOutcome.FOUND, "goal_reached", path=path, cost=table.g(target))

            # Superseded heap entries were already dropped by the frontier
            entry = table.get(current)
            if entry.expansions > 0:
                stats.nodes_reexpanded += 1
                logger.debug(f"Re-expanding {current!r} with g={entry.g}")
            table.mark_closed(current)
            stats.nodes_expanded += 1

            self._expand(current, target, graph, heuristic, repair, table, frontier)
            stats.max_frontier_size = max(stats.max_frontier_size, len(frontier))

            every = self.config.log_progress_every
            if every and stats.nodes_expanded % every == 0:
                logger.info(f"Progress: expanded={stats.nodes_expanded}, "
                            f"frontier={len(frontier)}, best_f={frontier.peek_f()}")

        return finish(SearchOutcome.UNREACHABLE, "search_exhausted")

    def _expand(self, vertex: Vertex, target: Vertex, graph: Any, heuristic: Any,
                repair: bool, table: ScoreTable, frontier: Frontier) -> None:
        """Expand ``vertex``: repair its h, then relax every outgoing edge."""
        stats = self.statistics
        g_vertex = table.g(vertex)
        h_vertex = table.h(vertex)

        if repair:
            h_vertex = self._repair_expanded(heuristic, vertex, target, table)

        for successor, weight in graph.outgoing_edges(vertex):
            weight = float(weight)
            if self.config.validate_edge_weights and not weight >= 0.0:
                raise NegativeEdgeWeight(vertex, successor, weight)
            if successor == vertex:
                continue

            stats.nodes_generated += 1
            table.get(successor)

            if repair and self._repair_successor(heuristic, successor, target,
                                                  h_vertex, weight, table):
                if table.status(successor) is VertexStatus.OPEN:
                    frontier.push_or_update(successor, table.f(successor), table.g(successor))

            candidate_g = g_vertex + weight
            if table.relax(successor, candidate_g, vertex):
                if table.status(successor) is VertexStatus.CLOSED:
                    logger.debug(f"Re-opening {successor!r}: g improved to {candidate_g}")
                table.mark_open(successor)
                frontier.push_or_update(successor, candidate_g + table.h(successor), candidate_g)

    def _repair_expanded(self, heuristic: Any, vertex: Vertex, target: Vertex,
                         table: ScoreTable) -> float:
        h_map = table.h_scores
        previous = h_map[vertex]
        returned = float(heuristic.update_expanded_heuristic(vertex, target, h_map))
        stored = h_map[vertex]

        if returned != stored:
            if returned < stored:
                raise InvalidHeuristicRepair(vertex, stored, returned)
            # The value was returned but not written back; store it ourselves
            logger.debug(f"update_expanded_heuristic did not store h({vertex!r}); storing {returned}")
            table.set_h(vertex, returned)
            stored = returned

        if stored > previous:
            self.statistics.expanded_repairs += 1
            logger.debug(f"Raised h({vertex!r}) on expansion: {previous} -> {stored}")
        return stored

    def _repair_successor(self, heuristic: Any, successor: Vertex, target: Vertex,
                          h_parent: float, weight: float, table: ScoreTable) -> bool:
        h_map = table.h_scores
        previous = h_map[successor]
        reported = bool(heuristic.update_successor_heuristic(
            successor, target, h_parent, weight, h_map))
        changed = h_map[successor] != previous

        if reported != changed:
            logger.debug(f"update_successor_heuristic reported changed={reported} for "
                         f"{successor!r} but the stored value says {changed}")
        if changed:
            self.statistics.successor_repairs += 1
            logger.debug(f"Raised h({successor!r}) from parent: {previous} -> {h_map[successor]}")
        return changed

    def get_search_stats(self) -> Dict[str, Any]:
        """Get statistics of the most recent search."""
        return {
            **self.statistics.to_dict(),
            'config': {
                'max_nodes_expanded': self.config.max_nodes_expanded,
                'max_computation_time': self.config.max_computation_time,
                'repair_policy': self.config.repair_policy,
            }
        }


def search(start: Vertex, target: Vertex, graph: Any, heuristic: Any = None,
           config: Optional[SearchConfig] = None,
           should_stop: Optional[Callable[[], bool]] = None) -> SearchResult:
    """Run a single A* search; see ``AStarSearcher.search``."""
    return AStarSearcher(config).search(start, target, graph, heuristic, should_stop=should_stop)


def create_astar_searcher(max_nodes_expanded: Optional[int] = None,
                          max_computation_time: Optional[float] = None,
                          repair_policy: str = 'auto',
                          strict_target_check: bool = True) -> AStarSearcher:
    """Factory function to create A* searcher with custom configuration.

    Args:
        max_nodes_expanded: Expansion budget (None: unlimited)
        max_computation_time: Time budget in seconds (None: unlimited)
        repair_policy: 'auto', 'always' or 'never'
        strict_target_check: Reject heuristics bound to another target

    Returns:
        Configured AStarSearcher instance
    """
    config = SearchConfig(
        max_nodes_expanded=max_nodes_expanded,
        max_computation_time=max_computation_time,
        repair_policy=repair_policy,
        strict_target_check=strict_target_check,
    )
    return AStarSearcher(config)
