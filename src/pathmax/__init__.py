"""pathmax: A* search with admissible, inconsistent heuristics and BPMX repair."""

__version__ = "0.1.0"

from pathmax.core import (
    Edge, SearchOutcome, SearchResult, SearchStatistics, VertexStatus,
    PathmaxError, SearchError, InvalidHeuristicRepair, NegativeEdgeWeight, TargetMismatch
)
from pathmax.graph import WeightedGraph
from pathmax.search import (
    AdmissibleHeuristic, InconsistentHeuristic, BPMXHeuristic, ALTInconsistentHeuristic,
    AStarSearcher, SearchConfig, search, create_astar_searcher
)

__all__ = [
    'Edge',
    'SearchOutcome',
    'SearchResult',
    'SearchStatistics',
    'VertexStatus',
    'PathmaxError',
    'SearchError',
    'InvalidHeuristicRepair',
    'NegativeEdgeWeight',
    'TargetMismatch',
    'WeightedGraph',
    'AdmissibleHeuristic',
    'InconsistentHeuristic',
    'BPMXHeuristic',
    'ALTInconsistentHeuristic',
    'AStarSearcher',
    'SearchConfig',
    'search',
    'create_astar_searcher'
]
