"""Search algorithms for pathmax.

This module implements A* search for admissible heuristics that may be
inconsistent, with BPMX (bidirectional pathmax) heuristic repair.
"""

from .heuristics import (
    AdmissibleHeuristic, InconsistentHeuristic, ZeroHeuristic, CallableHeuristic,
    TableHeuristic, MaxHeuristic, LandmarkHeuristic, as_heuristic, supports_repair
)
from .bpmx import BPMXHeuristic, ALTInconsistentHeuristic, select_landmarks, create_alt_heuristic
from .frontier import Frontier
from .score_table import ScoreTable, HeuristicScoreMap
from .astar import AStarSearcher, SearchConfig, search, create_astar_searcher

__all__ = [
    'AdmissibleHeuristic',
    'InconsistentHeuristic',
    'ZeroHeuristic',
    'CallableHeuristic',
    'TableHeuristic',
    'MaxHeuristic',
    'LandmarkHeuristic',
    'as_heuristic',
    'supports_repair',
    'BPMXHeuristic',
    'ALTInconsistentHeuristic',
    'select_landmarks',
    'create_alt_heuristic',
    'Frontier',
    'ScoreTable',
    'HeuristicScoreMap',
    'AStarSearcher',
    'SearchConfig',
    'search',
    'create_astar_searcher'
]
