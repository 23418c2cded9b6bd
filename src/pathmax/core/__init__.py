"""Core data models and exceptions."""

from .data_models import (
    INF, Edge, FrontierEntry, ScoreEntry, SearchOutcome, SearchResult,
    SearchStatistics, Vertex, VertexStatus
)
from .exceptions import (
    InvalidHeuristicRepair, NegativeEdgeWeight, PathmaxError, SearchError,
    TargetMismatch
)

__all__ = [
    'INF',
    'Edge',
    'FrontierEntry',
    'ScoreEntry',
    'SearchOutcome',
    'SearchResult',
    'SearchStatistics',
    'Vertex',
    'VertexStatus',
    'InvalidHeuristicRepair',
    'NegativeEdgeWeight',
    'PathmaxError',
    'SearchError',
    'TargetMismatch'
]
