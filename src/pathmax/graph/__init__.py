"""Graph collaborator and exact distance helpers."""

from .weighted_graph import GraphLike, WeightedGraph
from .distances import (
    all_pairs_costs, distances_to, shortest_path_cost, shortest_path_costs,
    vertices_reaching
)

__all__ = [
    'GraphLike',
    'WeightedGraph',
    'all_pairs_costs',
    'distances_to',
    'shortest_path_cost',
    'shortest_path_costs',
    'vertices_reaching'
]
