"""Exception hierarchy for pathmax.

All of these signal a broken collaborator contract (graph or heuristic) and
abort the running search. Reaching no path at all is not an error; it is
reported through ``SearchOutcome.UNREACHABLE``.
"""

from typing import Any


class PathmaxError(Exception):
    """Base class for all pathmax errors."""
    pass


class SearchError(PathmaxError):
    """Base class for contract violations detected during a search."""
    pass


class InvalidHeuristicRepair(SearchError):
    """Raised when a repair step tries to lower a stored heuristic value.

    Also raised for NaN values, which compare neither above nor below the
    stored one; ``previous`` is None when the vertex had no value yet.

    The stored value is left untouched; lowering it would mean the earlier
    value overestimated the remaining cost, so the search can no longer
    guarantee optimality.
    """

    def __init__(self, vertex: Any, previous: float, attempted: float):
        self.vertex = vertex
        self.previous = previous
        self.attempted = attempted
        if attempted != attempted:
            message = (f"Heuristic value for vertex {vertex!r} is NaN "
                       f"(stored value: {previous})")
        else:
            message = (f"Heuristic repair for vertex {vertex!r} attempted to lower h "
                       f"from {previous} to {attempted}")
        super().__init__(message)


class NegativeEdgeWeight(SearchError):
    """Raised when the graph reports a negative (or NaN) edge weight."""

    def __init__(self, source: Any, destination: Any, weight: float):
        self.source = source
        self.destination = destination
        self.weight = weight
        super().__init__(
            f"Edge {source!r} -> {destination!r} has invalid weight {weight}; "
            f"weights must be non-negative"
        )


class TargetMismatch(SearchError):
    """Raised when a heuristic is used against a target it was not built for."""

    def __init__(self, expected: Any, actual: Any):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Heuristic is bound to target {expected!r} but was asked about {actual!r}"
        )
