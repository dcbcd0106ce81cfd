"""Match resolution, player pooling and assignment."""

from .assignment import (
    AssignmentResult,
    apply_assignment,
    assign_by_sequential_draw,
    assign_uniform,
    deal_round_robin,
    shuffled,
)
from .catalog import MatchCatalog
from .pool import PlayerPool, PoolEntry
from .resolver import LineupResolver, ResolutionState, ResolvedPlayers
from .scheduler import FetchScheduler, ResolutionListener, ResolutionReport

__all__ = [
    # Catalog
    "MatchCatalog",
    # Resolver
    "LineupResolver",
    "ResolutionState",
    "ResolvedPlayers",
    # Scheduler
    "FetchScheduler",
    "ResolutionListener",
    "ResolutionReport",
    # Pool
    "PlayerPool",
    "PoolEntry",
    # Assignment
    "AssignmentResult",
    "apply_assignment",
    "assign_by_sequential_draw",
    "assign_uniform",
    "deal_round_robin",
    "shuffled",
]
