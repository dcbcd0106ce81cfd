"""Data sources for matches, lineups and squads."""

from .base import (
    BaseClient,
    CallWindow,
    MatchDataSource,
)
from .football_data import (
    FootballDataSource,
    STATUS_MAP,
    parse_match_status,
    parse_position,
    parse_utc_date,
)
from .sample import (
    StaticDataSource,
    create_sample_lineup,
    create_sample_match,
    create_sample_players,
    create_sample_source,
    create_sample_teams,
)

__all__ = [
    # Base
    "BaseClient",
    "CallWindow",
    "MatchDataSource",
    # football-data.org
    "FootballDataSource",
    "STATUS_MAP",
    "parse_match_status",
    "parse_position",
    "parse_utc_date",
    # Sample
    "StaticDataSource",
    "create_sample_lineup",
    "create_sample_match",
    "create_sample_players",
    "create_sample_source",
    "create_sample_teams",
]
