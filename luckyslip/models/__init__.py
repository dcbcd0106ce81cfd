"""Data models for Lucky Slip."""

from .match import Competition, Lineup, Match, MatchStatus, TeamSheet
from .participant import Participant
from .player import Player, PlayerRole, PlayerSource, Position
from .team import DEFAULT_TEAM_COLOR, Team, api_uuid

__all__ = [
    # Team
    "DEFAULT_TEAM_COLOR",
    "Team",
    "api_uuid",
    # Player
    "Player",
    "PlayerRole",
    "PlayerSource",
    "Position",
    # Match
    "Competition",
    "Lineup",
    "Match",
    "MatchStatus",
    "TeamSheet",
    # Participant
    "Participant",
]
