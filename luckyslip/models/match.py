"""Match, competition and lineup data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from .player import Player
from .team import Team


class MatchStatus(Enum):
    """Lifecycle status of a match."""

    UPCOMING = "upcoming"
    IN_PROGRESS = "in_progress"
    HALF_TIME = "half_time"
    PAUSED = "paused"
    SUSPENDED = "suspended"
    POSTPONED = "postponed"
    CANCELLED = "cancelled"
    FINISHED = "finished"
    UNKNOWN = "unknown"

    @property
    def display_name(self) -> str:
        """Short label for the status."""
        return _STATUS_LABELS[self]

    @property
    def is_live(self) -> bool:
        """Check if the match is currently being played."""
        return self in (MatchStatus.IN_PROGRESS, MatchStatus.HALF_TIME, MatchStatus.PAUSED)


_STATUS_LABELS = {
    MatchStatus.UPCOMING: "Upcoming",
    MatchStatus.IN_PROGRESS: "Live",
    MatchStatus.HALF_TIME: "Half Time",
    MatchStatus.PAUSED: "Paused",
    MatchStatus.SUSPENDED: "Suspended",
    MatchStatus.POSTPONED: "Postponed",
    MatchStatus.CANCELLED: "Cancelled",
    MatchStatus.FINISHED: "Finished",
    MatchStatus.UNKNOWN: "Unknown",
}


@dataclass(frozen=True)
class Competition:
    """A competition such as a domestic league or cup."""

    code: str
    name: str


@dataclass(frozen=True)
class Match:
    """
    Represents a football match.

    Matches are never mutated; a later fetch replaces the whole record.

    Attributes:
        id: Upstream match identifier.
        competition: Competition the match belongs to.
        home_team: Home team.
        away_team: Away team.
        start_time: Kickoff as a UTC datetime.
        status: Current match status.
    """

    id: str
    competition: Competition
    home_team: Team
    away_team: Team
    start_time: datetime
    status: MatchStatus = MatchStatus.UNKNOWN

    def __post_init__(self) -> None:
        """Validate match data."""
        if not self.id:
            raise ValueError("match id cannot be empty")
        if self.start_time.tzinfo is None:
            raise ValueError("start_time must be timezone-aware")
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "start_time", self.start_time.astimezone(timezone.utc))

    @property
    def title(self) -> str:
        """Human-readable fixture name."""
        return f"{self.home_team.name} vs {self.away_team.name}"


@dataclass
class TeamSheet:
    """
    One team's side of a lineup.

    Attributes:
        team: The team.
        starting_xi: Ordered starting players.
        substitutes: Bench players.
        formation: Formation string when published (e.g. "4-3-3").
    """

    team: Team
    starting_xi: list[Player] = field(default_factory=list)
    substitutes: list[Player] = field(default_factory=list)
    formation: Optional[str] = None

    @property
    def is_published(self) -> bool:
        """Check if a starting XI has been announced."""
        return len(self.starting_xi) > 0


@dataclass
class Lineup:
    """Official lineup for a match: a team sheet per side."""

    home: TeamSheet
    away: TeamSheet

    @property
    def starting_xi(self) -> list[Player]:
        """Starting players of both teams, home first."""
        return self.home.starting_xi + self.away.starting_xi

    @property
    def substitutes(self) -> list[Player]:
        """Substitutes of both teams, home first."""
        return self.home.substitutes + self.away.substitutes

    @property
    def players(self) -> list[Player]:
        """All players in the lineup."""
        return self.starting_xi + self.substitutes

    @property
    def is_published(self) -> bool:
        """Check if both sides have announced a starting XI."""
        return self.home.is_published and self.away.is_published
