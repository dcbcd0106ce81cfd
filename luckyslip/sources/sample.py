"""In-memory data source and sample data for offline games."""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Union

from ..errors import DataError, LineupNotAvailable, NoPlayersFound
from ..models import (
    Competition,
    Lineup,
    Match,
    MatchStatus,
    Player,
    PlayerSource,
    Position,
    Team,
    TeamSheet,
)
from .base import MatchDataSource


# Positions of a 4-3-3 starting XI, goalkeeper first
STARTING_POSITIONS = (
    [Position.GOALKEEPER]
    + [Position.DEFENDER] * 4
    + [Position.MIDFIELDER] * 3
    + [Position.FORWARD] * 3
)

BENCH_POSITIONS = [
    Position.GOALKEEPER,
    Position.DEFENDER,
    Position.DEFENDER,
    Position.MIDFIELDER,
    Position.MIDFIELDER,
    Position.FORWARD,
    Position.FORWARD,
]


class StaticDataSource(MatchDataSource):
    """
    MatchDataSource serving fixed data from memory.

    Each lineup or squad entry may be a DataError instead of data, in
    which case that error is raised when the entry is requested. The
    list of calls made is kept in `calls` as (method, match_id) pairs.
    """

    def __init__(
        self,
        matches: Optional[Iterable[Match]] = None,
        lineups: Optional[dict[str, Union[Lineup, DataError]]] = None,
        squads: Optional[dict[str, Union[list[Player], DataError]]] = None,
        match_error: Optional[DataError] = None,
    ) -> None:
        self.matches = list(matches or [])
        self.lineups = dict(lineups or {})
        self.squads = dict(squads or {})
        self.match_error = match_error
        self.calls: list[tuple[str, str]] = []

    def fetch_available_matches(self) -> list[Match]:
        self.calls.append(("fetch_available_matches", ""))
        if self.match_error is not None:
            raise self.match_error
        return list(self.matches)

    def fetch_lineup(self, match_id: str) -> Lineup:
        self.calls.append(("fetch_lineup", match_id))
        entry = self.lineups.get(match_id)
        if entry is None:
            raise LineupNotAvailable(match_id)
        if isinstance(entry, DataError):
            raise entry
        return entry

    def fetch_squad(self, match_id: str) -> list[Player]:
        self.calls.append(("fetch_squad", match_id))
        entry = self.squads.get(match_id)
        if isinstance(entry, DataError):
            raise entry
        if not entry:
            raise NoPlayersFound(f"No squad data available for match {match_id}")
        return list(entry)


def create_sample_teams() -> tuple[Team, Team]:
    """Create two sample teams."""
    return (
        Team(name="Arsenal FC", short_name="ARS", primary_color="#EF0107"),
        Team(name="Manchester City", short_name="MCI", primary_color="#6CABDD"),
    )


def create_sample_players(
    team: Team,
    positions: Iterable[Position] = STARTING_POSITIONS,
    source: PlayerSource = PlayerSource.MANUAL_ENTRY,
    first_shirt: int = 1,
) -> list[Player]:
    """
    Create numbered sample players for a team.

    Args:
        team: Team the players belong to.
        positions: One position per player to create.
        source: Source tag for the players.
        first_shirt: Shirt number of the first player.

    Returns:
        List of players named "<short name> #<shirt>".
    """
    players = []
    for offset, position in enumerate(positions):
        shirt = first_shirt + offset
        players.append(
            Player(
                name=f"{team.short_name} #{shirt}",
                team=team,
                position=position,
                shirt_number=shirt,
                source=source,
            )
        )
    return players


def create_sample_lineup(home: Team, away: Team) -> Lineup:
    """Create a full lineup (11 starters and 7 substitutes per team)."""

    def sheet(team: Team) -> TeamSheet:
        return TeamSheet(
            team=team,
            starting_xi=create_sample_players(
                team, STARTING_POSITIONS, PlayerSource.OFFICIAL_LINEUP
            ),
            substitutes=create_sample_players(
                team, BENCH_POSITIONS, PlayerSource.OFFICIAL_LINEUP, first_shirt=12
            ),
            formation="4-3-3",
        )

    return Lineup(home=sheet(home), away=sheet(away))


def create_sample_match(
    match_id: str = "sample-1",
    home: Optional[Team] = None,
    away: Optional[Team] = None,
    start_time: Optional[datetime] = None,
) -> Match:
    """Create a sample upcoming Premier League match."""
    if home is None or away is None:
        home, away = create_sample_teams()
    if start_time is None:
        start_time = datetime.now(timezone.utc).replace(microsecond=0) + timedelta(hours=3)
    return Match(
        id=match_id,
        competition=Competition(code="PL", name="Premier League"),
        home_team=home,
        away_team=away,
        start_time=start_time,
        status=MatchStatus.UPCOMING,
    )


def create_sample_source() -> StaticDataSource:
    """Create an offline data source with one fully published match."""
    home, away = create_sample_teams()
    match = create_sample_match(home=home, away=away)
    return StaticDataSource(
        matches=[match],
        lineups={match.id: create_sample_lineup(home, away)},
    )
