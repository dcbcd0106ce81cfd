"""football-data.org (v4) data source."""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from ..config import (
    DEFAULT_CACHE_TTL_MINUTES,
    DEFAULT_COMPETITIONS,
    DEFAULT_DAYS_AHEAD,
    DEFAULT_MAX_CALLS_PER_MINUTE,
    DEFAULT_MIN_REQUEST_INTERVAL,
    FOOTBALL_DATA_API_BASE,
    Settings,
)
from ..errors import DecodingError, LineupNotAvailable, NoPlayersFound
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
    api_uuid,
)
from .base import BaseClient, MatchDataSource

logger = logging.getLogger(__name__)


# Upstream status string -> MatchStatus
STATUS_MAP: dict[str, MatchStatus] = {
    "SCHEDULED": MatchStatus.UPCOMING,
    "TIMED": MatchStatus.UPCOMING,
    "IN_PLAY": MatchStatus.IN_PROGRESS,
    "LIVE": MatchStatus.IN_PROGRESS,
    "PAUSED": MatchStatus.PAUSED,
    "HALFTIME": MatchStatus.HALF_TIME,
    "HALF_TIME": MatchStatus.HALF_TIME,
    "SUSPENDED": MatchStatus.SUSPENDED,
    "POSTPONED": MatchStatus.POSTPONED,
    "CANCELLED": MatchStatus.CANCELLED,
    "FINISHED": MatchStatus.FINISHED,
    "COMPLETED": MatchStatus.FINISHED,
    "AWARDED": MatchStatus.FINISHED,
}

GOALKEEPER_POSITIONS = {"goalkeeper", "keeper"}

DEFENDER_POSITIONS = {
    "defence",
    "defender",
    "centre-back",
    "center-back",
    "right-back",
    "left-back",
}

MIDFIELDER_POSITIONS = {
    "midfield",
    "midfielder",
    "central midfield",
    "defensive midfield",
    "attacking midfield",
    "right midfield",
    "left midfield",
    "right winger",
    "left winger",
}

FORWARD_POSITIONS = {
    "offence",
    "attack",
    "forward",
    "centre-forward",
    "center-forward",
    "striker",
}


def parse_position(position: Optional[str]) -> Position:
    """
    Parse an upstream position string into a Position.

    Unknown or missing positions default to midfielder.

    Args:
        position: Position string from the API (e.g. "Left-Back").

    Returns:
        The matching Position.
    """
    if not position:
        return Position.MIDFIELDER

    normalized = position.strip().lower()
    if normalized in GOALKEEPER_POSITIONS:
        return Position.GOALKEEPER
    if normalized in DEFENDER_POSITIONS or normalized.endswith("-back"):
        return Position.DEFENDER
    if normalized in MIDFIELDER_POSITIONS:
        return Position.MIDFIELDER
    if normalized in FORWARD_POSITIONS:
        return Position.FORWARD
    return Position.MIDFIELDER


def parse_match_status(status: Optional[str]) -> MatchStatus:
    """Parse an upstream status string into a MatchStatus."""
    result = STATUS_MAP.get((status or "").strip().upper())
    if result is None:
        logger.warning("Unknown match status: %s", status)
        return MatchStatus.UNKNOWN
    return result


def parse_utc_date(date_str: str) -> datetime:
    """
    Parse an ISO 8601 date string into a UTC datetime.

    Args:
        date_str: Date string such as "2025-08-16T14:00:00Z".

    Returns:
        Timezone-aware datetime in UTC.
    """
    parsed = datetime.fromisoformat(date_str.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class FootballDataSource(BaseClient, MatchDataSource):
    """
    MatchDataSource backed by the football-data.org v4 API.

    Endpoints used:
    - matches?dateFrom=&dateTo=&competitions= for the match catalog
    - matches/{id} for lineups (lineup and bench per team)
    - teams/{id} for full squads
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = FOOTBALL_DATA_API_BASE,
        competitions: Iterable[str] = DEFAULT_COMPETITIONS,
        days_ahead: int = DEFAULT_DAYS_AHEAD,
        cache_dir: Optional[Path] = None,
        cache_ttl_minutes: float = DEFAULT_CACHE_TTL_MINUTES,
        rate_limit_seconds: float = DEFAULT_MIN_REQUEST_INTERVAL,
        max_calls_per_minute: int = DEFAULT_MAX_CALLS_PER_MINUTE,
    ) -> None:
        """
        Initialize the data source.

        Args:
            api_key: football-data.org API token.
            base_url: API base URL.
            competitions: Competition codes offered for selection.
            days_ahead: Days of fixtures to list, starting today.
            cache_dir: Directory for caching responses.
            cache_ttl_minutes: Cache time-to-live in minutes.
            rate_limit_seconds: Minimum seconds between requests.
            max_calls_per_minute: Local call budget per sliding minute.
        """
        super().__init__(
            base_url=base_url,
            cache_dir=cache_dir,
            cache_ttl_minutes=cache_ttl_minutes,
            rate_limit_seconds=rate_limit_seconds,
            max_calls_per_minute=max_calls_per_minute,
            headers={"X-Auth-Token": api_key} if api_key else None,
        )
        self.competitions = tuple(code.upper() for code in competitions)
        self.days_ahead = days_ahead
        self._teams: dict[str, Team] = {}
        self._match_team_ids: dict[str, tuple[str, str]] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> "FootballDataSource":
        """Create a data source from Settings."""
        return cls(
            api_key=settings.api_key,
            base_url=settings.base_url,
            competitions=settings.competitions,
            days_ahead=settings.days_ahead,
            cache_dir=settings.cache_dir,
            cache_ttl_minutes=settings.cache_ttl_minutes,
            rate_limit_seconds=settings.min_request_interval,
            max_calls_per_minute=settings.max_calls_per_minute,
        )

    def _team(self, data: dict[str, Any]) -> Team:
        """Convert team JSON to a shared Team instance."""
        api_id = str(data["id"])
        team = self._teams.get(api_id)
        if team is None:
            name = data.get("name") or data.get("shortName") or f"Team {api_id}"
            team = Team(
                name=name,
                short_name=data.get("tla") or "",
                id=api_uuid("team", api_id),
                api_id=api_id,
            )
            self._teams[api_id] = team
        return team

    def _player(self, data: dict[str, Any], team: Team, source: PlayerSource) -> Player:
        """Convert player JSON to a Player."""
        api_id = str(data["id"])
        shirt = data.get("shirtNumber")
        return Player(
            name=data["name"],
            team=team,
            position=parse_position(data.get("position")),
            id=api_uuid("player", api_id),
            api_id=api_id,
            shirt_number=int(shirt) if shirt is not None else None,
            source=source,
        )

    def _players(
        self, entries: Optional[list], team: Team, source: PlayerSource
    ) -> list[Player]:
        """Convert a list of player JSON objects, skipping malformed entries."""
        players = []
        for entry in entries or []:
            try:
                players.append(self._player(entry, team, source))
            except (KeyError, ValueError, TypeError):
                logger.warning("Skipping malformed player entry for %s: %r", team.name, entry)
                continue
        return players

    def parse_match(self, data: dict[str, Any]) -> Match:
        """
        Convert match JSON into a Match.

        Raises:
            KeyError, ValueError, TypeError: If required fields are missing.
        """
        competition = data.get("competition") or {}
        return Match(
            id=str(data["id"]),
            competition=Competition(
                code=competition.get("code") or "",
                name=competition.get("name") or "",
            ),
            home_team=self._team(data["homeTeam"]),
            away_team=self._team(data["awayTeam"]),
            start_time=parse_utc_date(data["utcDate"]),
            status=parse_match_status(data.get("status")),
        )

    def _date_range(self) -> tuple[str, str]:
        today = datetime.now(timezone.utc).date()
        until = today + timedelta(days=self.days_ahead)
        return today.isoformat(), until.isoformat()

    def fetch_available_matches(self) -> list[Match]:
        """
        Fetch matches in the configured date range and competitions.

        Returns:
            List of Match objects. Malformed entries are skipped.

        Raises:
            DataError: If the request fails or the response has no match list.
        """
        date_from, date_to = self._date_range()
        endpoint = f"matches?dateFrom={date_from}&dateTo={date_to}"
        if self.competitions:
            endpoint += f"&competitions={','.join(self.competitions)}"

        data = self.fetch_json(endpoint)
        if not isinstance(data, dict) or not isinstance(data.get("matches"), list):
            raise DecodingError("Match list response has no 'matches' array")

        matches = []
        for entry in data["matches"]:
            try:
                match = self.parse_match(entry)
            except (KeyError, ValueError, TypeError):
                logger.warning("Skipping malformed match entry: %r", entry)
                continue
            if self.competitions and match.competition.code not in self.competitions:
                continue
            matches.append(match)

        logger.info("Found %d matches from %s to %s", len(matches), date_from, date_to)
        return matches

    def _match_detail(self, match_id: str, use_cache: bool) -> dict[str, Any]:
        data = self.fetch_json(f"matches/{match_id}", use_cache=use_cache)
        try:
            home_id = str(data["homeTeam"]["id"])
            away_id = str(data["awayTeam"]["id"])
        except (KeyError, TypeError):
            raise DecodingError(f"Match {match_id} response has no teams")
        self._match_team_ids[match_id] = (home_id, away_id)
        return data

    def _team_sheet(self, data: dict[str, Any]) -> TeamSheet:
        team = self._team(data)
        return TeamSheet(
            team=team,
            starting_xi=self._players(data.get("lineup"), team, PlayerSource.OFFICIAL_LINEUP),
            substitutes=self._players(data.get("bench"), team, PlayerSource.OFFICIAL_LINEUP),
            formation=data.get("formation"),
        )

    def fetch_lineup(self, match_id: str) -> Lineup:
        """
        Fetch the official lineup of a match.

        Lineups are never served from cache, since they appear shortly
        before kickoff.

        Raises:
            LineupNotAvailable: If either team has no published starting XI.
            DataError: If the request fails.
        """
        data = self._match_detail(match_id, use_cache=False)
        lineup = Lineup(
            home=self._team_sheet(data["homeTeam"]),
            away=self._team_sheet(data["awayTeam"]),
        )
        if not lineup.is_published:
            raise LineupNotAvailable(match_id)

        logger.info(
            "Lineup for match %s: %d starting, %d substitutes",
            match_id,
            len(lineup.starting_xi),
            len(lineup.substitutes),
        )
        return lineup

    def fetch_squad(self, match_id: str) -> list[Player]:
        """
        Fetch the full squads of both teams of a match.

        Raises:
            NoPlayersFound: If neither squad lists any player.
            DataError: If a request fails.
        """
        team_ids = self._match_team_ids.get(match_id)
        if team_ids is None:
            self._match_detail(match_id, use_cache=True)
            team_ids = self._match_team_ids[match_id]

        players: list[Player] = []
        for team_id in team_ids:
            data = self.fetch_json(f"teams/{team_id}")
            if not isinstance(data, dict):
                raise DecodingError(f"Team {team_id} response is not an object")
            team = self._team(data)
            players.extend(
                self._players(data.get("squad"), team, PlayerSource.FALLBACK_SQUAD)
            )

        if not players:
            raise NoPlayersFound(f"No squad data available for match {match_id}")

        logger.info("Squad for match %s: %d players", match_id, len(players))
        return players
