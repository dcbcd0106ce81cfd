"""Tests for data sources."""

import json
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

from luckyslip.config import Settings
from luckyslip.errors import (
    ConfigError,
    DecodingError,
    LineupNotAvailable,
    NetworkUnavailable,
    NoPlayersFound,
    RateLimited,
    ServerError,
)
from luckyslip.models import MatchStatus, PlayerSource, Position, api_uuid
from luckyslip.sources import (
    BaseClient,
    CallWindow,
    FootballDataSource,
    StaticDataSource,
    create_sample_lineup,
    create_sample_match,
    create_sample_players,
    create_sample_source,
    create_sample_teams,
    parse_match_status,
    parse_position,
    parse_utc_date,
)


def team_json(team_id: int, name: str, tla: str, **extra) -> dict:
    return {"id": team_id, "name": name, "shortName": name, "tla": tla, **extra}


def player_json(player_id: int, name: str, position: str, shirt: int = None) -> dict:
    return {"id": player_id, "name": name, "position": position, "shirtNumber": shirt}


def match_json(match_id: int = 497410, code: str = "PL", **teams) -> dict:
    return {
        "id": match_id,
        "utcDate": "2025-08-16T14:00:00Z",
        "status": "TIMED",
        "competition": {"code": code, "name": "Premier League"},
        "homeTeam": teams.get("home", team_json(57, "Arsenal FC", "ARS")),
        "awayTeam": teams.get("away", team_json(61, "Chelsea FC", "CHE")),
    }


def lineup_players(first_id: int, count: int) -> list:
    return [player_json(first_id + i, f"Player {first_id + i}", "Midfield", i + 1) for i in range(count)]


class TestParsePosition:
    """Tests for parse_position function."""

    def test_goalkeeper(self) -> None:
        """Test parsing goalkeeper positions."""
        assert parse_position("Goalkeeper") == Position.GOALKEEPER

    def test_defender_positions(self) -> None:
        """Test parsing defender positions."""
        assert parse_position("Defence") == Position.DEFENDER
        assert parse_position("Centre-Back") == Position.DEFENDER
        assert parse_position("Left-Back") == Position.DEFENDER
        assert parse_position("Wing-Back") == Position.DEFENDER

    def test_midfielder_positions(self) -> None:
        """Test parsing midfielder positions."""
        assert parse_position("Midfield") == Position.MIDFIELDER
        assert parse_position("Defensive Midfield") == Position.MIDFIELDER
        assert parse_position("Right Winger") == Position.MIDFIELDER

    def test_forward_positions(self) -> None:
        """Test parsing forward positions."""
        assert parse_position("Offence") == Position.FORWARD
        assert parse_position("Centre-Forward") == Position.FORWARD
        assert parse_position("striker") == Position.FORWARD

    def test_unknown_defaults_to_midfielder(self) -> None:
        """Test that unknown or missing positions default to midfielder."""
        assert parse_position("Libero") == Position.MIDFIELDER
        assert parse_position(None) == Position.MIDFIELDER
        assert parse_position("") == Position.MIDFIELDER


class TestParseMatchStatus:
    """Tests for parse_match_status function."""

    def test_known_statuses(self) -> None:
        """Test mapping of upstream statuses."""
        assert parse_match_status("SCHEDULED") == MatchStatus.UPCOMING
        assert parse_match_status("TIMED") == MatchStatus.UPCOMING
        assert parse_match_status("IN_PLAY") == MatchStatus.IN_PROGRESS
        assert parse_match_status("PAUSED") == MatchStatus.PAUSED
        assert parse_match_status("HALFTIME") == MatchStatus.HALF_TIME
        assert parse_match_status("POSTPONED") == MatchStatus.POSTPONED
        assert parse_match_status("FINISHED") == MatchStatus.FINISHED

    def test_case_insensitive(self) -> None:
        """Test that lowercase statuses are accepted."""
        assert parse_match_status("in_play") == MatchStatus.IN_PROGRESS

    def test_unknown_status(self) -> None:
        """Test that unknown statuses map to UNKNOWN."""
        assert parse_match_status("ABANDONED") == MatchStatus.UNKNOWN
        assert parse_match_status(None) == MatchStatus.UNKNOWN


class TestParseUtcDate:
    """Tests for parse_utc_date function."""

    def test_zulu_suffix(self) -> None:
        """Test parsing a Z-suffixed timestamp."""
        assert parse_utc_date("2025-08-16T14:00:00Z") == datetime(2025, 8, 16, 14, 0, tzinfo=timezone.utc)

    def test_offset_converted(self) -> None:
        """Test that offsets are converted to UTC."""
        parsed = parse_utc_date("2025-08-16T16:00:00+02:00")
        assert parsed.tzinfo == timezone.utc
        assert parsed.hour == 14

    def test_naive_assumed_utc(self) -> None:
        """Test that a timestamp without offset is taken as UTC."""
        assert parse_utc_date("2025-08-16T14:00:00").tzinfo == timezone.utc


class TestCallWindow:
    """Tests for CallWindow."""

    def test_budget(self) -> None:
        """Test that calls are refused once the budget is used."""
        now = [100.0]
        window = CallWindow(max_calls=2, window_seconds=60, clock=lambda: now[0])

        window.record()
        now[0] += 10
        window.record()

        assert not window.can_call()
        assert window.usage() == (2, 2)
        assert window.time_until_next_call() == pytest.approx(50.0)

    def test_window_slides(self) -> None:
        """Test that old calls leave the window."""
        now = [100.0]
        window = CallWindow(max_calls=1, window_seconds=60, clock=lambda: now[0])

        window.record()
        assert not window.can_call()

        now[0] += 60
        assert window.can_call()
        assert window.time_until_next_call() == 0.0


class TestBaseClient:
    """Tests for BaseClient caching and rate limiting."""

    def test_cache_key_generation(self) -> None:
        """Test that cache keys are generated consistently."""
        with tempfile.TemporaryDirectory() as tmpdir:
            client = BaseClient("https://example.com", cache_dir=Path(tmpdir))
            key1 = client._cache_key("https://example.com/test")
            key2 = client._cache_key("https://example.com/test")
            key3 = client._cache_key("https://example.com/other")

            assert key1 == key2
            assert key1 != key3

    def test_unusable_cache_dir(self) -> None:
        """Test that a cache dir that cannot be created raises ConfigError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            blocker = Path(tmpdir) / "cache"
            blocker.write_text("not a directory")

            with pytest.raises(ConfigError):
                BaseClient("https://example.com", cache_dir=blocker)

            with pytest.raises(ConfigError):
                BaseClient("https://example.com", cache_dir=blocker / "nested")

    def test_cache_write_and_read(self) -> None:
        """Test writing and reading from cache."""
        with tempfile.TemporaryDirectory() as tmpdir:
            client = BaseClient("https://example.com", cache_dir=Path(tmpdir))
            url = "https://example.com/test"
            data = {"matches": [{"id": 1}]}

            client._write_cache(url, data)

            assert client._read_cache(url) == data

    def test_cache_expiry(self) -> None:
        """Test that expired cache entries are not returned."""
        with tempfile.TemporaryDirectory() as tmpdir:
            client = BaseClient("https://example.com", cache_dir=Path(tmpdir), cache_ttl_minutes=5)
            url = "https://example.com/test"

            # Write cache entry manually with old timestamp
            entry = {
                "url": url,
                "timestamp": (datetime.now() - timedelta(minutes=10)).isoformat(),
                "data": {"old": True},
            }
            with open(client._cache_path(url), "w") as f:
                json.dump(entry, f)

            assert client._read_cache(url) is None

    def test_corrupt_cache_entry_removed(self) -> None:
        """Test that an unreadable cache entry is deleted."""
        with tempfile.TemporaryDirectory() as tmpdir:
            client = BaseClient("https://example.com", cache_dir=Path(tmpdir))
            url = "https://example.com/test"
            client._cache_path(url).write_text("not json")

            assert client._read_cache(url) is None
            assert not client._cache_path(url).exists()

    def test_clear_cache(self) -> None:
        """Test clearing all cache entries."""
        with tempfile.TemporaryDirectory() as tmpdir:
            client = BaseClient("https://example.com", cache_dir=Path(tmpdir))
            client._write_cache("https://example.com/1", {"n": 1})
            client._write_cache("https://example.com/2", {"n": 2})

            assert client.clear_cache() == 2
            assert client._read_cache("https://example.com/1") is None

    def test_clear_expired_cache(self) -> None:
        """Test clearing only expired cache entries."""
        with tempfile.TemporaryDirectory() as tmpdir:
            client = BaseClient("https://example.com", cache_dir=Path(tmpdir), cache_ttl_minutes=5)
            client._write_cache("https://example.com/fresh", {"fresh": True})

            old_url = "https://example.com/old"
            entry = {
                "url": old_url,
                "timestamp": (datetime.now() - timedelta(hours=1)).isoformat(),
                "data": {"fresh": False},
            }
            with open(client._cache_path(old_url), "w") as f:
                json.dump(entry, f)

            assert client.clear_expired_cache() == 1
            assert client._read_cache("https://example.com/fresh") == {"fresh": True}

    def test_url_for(self) -> None:
        """Test joining base URL and endpoint."""
        with tempfile.TemporaryDirectory() as tmpdir:
            client = BaseClient("https://example.com/v4/", cache_dir=Path(tmpdir))
            assert client.url_for("/matches/1") == "https://example.com/v4/matches/1"

    def test_fetch_json_caches_response(self) -> None:
        """Test that a second fetch is served from cache."""
        with tempfile.TemporaryDirectory() as tmpdir:
            client = BaseClient("https://example.com", cache_dir=Path(tmpdir), rate_limit_seconds=0)
            response = MagicMock()
            response.json.return_value = {"matches": []}

            with patch.object(client._session, "get", return_value=response) as mock_get:
                assert client.fetch_json("matches") == {"matches": []}
                assert client.fetch_json("matches") == {"matches": []}

            assert mock_get.call_count == 1

    def test_fetch_json_without_cache(self) -> None:
        """Test that use_cache=False always hits the network."""
        with tempfile.TemporaryDirectory() as tmpdir:
            client = BaseClient("https://example.com", cache_dir=Path(tmpdir), rate_limit_seconds=0)
            response = MagicMock()
            response.json.return_value = {"id": 1}

            with patch.object(client._session, "get", return_value=response) as mock_get:
                client.fetch_json("matches/1", use_cache=False)
                client.fetch_json("matches/1", use_cache=False)

            assert mock_get.call_count == 2
            assert client._read_cache(client.url_for("matches/1")) is None

    def test_fetch_json_classifies_network_error(self) -> None:
        """Test that transport failures become NetworkUnavailable."""
        with tempfile.TemporaryDirectory() as tmpdir:
            client = BaseClient("https://example.com", cache_dir=Path(tmpdir), rate_limit_seconds=0)

            with patch.object(
                client._session, "get", side_effect=requests.exceptions.ConnectionError("down")
            ):
                with pytest.raises(NetworkUnavailable):
                    client.fetch_json("matches")

    def test_fetch_json_classifies_http_error(self) -> None:
        """Test that error statuses become classified errors."""
        with tempfile.TemporaryDirectory() as tmpdir:
            client = BaseClient("https://example.com", cache_dir=Path(tmpdir), rate_limit_seconds=0)
            response = MagicMock()
            response.status_code = 503
            response.headers = {}
            response.raise_for_status.side_effect = requests.exceptions.HTTPError(
                "503", response=response
            )

            with patch.object(client._session, "get", return_value=response):
                with pytest.raises(ServerError) as exc_info:
                    client.fetch_json("matches")

            assert exc_info.value.status_code == 503

    def test_fetch_json_rejects_scalar_document(self) -> None:
        """Test that a non-object JSON body is a decoding error."""
        with tempfile.TemporaryDirectory() as tmpdir:
            client = BaseClient("https://example.com", cache_dir=Path(tmpdir), rate_limit_seconds=0)
            response = MagicMock()
            response.json.return_value = "ok"

            with patch.object(client._session, "get", return_value=response):
                with pytest.raises(DecodingError):
                    client.fetch_json("matches")

    def test_local_budget_raises_rate_limited(self) -> None:
        """Test that an exhausted call budget refuses the request."""
        with tempfile.TemporaryDirectory() as tmpdir:
            client = BaseClient(
                "https://example.com",
                cache_dir=Path(tmpdir),
                rate_limit_seconds=0,
                max_calls_per_minute=1,
            )
            response = MagicMock()
            response.json.return_value = {}

            with patch.object(client._session, "get", return_value=response) as mock_get:
                client.fetch_json("a", use_cache=False)
                with pytest.raises(RateLimited) as exc_info:
                    client.fetch_json("b", use_cache=False)

            assert mock_get.call_count == 1
            assert exc_info.value.retry_after > 0


class TestFootballDataSource:
    """Tests for FootballDataSource."""

    def test_initialization(self) -> None:
        """Test data source initialization."""
        with tempfile.TemporaryDirectory() as tmpdir:
            source = FootballDataSource("token", cache_dir=Path(tmpdir), competitions=["pl", "cl"])

            assert source.base_url == "https://api.football-data.org/v4"
            assert source.cache_dir == Path(tmpdir)
            assert source.competitions == ("PL", "CL")
            assert source._session.headers["X-Auth-Token"] == "token"

    def test_from_settings(self) -> None:
        """Test creating a data source from settings."""
        with tempfile.TemporaryDirectory() as tmpdir:
            settings = Settings(
                api_key="token",
                cache_dir=Path(tmpdir),
                competitions=("SA",),
                max_calls_per_minute=20,
            )
            source = FootballDataSource.from_settings(settings)

            assert source.competitions == ("SA",)
            assert source.call_window.max_calls == 20

    @patch("luckyslip.sources.base.BaseClient.fetch_json")
    def test_fetch_available_matches(self, mock_fetch: MagicMock) -> None:
        """Test parsing the match list."""
        mock_fetch.return_value = {
            "matches": [
                match_json(1, "PL"),
                match_json(2, "FL1"),
                {"id": 3, "utcDate": "2025-08-16T14:00:00Z"},
            ]
        }

        with tempfile.TemporaryDirectory() as tmpdir:
            source = FootballDataSource("token", cache_dir=Path(tmpdir))
            matches = source.fetch_available_matches()

        assert [m.id for m in matches] == ["1"]
        match = matches[0]
        assert match.title == "Arsenal FC vs Chelsea FC"
        assert match.competition.code == "PL"
        assert match.status == MatchStatus.UPCOMING
        assert match.home_team.short_name == "ARS"
        assert match.home_team.id == api_uuid("team", "57")

        endpoint = mock_fetch.call_args[0][0]
        assert endpoint.startswith("matches?dateFrom=")
        assert "competitions=PL,BL1,SA,PD,CL,EL" in endpoint

    @patch("luckyslip.sources.base.BaseClient.fetch_json")
    def test_fetch_available_matches_bad_document(self, mock_fetch: MagicMock) -> None:
        """Test that a response without matches is a decoding error."""
        mock_fetch.return_value = {"errors": "nope"}

        with tempfile.TemporaryDirectory() as tmpdir:
            source = FootballDataSource("token", cache_dir=Path(tmpdir))
            with pytest.raises(DecodingError):
                source.fetch_available_matches()

    @patch("luckyslip.sources.base.BaseClient.fetch_json")
    def test_teams_are_shared(self, mock_fetch: MagicMock) -> None:
        """Test that the same upstream team gives the same instance."""
        mock_fetch.return_value = {"matches": [match_json(1), match_json(2)]}

        with tempfile.TemporaryDirectory() as tmpdir:
            source = FootballDataSource("token", cache_dir=Path(tmpdir))
            first, second = source.fetch_available_matches()

        assert first.home_team is second.home_team

    @patch("luckyslip.sources.base.BaseClient.fetch_json")
    def test_fetch_lineup(self, mock_fetch: MagicMock) -> None:
        """Test parsing a published lineup."""
        mock_fetch.return_value = match_json(
            home=team_json(57, "Arsenal FC", "ARS", formation="4-3-3", lineup=lineup_players(100, 11), bench=lineup_players(200, 7)),
            away=team_json(61, "Chelsea FC", "CHE", lineup=lineup_players(300, 11), bench=lineup_players(400, 9)),
        )

        with tempfile.TemporaryDirectory() as tmpdir:
            source = FootballDataSource("token", cache_dir=Path(tmpdir))
            lineup = source.fetch_lineup("497410")

        assert len(lineup.starting_xi) == 22
        assert len(lineup.substitutes) == 16
        assert lineup.home.formation == "4-3-3"
        assert all(p.source == PlayerSource.OFFICIAL_LINEUP for p in lineup.players)
        assert lineup.starting_xi[0].id == api_uuid("player", "100")
        mock_fetch.assert_called_once_with("matches/497410", use_cache=False)

    @patch("luckyslip.sources.base.BaseClient.fetch_json")
    def test_fetch_lineup_not_published(self, mock_fetch: MagicMock) -> None:
        """Test that empty lineups raise LineupNotAvailable."""
        mock_fetch.return_value = match_json(
            home=team_json(57, "Arsenal FC", "ARS", lineup=[], bench=[]),
            away=team_json(61, "Chelsea FC", "CHE", lineup=lineup_players(300, 11)),
        )

        with tempfile.TemporaryDirectory() as tmpdir:
            source = FootballDataSource("token", cache_dir=Path(tmpdir))
            with pytest.raises(LineupNotAvailable, match="497410"):
                source.fetch_lineup("497410")

    @patch("luckyslip.sources.base.BaseClient.fetch_json")
    def test_malformed_players_skipped(self, mock_fetch: MagicMock) -> None:
        """Test that player entries without a name are skipped."""
        home_lineup = lineup_players(100, 11) + [{"id": 199}]
        mock_fetch.return_value = match_json(
            home=team_json(57, "Arsenal FC", "ARS", lineup=home_lineup),
            away=team_json(61, "Chelsea FC", "CHE", lineup=lineup_players(300, 11)),
        )

        with tempfile.TemporaryDirectory() as tmpdir:
            source = FootballDataSource("token", cache_dir=Path(tmpdir))
            lineup = source.fetch_lineup("497410")

        assert len(lineup.home.starting_xi) == 11

    @patch("luckyslip.sources.base.BaseClient.fetch_json")
    def test_fetch_squad(self, mock_fetch: MagicMock) -> None:
        """Test fetching both squads for a match."""
        responses = {
            "matches/497410": match_json(),
            "teams/57": team_json(57, "Arsenal FC", "ARS", squad=[
                player_json(1, "David Raya", "Goalkeeper"),
                player_json(2, "William Saliba", "Centre-Back"),
            ]),
            "teams/61": team_json(61, "Chelsea FC", "CHE", squad=[
                player_json(3, "Cole Palmer", "Attacking Midfield"),
            ]),
        }
        mock_fetch.side_effect = lambda endpoint, use_cache=True: responses[endpoint]

        with tempfile.TemporaryDirectory() as tmpdir:
            source = FootballDataSource("token", cache_dir=Path(tmpdir))
            squad = source.fetch_squad("497410")

        assert [p.name for p in squad] == ["David Raya", "William Saliba", "Cole Palmer"]
        assert [p.position for p in squad] == [
            Position.GOALKEEPER,
            Position.DEFENDER,
            Position.MIDFIELDER,
        ]
        assert all(p.source == PlayerSource.FALLBACK_SQUAD for p in squad)
        assert squad[0].team is not squad[2].team

    @patch("luckyslip.sources.base.BaseClient.fetch_json")
    def test_fetch_squad_reuses_match_teams(self, mock_fetch: MagicMock) -> None:
        """Test that a prior lineup fetch saves the match request."""
        responses = {
            "matches/497410": match_json(),
            "teams/57": team_json(57, "Arsenal FC", "ARS", squad=[player_json(1, "David Raya", "Goalkeeper")]),
            "teams/61": team_json(61, "Chelsea FC", "CHE", squad=[]),
        }
        mock_fetch.side_effect = lambda endpoint, use_cache=True: responses[endpoint]

        with tempfile.TemporaryDirectory() as tmpdir:
            source = FootballDataSource("token", cache_dir=Path(tmpdir))
            with pytest.raises(LineupNotAvailable):
                source.fetch_lineup("497410")
            source.fetch_squad("497410")

        endpoints = [c.args[0] for c in mock_fetch.call_args_list]
        assert endpoints == ["matches/497410", "teams/57", "teams/61"]

    @patch("luckyslip.sources.base.BaseClient.fetch_json")
    def test_fetch_squad_empty(self, mock_fetch: MagicMock) -> None:
        """Test that empty squads raise NoPlayersFound."""
        responses = {
            "matches/497410": match_json(),
            "teams/57": team_json(57, "Arsenal FC", "ARS", squad=[]),
            "teams/61": team_json(61, "Chelsea FC", "CHE"),
        }
        mock_fetch.side_effect = lambda endpoint, use_cache=True: responses[endpoint]

        with tempfile.TemporaryDirectory() as tmpdir:
            source = FootballDataSource("token", cache_dir=Path(tmpdir))
            with pytest.raises(NoPlayersFound):
                source.fetch_squad("497410")


class TestStaticDataSource:
    """Tests for StaticDataSource and sample data."""

    def test_sample_players(self) -> None:
        """Test sample player creation."""
        home, _ = create_sample_teams()
        players = create_sample_players(home)

        assert len(players) == 11
        assert players[0].is_goalkeeper
        assert players[0].name == "ARS #1"
        assert all(p.team is home for p in players)

    def test_sample_lineup(self) -> None:
        """Test that the sample lineup is fully published."""
        home, away = create_sample_teams()
        lineup = create_sample_lineup(home, away)

        assert lineup.is_published
        assert len(lineup.home.starting_xi) == 11
        assert len(lineup.home.substitutes) == 7
        assert len(lineup.players) == 36

    def test_sample_match(self) -> None:
        """Test sample match creation."""
        match = create_sample_match()

        assert match.id == "sample-1"
        assert match.status == MatchStatus.UPCOMING
        assert match.start_time.tzinfo == timezone.utc

    def test_sample_source(self) -> None:
        """Test the offline source serves its match and lineup."""
        source = create_sample_source()
        (match,) = source.fetch_available_matches()

        assert source.fetch_lineup(match.id).is_published
        assert source.calls == [("fetch_available_matches", ""), ("fetch_lineup", match.id)]

    def test_missing_entries(self) -> None:
        """Test errors for matches the source knows nothing about."""
        source = StaticDataSource()

        with pytest.raises(LineupNotAvailable):
            source.fetch_lineup("x")
        with pytest.raises(NoPlayersFound):
            source.fetch_squad("x")

    def test_configured_errors(self) -> None:
        """Test that configured errors are raised."""
        source = StaticDataSource(
            lineups={"1": ServerError(500)},
            squads={"1": NetworkUnavailable()},
            match_error=RateLimited(10),
        )

        with pytest.raises(ServerError):
            source.fetch_lineup("1")
        with pytest.raises(NetworkUnavailable):
            source.fetch_squad("1")
        with pytest.raises(RateLimited):
            source.fetch_available_matches()
