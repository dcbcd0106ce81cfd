"""Lineup resolution with squad fallback for a single match."""

import dataclasses
import logging
from dataclasses import dataclass, field
from enum import Enum

from ..errors import (
    DataError,
    LineupNotAvailable,
    NetworkUnavailable,
    NoPlayersFound,
    RateLimited,
    classify_error,
)
from ..models import Player, PlayerSource
from ..sources.base import MatchDataSource

logger = logging.getLogger(__name__)


# Lineup errors that end resolution without trying the squad
FATAL_ERRORS = (NetworkUnavailable, RateLimited)


class ResolutionState(Enum):
    """Progress of a match through the resolver."""

    IDLE = "idle"
    FETCHING_LINEUP = "fetching_lineup"
    FETCHING_SQUAD = "fetching_squad"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass
class ResolvedPlayers:
    """
    Players resolved for one match.

    Attributes:
        match_id: The match the players belong to.
        starting_xi: Starting players (every player when the squad was used).
        substitutes: Bench players (empty when the squad was used).
        used_fallback: True if the official lineup was unavailable.
        source: Where the players came from.
    """

    match_id: str
    starting_xi: list[Player] = field(default_factory=list)
    substitutes: list[Player] = field(default_factory=list)
    used_fallback: bool = False
    source: PlayerSource = PlayerSource.OFFICIAL_LINEUP

    @property
    def players(self) -> list[Player]:
        """Starting players followed by substitutes."""
        return self.starting_xi + self.substitutes


def _tagged(players: list[Player], source: PlayerSource) -> list[Player]:
    return [p if p.source == source else dataclasses.replace(p, source=source) for p in players]


class LineupResolver:
    """
    Resolves the eligible players of a match.

    Tries the official lineup first. LineupNotAvailable and other
    recoverable errors fall back to the full squad, whose players all
    count as starting XI. Network failures and rate limiting are fatal.
    """

    def __init__(self, source: MatchDataSource) -> None:
        self.source = source
        self._states: dict[str, ResolutionState] = {}

    def state(self, match_id: str) -> ResolutionState:
        """Last state reached for a match."""
        return self._states.get(match_id, ResolutionState.IDLE)

    def _fail(self, match_id: str, error: DataError) -> DataError:
        self._states[match_id] = ResolutionState.FAILED
        logger.warning("Resolution failed for match %s: %s", match_id, error)
        return error

    def resolve(self, match_id: str) -> ResolvedPlayers:
        """
        Resolve the players of a match.

        Args:
            match_id: The match to resolve.

        Returns:
            ResolvedPlayers, with used_fallback set if the squad was used.

        Raises:
            DataError: The fatal lineup error, or the squad error when the
                fallback also failed. Never LineupNotAvailable.
        """
        self._states[match_id] = ResolutionState.FETCHING_LINEUP
        try:
            lineup = self.source.fetch_lineup(match_id)
            if not lineup.is_published:
                raise LineupNotAvailable(match_id)
        except Exception as e:
            lineup_error = classify_error(e)
            if isinstance(lineup_error, FATAL_ERRORS):
                raise self._fail(match_id, lineup_error)
            logger.info(
                "Lineup unavailable for match %s (%s), falling back to squad",
                match_id,
                lineup_error,
            )
        else:
            self._states[match_id] = ResolutionState.RESOLVED
            return ResolvedPlayers(
                match_id=match_id,
                starting_xi=_tagged(lineup.starting_xi, PlayerSource.OFFICIAL_LINEUP),
                substitutes=_tagged(lineup.substitutes, PlayerSource.OFFICIAL_LINEUP),
            )

        return self._resolve_squad(match_id)

    def _resolve_squad(self, match_id: str) -> ResolvedPlayers:
        self._states[match_id] = ResolutionState.FETCHING_SQUAD
        try:
            squad = self.source.fetch_squad(match_id)
            if not squad:
                raise NoPlayersFound(f"No squad data available for match {match_id}")
        except Exception as e:
            squad_error = classify_error(e)
            # A squad can never be "not available yet"
            if isinstance(squad_error, LineupNotAvailable):
                squad_error = NoPlayersFound(str(squad_error))
            raise self._fail(match_id, squad_error)

        self._states[match_id] = ResolutionState.RESOLVED
        logger.info("Resolved match %s from squad: %d players", match_id, len(squad))
        return ResolvedPlayers(
            match_id=match_id,
            starting_xi=_tagged(squad, PlayerSource.FALLBACK_SQUAD),
            substitutes=[],
            used_fallback=True,
            source=PlayerSource.FALLBACK_SQUAD,
        )
