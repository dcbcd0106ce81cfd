"""Duplicate-free pool of resolved players."""

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, Optional

from ..models import Player, PlayerRole
from .resolver import ResolvedPlayers

if TYPE_CHECKING:
    from .scheduler import ResolutionReport

logger = logging.getLogger(__name__)

MANUAL_MATCH = "manual"


@dataclass(frozen=True)
class PoolEntry:
    """
    A player in the pool.

    Attributes:
        player: The player.
        role: Starting XI or substitute.
        source_match: Id of the match the player was resolved from.
    """

    player: Player
    role: PlayerRole
    source_match: str


class PlayerPool:
    """
    Players accumulated from all resolved matches, keyed by player id.

    The first entry seen for an id is kept, so a player can never hold
    two roles or appear twice.
    """

    def __init__(self) -> None:
        self._entries: dict[uuid.UUID, PoolEntry] = {}

    @classmethod
    def from_report(cls, report: "ResolutionReport") -> "PlayerPool":
        """Build a pool from every successful resolution in a report."""
        pool = cls()
        for _, resolved in report.succeeded:
            pool.merge(resolved)
        return pool

    def _insert(self, player: Player, role: PlayerRole, source_match: str) -> bool:
        if player.id in self._entries:
            return False
        self._entries[player.id] = PoolEntry(player=player, role=role, source_match=source_match)
        return True

    def merge(self, resolved: ResolvedPlayers) -> int:
        """
        Add the players of a resolved match.

        Args:
            resolved: Players resolved for one match.

        Returns:
            Number of players added. Players already present are skipped.
        """
        added = 0
        for player in resolved.starting_xi:
            added += self._insert(player, PlayerRole.STARTING_XI, resolved.match_id)
        for player in resolved.substitutes:
            added += self._insert(player, PlayerRole.SUBSTITUTE, resolved.match_id)

        skipped = len(resolved.players) - added
        if skipped:
            logger.debug("Skipped %d players already in pool from match %s", skipped, resolved.match_id)
        return added

    def add_manual(
        self,
        player: Player,
        role: PlayerRole = PlayerRole.STARTING_XI,
        source_match: str = MANUAL_MATCH,
    ) -> bool:
        """Add a manually entered player. Returns False if already present."""
        return self._insert(player, role, source_match)

    def starting_xi(self) -> list[Player]:
        """Players tagged starting XI, in insertion order."""
        return [e.player for e in self._entries.values() if e.role == PlayerRole.STARTING_XI]

    def substitutes(self) -> list[Player]:
        """Players tagged substitute, in insertion order."""
        return [e.player for e in self._entries.values() if e.role == PlayerRole.SUBSTITUTE]

    def players(self) -> list[Player]:
        """All players, in insertion order."""
        return [e.player for e in self._entries.values()]

    def entries(self) -> list[PoolEntry]:
        """All pool entries, in insertion order."""
        return list(self._entries.values())

    def get(self, player_id: uuid.UUID) -> Optional[PoolEntry]:
        """Get the entry for a player id."""
        return self._entries.get(player_id)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, player: object) -> bool:
        if isinstance(player, Player):
            return player.id in self._entries
        return player in self._entries

    def __iter__(self) -> Iterator[PoolEntry]:
        return iter(list(self._entries.values()))
