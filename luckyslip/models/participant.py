"""Participant data model."""

import uuid
from dataclasses import dataclass, field

from .player import Player


@dataclass(eq=False)
class Participant:
    """
    A person taking part in a game.

    Attributes:
        name: Display name.
        id: Unique identifier.
        assigned_players: Players drawn for this participant.
    """

    name: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    assigned_players: list[Player] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.name = self.name.strip()
        if not self.name:
            raise ValueError("participant name cannot be empty")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Participant):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def player_count(self) -> int:
        """Number of players assigned."""
        return len(self.assigned_players)
