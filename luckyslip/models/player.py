"""Player data model."""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .team import Team


class Position(Enum):
    """Player position category."""

    GOALKEEPER = "goalkeeper"
    DEFENDER = "defender"
    MIDFIELDER = "midfielder"
    FORWARD = "forward"


class PlayerRole(Enum):
    """Role of a player within a resolved match."""

    STARTING_XI = "starting_xi"
    SUBSTITUTE = "substitute"


class PlayerSource(Enum):
    """Where a player record came from."""

    OFFICIAL_LINEUP = "official_lineup"
    FALLBACK_SQUAD = "fallback_squad"
    MANUAL_ENTRY = "manual_entry"


@dataclass(eq=False)
class Player:
    """
    Represents a football player.

    Two players with the same id are the same entity even when the
    other fields differ between fetches.

    Attributes:
        name: Player's full name.
        team: The team the player belongs to (shared, not owned).
        position: Position category.
        id: Unique identifier.
        api_id: Upstream identifier, if the player came from the API.
        shirt_number: Shirt number when known.
        source: Where this record came from.
    """

    name: str
    team: Team
    position: Position
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    api_id: Optional[str] = None
    shirt_number: Optional[int] = None
    source: PlayerSource = PlayerSource.MANUAL_ENTRY

    def __post_init__(self) -> None:
        """Validate player data after initialization."""
        if not self.name:
            raise ValueError("player name cannot be empty")
        if self.shirt_number is not None and self.shirt_number < 0:
            raise ValueError("shirt_number cannot be negative")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Player):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def is_goalkeeper(self) -> bool:
        """Check if player is a goalkeeper."""
        return self.position == Position.GOALKEEPER
