"""Team data model."""

import uuid
from dataclasses import dataclass, field
from typing import Optional


DEFAULT_TEAM_COLOR = "#1a73e8"

# Namespace for ids derived from upstream integer ids
API_NAMESPACE = uuid.UUID("6f1c2a4e-8d3b-5b7a-9c41-2e5d7f0a9b13")


def api_uuid(kind: str, api_id: object) -> uuid.UUID:
    """
    Derive a stable UUID from an upstream id.

    Args:
        kind: Entity kind ("team" or "player").
        api_id: The upstream identifier.

    Returns:
        The same UUID for the same kind and id on every call.
    """
    return uuid.uuid5(API_NAMESPACE, f"{kind}:{api_id}")


@dataclass(eq=False)
class Team:
    """
    A football team.

    Attributes:
        name: Full team name.
        short_name: Abbreviation shown in compact views.
        primary_color: Hex color string.
        id: Unique identifier. Teams compare equal by id.
        api_id: Upstream identifier, if the team came from the API.
    """

    name: str
    short_name: str = ""
    primary_color: str = DEFAULT_TEAM_COLOR
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    api_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("team name cannot be empty")
        if not self.short_name:
            self.short_name = self.name[:3].upper()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Team):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
