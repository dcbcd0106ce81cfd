"""Random, balanced assignment of players to participants."""

import logging
import random
import uuid
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Optional, Sequence

from ..errors import EmptyPlayerPool, NoParticipants
from ..models import Participant, Player

logger = logging.getLogger(__name__)

RevealCallback = Callable[[Participant, Player], None]


@dataclass
class AssignmentResult:
    """
    Players drawn for each participant.

    Every player appears exactly once, and the number of players per
    participant differs by at most one.

    Attributes:
        participants: Participants in draw order.
        assignments: Participant id -> players, in the order drawn.
        reveals: Every (participant, player) pick in draw order.
    """

    participants: list[Participant]
    assignments: dict[uuid.UUID, list[Player]] = field(default_factory=dict)
    reveals: list[tuple[Participant, Player]] = field(default_factory=list)

    def players_for(self, participant: Participant) -> list[Player]:
        """Players drawn for a participant."""
        return list(self.assignments.get(participant.id, []))

    def counts(self) -> dict[uuid.UUID, int]:
        """Number of players per participant id."""
        return {p.id: len(self.assignments.get(p.id, [])) for p in self.participants}

    @property
    def is_balanced(self) -> bool:
        """Check that counts differ by at most one."""
        counts = list(self.counts().values())
        return not counts or max(counts) - min(counts) <= 1

    @property
    def player_count(self) -> int:
        return len(self.reveals)


def _validate(players: Iterable[Player], participants: Sequence[Participant]) -> list[Player]:
    if not participants:
        raise NoParticipants("Cannot assign players without participants")
    players = list(players)
    if not players:
        raise EmptyPlayerPool("Cannot assign from an empty player pool")
    if len({p.id for p in players}) != len(players):
        raise ValueError("players must not contain duplicates")
    if len({p.id for p in participants}) != len(participants):
        raise ValueError("participants must not contain duplicates")
    return players


def shuffled(players: Iterable[Player], rng: Optional[random.Random] = None) -> list[Player]:
    """Return a uniformly random permutation of the players."""
    order = list(players)
    (rng or random.Random()).shuffle(order)
    return order


def deal_round_robin(
    order: Sequence[Player], participants: Sequence[Participant]
) -> Iterator[tuple[Participant, Player]]:
    """
    Deal players in order, one per participant in turn.

    The player at index i goes to participant i mod len(participants).

    Yields:
        (participant, player) picks in draw order.
    """
    for index, player in enumerate(order):
        yield participants[index % len(participants)], player


def _draw(
    players: Iterable[Player],
    participants: Sequence[Participant],
    rng: Optional[random.Random],
    on_reveal: Optional[RevealCallback],
) -> AssignmentResult:
    players = _validate(players, participants)
    participants = list(participants)
    order = shuffled(players, rng)

    result = AssignmentResult(
        participants=participants,
        assignments={p.id: [] for p in participants},
    )
    for participant, player in deal_round_robin(order, participants):
        result.assignments[participant.id].append(player)
        result.reveals.append((participant, player))
        if on_reveal is not None:
            on_reveal(participant, player)

    logger.info(
        "Assigned %d players to %d participants",
        len(order),
        len(participants),
    )
    return result


def assign_uniform(
    players: Iterable[Player],
    participants: Sequence[Participant],
    rng: Optional[random.Random] = None,
) -> AssignmentResult:
    """
    Shuffle the players and deal them round-robin.

    Args:
        players: Distinct players to assign.
        participants: Participants in draw order.
        rng: Random generator. A seeded one makes the draw reproducible.

    Returns:
        The AssignmentResult.

    Raises:
        NoParticipants: If participants is empty.
        EmptyPlayerPool: If players is empty.
    """
    return _draw(players, participants, rng, on_reveal=None)


def assign_by_sequential_draw(
    players: Iterable[Player],
    participants: Sequence[Participant],
    on_reveal: RevealCallback,
    rng: Optional[random.Random] = None,
) -> AssignmentResult:
    """
    Draw players one pick at a time, calling on_reveal after each pick.

    Produces the same result as assign_uniform for the same random
    permutation; only the pick-by-pick notification differs.

    Args:
        players: Distinct players to assign.
        participants: Participants in draw order.
        on_reveal: Called with (participant, player) after each pick.
        rng: Random generator. A seeded one makes the draw reproducible.

    Returns:
        The AssignmentResult.

    Raises:
        NoParticipants: If participants is empty.
        EmptyPlayerPool: If players is empty.
    """
    return _draw(players, participants, rng, on_reveal=on_reveal)


def apply_assignment(result: AssignmentResult) -> None:
    """Replace each participant's assigned players with the drawn ones."""
    for participant in result.participants:
        participant.assigned_players = result.players_for(participant)
