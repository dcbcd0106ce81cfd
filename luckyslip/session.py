"""Game setup flow: pick matches, resolve players, draw them for participants."""

import logging
import random
import threading
import uuid
from typing import Iterable, Optional

from .config import Settings
from .engine.assignment import (
    AssignmentResult,
    RevealCallback,
    apply_assignment,
    assign_by_sequential_draw,
    assign_uniform,
)
from .engine.catalog import MatchCatalog
from .engine.pool import PlayerPool
from .engine.resolver import LineupResolver
from .engine.scheduler import FetchScheduler, ResolutionListener, ResolutionReport
from .models import Match, Participant, Player
from .sources.base import MatchDataSource

logger = logging.getLogger(__name__)


class GameSetup:
    """
    Owns one game setup from match selection to the final draw.

    All state lives here and changes only through these methods, under a
    lock. Resolution runs are serialized. The player pool is rebuilt from
    each resolution report and dropped once an assignment has been applied.
    """

    def __init__(
        self,
        source: MatchDataSource,
        settings: Optional[Settings] = None,
        listener: Optional[ResolutionListener] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """
        Initialize the setup.

        Args:
            source: Where matches and players come from.
            settings: Runtime settings. Defaults to Settings().
            listener: Receiver for resolution events.
            rng: Random generator for the draw. None draws differently
                every game.
        """
        self.settings = settings or Settings()
        self.catalog = MatchCatalog(source)
        self.resolver = LineupResolver(source)
        self.scheduler = FetchScheduler(
            self.resolver,
            delay_seconds=self.settings.request_delay,
            listener=listener,
        )
        self.rng = rng

        self._lock = threading.RLock()
        # Held for a whole resolution run, never while holding _lock
        self._resolve_lock = threading.Lock()
        self._participants: list[Participant] = []
        self._pool: Optional[PlayerPool] = None
        self._last_report: Optional[ResolutionReport] = None

    def load_matches(self) -> list[Match]:
        """
        List the matches available for selection.

        Raises:
            DataError: If the listing failed.
        """
        return self.catalog.list_available()

    def add_participant(self, name: str) -> Participant:
        """Add a participant by name."""
        participant = Participant(name=name)
        with self._lock:
            self._participants.append(participant)
        logger.debug("Added participant %s", participant.name)
        return participant

    def remove_participant(self, participant_id: uuid.UUID) -> bool:
        """Remove a participant. Returns False if no such participant."""
        with self._lock:
            for index, participant in enumerate(self._participants):
                if participant.id == participant_id:
                    del self._participants[index]
                    return True
        return False

    @property
    def participants(self) -> tuple[Participant, ...]:
        with self._lock:
            return tuple(self._participants)

    @property
    def pool(self) -> Optional[PlayerPool]:
        """Pool from the last resolution, or None."""
        with self._lock:
            return self._pool

    @property
    def last_report(self) -> Optional[ResolutionReport]:
        with self._lock:
            return self._last_report

    def resolve(self, match_ids: Iterable[str]) -> ResolutionReport:
        """
        Resolve the selected matches and rebuild the player pool.

        Calling again (for instance after a rate limit) resolves all the
        given matches again and replaces the pool. Concurrent calls run
        one after the other, so the upstream never sees two requests at
        once.

        Args:
            match_ids: Ids of the selected matches.

        Returns:
            The ResolutionReport.

        Raises:
            ResolutionCancelled: If cancel() was called before or during
                the run.
        """
        with self._resolve_lock:
            report = self.scheduler.resolve_all(match_ids)
            pool = PlayerPool.from_report(report)
            with self._lock:
                self._last_report = report
                self._pool = pool
        logger.info("Player pool holds %d players", len(pool))
        return report

    def cancel(self) -> None:
        """
        Cancel the running resolve() from another thread.

        When no resolution is running, the next one is cancelled instead.
        """
        self.scheduler.cancel()

    def assign(
        self,
        player_ids: Optional[Iterable[uuid.UUID]] = None,
        sequential: bool = False,
        on_reveal: Optional[RevealCallback] = None,
    ) -> AssignmentResult:
        """
        Draw pool players for the participants.

        The draw runs without holding the setup lock, so on_reveal may
        call back into this object or wait on other threads that do.

        Args:
            player_ids: Players to draw from. Defaults to the starting XI.
                Ids not in the pool are ignored.
            sequential: Draw one pick at a time, calling on_reveal.
            on_reveal: Called with (participant, player) after each pick.

        Returns:
            The AssignmentResult, already applied to the participants.

        Raises:
            NoParticipants: If no participant was added.
            EmptyPlayerPool: If there is nothing to draw from.
        """
        with self._lock:
            pool = self._pool
            participants = list(self._participants)

            players: list[Player] = []
            if pool is not None:
                if player_ids is None:
                    players = pool.starting_xi()
                else:
                    entries = (pool.get(pid) for pid in dict.fromkeys(player_ids))
                    players = [e.player for e in entries if e is not None]

        if sequential:
            result = assign_by_sequential_draw(
                players,
                participants,
                on_reveal=on_reveal or (lambda participant, player: None),
                rng=self.rng,
            )
        else:
            result = assign_uniform(players, participants, rng=self.rng)

        with self._lock:
            apply_assignment(result)
            # A resolve() during the draw may already have replaced the pool
            if self._pool is pool:
                self._pool = None
        return result
