"""Sequential, throttled resolution of several matches."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..config import DEFAULT_REQUEST_DELAY
from ..errors import DataError, RateLimited, ResolutionCancelled
from .resolver import LineupResolver, ResolvedPlayers

logger = logging.getLogger(__name__)


class ResolutionListener:
    """
    Receives resolution events. Override the methods you need.

    Exceptions raised by a listener propagate out of resolve_all.
    """

    def on_match_resolved(self, match_id: str, resolved: ResolvedPlayers) -> None:
        pass

    def on_fallback_used(self, match_id: str) -> None:
        pass

    def on_match_failed(self, match_id: str, error: DataError) -> None:
        pass

    def on_rate_limited(self, match_id: str, retry_after: float) -> None:
        pass


@dataclass
class ResolutionReport:
    """
    Outcome of resolving a set of matches.

    Attributes:
        succeeded: (match id, resolved players) in resolution order.
        failed: (match id, error) in resolution order.
        pending: Match ids not attempted because of rate limiting.
        rate_limit: The rate limit that stopped resolution, if any.
    """

    succeeded: list[tuple[str, ResolvedPlayers]] = field(default_factory=list)
    failed: list[tuple[str, DataError]] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)
    rate_limit: Optional[RateLimited] = None

    @property
    def total(self) -> int:
        """Number of distinct matches requested."""
        return len(self.succeeded) + len(self.failed) + len(self.pending)

    @property
    def loaded_count(self) -> int:
        """Number of matches resolved."""
        return len(self.succeeded)

    @property
    def is_complete(self) -> bool:
        """Check if every requested match was resolved."""
        return not self.failed and not self.pending

    @property
    def fallback_matches(self) -> list[str]:
        """Ids of matches resolved from the squad instead of the lineup."""
        return [match_id for match_id, resolved in self.succeeded if resolved.used_fallback]

    @property
    def summary(self) -> str:
        """Progress line such as "2 of 3 matches loaded"."""
        return f"{self.loaded_count} of {self.total} matches loaded"

    def error_for(self, match_id: str) -> Optional[DataError]:
        """Get the error a match failed with."""
        return next((error for mid, error in self.failed if mid == match_id), None)


class FetchScheduler:
    """
    Resolves matches one at a time with a fixed delay in between.

    Matches are never resolved concurrently, since the upstream enforces a
    per-minute request ceiling. A rate limit stops the run: the limited
    match is reported as failed, the rest as pending, and the caller
    decides when to call resolve_all again.
    """

    def __init__(
        self,
        resolver: LineupResolver,
        delay_seconds: float = DEFAULT_REQUEST_DELAY,
        listener: Optional[ResolutionListener] = None,
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            resolver: Resolver used for each match.
            delay_seconds: Pause between the end of one resolution and the
                start of the next.
            listener: Receiver for resolution events.
        """
        if delay_seconds < 0:
            raise ValueError("delay_seconds cannot be negative")
        self.resolver = resolver
        self.delay_seconds = delay_seconds
        self.listener = listener or ResolutionListener()
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """
        Abandon the running resolve_all. Safe to call from another thread.

        If no run is in progress the next resolve_all is abandoned before
        its first request. The request is consumed when that run ends.
        """
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        """Check if a cancel() is waiting to take effect."""
        return self._cancelled.is_set()

    def _check_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise ResolutionCancelled("Match resolution was cancelled")

    def _pause(self) -> None:
        if self.delay_seconds > 0 and self._cancelled.wait(self.delay_seconds):
            self._check_cancelled()

    def resolve_all(self, match_ids: Iterable[str]) -> ResolutionReport:
        """
        Resolve matches sequentially in the given order.

        Duplicate ids are resolved once. Calling again with the same ids
        simply resolves them again.

        Args:
            match_ids: Ids of the selected matches.

        Returns:
            ResolutionReport. A failed match never aborts the others.

        Raises:
            ResolutionCancelled: If cancel() was called before or during
                the run.
        """
        ordered = list(dict.fromkeys(match_ids))
        try:
            return self._run(ordered)
        finally:
            self._cancelled.clear()

    def _run(self, ordered: list[str]) -> ResolutionReport:
        self._check_cancelled()
        report = ResolutionReport()

        logger.info("Resolving %d matches", len(ordered))

        for index, match_id in enumerate(ordered):
            self._check_cancelled()
            logger.info("Resolving match %d/%d: %s", index + 1, len(ordered), match_id)

            try:
                resolved = self.resolver.resolve(match_id)
            except RateLimited as e:
                self._check_cancelled()
                report.failed.append((match_id, e))
                report.pending = ordered[index + 1 :]
                report.rate_limit = e
                logger.warning(
                    "Rate limited at match %s, %d matches pending, retry after %.0fs",
                    match_id,
                    len(report.pending),
                    e.retry_after,
                )
                self.listener.on_rate_limited(match_id, e.retry_after)
                break
            except DataError as e:
                self._check_cancelled()
                report.failed.append((match_id, e))
                self.listener.on_match_failed(match_id, e)
            else:
                self._check_cancelled()
                report.succeeded.append((match_id, resolved))
                if resolved.used_fallback:
                    logger.warning("Official lineup unavailable for match %s, used squad", match_id)
                    self.listener.on_fallback_used(match_id)
                self.listener.on_match_resolved(match_id, resolved)

            if index < len(ordered) - 1:
                self._pause()

        logger.info(report.summary)
        return report
