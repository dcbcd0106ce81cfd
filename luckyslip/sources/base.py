"""Data source contract and base HTTP client with caching and rate limiting."""

import hashlib
import json
import logging
import time
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Optional

import requests

from ..config import (
    CACHE_DIR,
    DEFAULT_CACHE_TTL_MINUTES,
    DEFAULT_MAX_CALLS_PER_MINUTE,
    DEFAULT_MIN_REQUEST_INTERVAL,
)
from ..errors import ConfigError, DecodingError, RateLimited, classify_error
from ..models import Lineup, Match, Player

logger = logging.getLogger(__name__)


class MatchDataSource(ABC):
    """
    Provider of matches, lineups and squads.

    Implementations raise DataError subclasses on failure.
    """

    @abstractmethod
    def fetch_available_matches(self) -> list[Match]:
        """Fetch the matches currently offered for selection."""

    @abstractmethod
    def fetch_lineup(self, match_id: str) -> Lineup:
        """
        Fetch the official lineup of a match.

        Raises:
            LineupNotAvailable: If the lineup has not been published.
        """

    @abstractmethod
    def fetch_squad(self, match_id: str) -> list[Player]:
        """Fetch the full squads of both teams of a match."""


class CallWindow:
    """
    Sliding one-minute budget of outgoing calls.

    Attributes:
        max_calls: Calls allowed within the window.
        window_seconds: Length of the window.
    """

    def __init__(
        self,
        max_calls: int = DEFAULT_MAX_CALLS_PER_MINUTE,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self._clock = clock
        self._calls: deque[float] = deque()

    def _prune(self) -> None:
        cutoff = self._clock() - self.window_seconds
        while self._calls and self._calls[0] <= cutoff:
            self._calls.popleft()

    def can_call(self) -> bool:
        """Check if a call fits in the current window."""
        self._prune()
        return len(self._calls) < self.max_calls

    def record(self) -> None:
        """Record an outgoing call."""
        self._prune()
        self._calls.append(self._clock())

    def time_until_next_call(self) -> float:
        """Seconds until the next call fits in the window (0 if it fits now)."""
        self._prune()
        if len(self._calls) < self.max_calls:
            return 0.0
        return max(0.0, self._calls[0] + self.window_seconds - self._clock())

    def usage(self) -> tuple[int, int]:
        """Return (calls in window, maximum calls)."""
        self._prune()
        return len(self._calls), self.max_calls


class BaseClient:
    """
    JSON HTTP client with caching and rate limiting.

    Every failure leaves this class as a DataError produced by
    classify_error, so callers never see transport exceptions.
    """

    def __init__(
        self,
        base_url: str,
        cache_dir: Optional[Path] = None,
        cache_ttl_minutes: float = DEFAULT_CACHE_TTL_MINUTES,
        rate_limit_seconds: float = DEFAULT_MIN_REQUEST_INTERVAL,
        max_calls_per_minute: int = DEFAULT_MAX_CALLS_PER_MINUTE,
        headers: Optional[dict[str, str]] = None,
        timeout: float = 30.0,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Base URL that endpoints are appended to.
            cache_dir: Directory for caching responses.
            cache_ttl_minutes: Cache time-to-live in minutes.
            rate_limit_seconds: Minimum seconds between requests.
            max_calls_per_minute: Local call budget per sliding minute.
            headers: Extra request headers.
            timeout: Request timeout in seconds.

        Raises:
            ConfigError: If the cache directory cannot be created.
        """
        self.base_url = base_url.rstrip("/")
        self.cache_dir = cache_dir or CACHE_DIR
        self.cache_ttl = timedelta(minutes=cache_ttl_minutes)
        self.rate_limit_seconds = rate_limit_seconds
        self.timeout = timeout
        self.call_window = CallWindow(max_calls=max_calls_per_minute)
        self._last_request_time: Optional[float] = None

        # Create cache directory if it doesn't exist
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Cannot create cache directory {self.cache_dir}: {e}") from e

        # Session for connection reuse
        self._session = requests.Session()
        self._session.headers.update(
            {
                "User-Agent": "LuckySlip/1.0 (match player draw)",
                "Accept": "application/json",
            }
        )
        if headers:
            self._session.headers.update(headers)

    def url_for(self, endpoint: str) -> str:
        """Build an absolute URL for an endpoint."""
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _cache_key(self, url: str) -> str:
        """Generate a cache key from URL."""
        return hashlib.md5(url.encode()).hexdigest()

    def _cache_path(self, url: str) -> Path:
        """Get the cache file path for a URL."""
        return self.cache_dir / f"{self._cache_key(url)}.json"

    def _read_cache(self, url: str) -> Optional[Any]:
        """
        Read cached data if valid.

        Args:
            url: The URL to look up in cache.

        Returns:
            Cached data if valid, None otherwise.
        """
        cache_path = self._cache_path(url)
        if not cache_path.exists():
            return None

        try:
            with open(cache_path, "r") as f:
                entry = json.load(f)

            timestamp = datetime.fromisoformat(entry["timestamp"])
            if datetime.now() - timestamp < self.cache_ttl:
                return entry["data"]
        except (json.JSONDecodeError, KeyError, ValueError):
            # Invalid cache entry, delete it
            cache_path.unlink(missing_ok=True)

        return None

    def _write_cache(self, url: str, data: Any) -> None:
        """Write data to cache."""
        entry = {
            "url": url,
            "timestamp": datetime.now().isoformat(),
            "data": data,
        }
        with open(self._cache_path(url), "w") as f:
            json.dump(entry, f)

    def _rate_limit(self) -> None:
        """
        Enforce spacing and the per-minute budget before a request.

        Raises:
            RateLimited: If the per-minute budget is used up.
        """
        if not self.call_window.can_call():
            wait = self.call_window.time_until_next_call()
            logger.warning("Local call budget exhausted, next call in %.1fs", wait)
            raise RateLimited(wait, "Local call budget exhausted")

        if self._last_request_time is not None:
            elapsed = time.monotonic() - self._last_request_time
            if elapsed < self.rate_limit_seconds:
                time.sleep(self.rate_limit_seconds - elapsed)
        self._last_request_time = time.monotonic()
        self.call_window.record()

    def fetch_json(self, endpoint: str, use_cache: bool = True) -> Any:
        """
        Fetch and decode a JSON endpoint with caching and rate limiting.

        Args:
            endpoint: Endpoint path relative to the base URL.
            use_cache: Whether to use cached data if available.

        Returns:
            The decoded JSON document.

        Raises:
            DataError: Classified failure (network, HTTP status, decoding).
        """
        url = self.url_for(endpoint)

        if use_cache:
            cached = self._read_cache(url)
            if cached is not None:
                logger.debug("Cache hit for %s", url)
                return cached

        self._rate_limit()

        used, limit = self.call_window.usage()
        logger.info("API request (%d/%d): %s", used, limit, url)

        try:
            response = self._session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            error = classify_error(e)
            logger.warning("Request failed: %s - %s", url, error)
            raise error from e

        if not isinstance(data, (dict, list)):
            raise DecodingError(f"Unexpected JSON document from {url}")

        if use_cache:
            self._write_cache(url, data)

        return data

    def clear_cache(self) -> int:
        """
        Clear all cached data.

        Returns:
            Number of cache entries cleared.
        """
        count = 0
        for cache_file in self.cache_dir.glob("*.json"):
            # Validate it's a cache entry before deletion
            try:
                with open(cache_file, "r") as f:
                    entry = json.load(f)
                if not all(k in entry for k in ("url", "timestamp", "data")):
                    continue
            except (json.JSONDecodeError, IOError):
                continue
            cache_file.unlink()
            count += 1
        return count

    def clear_expired_cache(self) -> int:
        """
        Clear expired cache entries.

        Returns:
            Number of cache entries cleared.
        """
        count = 0
        for cache_file in self.cache_dir.glob("*.json"):
            try:
                with open(cache_file, "r") as f:
                    entry = json.load(f)
                timestamp = datetime.fromisoformat(entry["timestamp"])
                if datetime.now() - timestamp >= self.cache_ttl:
                    cache_file.unlink()
                    count += 1
            except (json.JSONDecodeError, KeyError, ValueError):
                cache_file.unlink()
                count += 1
        return count
