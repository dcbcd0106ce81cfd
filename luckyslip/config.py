"""Runtime settings loaded from the environment."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigError


FOOTBALL_DATA_API_BASE = "https://api.football-data.org/v4"

# Default cache directory, under the user's cache home
CACHE_DIR = Path(os.environ.get("XDG_CACHE_HOME") or Path.home() / ".cache") / "luckyslip"

# Competitions offered for selection
DEFAULT_COMPETITIONS = ("PL", "BL1", "SA", "PD", "CL", "EL")

# Delay between two match resolutions
DEFAULT_REQUEST_DELAY = 2.0

# Minimum spacing between two HTTP requests
DEFAULT_MIN_REQUEST_INTERVAL = 1.0

# football-data.org free tier allows 10 calls per minute
DEFAULT_MAX_CALLS_PER_MINUTE = 10

DEFAULT_CACHE_TTL_MINUTES = 5
DEFAULT_DAYS_AHEAD = 7
DEFAULT_LOG_LEVEL = "INFO"

ENV_PREFIX = "LUCKYSLIP_"


@dataclass
class Settings:
    """
    Settings for the data source and the fetch scheduler.

    Attributes:
        api_key: football-data.org API token.
        base_url: API base URL.
        request_delay: Seconds between two match resolutions.
        min_request_interval: Minimum seconds between two HTTP requests.
        max_calls_per_minute: Local call budget per sliding minute.
        cache_ttl_minutes: Lifetime of cached responses.
        cache_dir: Directory for cached responses.
        competitions: Competition codes offered for selection.
        days_ahead: How many days of fixtures the catalog covers.
        log_level: Logging level name.
    """

    api_key: str = ""
    base_url: str = FOOTBALL_DATA_API_BASE
    request_delay: float = DEFAULT_REQUEST_DELAY
    min_request_interval: float = DEFAULT_MIN_REQUEST_INTERVAL
    max_calls_per_minute: int = DEFAULT_MAX_CALLS_PER_MINUTE
    cache_ttl_minutes: float = DEFAULT_CACHE_TTL_MINUTES
    cache_dir: Path = CACHE_DIR
    competitions: tuple[str, ...] = field(default=DEFAULT_COMPETITIONS)
    days_ahead: int = DEFAULT_DAYS_AHEAD
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self) -> None:
        """Validate settings."""
        if self.request_delay < 0:
            raise ConfigError("request_delay cannot be negative")
        if self.min_request_interval < 0:
            raise ConfigError("min_request_interval cannot be negative")
        if self.max_calls_per_minute < 1:
            raise ConfigError("max_calls_per_minute must be at least 1")
        if self.cache_ttl_minutes < 0:
            raise ConfigError("cache_ttl_minutes cannot be negative")
        if self.days_ahead < 0:
            raise ConfigError("days_ahead cannot be negative")
        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigError(f"Unknown log level: {self.log_level}")
        self.log_level = self.log_level.upper()
        self.base_url = self.base_url.rstrip("/")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Returns:
            Settings with defaults for every variable that is not set.

        Raises:
            ConfigError: If a variable has an invalid value.
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            if value is None or not value.strip():
                return None
            return value.strip()

        kwargs: dict = {"api_key": env.get("FOOTBALL_DATA_API_KEY", "").strip()}

        if get("BASE_URL"):
            kwargs["base_url"] = get("BASE_URL")
        if get("CACHE_DIR"):
            kwargs["cache_dir"] = Path(get("CACHE_DIR"))
        if get("LOG_LEVEL"):
            kwargs["log_level"] = get("LOG_LEVEL")
        if get("COMPETITIONS"):
            codes = [c.strip().upper() for c in get("COMPETITIONS").split(",")]
            kwargs["competitions"] = tuple(c for c in codes if c)

        numeric = {
            "REQUEST_DELAY": ("request_delay", float),
            "MIN_REQUEST_INTERVAL": ("min_request_interval", float),
            "MAX_CALLS_PER_MINUTE": ("max_calls_per_minute", int),
            "CACHE_TTL_MINUTES": ("cache_ttl_minutes", float),
            "DAYS_AHEAD": ("days_ahead", int),
        }
        for name, (attr, convert) in numeric.items():
            raw = get(name)
            if raw is None:
                continue
            try:
                kwargs[attr] = convert(raw)
            except ValueError:
                raise ConfigError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}")

        return cls(**kwargs)
