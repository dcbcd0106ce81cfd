"""Lucky Slip: draw live-match football players for a group of participants."""

from .config import Settings
from .errors import (
    AssignmentError,
    ConfigError,
    DataError,
    DecodingError,
    EmptyPlayerPool,
    LineupNotAvailable,
    NetworkUnavailable,
    NoParticipants,
    NoPlayersFound,
    RateLimited,
    ResolutionCancelled,
    ServerError,
    SlipError,
    Unknown,
    classify_error,
    describe_error,
)
from .logging_setup import setup_logging
from .session import GameSetup

__version__ = "0.1.0"

__all__ = [
    "GameSetup",
    "Settings",
    "setup_logging",
    # Errors
    "AssignmentError",
    "ConfigError",
    "DataError",
    "DecodingError",
    "EmptyPlayerPool",
    "LineupNotAvailable",
    "NetworkUnavailable",
    "NoParticipants",
    "NoPlayersFound",
    "RateLimited",
    "ResolutionCancelled",
    "ServerError",
    "SlipError",
    "Unknown",
    "classify_error",
    "describe_error",
]
