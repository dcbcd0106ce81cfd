"""Error taxonomy and classification of raw data-source failures."""

import json
from typing import Optional

import requests


# Wait hint used when the upstream 429 response carries no header
DEFAULT_RETRY_AFTER = 60.0


class SlipError(Exception):
    """Base exception for Lucky Slip errors."""

    pass


class DataError(SlipError):
    """Base exception for failures while fetching match data."""

    pass


class NetworkUnavailable(DataError):
    """Raised when the upstream cannot be reached."""

    pass


class RateLimited(DataError):
    """Raised when the upstream (or the local call budget) refuses a request."""

    def __init__(self, retry_after: float = DEFAULT_RETRY_AFTER, message: str = "") -> None:
        self.retry_after = max(0.0, float(retry_after))
        super().__init__(message or f"Rate limited, retry after {self.retry_after:.0f}s")

    def __eq__(self, other: object) -> bool:
        return isinstance(other, RateLimited)

    def __hash__(self) -> int:
        return hash(RateLimited)


class ServerError(DataError):
    """Raised when the upstream answers with an error status."""

    def __init__(self, status_code: int, message: str = "") -> None:
        self.status_code = status_code
        super().__init__(message or f"HTTP error {status_code}")

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ServerError) and other.status_code == self.status_code

    def __hash__(self) -> int:
        return hash((ServerError, self.status_code))


class DecodingError(DataError):
    """Raised when a response cannot be decoded into models."""

    pass


class LineupNotAvailable(DataError):
    """Raised when a match has no published lineup yet."""

    def __init__(self, match_id: str = "") -> None:
        self.match_id = match_id
        suffix = f" for match {match_id}" if match_id else ""
        super().__init__(f"Lineup data not available yet{suffix}")


class NoPlayersFound(DataError):
    """Raised when a squad fetch returns no players."""

    pass


class Unknown(DataError):
    """Raised for failures that fit no other category."""

    pass


class AssignmentError(SlipError):
    """Base exception for invalid assignment calls."""

    pass


class EmptyPlayerPool(AssignmentError):
    """Raised when assignment is requested with no players."""

    pass


class NoParticipants(AssignmentError):
    """Raised when assignment is requested with no participants."""

    pass


class ResolutionCancelled(SlipError):
    """Raised when a running resolution is abandoned."""

    pass


class ConfigError(SlipError):
    """Raised when configuration values are invalid."""

    pass


def _retry_after_from(response: Optional[requests.Response]) -> float:
    """Read the wait hint from a 429 response."""
    if response is None:
        return DEFAULT_RETRY_AFTER
    for header in ("Retry-After", "X-RequestCounter-Reset"):
        value = response.headers.get(header)
        if value is None:
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            continue
    return DEFAULT_RETRY_AFTER


def classify_error(error: BaseException) -> DataError:
    """
    Map a raw failure into the closed data error taxonomy.

    Args:
        error: Exception raised by the transport, decoder or data source.

    Returns:
        The matching DataError. Already-classified errors are returned as is.
    """
    if isinstance(error, DataError):
        return error

    if isinstance(error, requests.exceptions.HTTPError):
        response = error.response
        status = response.status_code if response is not None else 0
        if status == 429:
            return RateLimited(_retry_after_from(response))
        if status:
            return ServerError(status)
        return Unknown(str(error))

    if isinstance(
        error, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)
    ):
        return NetworkUnavailable(str(error))

    # requests' JSON errors are RequestExceptions too
    if isinstance(error, (requests.exceptions.InvalidJSONError, json.JSONDecodeError)):
        return DecodingError(str(error))

    if isinstance(error, requests.exceptions.RequestException):
        return Unknown(str(error))

    if isinstance(error, (ValueError, KeyError, TypeError)):
        return DecodingError(str(error))

    return Unknown(str(error))


def describe_error(error: SlipError) -> str:
    """Return a user-facing message for an error."""
    if isinstance(error, RateLimited):
        return f"Too many requests. Please wait {error.retry_after:.0f} seconds and try again."
    if isinstance(error, NetworkUnavailable):
        return "Please check your internet connection and try again."
    if isinstance(error, ServerError):
        if error.status_code >= 500:
            return "The football data service is temporarily unavailable. Please try again later."
        return "There was a problem with your request. Please try again."
    if isinstance(error, DecodingError):
        return "There was a problem processing the match data. Please try again."
    if isinstance(error, LineupNotAvailable):
        return "The official lineup has not been announced yet."
    if isinstance(error, NoPlayersFound):
        return "No player data is available for this match."
    if isinstance(error, EmptyPlayerPool):
        return "Select at least one player before assigning."
    if isinstance(error, NoParticipants):
        return "Add at least one participant before assigning."
    return "An unexpected error occurred. Please try again."
