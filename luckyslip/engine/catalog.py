"""Catalog of matches available for selection."""

import logging
from typing import Optional

from ..models import Match
from ..sources.base import MatchDataSource

logger = logging.getLogger(__name__)


class MatchCatalog:
    """
    Lists the matches a game can be built from.

    The last successful listing is kept in `cached`; a failed listing
    leaves it untouched. There is no internal retry.
    """

    def __init__(self, source: MatchDataSource) -> None:
        self.source = source
        self.cached: list[Match] = []

    def list_available(self) -> list[Match]:
        """
        Fetch available matches, deduplicated by id.

        When the upstream lists the same match twice the later record
        wins, at the position of the first.

        Returns:
            List of unique matches.

        Raises:
            DataError: If the data source fails.
        """
        matches = self.source.fetch_available_matches()

        unique: dict[str, Match] = {}
        for match in matches:
            if match.id in unique:
                logger.debug("Duplicate match %s in listing, keeping latest", match.id)
            unique[match.id] = match

        self.cached = list(unique.values())
        logger.info("Catalog holds %d matches", len(self.cached))
        return list(self.cached)

    def find(self, match_id: str) -> Optional[Match]:
        """Look up a match in the last listing."""
        return next((m for m in self.cached if m.id == match_id), None)
