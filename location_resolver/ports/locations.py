"""Location repository port - Read-only access to the location dataset.

The resolver's matching strategies are written against this protocol so the
backing store (CSV files, a database, a remote service) can be swapped and
faked in tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol, Sequence, Tuple

if TYPE_CHECKING:
    from ..domain.models import Airport, AirportAlias, MetroArea


class LocationRepositoryPort(Protocol):
    """Port for querying airports, metro areas and aliases.

    Implementation: adapters/locations/csv_repository.py

    All text arguments are normalized queries (see domain.normalization).
    Inactive airports are never returned.
    """

    def find_metro_by_code(self, code: str) -> Optional[MetroArea]:
        """Exact, case-insensitive metro code lookup."""
        ...

    def find_airport_by_code(self, code: str) -> Optional[Airport]:
        """Exact, case-insensitive airport code lookup."""
        ...

    def find_metro_for_airport(self, airport_code: str) -> Optional[MetroArea]:
        """Return the metro area the airport belongs to, if any."""
        ...

    def find_metros_by_name(self, name: str) -> Sequence[MetroArea]:
        """Metros whose name equals the text, case-insensitively."""
        ...

    def find_airports_by_name(self, name: str, limit: int = 5) -> Sequence[Airport]:
        """Airports whose city or name equals the text.

        Returns:
            At most ``limit`` airports, by passenger count descending.
        """
        ...

    def find_by_alias(
        self, alias: str, limit: int = 5
    ) -> Sequence[Tuple[AirportAlias, Airport]]:
        """Airports with an alias equal to the text.

        Returns:
            At most ``limit`` (alias, airport) pairs, by alias confidence then
            passenger count, descending.
        """
        ...

    def search_metros(
        self, text: str, limit: int, min_similarity: float
    ) -> Sequence[Tuple[MetroArea, float]]:
        """Fuzzy metro search.

        Returns:
            (metro, similarity) pairs with similarity > min_similarity,
            best first, at most ``limit``.
        """
        ...

    def search_airports(
        self, text: str, limit: int, min_similarity: float
    ) -> Sequence[Tuple[Airport, float]]:
        """Fuzzy airport search over names, cities and alias texts.

        Returns:
            (airport, similarity) pairs with similarity > min_similarity,
            best first, at most ``limit``.
        """
        ...
