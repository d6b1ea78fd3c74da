"""Protocol definitions for retrieval sources."""

from typing import Protocol, runtime_checkable

from .models import SourceResult


@runtime_checkable
class SourceConnector(Protocol):
    """Protocol for a named retrieval source.

    Implement this protocol to add support for a new help source.
    """

    source_id: str
    label: str

    async def query(self, text: str) -> list[SourceResult]:
        """
        Search this source.

        Args:
            text: Free-text query

        Returns:
            List of SourceResult objects, possibly empty

        Raises:
            SourceFetchError: If the source cannot be reached
        """
        ...
