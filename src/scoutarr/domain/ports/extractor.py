"""Port for turning raw content into result items."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from scoutarr.domain.entities.search import ResultItem


@runtime_checkable
class ExtractorPort(Protocol):
    """Parse search results out of a source's raw content.

    Raises :class:`~scoutarr.domain.exceptions.ExtractionError` when the
    content cannot be parsed at all.
    """

    def extract_search_results(self, source_id: str, content: str) -> list[ResultItem]: ...
