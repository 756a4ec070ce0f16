"""Port for optional durable storage of search results."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from scoutarr.domain.entities.search import ResultItem


@runtime_checkable
class ResultSinkPort(Protocol):
    """Persist the items one source returned for a query.

    ``address`` identifies the fetched page; a source with sub-queries
    persists once per page.  Failures must never affect the
    orchestrator's own classification.
    """

    async def persist(
        self,
        items: list[ResultItem],
        source_id: str,
        *,
        query: str = "",
        address: str = "",
    ) -> None: ...
