"""Port for retrieving raw content from a source."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from scoutarr.domain.entities.source import Source


@runtime_checkable
class FetcherPort(Protocol):
    """Fetch raw content for a search address.

    ``allow_fallback=False`` is strict mode: no browser automation.
    ``allow_fallback=True`` permits heavy automation (slower, exclusive).

    Implementations raise a :class:`~scoutarr.domain.exceptions.FetchError`
    subclass on failure.
    """

    async def fetch(self, source: Source, address: str, *, allow_fallback: bool) -> str: ...
