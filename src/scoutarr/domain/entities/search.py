"""Domain entities for one search lifecycle.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from scoutarr.domain.entities.source import Source


class ContentType(str, Enum):
    FILM = "film"
    SERIES = "series"


class SearchStatus(str, Enum):
    """Externally visible status of the search state machine."""

    IDLE = "idle"
    LOADING = "loading"
    PARTIAL = "partial"
    LOADING_MORE = "loading_more"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class AlternativeSource:
    """Another source that returned the same content as a primary item."""

    source_id: str
    source_label: str
    page_url: str


@dataclass(frozen=True)
class ResultItem:
    """One discovered piece of content.

    ``dedup_key`` identifies "the same content" across sources.  An empty
    key marks the item as unmergeable.
    """

    title: str
    page_url: str
    source_id: str
    source_label: str = ""
    poster_url: str = ""
    content_type: ContentType = ContentType.FILM
    year: int | None = None
    dedup_key: str = ""
    categories: tuple[str, ...] = ()
    alternative_sources: tuple[AlternativeSource, ...] = ()

    def as_alternative(self) -> AlternativeSource:
        return AlternativeSource(
            source_id=self.source_id,
            source_label=self.source_label,
            page_url=self.page_url,
        )

    def with_alternative(self, alt: AlternativeSource) -> ResultItem:
        """Return a copy with *alt* appended to ``alternative_sources``."""
        return replace(self, alternative_sources=(*self.alternative_sources, alt))


@dataclass(frozen=True)
class FetchTask:
    """One unit of fetch work: a source and a fully resolved address."""

    source: Source
    address: str

    @property
    def source_id(self) -> str:
        return self.source.id


@dataclass(frozen=True)
class SearchEnrichment:
    """Optional caller metadata attached to a query (e.g. from TMDB)."""

    tmdb_id: int | None = None
    original_title: str | None = None
    year: int | None = None
    content_type: ContentType | None = None


@dataclass(frozen=True)
class SearchState:
    """The single coherent snapshot exposed to callers.

    Build instances through the named constructors so each status only
    carries the fields that are meaningful for it.
    """

    status: SearchStatus
    query: str = ""
    results: tuple[ResultItem, ...] = ()
    pending_count: int = 0
    error_message: str | None = None
    enrichment: SearchEnrichment | None = None
    generation: int = field(default=0, compare=False)

    @classmethod
    def idle(cls, *, generation: int = 0) -> SearchState:
        return cls(status=SearchStatus.IDLE, generation=generation)

    @classmethod
    def loading(
        cls,
        query: str,
        *,
        enrichment: SearchEnrichment | None = None,
        generation: int = 0,
    ) -> SearchState:
        return cls(
            status=SearchStatus.LOADING,
            query=query,
            enrichment=enrichment,
            generation=generation,
        )

    @classmethod
    def partial(
        cls,
        query: str,
        results: list[ResultItem] | tuple[ResultItem, ...],
        pending_count: int,
        *,
        enrichment: SearchEnrichment | None = None,
        generation: int = 0,
    ) -> SearchState:
        return cls(
            status=SearchStatus.PARTIAL,
            query=query,
            results=tuple(results),
            pending_count=pending_count,
            enrichment=enrichment,
            generation=generation,
        )

    @classmethod
    def loading_more(
        cls,
        query: str,
        results: list[ResultItem] | tuple[ResultItem, ...],
        pending_count: int = 0,
        *,
        enrichment: SearchEnrichment | None = None,
        generation: int = 0,
    ) -> SearchState:
        return cls(
            status=SearchStatus.LOADING_MORE,
            query=query,
            results=tuple(results),
            pending_count=pending_count,
            enrichment=enrichment,
            generation=generation,
        )

    @classmethod
    def complete(
        cls,
        query: str,
        results: list[ResultItem] | tuple[ResultItem, ...],
        *,
        enrichment: SearchEnrichment | None = None,
        generation: int = 0,
    ) -> SearchState:
        return cls(
            status=SearchStatus.COMPLETE,
            query=query,
            results=tuple(results),
            enrichment=enrichment,
            generation=generation,
        )

    @classmethod
    def error(
        cls,
        query: str,
        message: str,
        *,
        enrichment: SearchEnrichment | None = None,
        generation: int = 0,
    ) -> SearchState:
        return cls(
            status=SearchStatus.ERROR,
            query=query,
            error_message=message,
            enrichment=enrichment,
            generation=generation,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in (SearchStatus.COMPLETE, SearchStatus.ERROR)

    def with_generation(self, generation: int) -> SearchState:
        return replace(self, generation=generation)
