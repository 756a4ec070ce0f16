"""Shared test fixtures and fakes for the scoutarr test suite."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

import pytest

from scoutarr.domain.entities.search import ResultItem
from scoutarr.domain.entities.source import Source

# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _make_source(source_id: str, priority: int = 1, **kwargs: object) -> Source:
    return Source(
        id=source_id,
        base_url=kwargs.pop("base_url", f"https://{source_id}.example"),  # type: ignore[arg-type]
        base_priority=priority,
        **kwargs,  # type: ignore[arg-type]
    )


def _make_item(
    title: str,
    source_id: str,
    *,
    key: str | None = None,
    page_url: str | None = None,
) -> ResultItem:
    return ResultItem(
        title=title,
        page_url=page_url or f"https://{source_id}.example/{title.lower().replace(' ', '-')}",
        source_id=source_id,
        source_label=source_id.title(),
        dedup_key=title.lower().replace(" ", "") + "||" if key is None else key,
    )


# ---------------------------------------------------------------------------
# Fakes for the domain ports
# ---------------------------------------------------------------------------


@dataclass
class FakeFetcher:
    """Scripted FetcherPort.

    ``strict`` / ``fallback`` map an address to page content or to an
    exception instance to raise.  ``delays`` adds an ``asyncio.sleep``
    before answering.  Unscripted fallback addresses reuse ``strict``.
    """

    strict: dict[str, str | Exception] = field(default_factory=dict)
    fallback: dict[str, str | Exception] = field(default_factory=dict)
    delays: dict[str, float] = field(default_factory=dict)
    calls: list[tuple[str, bool]] = field(default_factory=list)

    async def fetch(self, source: Source, address: str, *, allow_fallback: bool) -> str:
        self.calls.append((address, allow_fallback))
        delay = self.delays.get(address)
        if delay:
            await asyncio.sleep(delay)
        table = self.fallback if allow_fallback and address in self.fallback else self.strict
        outcome = table.get(address, "")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeExtractor:
    """ExtractorPort that maps page content to prepared items."""

    def __init__(self, pages: Mapping[str, list[ResultItem]] | None = None) -> None:
        self.pages = dict(pages or {})
        self.calls: list[tuple[str, str]] = []

    def extract_search_results(self, source_id: str, content: str) -> list[ResultItem]:
        self.calls.append((source_id, content))
        return list(self.pages.get(content, []))


class RecordingHealth:
    """HealthTrackerPort that records calls by source id."""

    def __init__(self) -> None:
        self.successes: list[str] = []
        self.failures: list[str] = []

    def record_success(self, source: Source) -> None:
        self.successes.append(source.id)

    def record_failure(self, source: Source) -> None:
        self.failures.append(source.id)


class StaticRegistry:
    """SourceRegistryPort over a fixed list of sources."""

    def __init__(self, sources: list[Source] | Callable[[], list[Source]]) -> None:
        self._sources = sources

    def enabled_searchable_sources(self) -> list[Source]:
        sources = self._sources() if callable(self._sources) else self._sources
        return [s for s in sources if s.enabled and s.searchable]

    def get(self, source_id: str) -> Source:
        return next(s for s in self.enabled_searchable_sources() if s.id == source_id)

    def list_ids(self) -> list[str]:
        return [s.id for s in self.enabled_searchable_sources()]


class RecordingSink:
    def __init__(self, *, fail: bool = False) -> None:
        self.persisted: list[tuple[str, str, int]] = []
        self._fail = fail

    async def persist(
        self, items: list[ResultItem], source_id: str, *, query: str = "", address: str = ""
    ) -> None:
        if self._fail:
            raise OSError("disk full")
        self.persisted.append((source_id, query, len(items)))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture()
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture()
def health() -> RecordingHealth:
    return RecordingHealth()


@pytest.fixture()
def make_source() -> Callable[..., Source]:
    """``make_source(id, priority=1, **fields)``."""
    return _make_source


@pytest.fixture()
def make_item() -> Callable[..., ResultItem]:
    """``make_item(title, source_id, key=None, page_url=None)``.

    The default dedup key is derived from the title, so equal titles from
    different sources collide.
    """
    return _make_item


@pytest.fixture()
def make_registry() -> Callable[..., StaticRegistry]:
    return StaticRegistry


@pytest.fixture()
def make_sink() -> Callable[..., RecordingSink]:
    return RecordingSink
