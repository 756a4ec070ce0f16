"""Integration tests for CacheResultSink on a real diskcache."""

from __future__ import annotations

import asyncio

import pytest

from scoutarr.domain.entities.search import AlternativeSource, ContentType, ResultItem
from scoutarr.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from scoutarr.infrastructure.persistence.result_sink import CacheResultSink, _results_key

pytestmark = pytest.mark.integration


def _item(**overrides) -> ResultItem:
    values = {
        "title": "الكثبان Dune",
        "page_url": "https://a.example/watch/dune",
        "source_id": "a",
        "source_label": "A",
        "poster_url": "https://a.example/dune.jpg",
        "content_type": ContentType.FILM,
        "year": 2021,
        "dedup_key": "الكثبانdune|2021||",
        "categories": ("Sci-Fi",),
        "alternative_sources": (
            AlternativeSource(source_id="b", source_label="B", page_url="https://b.example/dune"),
        ),
    }
    values.update(overrides)
    return ResultItem(**values)


class TestCacheResultSink:
    async def test_persist_then_load(self, diskcache: DiskcacheAdapter) -> None:
        sink = CacheResultSink(diskcache, ttl_seconds=60)
        items = [_item(), _item(title="Dark", content_type=ContentType.SERIES, year=None)]

        await sink.persist(items, "a", query="Dune")

        assert await sink.load("Dune", "a") == items

    async def test_key_ignores_query_case_and_padding(self, diskcache: DiskcacheAdapter) -> None:
        sink = CacheResultSink(diskcache)
        await sink.persist([_item()], "a", query="Dune")

        assert len(await sink.load("  dune ", "a")) == 1
        assert _results_key("Dune", "a") == _results_key("dune", "a")

    async def test_sources_kept_apart(self, diskcache: DiskcacheAdapter) -> None:
        sink = CacheResultSink(diskcache)
        await sink.persist([_item()], "a", query="dune")

        assert await sink.load("dune", "b") == []

    async def test_latest_write_wins(self, diskcache: DiskcacheAdapter) -> None:
        sink = CacheResultSink(diskcache)
        await sink.persist([_item()], "a", query="dune")
        await sink.persist([], "a", query="dune")

        assert await sink.load("dune", "a") == []

    async def test_pages_of_one_source_accumulate(self, diskcache: DiskcacheAdapter) -> None:
        sink = CacheResultSink(diskcache)
        movies = "https://g.example/find/?word=dune&type=movies"
        series = "https://g.example/find/?word=dune&type=series"

        await asyncio.gather(
            sink.persist([_item(title="Dune Movie", source_id="g")], "g", query="dune", address=movies),
            sink.persist([_item(title="Dune Series", source_id="g")], "g", query="dune", address=series),
        )

        stored = await sink.load("dune", "g")
        assert sorted(i.title for i in stored) == ["Dune Movie", "Dune Series"]

    async def test_same_page_is_replaced(self, diskcache: DiskcacheAdapter) -> None:
        sink = CacheResultSink(diskcache)
        page = "https://g.example/find/?word=dune&type=movies"
        await sink.persist([_item(title="Old")], "g", query="dune", address=page)
        await sink.persist([_item(title="New")], "g", query="dune", address=page)

        assert [i.title for i in await sink.load("dune", "g")] == ["New"]


class TestDiskcacheAdapter:
    async def test_set_get_delete(self, diskcache: DiskcacheAdapter) -> None:
        await diskcache.set("k", {"v": 1}, ttl=0)
        assert await diskcache.get("k") == {"v": 1}
        assert await diskcache.delete("k") is True
        assert await diskcache.get("k") is None

    async def test_requires_open(self, tmp_path) -> None:
        adapter = DiskcacheAdapter(directory=tmp_path / "closed")
        with pytest.raises(RuntimeError):
            await adapter.get("k")
        assert await adapter.delete("k") is False
