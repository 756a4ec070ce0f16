"""Shared fixtures for integration tests.

These tests use real infrastructure components (DiskcacheAdapter,
DirectHttpFetcher, YamlSourceRegistry, ExtractorRegistry) with mocked
HTTP via respx.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import respx
import yaml

from scoutarr.infrastructure.cache.diskcache_adapter import DiskcacheAdapter


@pytest.fixture()
async def diskcache(tmp_path: Path) -> DiskcacheAdapter:
    """Real DiskcacheAdapter backed by tmp_path (auto-cleaned)."""
    adapter = DiskcacheAdapter(
        directory=tmp_path / "cache",
        ttl_seconds=3600,
        max_concurrent=5,
    )
    async with adapter:
        yield adapter


@pytest.fixture()
def respx_mock() -> respx.MockRouter:
    """Explicit respx mock router for request interception."""
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture()
def sources_file(tmp_path: Path) -> Path:
    """Three grid-style sources; ``gamma`` only lists series."""
    selectors = {
        "item": ".GridItem",
        "link": "a",
        "title": "strong",
        "year": "strong .year",
    }
    data = {
        "sources": [
            {"id": "alpha", "base_url": "https://alpha.example", "priority": 1, "selectors": selectors},
            {"id": "beta", "base_url": "https://beta.example", "priority": 2, "selectors": selectors},
            {
                "id": "gamma",
                "base_url": "https://gamma.example",
                "priority": 3,
                "search_pattern": "/find/?word={query}",
                "sub_queries": ["&type=movies", "&type=series"],
                "selectors": selectors,
            },
        ]
    }
    path = tmp_path / "sources.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path
