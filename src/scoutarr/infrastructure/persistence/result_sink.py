"""Result sink backed by CachePort (diskcache)."""

from __future__ import annotations

import asyncio
import hashlib
import json
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

import structlog

from scoutarr.domain.entities.search import AlternativeSource, ContentType, ResultItem
from scoutarr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)


def _results_key(query: str, source_id: str) -> str:
    digest = hashlib.sha256(query.lower().strip().encode()).hexdigest()[:16]
    return f"results:{digest}:{source_id}"


def _item_from_dict(d: dict[str, Any]) -> ResultItem:
    return ResultItem(
        title=d["title"],
        page_url=d["page_url"],
        source_id=d["source_id"],
        source_label=d.get("source_label", ""),
        poster_url=d.get("poster_url", ""),
        content_type=ContentType(d.get("content_type", "film")),
        year=d.get("year"),
        dedup_key=d.get("dedup_key", ""),
        categories=tuple(d.get("categories", ())),
        alternative_sources=tuple(
            AlternativeSource(**alt) for alt in d.get("alternative_sources", ())
        ),
    )


def _load_payload(data: str | None) -> dict[str, Any]:
    if data is None:
        return {"pages": {}}
    payload = json.loads(data)
    payload.setdefault("pages", {})
    return payload


class CacheResultSink:
    """Keeps the latest items each source returned for a query.

    A source with sub-queries fetches several pages per query; each page
    (task address) is stored in its own slot under the same key, so a
    later page never overwrites an earlier one.
    """

    def __init__(self, cache: CachePort, ttl_seconds: int | None = None) -> None:
        self._cache = cache
        self._ttl = ttl_seconds
        self._locks: dict[str, asyncio.Lock] = {}

    async def persist(
        self,
        items: list[ResultItem],
        source_id: str,
        *,
        query: str = "",
        address: str = "",
    ) -> None:
        key = _results_key(query, source_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            payload = _load_payload(await self._cache.get(key))
            payload["query"] = query
            payload["stored_at"] = datetime.now(timezone.utc).isoformat()
            payload["pages"][address] = [asdict(item) for item in items]
            await self._cache.set(key, json.dumps(payload, ensure_ascii=False), ttl=self._ttl)
        log.debug(
            "results_persisted",
            source_id=source_id,
            query=query,
            address=address,
            items=len(items),
        )

    async def load(self, query: str, source_id: str) -> list[ResultItem]:
        """All stored items for ``(query, source_id)``, page by page."""
        data = await self._cache.get(_results_key(query, source_id))
        if data is None:
            return []
        payload = _load_payload(data)
        return [_item_from_dict(d) for page in payload["pages"].values() for d in page]
