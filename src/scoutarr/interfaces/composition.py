"""Composition root: build the search runtime and wire it into FastAPI."""

from __future__ import annotations

from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, cast

import structlog
from fastapi import FastAPI

from scoutarr.application.use_cases.unified_search import UnifiedSearchService
from scoutarr.domain.ports.result_sink import ResultSinkPort
from scoutarr.infrastructure.cache import DiskcacheAdapter
from scoutarr.infrastructure.config.schema import AppConfig
from scoutarr.infrastructure.extraction import ExtractorRegistry
from scoutarr.infrastructure.fetching import BrowserFetcher, DirectHttpFetcher, HybridFetcher
from scoutarr.infrastructure.persistence import CacheResultSink
from scoutarr.infrastructure.sources import YamlSourceRegistry
from scoutarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


@dataclass
class SearchRuntime:
    """Everything one process needs to run searches."""

    registry: YamlSourceRegistry
    service: UnifiedSearchService
    sink: CacheResultSink | None = None


@asynccontextmanager
async def build_search_runtime(config: AppConfig) -> AsyncIterator[SearchRuntime]:
    """Build and tear down the search runtime.

    Order matters:
        1. Source registry (also the health tracker)
        2. Optional result sink (diskcache)
        3. Fetchers (httpx client, lazy Chromium)
        4. Extractors (one per source)
        5. UnifiedSearchService (started, stopped on exit)
    """
    async with AsyncExitStack() as stack:
        registry = YamlSourceRegistry.from_file(config.sources_file)

        sink: CacheResultSink | None = None
        if config.sink_enabled:
            cache = await stack.enter_async_context(
                DiskcacheAdapter(directory=config.sink_dir, ttl_seconds=config.sink_ttl_seconds)
            )
            sink = CacheResultSink(cache, ttl_seconds=config.sink_ttl_seconds)

        direct = DirectHttpFetcher(
            timeout_seconds=config.http_timeout_seconds,
            follow_redirects=config.http_follow_redirects,
            user_agent=config.http_user_agent,
            accept_language=config.http_accept_language,
            on_redirect=registry.update_base_url,
        )
        stack.push_async_callback(direct.aclose)

        browser = BrowserFetcher(
            headless=config.playwright_headless,
            timeout_ms=config.playwright_timeout_ms,
            cf_timeout_ms=config.playwright_cf_timeout_ms,
            idle_timeout_ms=config.playwright_idle_timeout_ms,
            stealth=config.playwright_stealth,
            user_agent=config.http_user_agent,
        )
        stack.push_async_callback(browser.aclose)

        service = UnifiedSearchService(
            registry=registry,
            fetcher=HybridFetcher(direct, browser),
            extractor=ExtractorRegistry.from_sources(registry.all_sources()),
            health=registry,
            settings=config.search,
            sink=cast(ResultSinkPort, sink) if sink is not None else None,
        )
        await stack.enter_async_context(service)

        log.info(
            "search_runtime_ready",
            sources=len(registry),
            sink_enabled=sink is not None,
            fast_workers=config.search.fast_workers,
        )
        yield SearchRuntime(registry=registry, service=service, sink=sink)

    log.info("search_runtime_closed")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan hook: create the runtime on startup, release it on shutdown."""
    state = cast(AppState, app.state)
    async with build_search_runtime(state.config) as runtime:
        state.registry = runtime.registry
        state.search_service = runtime.service
        yield
    log.info("app_shutdown")
