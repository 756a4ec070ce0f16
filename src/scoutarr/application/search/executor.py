"""Run one fetch task: fetch, extract, record health success, hand off to the sink."""

from __future__ import annotations

import asyncio
import time

import structlog

from scoutarr.application.search.sink import BackgroundSink
from scoutarr.domain.entities.search import FetchTask, ResultItem
from scoutarr.domain.exceptions import ExtractionError, SourceTimeout
from scoutarr.domain.ports.extractor import ExtractorPort
from scoutarr.domain.ports.fetcher import FetcherPort
from scoutarr.domain.ports.source_registry import HealthTrackerPort

log = structlog.get_logger(__name__)


class TaskExecutor:
    """Shared per-task pipeline for the fast phase and escalation.

    ``execute`` raises the fetcher's typed ``FetchError`` unchanged and
    converts an expired per-task timeout into :class:`SourceTimeout`.
    Recording a *failure* is left to the caller, because the two phases
    classify failures differently.  Extraction errors are logged and
    yield an empty list; the source still answered, so it counts as a
    health success.
    """

    def __init__(
        self,
        *,
        fetcher: FetcherPort,
        extractor: ExtractorPort,
        health: HealthTrackerPort,
        sink: BackgroundSink | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._extractor = extractor
        self._health = health
        self._sink = sink or BackgroundSink()

    async def execute(
        self,
        task: FetchTask,
        *,
        allow_fallback: bool,
        timeout: float,
        query: str = "",
    ) -> list[ResultItem]:
        started = time.perf_counter()
        try:
            content = await asyncio.wait_for(
                self._fetcher.fetch(task.source, task.address, allow_fallback=allow_fallback),
                timeout=timeout,
            )
        except TimeoutError as exc:
            raise SourceTimeout(
                f"Fetch exceeded {timeout:.0f}s",
                source_id=task.source_id,
                address=task.address,
            ) from exc

        self._health.record_success(task.source)

        try:
            items = self._extractor.extract_search_results(task.source_id, content)
        except ExtractionError:
            log.warning(
                "extraction_failed",
                source_id=task.source_id,
                address=task.address,
                exc_info=True,
            )
            items = []

        log.debug(
            "task_completed",
            source_id=task.source_id,
            address=task.address,
            items=len(items),
            fallback=allow_fallback,
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
        self._sink.submit(items, task.source_id, query=query, address=task.address)
        return items
