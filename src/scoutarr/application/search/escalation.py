"""Escalation: sequential fallback-mode fetches with progressive results."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Sequence

import structlog

from scoutarr.application.search.dedup import merge_results
from scoutarr.application.search.executor import TaskExecutor
from scoutarr.domain.entities.search import (
    FetchTask,
    ResultItem,
    SearchEnrichment,
    SearchState,
)
from scoutarr.domain.exceptions import FetchError
from scoutarr.domain.ports.source_registry import HealthTrackerPort

log = structlog.get_logger(__name__)


class EscalationRunner:
    """Retry bot-protected tasks one at a time with fallback allowed.

    ``run`` is an async generator: after each task it yields a
    ``LOADING_MORE`` state holding ``merge(base, accumulated)`` and the
    number of tasks still to go, then a final ``COMPLETE`` state.  A failed
    task contributes nothing and does not stop the loop.
    """

    def __init__(
        self,
        executor: TaskExecutor,
        health: HealthTrackerPort,
        *,
        task_timeout: float = 60.0,
    ) -> None:
        self._executor = executor
        self._health = health
        self._task_timeout = task_timeout

    async def run(
        self,
        tasks: Sequence[FetchTask],
        base_results: Sequence[ResultItem],
        *,
        query: str,
        enrichment: SearchEnrichment | None = None,
    ) -> AsyncGenerator[SearchState, None]:
        base = list(base_results)
        accumulated: list[ResultItem] = []
        total = len(tasks)
        log.info("escalation_started", query=query, tasks=total)

        for index, task in enumerate(tasks):
            accumulated.extend(await self._run_one(task, query))
            yield SearchState.loading_more(
                query,
                merge_results(base, accumulated),
                total - index - 1,
                enrichment=enrichment,
            )

        merged = merge_results(base, accumulated)
        log.info("escalation_finished", query=query, tasks=total, results=len(merged))
        yield SearchState.complete(query, merged, enrichment=enrichment)

    async def _run_one(self, task: FetchTask, query: str) -> list[ResultItem]:
        try:
            return await self._executor.execute(
                task,
                allow_fallback=True,
                timeout=self._task_timeout,
                query=query,
            )
        except FetchError as exc:
            log.info(
                "escalation_task_failed",
                source_id=task.source_id,
                address=task.address,
                error=type(exc).__name__,
                detail=str(exc),
            )
        except Exception:
            log.warning(
                "escalation_task_crashed",
                source_id=task.source_id,
                address=task.address,
                exc_info=True,
            )
        self._health.record_failure(task.source)
        return []
