"""Fast phase: parallel strict-mode fetches under a global deadline."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import structlog

from scoutarr.application.search.executor import TaskExecutor
from scoutarr.domain.entities.search import FetchTask, ResultItem
from scoutarr.domain.exceptions import BotProtectionDetected, FetchError
from scoutarr.domain.ports.source_registry import HealthTrackerPort

log = structlog.get_logger(__name__)


@dataclass
class FastPhaseOutcome:
    """Aggregated result of one fast phase.

    ``results`` are the concatenated items in task order (not yet
    deduplicated).  ``escalatable`` holds the tasks rejected with bot
    protection, ``timed_out`` the tasks still running at the deadline.
    """

    results: list[ResultItem] = field(default_factory=list)
    escalatable: list[FetchTask] = field(default_factory=list)
    timed_out: list[FetchTask] = field(default_factory=list)
    failed: list[FetchTask] = field(default_factory=list)


@dataclass
class _TaskReport:
    items: list[ResultItem] = field(default_factory=list)
    escalate: bool = False
    failed: bool = False


class FastPhaseRunner:
    """Run all tasks in strict mode with at most ``workers`` in flight.

    Each task gets ``task_timeout`` seconds once it holds a worker slot;
    the whole phase gets ``deadline`` seconds.  Tasks still running at the
    deadline are cancelled and counted as timed out, while everything
    collected so far is kept.
    """

    def __init__(
        self,
        executor: TaskExecutor,
        health: HealthTrackerPort,
        *,
        workers: int = 4,
        task_timeout: float = 10.0,
        deadline: float = 15.0,
    ) -> None:
        self._executor = executor
        self._health = health
        self._workers = max(1, workers)
        self._task_timeout = task_timeout
        self._deadline = deadline

    async def run(self, tasks: list[FetchTask], *, query: str = "") -> FastPhaseOutcome:
        if not tasks:
            return FastPhaseOutcome()

        semaphore = asyncio.Semaphore(self._workers)
        running = [
            asyncio.create_task(
                self._run_one(task, semaphore, query),
                name=f"fast-{task.source_id}",
            )
            for task in tasks
        ]
        try:
            _done, pending = await asyncio.wait(running, timeout=self._deadline)
        finally:
            # Also reached when the caller itself is cancelled.
            for aio_task in running:
                if not aio_task.done():
                    aio_task.cancel()

        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        outcome = FastPhaseOutcome()
        for aio_task, task in zip(running, tasks):
            if aio_task in pending or aio_task.cancelled():
                outcome.timed_out.append(task)
                self._health.record_failure(task.source)
                continue
            report = aio_task.result()
            outcome.results.extend(report.items)
            if report.escalate:
                outcome.escalatable.append(task)
            elif report.failed:
                outcome.failed.append(task)

        log.info(
            "fast_phase_finished",
            query=query,
            tasks=len(tasks),
            results=len(outcome.results),
            escalatable=len(outcome.escalatable),
            timed_out=len(outcome.timed_out),
            failed=len(outcome.failed),
        )
        return outcome

    async def _run_one(
        self,
        task: FetchTask,
        semaphore: asyncio.Semaphore,
        query: str,
    ) -> _TaskReport:
        async with semaphore:
            try:
                items = await self._executor.execute(
                    task,
                    allow_fallback=False,
                    timeout=self._task_timeout,
                    query=query,
                )
            except BotProtectionDetected:
                # Not the source's fault; it gets a second chance in escalation.
                log.info("fast_task_bot_protected", source_id=task.source_id, address=task.address)
                return _TaskReport(escalate=True)
            except FetchError as exc:
                log.info(
                    "fast_task_failed",
                    source_id=task.source_id,
                    address=task.address,
                    error=type(exc).__name__,
                    detail=str(exc),
                )
                self._health.record_failure(task.source)
                return _TaskReport(failed=True)
            except Exception:
                log.warning(
                    "fast_task_crashed",
                    source_id=task.source_id,
                    address=task.address,
                    exc_info=True,
                )
                self._health.record_failure(task.source)
                return _TaskReport(failed=True)
            return _TaskReport(items=items)
