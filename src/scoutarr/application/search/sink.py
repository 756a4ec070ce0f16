"""Fire-and-forget hand-off of per-source results to a result sink."""

from __future__ import annotations

import asyncio

import structlog

from scoutarr.domain.entities.search import ResultItem
from scoutarr.domain.ports.result_sink import ResultSinkPort

log = structlog.get_logger(__name__)


class BackgroundSink:
    """Schedule ``ResultSinkPort.persist`` calls without awaiting them.

    Persist failures are logged and dropped; they never reach the caller.
    ``drain()`` waits for in-flight writes (used on shutdown).
    """

    def __init__(self, sink: ResultSinkPort | None = None) -> None:
        self._sink = sink
        self._tasks: set[asyncio.Task[None]] = set()

    def submit(
        self,
        items: list[ResultItem],
        source_id: str,
        *,
        query: str = "",
        address: str = "",
    ) -> None:
        if self._sink is None or not items:
            return
        task = asyncio.create_task(
            self._persist(list(items), source_id, query, address),
            name=f"sink-{source_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _persist(
        self, items: list[ResultItem], source_id: str, query: str, address: str
    ) -> None:
        assert self._sink is not None
        try:
            await self._sink.persist(items, source_id, query=query, address=address)
        except Exception:
            log.warning(
                "result_sink_persist_failed",
                source_id=source_id,
                items=len(items),
                exc_info=True,
            )

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
