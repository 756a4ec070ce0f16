"""Unified search: fast phase, optional escalation, one observable state.

Lifecycle of one query::

    IDLE -> LOADING -> COMPLETE
                    -> PARTIAL -> (load_more) LOADING_MORE -> COMPLETE
                    -> LOADING_MORE (auto-escalation) -> COMPLETE
                    -> ERROR

Every ``search()`` and ``clear()`` starts a new generation.  Work that
belongs to an older generation may still finish, but its states are
dropped before they reach observers.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

import structlog

from scoutarr.application.search.dedup import distinct_source_count, merge_results
from scoutarr.application.search.escalation import EscalationRunner
from scoutarr.application.search.executor import TaskExecutor
from scoutarr.application.search.fast_phase import FastPhaseRunner
from scoutarr.application.search.sink import BackgroundSink
from scoutarr.application.search.state_channel import StateChannel, StateSubscription
from scoutarr.application.search.task_builder import DEFAULT_SEARCH_PATTERN, build_tasks
from scoutarr.domain.entities.search import (
    FetchTask,
    ResultItem,
    SearchEnrichment,
    SearchState,
    SearchStatus,
)
from scoutarr.domain.exceptions import SetupError
from scoutarr.domain.ports.extractor import ExtractorPort
from scoutarr.domain.ports.fetcher import FetcherPort
from scoutarr.domain.ports.result_sink import ResultSinkPort
from scoutarr.domain.ports.source_registry import HealthTrackerPort, SourceRegistryPort

log = structlog.get_logger(__name__)


class SearchSettings(Protocol):
    """Subset of the search config section this service reads."""

    fast_workers: int
    fast_deadline_seconds: float
    strict_task_timeout_seconds: float
    fallback_task_timeout_seconds: float
    default_search_pattern: str
    auto_escalate_on_empty: bool


class _DefaultSearchSettings:
    fast_workers = 4
    fast_deadline_seconds = 15.0
    strict_task_timeout_seconds = 10.0
    fallback_task_timeout_seconds = 60.0
    default_search_pattern = DEFAULT_SEARCH_PATTERN
    auto_escalate_on_empty = True


class UnifiedSearchService:
    """Orchestrates one user-visible search at a time across all sources."""

    def __init__(
        self,
        *,
        registry: SourceRegistryPort,
        fetcher: FetcherPort,
        extractor: ExtractorPort,
        health: HealthTrackerPort,
        settings: SearchSettings | None = None,
        sink: ResultSinkPort | None = None,
    ) -> None:
        self._registry = registry
        self._settings: SearchSettings = settings or _DefaultSearchSettings()
        self._sink = BackgroundSink(sink)

        executor = TaskExecutor(
            fetcher=fetcher,
            extractor=extractor,
            health=health,
            sink=self._sink,
        )
        self._fast_runner = FastPhaseRunner(
            executor,
            health,
            workers=self._settings.fast_workers,
            task_timeout=self._settings.strict_task_timeout_seconds,
            deadline=self._settings.fast_deadline_seconds,
        )
        self._escalation_runner = EscalationRunner(
            executor,
            health,
            task_timeout=self._settings.fallback_task_timeout_seconds,
        )

        self._channel = StateChannel(SearchState.idle())
        self._generation = 0
        self._inflight: asyncio.Task[None] | None = None
        self._escalation_tasks: list[FetchTask] = []
        self._running = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        self._running = True
        log.info("unified_search_started")

    async def stop(self) -> None:
        """Cancel in-flight work, flush the sink and close observers."""
        self._running = False
        self._generation += 1
        await self._cancel_inflight()
        await self._sink.drain()
        self._channel.close()
        log.info("unified_search_stopped")

    async def __aenter__(self) -> UnifiedSearchService:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> SearchState:
        return self._channel.current

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def has_pending_tasks(self) -> bool:
        """True while a PARTIAL result can still be extended by ``load_more``."""
        return self.state.status is SearchStatus.PARTIAL and bool(self._escalation_tasks)

    def observe_state(self) -> StateSubscription:
        return self._channel.subscribe()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def search(
        self,
        query: str,
        enrichment: SearchEnrichment | None = None,
    ) -> asyncio.Task[None] | None:
        """Start a new search, superseding any previous one.

        Returns the task driving the search, or ``None`` for a blank query
        (which resets to IDLE).
        """
        self._ensure_running()
        query = (query or "").strip()
        generation = self._new_generation()

        if not query:
            self._publish(generation, SearchState.idle())
            return None

        log.info(
            "search_requested",
            query=query,
            generation=generation,
            tmdb_id=enrichment.tmdb_id if enrichment else None,
        )
        self._publish(generation, SearchState.loading(query, enrichment=enrichment))
        self._inflight = asyncio.create_task(
            self._run_search(generation, query, enrichment),
            name=f"search-{generation}",
        )
        return self._inflight

    def load_more(self) -> asyncio.Task[None] | None:
        """Escalate the bot-protected tasks of the current PARTIAL result.

        No-op (returns ``None``) in any other state.
        """
        self._ensure_running()
        current = self.state
        if current.status is not SearchStatus.PARTIAL or not self._escalation_tasks:
            log.debug("load_more_ignored", status=current.status.value)
            return None

        generation = self._generation
        tasks = self._escalation_tasks
        self._escalation_tasks = []
        self._publish(
            generation,
            SearchState.loading_more(
                current.query,
                current.results,
                len(tasks),
                enrichment=current.enrichment,
            ),
        )
        self._inflight = asyncio.create_task(
            self._run_escalation(
                generation,
                tasks,
                current.results,
                current.query,
                current.enrichment,
            ),
            name=f"escalation-{generation}",
        )
        return self._inflight

    def clear(self) -> None:
        """Abandon the current search and return to IDLE."""
        generation = self._new_generation()
        self._publish(generation, SearchState.idle())
        log.info("search_cleared", generation=generation)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_running(self) -> None:
        if not self._running:
            raise RuntimeError("UnifiedSearchService is not started")

    def _new_generation(self) -> int:
        self._generation += 1
        self._escalation_tasks = []
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None
        return self._generation

    async def _cancel_inflight(self) -> None:
        inflight, self._inflight = self._inflight, None
        if inflight is None or inflight.done():
            return
        inflight.cancel()
        try:
            await inflight
        except asyncio.CancelledError:
            pass

    def _publish(self, generation: int, state: SearchState) -> bool:
        if generation != self._generation:
            log.debug(
                "stale_state_discarded",
                status=state.status.value,
                generation=generation,
                current_generation=self._generation,
            )
            return False
        self._channel.publish(state.with_generation(generation))
        return True

    async def _run_search(
        self,
        generation: int,
        query: str,
        enrichment: SearchEnrichment | None,
    ) -> None:
        try:
            sources = self._registry.enabled_searchable_sources()
            if not sources:
                raise SetupError("No sources available")
            tasks = build_tasks(
                sources,
                query,
                default_pattern=self._settings.default_search_pattern,
            )
            if not tasks:
                raise SetupError("No sources available")
        except SetupError as exc:
            log.warning("search_setup_failed", query=query, error=str(exc))
            self._publish(generation, SearchState.error(query, str(exc), enrichment=enrichment))
            return
        except Exception as exc:
            log.warning("search_setup_failed", query=query, exc_info=True)
            self._publish(
                generation,
                SearchState.error(query, f"Search setup failed: {exc}", enrichment=enrichment),
            )
            return

        try:
            outcome = await self._fast_runner.run(tasks, query=query)
        except Exception as exc:
            log.warning("fast_phase_crashed", query=query, exc_info=True)
            self._publish(
                generation,
                SearchState.error(query, f"Search failed: {exc}", enrichment=enrichment),
            )
            return

        if generation != self._generation:
            log.debug("fast_phase_result_discarded", query=query, generation=generation)
            return

        results = merge_results(outcome.results)
        escalatable = outcome.escalatable

        if not escalatable:
            log.info("search_complete", query=query, results=len(results), generation=generation)
            self._publish(generation, SearchState.complete(query, results, enrichment=enrichment))
            return

        if not results and self._settings.auto_escalate_on_empty:
            log.info(
                "auto_escalation_triggered",
                query=query,
                tasks=len(escalatable),
                generation=generation,
            )
            self._publish(
                generation,
                SearchState.loading_more(query, results, len(escalatable), enrichment=enrichment),
            )
            await self._run_escalation(generation, escalatable, results, query, enrichment)
            return

        self._escalation_tasks = escalatable
        pending = distinct_source_count(escalatable)
        log.info(
            "search_partial",
            query=query,
            results=len(results),
            pending_sources=pending,
            generation=generation,
        )
        self._publish(
            generation,
            SearchState.partial(query, results, pending, enrichment=enrichment),
        )

    async def _run_escalation(
        self,
        generation: int,
        tasks: list[FetchTask],
        base_results: tuple[ResultItem, ...] | list[ResultItem],
        query: str,
        enrichment: SearchEnrichment | None,
    ) -> None:
        states = self._escalation_runner.run(
            tasks,
            base_results,
            query=query,
            enrichment=enrichment,
        )
        try:
            async for state in states:
                if not self._publish(generation, state):
                    return
        except Exception as exc:
            log.warning("escalation_crashed", query=query, exc_info=True)
            self._publish(
                generation,
                SearchState.error(query, f"Escalation failed: {exc}", enrichment=enrichment),
            )
        finally:
            await states.aclose()
