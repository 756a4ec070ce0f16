"""Latest-value broadcast channel for search states."""

from __future__ import annotations

import asyncio

import structlog

from scoutarr.domain.entities.search import SearchState

log = structlog.get_logger(__name__)

_CLOSED = object()


class StateSubscription:
    """Async iterator over the states published after subscribing.

    The first item is the channel's current state at subscription time.
    Iteration ends when the channel closes or the subscription is closed.
    """

    def __init__(self, channel: StateChannel, queue: asyncio.Queue[object]) -> None:
        self._channel = channel
        self._queue = queue
        self._closed = False

    def __aiter__(self) -> StateSubscription:
        return self

    async def __anext__(self) -> SearchState:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            self._closed = True
            raise StopAsyncIteration
        assert isinstance(item, SearchState)
        return item

    async def get(self, timeout: float | None = None) -> SearchState:
        """Return the next state, waiting at most *timeout* seconds."""
        return await asyncio.wait_for(self.__anext__(), timeout=timeout)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._channel._unsubscribe(self._queue)

    async def __aenter__(self) -> StateSubscription:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class StateChannel:
    """Hold the current state and fan every new state out to subscribers.

    Subscriber queues are unbounded so a slow observer never blocks the
    publisher; each observer sees every state in publish order.
    """

    def __init__(self, initial: SearchState) -> None:
        self._current = initial
        self._subscribers: set[asyncio.Queue[object]] = set()
        self._closed = False

    @property
    def current(self) -> SearchState:
        return self._current

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, state: SearchState) -> None:
        self._current = state
        for queue in list(self._subscribers):
            queue.put_nowait(state)
        log.debug(
            "search_state_published",
            status=state.status.value,
            query=state.query,
            results=len(state.results),
            pending=state.pending_count,
            generation=state.generation,
        )

    def subscribe(self) -> StateSubscription:
        queue: asyncio.Queue[object] = asyncio.Queue()
        queue.put_nowait(self._current)
        if self._closed:
            queue.put_nowait(_CLOSED)
        else:
            self._subscribers.add(queue)
        return StateSubscription(self, queue)

    def close(self) -> None:
        self._closed = True
        for queue in list(self._subscribers):
            queue.put_nowait(_CLOSED)
        self._subscribers.clear()

    def _unsubscribe(self, queue: asyncio.Queue[object]) -> None:
        self._subscribers.discard(queue)
