"""Compose direct HTTP and browser fetching behind one FetcherPort."""

from __future__ import annotations

import structlog

from scoutarr.domain.entities.source import Source
from scoutarr.domain.exceptions import BotProtectionDetected, NetworkError
from scoutarr.domain.ports.fetcher import FetcherPort

log = structlog.get_logger(__name__)


class HybridFetcher:
    """Strict mode uses only the direct fetcher.

    Fallback mode tries the direct fetcher first and switches to the
    browser on a challenge or a connection failure.  Sources flagged
    ``requires_browser`` go straight to the browser in fallback mode.
    Timeouts and not-found answers are final.
    """

    def __init__(self, direct: FetcherPort, browser: FetcherPort | None = None) -> None:
        self._direct = direct
        self._browser = browser

    async def fetch(self, source: Source, address: str, *, allow_fallback: bool) -> str:
        if not allow_fallback or self._browser is None:
            return await self._direct.fetch(source, address, allow_fallback=False)

        if source.requires_browser:
            return await self._browser.fetch(source, address, allow_fallback=True)

        try:
            return await self._direct.fetch(source, address, allow_fallback=False)
        except (BotProtectionDetected, NetworkError) as exc:
            log.info(
                "browser_fallback",
                source_id=source.id,
                address=address,
                reason=type(exc).__name__,
            )
        return await self._browser.fetch(source, address, allow_fallback=True)
