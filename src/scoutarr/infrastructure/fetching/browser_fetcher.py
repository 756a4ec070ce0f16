"""Fallback-mode fetcher: render the search page in a shared Chromium.

One Chromium process and one browser context are launched lazily and
shared by every escalation fetch.  Page work is serialized with an
``asyncio.Lock`` because escalation runs one heavy fetch at a time.
"""

from __future__ import annotations

import asyncio

import structlog
from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    Route,
    async_playwright,
)
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from scoutarr.domain.entities.source import Source
from scoutarr.domain.exceptions import (
    BotProtectionDetected,
    NetworkError,
    NotFound,
    SourceTimeout,
)
from scoutarr.infrastructure.fetching.cloudflare import (
    has_challenge_markers,
    is_challenge_title,
    title_wait_script,
)

log = structlog.get_logger(__name__)

_BLOCKED_RESOURCE_TYPES = frozenset({"image", "font", "media", "texttrack"})


async def _block_resources(route: Route) -> None:
    """Abort requests for heavy resource types."""
    if route.request.resource_type in _BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()


class BrowserFetcher:
    """Playwright-backed fetcher used only when fallback is allowed.

    Usage::

        fetcher = BrowserFetcher(headless=True, stealth=True)
        html = await fetcher.fetch(source, url, allow_fallback=True)
        await fetcher.aclose()
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        timeout_ms: int = 30_000,
        cf_timeout_ms: int = 15_000,
        idle_timeout_ms: int = 10_000,
        stealth: bool = True,
        user_agent: str | None = None,
    ) -> None:
        self._headless = headless
        self._timeout_ms = timeout_ms
        self._cf_timeout_ms = cf_timeout_ms
        self._idle_timeout_ms = idle_timeout_ms
        self._stealth = stealth
        self._user_agent = user_agent
        self._pw: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._launch_lock = asyncio.Lock()
        self._page_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def _ensure_context(self) -> BrowserContext:
        """Launch Chromium + context once; relaunch after a crash."""
        if self._context is not None and self.is_running:
            return self._context
        async with self._launch_lock:
            if self._context is not None and self.is_running:
                return self._context

            await self.aclose()
            self._pw = await async_playwright().start()
            self._browser = await self._pw.chromium.launch(headless=self._headless)
            self._context = await self._browser.new_context(
                user_agent=self._user_agent,
                viewport={"width": 1280, "height": 720},
            )
            if self._stealth:
                from playwright_stealth import Stealth

                await Stealth().apply_stealth_async(self._context)
            await self._context.route("**/*", _block_resources)
            log.info("browser_launched", headless=self._headless, stealth=self._stealth)
            return self._context

    async def aclose(self) -> None:
        """Close context, browser, and Playwright. Idempotent."""
        if self._context is not None:
            try:
                await self._context.close()
            except PlaywrightError:
                log.debug("browser_context_close_error", exc_info=True)
            self._context = None
        if self._browser is not None:
            try:
                await self._browser.close()
            except PlaywrightError:
                log.warning("browser_close_error", exc_info=True)
            self._browser = None
        if self._pw is not None:
            await self._pw.stop()
            self._pw = None

    # ------------------------------------------------------------------
    # FetcherPort
    # ------------------------------------------------------------------

    async def fetch(self, source: Source, address: str, *, allow_fallback: bool = True) -> str:
        context = await self._ensure_context()
        async with self._page_lock:
            page = await context.new_page()
            try:
                return await self._render(page, source, address)
            finally:
                if not page.is_closed():
                    await page.close()

    async def _render(self, page: Page, source: Source, address: str) -> str:
        try:
            resp = await page.goto(address, wait_until="domcontentloaded", timeout=self._timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise SourceTimeout("Navigation timed out", source_id=source.id, address=address) from exc
        except PlaywrightError as exc:
            raise NetworkError(str(exc), source_id=source.id, address=address) from exc

        cleared = await self._wait_for_challenge(page)

        if resp is not None and resp.status in (404, 410):
            raise NotFound(f"HTTP {resp.status}", source_id=source.id, address=address)

        try:
            await page.wait_for_load_state("networkidle", timeout=self._idle_timeout_ms)
        except PlaywrightTimeoutError:
            pass  # networkidle is best-effort

        html = await page.content()
        title = await page.title()
        if not cleared or is_challenge_title(title) or has_challenge_markers(html):
            log.info("browser_challenge_unsolved", source_id=source.id, address=address, title=title)
            raise BotProtectionDetected(
                "Challenge still present after rendering",
                source_id=source.id,
                address=address,
            )

        log.debug("browser_page_rendered", source_id=source.id, address=address, size=len(html))
        return html

    async def _wait_for_challenge(self, page: Page) -> bool:
        """Wait until the title no longer looks like an interstitial."""
        try:
            await page.wait_for_function(title_wait_script(), timeout=self._cf_timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False
