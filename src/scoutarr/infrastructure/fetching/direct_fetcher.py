"""Strict-mode fetcher: a single httpx GET with browser-like headers."""

from __future__ import annotations

from collections.abc import Callable
from urllib.parse import urlsplit

import httpx
import structlog

from scoutarr.domain.entities.source import Source
from scoutarr.domain.exceptions import (
    BotProtectionDetected,
    NetworkError,
    NotFound,
    SourceTimeout,
)
from scoutarr.infrastructure.fetching.cloudflare import is_cloudflare_challenge

log = structlog.get_logger(__name__)

_NOT_FOUND_STATUSES = frozenset({404, 410})

RedirectCallback = Callable[[str, str], None]


def _origin(url: str) -> str:
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


class DirectHttpFetcher:
    """Fetch search pages with plain HTTP.

    Never launches a browser, so ``allow_fallback`` is ignored.  When a
    request ends up on a different origin than the source's base URL the
    ``on_redirect(source_id, new_base_url)`` callback is invoked (sites
    in this space move domains often).
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        follow_redirects: bool = True,
        user_agent: str = "Mozilla/5.0",
        accept_language: str = "en-US,en;q=0.5",
        on_redirect: RedirectCallback | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout_seconds
        self._follow_redirects = follow_redirects
        self._headers = {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": accept_language,
        }
        self._on_redirect = on_redirect
        self._client = client
        self._owns_client = client is None

    # ------------------------------------------------------------------
    # Client lifecycle
    # ------------------------------------------------------------------

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=self._follow_redirects,
                headers=self._headers,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # FetcherPort
    # ------------------------------------------------------------------

    async def fetch(self, source: Source, address: str, *, allow_fallback: bool = False) -> str:
        client = self._ensure_client()
        try:
            resp = await client.get(address)
        except httpx.TimeoutException as exc:
            raise SourceTimeout(str(exc) or "HTTP timeout", source_id=source.id, address=address) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(str(exc) or type(exc).__name__, source_id=source.id, address=address) from exc

        body = resp.text
        if is_cloudflare_challenge(resp.status_code, body):
            log.info("bot_protection_detected", source_id=source.id, address=address, status=resp.status_code)
            raise BotProtectionDetected(
                f"Challenge page (HTTP {resp.status_code})",
                source_id=source.id,
                address=address,
            )
        if resp.status_code in _NOT_FOUND_STATUSES:
            raise NotFound(f"HTTP {resp.status_code}", source_id=source.id, address=address)
        if resp.status_code >= 400:
            raise NetworkError(f"HTTP {resp.status_code}", source_id=source.id, address=address)

        self._check_redirect(source, str(resp.url))
        return body

    def _check_redirect(self, source: Source, final_url: str) -> None:
        if self._on_redirect is None:
            return
        new_origin = _origin(final_url)
        if urlsplit(new_origin).netloc and new_origin != _origin(source.base_url):
            log.info(
                "source_redirect_detected",
                source_id=source.id,
                old_base_url=source.base_url,
                new_base_url=new_origin,
            )
            self._on_redirect(source.id, new_origin)
