"""Tests for DirectHttpFetcher status and challenge mapping."""

from __future__ import annotations

import httpx
import pytest
import respx

from scoutarr.domain.exceptions import (
    BotProtectionDetected,
    NetworkError,
    NotFound,
    SourceTimeout,
)
from scoutarr.infrastructure.fetching.direct_fetcher import DirectHttpFetcher

_ADDRESS = "https://a.example/?s=dune"
_CHALLENGE = "<html><title>Just a moment...</title><div id='cf-spinner'></div></html>"


@pytest.fixture()
def source(make_source):
    return make_source("a")


class TestDirectHttpFetcher:
    @respx.mock
    async def test_returns_body_on_success(self, source) -> None:
        route = respx.get(_ADDRESS).respond(200, text="<html>ok</html>")

        async with httpx.AsyncClient() as client:
            body = await DirectHttpFetcher(client=client).fetch(source, _ADDRESS)

        assert body == "<html>ok</html>"
        assert route.called

    @respx.mock
    async def test_sends_browser_headers(self, source) -> None:
        route = respx.get(_ADDRESS).respond(200, text="ok")
        fetcher = DirectHttpFetcher(user_agent="TestAgent/1.0", accept_language="ar,en")

        try:
            await fetcher.fetch(source, _ADDRESS)
        finally:
            await fetcher.aclose()

        request = route.calls.last.request
        assert request.headers["User-Agent"] == "TestAgent/1.0"
        assert request.headers["Accept-Language"] == "ar,en"

    @respx.mock
    @pytest.mark.parametrize("status", [403, 503])
    async def test_challenge_raises_bot_protection(self, source, status: int) -> None:
        respx.get(_ADDRESS).respond(status, text=_CHALLENGE)

        async with httpx.AsyncClient() as client:
            with pytest.raises(BotProtectionDetected) as exc_info:
                await DirectHttpFetcher(client=client).fetch(source, _ADDRESS)

        assert exc_info.value.source_id == "a"
        assert exc_info.value.address == _ADDRESS

    @respx.mock
    async def test_plain_403_is_network_error(self, source) -> None:
        respx.get(_ADDRESS).respond(403, text="Forbidden")

        async with httpx.AsyncClient() as client:
            with pytest.raises(NetworkError):
                await DirectHttpFetcher(client=client).fetch(source, _ADDRESS)

    @respx.mock
    @pytest.mark.parametrize("status", [404, 410])
    async def test_missing_page_is_not_found(self, source, status: int) -> None:
        respx.get(_ADDRESS).respond(status)

        async with httpx.AsyncClient() as client:
            with pytest.raises(NotFound):
                await DirectHttpFetcher(client=client).fetch(source, _ADDRESS)

    @respx.mock
    async def test_server_error_is_network_error(self, source) -> None:
        respx.get(_ADDRESS).respond(500)

        async with httpx.AsyncClient() as client:
            with pytest.raises(NetworkError, match="HTTP 500"):
                await DirectHttpFetcher(client=client).fetch(source, _ADDRESS)

    @respx.mock
    async def test_timeout_is_source_timeout(self, source) -> None:
        respx.get(_ADDRESS).mock(side_effect=httpx.ReadTimeout("slow"))

        async with httpx.AsyncClient() as client:
            with pytest.raises(SourceTimeout):
                await DirectHttpFetcher(client=client).fetch(source, _ADDRESS)

    @respx.mock
    async def test_connect_error_is_network_error(self, source) -> None:
        respx.get(_ADDRESS).mock(side_effect=httpx.ConnectError("refused"))

        async with httpx.AsyncClient() as client:
            with pytest.raises(NetworkError):
                await DirectHttpFetcher(client=client).fetch(source, _ADDRESS)


class TestRedirectDetection:
    @respx.mock
    async def test_domain_move_reported(self, source) -> None:
        respx.get(_ADDRESS).respond(301, headers={"Location": "https://a2.example/?s=dune"})
        respx.get("https://a2.example/?s=dune").respond(200, text="moved")
        moves: list[tuple[str, str]] = []

        async with httpx.AsyncClient(follow_redirects=True) as client:
            fetcher = DirectHttpFetcher(client=client, on_redirect=lambda *a: moves.append(a))
            body = await fetcher.fetch(source, _ADDRESS)

        assert body == "moved"
        assert moves == [("a", "https://a2.example")]

    @respx.mock
    async def test_same_origin_not_reported(self, source) -> None:
        respx.get(_ADDRESS).respond(200, text="ok")
        moves: list[tuple[str, str]] = []

        async with httpx.AsyncClient() as client:
            fetcher = DirectHttpFetcher(client=client, on_redirect=lambda *a: moves.append(a))
            await fetcher.fetch(source, _ADDRESS)

        assert moves == []
