"""Tests for HybridFetcher routing between direct and browser fetching."""

from __future__ import annotations

import pytest

from scoutarr.domain.exceptions import BotProtectionDetected, NetworkError, NotFound, SourceTimeout
from scoutarr.infrastructure.fetching.hybrid_fetcher import HybridFetcher

_ADDRESS = "https://a.example/?s=dune"


class _Recorder:
    def __init__(self, name: str, outcome: str | Exception = "") -> None:
        self.name = name
        self.outcome = outcome
        self.calls: list[bool] = []

    async def fetch(self, source, address, *, allow_fallback):
        self.calls.append(allow_fallback)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome or self.name


class TestStrictMode:
    async def test_never_touches_browser(self, make_source) -> None:
        direct = _Recorder("direct", BotProtectionDetected())
        browser = _Recorder("browser")

        with pytest.raises(BotProtectionDetected):
            await HybridFetcher(direct, browser).fetch(make_source("a"), _ADDRESS, allow_fallback=False)

        assert browser.calls == []

    async def test_requires_browser_source_still_direct(self, make_source) -> None:
        direct = _Recorder("direct")
        browser = _Recorder("browser")
        source = make_source("a", requires_browser=True)

        assert await HybridFetcher(direct, browser).fetch(source, _ADDRESS, allow_fallback=False) == "direct"
        assert browser.calls == []


class TestFallbackMode:
    async def test_direct_success_skips_browser(self, make_source) -> None:
        direct = _Recorder("direct")
        browser = _Recorder("browser")

        result = await HybridFetcher(direct, browser).fetch(make_source("a"), _ADDRESS, allow_fallback=True)

        assert result == "direct"
        assert browser.calls == []

    @pytest.mark.parametrize("error", [BotProtectionDetected(), NetworkError("refused")])
    async def test_switches_to_browser(self, make_source, error: Exception) -> None:
        direct = _Recorder("direct", error)
        browser = _Recorder("browser")

        result = await HybridFetcher(direct, browser).fetch(make_source("a"), _ADDRESS, allow_fallback=True)

        assert result == "browser"
        assert browser.calls == [True]

    @pytest.mark.parametrize("error", [NotFound("gone"), SourceTimeout("slow")])
    async def test_final_errors_do_not_fall_back(self, make_source, error: Exception) -> None:
        direct = _Recorder("direct", error)
        browser = _Recorder("browser")

        with pytest.raises(type(error)):
            await HybridFetcher(direct, browser).fetch(make_source("a"), _ADDRESS, allow_fallback=True)
        assert browser.calls == []

    async def test_requires_browser_goes_straight_to_browser(self, make_source) -> None:
        direct = _Recorder("direct")
        browser = _Recorder("browser")
        source = make_source("a", requires_browser=True)

        assert await HybridFetcher(direct, browser).fetch(source, _ADDRESS, allow_fallback=True) == "browser"
        assert direct.calls == []

    async def test_without_browser_behaves_like_direct(self, make_source) -> None:
        direct = _Recorder("direct", BotProtectionDetected())

        with pytest.raises(BotProtectionDetected):
            await HybridFetcher(direct).fetch(make_source("a"), _ADDRESS, allow_fallback=True)
        assert direct.calls == [False]
