"""Shared Cloudflare challenge / block detection.

Used by the direct fetcher (status + body) and the browser fetcher
(rendered DOM + title).
"""

from __future__ import annotations

CHALLENGE_STATUS_CODES: frozenset[int] = frozenset({403, 503})

_CF_MARKERS: tuple[str, ...] = (
    "Just a moment",
    "Checking your browser",
    "cf-browser-verification",
    "__cf_chl_tk",
    "cf_clearance",
    "challenge-form",
    "_cf_chl_opt",
    "turnstile-wrapper",
    "cf-turnstile",
    "challenges.cloudflare",
    "cf-spinner",
    "data-cf-settings",
)

_CF_TITLE_MARKERS: tuple[str, ...] = (
    "just a moment",
    "cloudflare",
    "checking your browser",
    "attention required",
)


def has_challenge_markers(html: str) -> bool:
    """Return *True* when *html* contains any known challenge marker."""
    return any(marker in html for marker in _CF_MARKERS)


def is_challenge_title(title: str | None) -> bool:
    """Return *True* when a page title looks like an interstitial."""
    if not title:
        return False
    lowered = title.lower()
    return any(marker in lowered for marker in _CF_TITLE_MARKERS)


def is_cloudflare_challenge(status_code: int, html: str) -> bool:
    """Return *True* when *status_code* + *html* indicate a CF challenge/block.

    Cloudflare uses several block types:
    - JS challenge: 503 + "Just a moment" / "_cf_chl_opt"
    - WAF block:    403 + "cf-browser-verification"
    - Turnstile:    403/503 + "cf-turnstile"
    """
    if status_code not in CHALLENGE_STATUS_CODES:
        return False
    return has_challenge_markers(html)


def title_wait_script() -> str:
    """JS predicate for ``page.wait_for_function``: true once the title is clear."""
    checks = " && ".join(f"!t.includes('{m}')" for m in _CF_TITLE_MARKERS)
    return f"() => {{ const t = (document.title || '').toLowerCase(); return {checks}; }}"
