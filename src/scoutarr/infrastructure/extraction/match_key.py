"""Title normalization and the cross-source dedup key.

Key format: ``normalized_title|year|season|episode`` where the title is
lowercased and stripped of everything except ASCII letters, digits and
Arabic characters.  Unknown parts stay empty.
"""

from __future__ import annotations

import re

from scoutarr.domain.entities.search import ContentType

_YEAR_IN_PARENS_RE = re.compile(r"\((\d{4})\)")
_BARE_YEAR_RE = re.compile(r"(?<!\d)(19\d{2}|20\d{2})(?!\d)")
_NOISE_RE = re.compile(r"\s*(?:مترجم|مدبلج|\bHD\b|\bBluRay\b)\s*", re.IGNORECASE)
_SPACES_RE = re.compile(r"\s+")
_KEY_STRIP_RE = re.compile(r"[^a-z0-9\u0600-\u06ff]")

_SEASON_RE = re.compile(r"(?:season|الموسم|موسم)\s*(\d{1,3})", re.IGNORECASE)
_EPISODE_RE = re.compile(r"(?:episode|الحلقة|حلقة)\s*(\d{1,4})", re.IGNORECASE)

_SERIES_KEYWORDS = ("series", "مسلسل", "season", "موسم", "episode", "حلقة")


def extract_year(title: str, *, allow_bare: bool = False) -> int | None:
    """Year from ``"Name (2023)"``; with *allow_bare* also ``"Name 2023"``."""
    match = _YEAR_IN_PARENS_RE.search(title)
    if match is None and allow_bare:
        match = _BARE_YEAR_RE.search(title)
    return int(match.group(1)) if match else None


def clean_title(title: str) -> str:
    """Drop the ``(year)`` and release noise such as مترجم, مدبلج, HD, BluRay."""
    cleaned = _YEAR_IN_PARENS_RE.sub("", title)
    cleaned = _NOISE_RE.sub(" ", cleaned)
    return _SPACES_RE.sub(" ", cleaned).strip()


def detect_content_type(url: str, title: str) -> ContentType:
    combined = f"{url} {title}".lower()
    if any(keyword in combined for keyword in _SERIES_KEYWORDS):
        return ContentType.SERIES
    return ContentType.FILM


def extract_season_episode(title: str) -> tuple[int | None, int | None]:
    season = _SEASON_RE.search(title)
    episode = _EPISODE_RE.search(title)
    return (
        int(season.group(1)) if season else None,
        int(episode.group(1)) if episode else None,
    )


def normalize_title(title: str) -> str:
    return _KEY_STRIP_RE.sub("", title.lower())


def build_match_key(
    title: str,
    year: int | None = None,
    season: int | None = None,
    episode: int | None = None,
) -> str:
    """Build the dedup key; an unusable title yields ``""`` (never merged)."""
    normalized = normalize_title(title)
    if not normalized:
        return ""
    parts = (normalized, year, season, episode)
    return "|".join("" if p is None else str(p) for p in parts)
