"""Tests for title normalization and dedup keys."""

from __future__ import annotations

import pytest

from scoutarr.domain.entities.search import ContentType
from scoutarr.infrastructure.extraction.match_key import (
    build_match_key,
    clean_title,
    detect_content_type,
    extract_season_episode,
    extract_year,
    normalize_title,
)


class TestExtractYear:
    def test_year_in_parentheses(self) -> None:
        assert extract_year("Dune (2021)") == 2021

    def test_bare_year_only_when_allowed(self) -> None:
        assert extract_year("Dune 2021") is None
        assert extract_year("Dune 2021", allow_bare=True) == 2021

    def test_no_year(self) -> None:
        assert extract_year("Dune", allow_bare=True) is None

    def test_long_number_is_not_a_year(self) -> None:
        assert extract_year("Episode 120215", allow_bare=True) is None


class TestCleanTitle:
    def test_strips_year_and_noise(self) -> None:
        assert clean_title("فيلم Dune (2021) مترجم") == "فيلم Dune"

    def test_strips_quality_tags(self) -> None:
        assert clean_title("Dune HD BluRay") == "Dune"

    def test_collapses_whitespace(self) -> None:
        assert clean_title("  Dune   Part   Two ") == "Dune Part Two"


class TestNormalizeTitle:
    def test_lowercases_and_strips_punctuation(self) -> None:
        assert normalize_title("Dune: Part Two!") == "duneparttwo"

    def test_keeps_arabic_letters(self) -> None:
        assert normalize_title("الحلقة 5 - Dune") == "الحلقة5dune"

    def test_only_symbols_is_empty(self) -> None:
        assert normalize_title("*** ---") == ""


class TestBuildMatchKey:
    def test_title_only(self) -> None:
        assert build_match_key("Dune") == "dune|||"

    def test_full_key(self) -> None:
        assert build_match_key("Breaking Bad", 2008, 1, 3) == "breakingbad|2008|1|3"

    def test_same_title_different_year_differs(self) -> None:
        assert build_match_key("Dune", 1984) != build_match_key("Dune", 2021)

    def test_case_and_punctuation_insensitive(self) -> None:
        assert build_match_key("DUNE!", 2021) == build_match_key("dune", 2021)

    def test_empty_title_gives_empty_key(self) -> None:
        assert build_match_key("", 2021) == ""
        assert build_match_key("!!!") == ""


class TestContentType:
    @pytest.mark.parametrize(
        ("url", "title"),
        [
            ("https://a.example/series/x", "X"),
            ("https://a.example/x", "مسلسل X"),
            ("https://a.example/x", "X Season 2"),
        ],
    )
    def test_series(self, url: str, title: str) -> None:
        assert detect_content_type(url, title) is ContentType.SERIES

    def test_film_by_default(self) -> None:
        assert detect_content_type("https://a.example/movie/dune", "Dune") is ContentType.FILM


class TestSeasonEpisode:
    def test_english(self) -> None:
        assert extract_season_episode("Show Season 2 Episode 14") == (2, 14)

    def test_arabic(self) -> None:
        assert extract_season_episode("مسلسل X الموسم 3 الحلقة 7") == (3, 7)

    def test_absent(self) -> None:
        assert extract_season_episode("Dune") == (None, None)
