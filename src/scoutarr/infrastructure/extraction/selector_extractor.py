"""Turn a search results page into ``ResultItem`` objects via CSS selectors."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import structlog
from bs4 import Tag

from scoutarr.domain.entities.search import ResultItem
from scoutarr.domain.entities.source import Source
from scoutarr.domain.exceptions import ExtractionError
from scoutarr.infrastructure.extraction.html_selectors import (
    absolutize,
    extract_attr,
    extract_background_image,
    extract_text,
    parse_html,
    select_items,
)
from scoutarr.infrastructure.extraction.match_key import (
    build_match_key,
    clean_title,
    detect_content_type,
    extract_season_episode,
    extract_year,
)

log = structlog.get_logger(__name__)

_POSTER_ATTRS = ("data-src", "data-lazy-src", "data-original", "src")
_TITLE_ATTRS = ("alt", "title")

# Result cards common to WordPress-style streaming sites.
GENERIC_CARD_SELECTORS: tuple[str, ...] = (
    ".GridItem",
    ".MovieBlock",
    "div.postDiv",
    ".entry-box",
    ".movie-item",
    "article.post",
    "article",
)


def _split(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class SelectorSpec:
    """Where a site keeps each field of a result card.

    An empty ``link`` means the card element itself is the anchor.
    ``require_url`` / ``exclude_url`` filter cards by substrings of their
    link (e.g. skip "game" or "course" entries).
    """

    item: str
    link: str = "a[href]"
    title: str = ""
    title_image: str = "img"
    poster: str = "img"
    poster_style: str = ""
    year: str = ""
    categories: str = ""
    require_url: tuple[str, ...] = ()
    exclude_url: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, str]) -> SelectorSpec:
        return cls(
            item=data["item"],
            link=data.get("link", "a[href]"),
            title=data.get("title", ""),
            title_image=data.get("title_image", "img"),
            poster=data.get("poster", "img"),
            poster_style=data.get("poster_style", ""),
            year=data.get("year", ""),
            categories=data.get("categories", ""),
            require_url=_split(data.get("require_url")),
            exclude_url=_split(data.get("exclude_url")),
        )


class SelectorExtractor:
    """Extract result cards for one source.

    Without a site-specific ``spec`` the generic card selectors are tried
    in order.  Relative links resolve against the source's *current*
    base URL, which follows detected domain moves.
    """

    def __init__(
        self,
        source_id: str,
        *,
        source: Source | None = None,
        spec: SelectorSpec | None = None,
    ) -> None:
        self.source_id = source_id
        self._source = source
        self._spec = spec

    @property
    def base_url(self) -> str:
        return self._source.base_url if self._source else ""

    @property
    def label(self) -> str:
        return self._source.label if self._source else self.source_id

    def extract(self, content: str) -> list[ResultItem]:
        if not content or not content.strip():
            return []
        try:
            soup = parse_html(content)
        except Exception as exc:
            raise ExtractionError(f"Unparseable content from {self.source_id}: {exc}") from exc

        spec = self._spec
        try:
            if spec is not None:
                cards = select_items(soup, spec.item)
            else:
                cards = select_items(soup, *GENERIC_CARD_SELECTORS)
                spec = SelectorSpec(item="")

            items: list[ResultItem] = []
            seen_urls: set[str] = set()
            for card in cards:
                item = self._card_to_item(card, spec)
                if item is None or item.page_url in seen_urls:
                    continue
                seen_urls.add(item.page_url)
                items.append(item)
        except Exception as exc:
            raise ExtractionError(f"Selector extraction failed for {self.source_id}: {exc}") from exc

        log.debug("results_extracted", source_id=self.source_id, cards=len(cards), items=len(items))
        return items

    def _card_to_item(self, card: Tag, spec: SelectorSpec) -> ResultItem | None:
        href = extract_attr(card, spec.link, ("href",))
        if not href and spec.link:
            href = extract_attr(card, "", ("href",))
        if not href:
            return None
        if spec.require_url and not any(part in href for part in spec.require_url):
            return None
        if any(part in href for part in spec.exclude_url):
            return None

        raw_title = extract_text(card, spec.title) if spec.title else ""
        if not raw_title and spec.title_image:
            raw_title = extract_attr(card, spec.title_image, _TITLE_ATTRS)
        if not raw_title and spec.link:
            raw_title = extract_attr(card, spec.link, _TITLE_ATTRS) or extract_text(card, spec.link)
        if not raw_title:
            return None

        year_text = extract_text(card, spec.year) if spec.year else ""
        year = int(year_text) if year_text.isdigit() and len(year_text) == 4 else None
        if year_text:
            raw_title = raw_title.replace(year_text, " ")
        if year is None:
            year = extract_year(raw_title, allow_bare=bool(spec.year))

        title = clean_title(raw_title)
        if not title:
            return None

        page_url = absolutize(href, self.base_url)
        season, episode = extract_season_episode(raw_title)

        poster = extract_background_image(card, spec.poster_style) if spec.poster_style else ""
        if not poster and spec.poster:
            poster = extract_attr(card, spec.poster, _POSTER_ATTRS)

        categories = (
            tuple(t.get_text(strip=True) for t in card.select(spec.categories) if t.get_text(strip=True))
            if spec.categories
            else ()
        )

        return ResultItem(
            title=title,
            page_url=page_url,
            source_id=self.source_id,
            source_label=self.label,
            poster_url=absolutize(poster, self.base_url),
            content_type=detect_content_type(page_url, raw_title),
            year=year,
            dedup_key=build_match_key(title, year, season, episode),
            categories=categories,
        )
