"""CSS-selector-based HTML helpers with fallback chains.

Every helper accepts a primary selector and optional fallbacks; the first
selector that yields a match wins, so a renamed class on one site does
not break extraction outright.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

_CSS_URL_RE = re.compile(r"url\(\s*['\"]?([^'\")]+)['\"]?\s*\)")


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string with the ``lxml`` parser."""
    return BeautifulSoup(html, "lxml")


def select_items(root: BeautifulSoup | Tag, selector: str, *fallback_selectors: str) -> list[Tag]:
    """Return matches of the first selector that matches anything."""
    for sel in (selector, *fallback_selectors):
        if not sel:
            continue
        items = root.select(sel)
        if items:
            return items
    return []


def extract_text(element: Tag, selector: str, *fallback_selectors: str, default: str = "") -> str:
    """Text of the first matching child; ``selector=""`` reads *element* itself."""
    if selector == "":
        return element.get_text(" ", strip=True) or default
    for sel in (selector, *fallback_selectors):
        match = element.select_one(sel)
        if match:
            text = match.get_text(" ", strip=True)
            if text:
                return text
    return default


def extract_attr(
    element: Tag,
    selector: str,
    attrs: tuple[str, ...],
    *,
    default: str = "",
) -> str:
    """First non-empty attribute among *attrs* on the first matching child.

    ``selector=""`` reads the attributes from *element* itself.
    """
    target = element if selector == "" else element.select_one(selector)
    if target is None:
        return default
    for attr in attrs:
        val = target.get(attr)
        if val:
            return str(val).strip()
    return default


def extract_background_image(element: Tag, selector: str = "") -> str:
    """URL from an inline ``style="background-image:url(...)"``."""
    target = element if selector == "" else element.select_one(selector)
    if target is None:
        return ""
    match = _CSS_URL_RE.search(str(target.get("style") or ""))
    return match.group(1).strip() if match else ""


def absolutize(url: str, base_url: str) -> str:
    """Resolve *url* against *base_url*; empty stays empty."""
    if not url:
        return ""
    return urljoin(f"{base_url}/", url)
