"""Pydantic validation models for the sources YAML file."""

from __future__ import annotations

from typing import List, Optional

import soupsieve
from pydantic import BaseModel, Field, HttpUrl, field_validator

from scoutarr.domain.entities.source import Source

SOURCE_ID_RE = r"^[a-z0-9_-]+$"


class SelectorsDefinition(BaseModel):
    """CSS selectors for one site's search result cards."""

    item: str = Field(..., description="Selector for one result card")
    link: Optional[str] = Field(default=None, description="Anchor inside the card ('' = the card)")
    title: Optional[str] = None
    title_image: Optional[str] = Field(default=None, description="Element whose alt/title is the title")
    poster: Optional[str] = None
    poster_style: Optional[str] = Field(default=None, description="Element with a background-image style")
    year: Optional[str] = None
    categories: Optional[str] = None
    require_url: List[str] = Field(default_factory=list)
    exclude_url: List[str] = Field(default_factory=list)

    @field_validator(
        "item", "link", "title", "title_image", "poster", "poster_style", "year", "categories"
    )
    @classmethod
    def _validate_selector(cls, v: Optional[str]) -> Optional[str]:
        if v:
            try:
                soupsieve.compile(v)
            except soupsieve.SelectorSyntaxError as exc:
                raise ValueError(f"invalid CSS selector {v!r}: {exc}") from exc
        return v

    def to_mapping(self) -> dict[str, str]:
        data: dict[str, str] = {
            k: v for k, v in self.model_dump(exclude={"require_url", "exclude_url"}).items() if v is not None
        }
        if self.require_url:
            data["require_url"] = ",".join(self.require_url)
        if self.exclude_url:
            data["exclude_url"] = ",".join(self.exclude_url)
        return data


class SourceDefinition(BaseModel):
    id: str = Field(..., pattern=SOURCE_ID_RE)
    base_url: HttpUrl
    name: Optional[str] = None
    label: Optional[str] = None
    enabled: bool = True
    searchable: bool = True
    priority: int = Field(default=1, ge=0, description="Base priority; lower is tried first")
    requires_browser: bool = False
    search_pattern: Optional[str] = None
    sub_queries: List[str] = Field(default_factory=list)
    selectors: Optional[SelectorsDefinition] = None

    @field_validator("search_pattern")
    @classmethod
    def _validate_pattern(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and "{query}" not in v:
            raise ValueError("search_pattern must contain '{query}'")
        return v

    def to_source(self) -> Source:
        return Source(
            id=self.id,
            base_url=str(self.base_url),
            name=self.name or "",
            label=self.label or "",
            enabled=self.enabled,
            searchable=self.searchable,
            base_priority=self.priority,
            requires_browser=self.requires_browser,
            search_pattern=self.search_pattern,
            sub_queries=tuple(self.sub_queries),
            selectors=self.selectors.to_mapping() if self.selectors else {},
        )


class SourcesFile(BaseModel):
    """Top-level shape: ``sources: [...]``."""

    sources: List[SourceDefinition] = Field(default_factory=list)
