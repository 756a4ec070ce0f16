"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class SearchConfig(BaseModel):
    """Fast-phase and escalation tuning (YAML section: search.*)."""

    fast_workers: int = Field(
        default=4,
        ge=1,
        description="Fixed number of concurrent strict-mode fetches.",
    )
    fast_deadline_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Global deadline for the whole fast phase.",
    )
    strict_task_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-task timeout in the fast phase (must be < deadline).",
    )
    fallback_task_timeout_seconds: float = Field(
        default=90.0,
        gt=0,
        description="Per-task timeout during escalation (no phase cap).",
    )
    default_search_pattern: str = Field(
        default="/?s={query}",
        description="Search path used by sources without their own pattern.",
    )
    auto_escalate_on_empty: bool = Field(
        default=True,
        description="Escalate without load_more() when the fast phase found nothing.",
    )

    @field_validator("default_search_pattern")
    @classmethod
    def _validate_pattern(cls, v: str) -> str:
        if "{query}" not in v:
            raise ValueError("default_search_pattern must contain '{query}'")
        return v

    @model_validator(mode="after")
    def _validate_timeouts(self) -> "SearchConfig":
        if self.strict_task_timeout_seconds >= self.fast_deadline_seconds:
            raise ValueError(
                "strict_task_timeout_seconds must be < fast_deadline_seconds"
            )
        return self


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (sources/http/playwright/search/sink/logging).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="scoutarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # Sources (YAML section: sources.file)
    sources_file: Path = Field(
        default=Path("./sources/sources.yaml"),
        validation_alias=AliasChoices(
            "sources_file",
            AliasPath("sources", "file"),
        ),
        description="YAML file with the source definitions.",
    )

    # Strict-mode HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=10.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="HTTP timeout in seconds for direct fetches.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether the HTTP client follows redirects.",
    )
    http_user_agent: str = Field(
        default="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="Browser-like User-Agent for outgoing HTTP requests.",
    )
    http_accept_language: str = Field(
        default="ar,en-US;q=0.7,en;q=0.3",
        validation_alias=AliasChoices(
            "http_accept_language",
            AliasPath("http", "accept_language"),
        ),
        description="Accept-Language header for outgoing HTTP requests.",
    )

    # Playwright (YAML section: playwright.*)
    playwright_headless: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "playwright_headless",
            AliasPath("playwright", "headless"),
        ),
        description="Run Playwright headless.",
    )
    playwright_timeout_ms: int = Field(
        default=30_000,
        validation_alias=AliasChoices(
            "playwright_timeout_ms",
            AliasPath("playwright", "timeout_ms"),
        ),
        description="Playwright navigation timeout in milliseconds.",
    )
    playwright_cf_timeout_ms: int = Field(
        default=15_000,
        validation_alias=AliasChoices(
            "playwright_cf_timeout_ms",
            AliasPath("playwright", "cf_timeout_ms"),
        ),
        description="How long to wait for a challenge page to clear.",
    )
    playwright_idle_timeout_ms: int = Field(
        default=10_000,
        validation_alias=AliasChoices(
            "playwright_idle_timeout_ms",
            AliasPath("playwright", "idle_timeout_ms"),
        ),
        description="Best-effort wait for network idle after navigation.",
    )
    playwright_stealth: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "playwright_stealth",
            AliasPath("playwright", "stealth"),
        ),
        description="Apply playwright-stealth patches to new pages.",
    )

    # Search orchestration (YAML section: search.*)
    search: SearchConfig = Field(default_factory=SearchConfig)

    # Result sink (YAML section: sink.*)
    sink_enabled: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "sink_enabled",
            AliasPath("sink", "enabled"),
        ),
        description="Persist per-source results to the disk cache.",
    )
    sink_dir: Path = Field(
        default=Path("./.cache/scoutarr"),
        validation_alias=AliasChoices(
            "sink_dir",
            AliasPath("sink", "dir"),
        ),
        description="Diskcache directory for the result sink.",
    )
    sink_ttl_seconds: int = Field(
        default=86_400,
        validation_alias=AliasChoices(
            "sink_ttl_seconds",
            AliasPath("sink", "ttl_seconds"),
        ),
        description="TTL for persisted results in seconds. 0 = no expiry.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    @field_validator("sources_file", "sink_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @field_validator(
        "playwright_timeout_ms", "playwright_cf_timeout_ms", "playwright_idle_timeout_ms"
    )
    @classmethod
    def _validate_playwright_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("playwright timeouts must be > 0")
        return v

    @field_validator("sink_ttl_seconds")
    @classmethod
    def _validate_sink_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("sink_ttl_seconds must be >= 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    @model_validator(mode="after")
    def _validate_fallback_budget(self) -> "AppConfig":
        # A fallback fetch may try direct HTTP first, then navigate, wait out
        # the challenge and wait for network idle.
        if self.search.fallback_task_timeout_seconds < self.fallback_fetch_budget_seconds:
            raise ValueError(
                "search.fallback_task_timeout_seconds must cover a full fallback fetch "
                f"(needs >= {self.fallback_fetch_budget_seconds:.0f}s)"
            )
        return self

    @property
    def fallback_fetch_budget_seconds(self) -> float:
        browser_ms = (
            self.playwright_timeout_ms
            + self.playwright_cf_timeout_ms
            + self.playwright_idle_timeout_ms
        )
        return self.http_timeout_seconds + browser_ms / 1000

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "sources": {"file": str(self.sources_file)},
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
                "accept_language": self.http_accept_language,
            },
            "playwright": {
                "headless": self.playwright_headless,
                "timeout_ms": self.playwright_timeout_ms,
                "cf_timeout_ms": self.playwright_cf_timeout_ms,
                "idle_timeout_ms": self.playwright_idle_timeout_ms,
                "stealth": self.playwright_stealth,
            },
            "search": self.search.model_dump(),
            "sink": {
                "enabled": self.sink_enabled,
                "dir": str(self.sink_dir),
                "ttl_seconds": self.sink_ttl_seconds,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    load.py creates EnvOverrides() to read SCOUTARR_* variables, converts
    them to a dict of set values and merges that over YAML/defaults before
    validating AppConfig.

    Supported env var examples (flat, explicit):
    - SCOUTARR_SOURCES_FILE
    - SCOUTARR_HTTP_TIMEOUT_SECONDS
    - SCOUTARR_PLAYWRIGHT_HEADLESS
    - SCOUTARR_SEARCH_FAST_WORKERS
    - SCOUTARR_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="SCOUTARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    sources_file: Optional[Path] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None
    http_accept_language: Optional[str] = None

    playwright_headless: Optional[bool] = None
    playwright_timeout_ms: Optional[int] = None
    playwright_cf_timeout_ms: Optional[int] = None
    playwright_idle_timeout_ms: Optional[int] = None
    playwright_stealth: Optional[bool] = None

    search_fast_workers: Optional[int] = None
    search_fast_deadline_seconds: Optional[float] = None
    search_strict_task_timeout_seconds: Optional[float] = None
    search_fallback_task_timeout_seconds: Optional[float] = None
    search_default_search_pattern: Optional[str] = None
    search_auto_escalate_on_empty: Optional[bool] = None

    sink_enabled: Optional[bool] = None
    sink_dir: Optional[Path] = None
    sink_ttl_seconds: Optional[int] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    @field_validator("sources_file", "sink_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
