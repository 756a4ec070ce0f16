"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "scoutarr",
    "environment": "dev",
    "sources": {
        "file": "./sources/sources.yaml",
    },
    "http": {
        "timeout_seconds": 10.0,
        "follow_redirects": True,
        "user_agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        "accept_language": "ar,en-US;q=0.7,en;q=0.3",
    },
    "playwright": {
        "headless": True,
        "timeout_ms": 30_000,
        "cf_timeout_ms": 15_000,
        "idle_timeout_ms": 10_000,
        "stealth": True,
    },
    "search": {
        "fast_workers": 4,
        "fast_deadline_seconds": 15.0,
        "strict_task_timeout_seconds": 10.0,
        "fallback_task_timeout_seconds": 90.0,
        "default_search_pattern": "/?s={query}",
        "auto_escalate_on_empty": True,
    },
    "sink": {
        "enabled": False,
        "dir": "./.cache/scoutarr",
        "ttl_seconds": 86_400,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
}
