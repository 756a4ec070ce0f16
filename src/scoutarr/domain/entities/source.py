"""Source entity with a dynamic priority system.

Priority ordinals follow "lower is better":

- On failure ``current_priority`` grows (worse), capped at
  ``base_priority + MAX_PRIORITY_PENALTY``.
- On success it moves one step back toward ``base_priority``.
- ``current_priority`` never drops below ``base_priority``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

MAX_PRIORITY_PENALTY = 10


@dataclass(eq=False)
class Source:
    """One external content provider integrated into the search."""

    id: str
    base_url: str
    name: str = ""
    label: str = ""
    enabled: bool = True
    searchable: bool = True
    base_priority: int = 1
    current_priority: int | None = None
    requires_browser: bool = False
    search_pattern: str | None = None
    sub_queries: tuple[str, ...] = ()
    selectors: dict[str, str] = field(default_factory=dict)

    consecutive_failures: int = 0
    consecutive_successes: int = 0
    total_successes: int = 0
    total_failures: int = 0
    last_success_at: float | None = None
    last_failure_at: float | None = None

    def __post_init__(self) -> None:
        if self.current_priority is None:
            self.current_priority = self.base_priority
        if not self.name:
            self.name = self.id
        if not self.label:
            self.label = self.name
        self.base_url = self.base_url.rstrip("/")

    # Hash/eq by identity so sources can key dicts and sets while their
    # health counters change.
    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Source):
            return NotImplemented
        return self.id == other.id

    def on_failure(self) -> None:
        self.consecutive_failures += 1
        self.consecutive_successes = 0
        self.total_failures += 1
        self.last_failure_at = time.time()
        self.current_priority = min(
            self.base_priority + self.consecutive_failures,
            self.base_priority + MAX_PRIORITY_PENALTY,
        )

    def on_success(self) -> None:
        self.consecutive_successes += 1
        self.consecutive_failures = 0
        self.total_successes += 1
        self.last_success_at = time.time()
        assert self.current_priority is not None  # set in __post_init__
        if self.current_priority > self.base_priority:
            self.current_priority = max(self.base_priority, self.current_priority - 1)

    def reset_priority(self) -> None:
        self.current_priority = self.base_priority
        self.consecutive_failures = 0
        self.consecutive_successes = 0

    @property
    def sort_key(self) -> tuple[int, int, str]:
        assert self.current_priority is not None
        return (self.current_priority, self.base_priority, self.id)
