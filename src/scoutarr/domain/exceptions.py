"""Exception hierarchy for search orchestration."""

from __future__ import annotations


class ScoutarrError(Exception):
    """Base class for all scoutarr errors."""


class SetupError(ScoutarrError):
    """Raised when a search cannot start (e.g. no sources configured)."""


class FetchError(ScoutarrError):
    """Base class for typed fetch failures reported by a fetcher."""

    def __init__(self, message: str = "", *, source_id: str = "", address: str = "") -> None:
        super().__init__(message or type(self).__name__)
        self.source_id = source_id
        self.address = address


class BotProtectionDetected(FetchError):
    """The source answered with an anti-automation challenge.

    The only failure kind that makes a task eligible for escalation.
    """


class SourceTimeout(FetchError):
    """The fetch did not complete within its timeout."""


class NetworkError(FetchError):
    """Connection failure or unusable HTTP status."""


class NotFound(FetchError):
    """The search address does not exist on the source."""


class ExtractionError(ScoutarrError):
    """Raised when fetched content cannot be parsed into results."""


class SourceRegistryError(ScoutarrError):
    """Base class for source registry errors."""


class SourceValidationError(SourceRegistryError):
    """Raised when a source definition fails schema validation."""


class SourceNotFoundError(SourceRegistryError):
    """Raised when a source id is not known to the registry."""


class DuplicateSourceError(SourceRegistryError):
    """Raised when two source definitions share the same id."""
