"""Domain errors used by MetaTest services."""

from typing import Optional


class MetaTestError(Exception):
    """Base exception for user-facing MetaTest errors."""


class ConfigError(MetaTestError):
    """Raised when configuration cannot be located or parsed."""

    exit_code = 2


class FetchFailure(MetaTestError):
    """Raised by a single source fetch (network, timeout, non-2xx, bad payload).

    Never escapes the fetch boundary: ``SourceFetcher.fetch_isolated`` turns it
    into an empty batch for that cycle.
    """

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


class ValidationFailure(MetaTestError):
    """Raised when a request is rejected before any network call."""

    exit_code = 2

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ExecutionError(MetaTestError):
    """Raised when the test execution engine call fails."""

    exit_code = 1
