"""Engine exceptions.

Configuration problems are kept distinct from computed zeros so callers never
mistake "not configured" for "no tax owed".
"""

from typing import Any


class EngineError(Exception):
    """Base class for calculation engine errors."""


class ConfigurationError(EngineError):
    """Rates, brackets or benchmark data are missing or malformed."""


class BracketScheduleError(ConfigurationError, ValueError):
    """A tax bracket schedule breaks the partition invariants.

    Also a ``ValueError`` so pydantic reports it as a validation error when a
    schedule is built from request data.
    """


class SettingsNotLoadedError(ConfigurationError):
    """No tax settings (or no bracket schedule) for the requested period yet."""


class BenchmarkTableError(ConfigurationError):
    """The occupation benchmark table is missing or unusable."""


class WfhValidationError(EngineError):
    """WFH hours were rejected; ``validation`` holds the structured result."""

    def __init__(self, validation: Any) -> None:
        super().__init__(validation.message)
        self.validation = validation
