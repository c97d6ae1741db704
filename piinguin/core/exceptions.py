# piinguin/core/exceptions.py

"""Custom exception hierarchy for piinguin.

Baseline-level failures (event or config text that cannot be parsed, a
processor run that fails) propagate to the caller as subclasses of
``PiinguinError``. Failures while evaluating a single candidate config are
absorbed by the suggestion engine.
"""


class PiinguinError(Exception):
    """Base exception for all application-specific errors."""

    pass


class ConfigurationError(PiinguinError):
    """Raised when the rule catalog or settings fail to load."""

    pass


class EventParseError(PiinguinError):
    """Raised when event text is not a valid JSON object."""

    pass


class ConfigParseError(PiinguinError):
    """Raised when a PII config cannot be parsed or references unknown rules."""

    pass


class MalformedConfig(PiinguinError):
    """Raised when a config document does not have the expected JSON shape."""

    pass


class ProcessingError(PiinguinError):
    """Raised when stripping an event against a config fails."""

    pass
