# piinguin/__init__.py

"""piinguin: suggests PII config edits that change a selected event value."""

from piinguin.core.domain import (
    AnnotatedValue,
    KeySuggestion,
    Meta,
    Remark,
    Suggestion,
    Value,
    ValueSuggestion,
    describe_suggestion,
)
from piinguin.core.exceptions import (
    ConfigParseError,
    ConfigurationError,
    EventParseError,
    MalformedConfig,
    PiinguinError,
    ProcessingError,
)
from piinguin.engine.processor import RedactionProcessor
from piinguin.logic.paths import PathFault, resolve
from piinguin.service.session import Playground
from piinguin.service.suggestions import SuggestionEngine, suggest

__all__ = [
    "AnnotatedValue", "Meta", "Remark", "Value",
    "Suggestion", "ValueSuggestion", "KeySuggestion", "describe_suggestion",
    "PiinguinError", "ConfigurationError", "EventParseError",
    "ConfigParseError", "MalformedConfig", "ProcessingError",
    "RedactionProcessor",
    "PathFault", "resolve",
    "Playground",
    "SuggestionEngine", "suggest",
]
__version__ = "0.1.0"
