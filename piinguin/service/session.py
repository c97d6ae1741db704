# piinguin/service/session.py

"""Playground session state.

The playground holds the event text, the config text and the current
interaction mode. Each transition returns a new ``Playground``; nothing is
mutated in place.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from piinguin.core.domain import AnnotatedValue, Suggestion
from piinguin.service.suggestions import SuggestionEngine, SuggestionService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Editing:
    """The user is editing the event or the config."""


@dataclass(frozen=True)
class SelectingRule:
    """The user picked a value and is choosing among suggestions."""

    path: str
    suggestions: Tuple[Suggestion, ...] = ()


Mode = Union[Editing, SelectingRule]


@dataclass(frozen=True)
class Playground:
    event: str
    config: str
    mode: Mode = field(default_factory=Editing)

    def with_event(self, event: str) -> "Playground":
        return dataclasses.replace(self, event=event, mode=Editing())

    def with_config(self, config: str) -> "Playground":
        return dataclasses.replace(self, config=config, mode=Editing())

    def start_editing(self) -> "Playground":
        if isinstance(self.mode, Editing):
            return self
        return dataclasses.replace(self, mode=Editing())

    def accept(self, suggestion: Suggestion) -> "Playground":
        """Adopts the config carried by suggestion."""
        logger.info("Suggestion accepted", extra={"pii_kind": suggestion.pii_kind})
        return self.with_config(suggestion.config)

    def select_value(
        self, path: str, engine: Optional[SuggestionEngine] = None
    ) -> "Playground":
        """Computes suggestions for the value at path.

        Raises:
            EventParseError: If the current event text is invalid.
            ConfigParseError: If the current config text is invalid.
            ProcessingError: If stripping with the current config fails.
        """
        engine = engine or SuggestionService.get_instance()
        event = engine.processor.parse_event(self.event)
        suggestions = engine.suggest(event, self.config, path)
        return dataclasses.replace(
            self, mode=SelectingRule(path=path, suggestions=tuple(suggestions))
        )

    def strip_pii(self, engine: Optional[SuggestionEngine] = None) -> AnnotatedValue:
        """Returns the current event stripped with the current config."""
        engine = engine or SuggestionService.get_instance()
        processor = engine.processor
        return processor.strip(
            processor.parse_config(self.config), processor.parse_event(self.event)
        )
