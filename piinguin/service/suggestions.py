# piinguin/service/suggestions.py

"""Suggestion engine: finds config edits that change a selected value."""

import logging
import threading
from itertools import islice
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from piinguin.core.definitions import KEY_RULE_TEMPLATE, PATH_SEPARATOR
from piinguin.core.domain import (
    AnnotatedValue,
    KeySuggestion,
    Suggestion,
    Value,
    ValueSuggestion,
)
from piinguin.core.exceptions import ConfigParseError, ProcessingError
from piinguin.core.loader import RuleCatalog
from piinguin.engine.processor import RedactionProcessor
from piinguin.logic.paths import MISSING, Missing, observed_value
from piinguin.logic.pii_config import (
    apply_rule_to_kind,
    define_redact_pair_rule,
    parse_structural,
    rule_names,
    serialize,
)
from piinguin.service.config import settings

logger = logging.getLogger(__name__)


class SuggestionEngine:
    """Searches rule x PII-kind combinations for effective config edits.

    Every candidate is the baseline config with one extra rule application.
    A candidate is suggested when stripping the event with it yields a
    different raw value at the selected path than the baseline does.
    Candidates the processor rejects are skipped.
    """

    def __init__(
        self,
        processor: Optional[RedactionProcessor] = None,
        catalog: Optional[RuleCatalog] = None,
        max_candidates: Optional[int] = None,
    ) -> None:
        self._catalog = catalog or RuleCatalog.get_instance()
        self._processor = processor or RedactionProcessor(catalog=self._catalog)
        self._max_candidates = max_candidates

    @property
    def processor(self) -> RedactionProcessor:
        return self._processor

    def suggest(
        self, event: AnnotatedValue, baseline_config: str, path: str
    ) -> List[Suggestion]:
        """Returns every single-rule config edit that changes the value at path.

        Value suggestions (rule-major, then PII kind) come first, followed by
        key suggestions. An empty list means no candidate has any effect.

        Raises:
            ConfigParseError: If the baseline config cannot be parsed.
            ProcessingError: If stripping with the baseline config fails.
            MalformedConfig: If the baseline document has a malformed shape.
        """
        baseline = self._processor.strip(
            self._processor.parse_config(baseline_config), event
        )
        observed = observed_value(baseline, path)
        document = parse_structural(baseline_config)

        logger.info(
            "Starting suggestion search",
            extra={"path": path, "observed_present": observed is not MISSING},
        )

        pending = self._candidates(document, path)
        candidates: Iterator[Suggestion] = pending
        if self._max_candidates is not None:
            candidates = islice(pending, self._max_candidates)

        suggestions: List[Suggestion] = []
        evaluated = 0
        for suggestion in candidates:
            evaluated += 1
            if self._changes_value(event, suggestion.config, path, observed):
                logger.debug(
                    "Candidate changes value",
                    extra={"path": path, "pii_kind": suggestion.pii_kind},
                )
                suggestions.append(suggestion)

        if self._max_candidates is not None and next(pending, None) is not None:
            logger.warning(
                "Candidate limit reached, suggestions may be incomplete",
                extra={"path": path, "max_candidates": self._max_candidates},
            )

        logger.info(
            "Suggestion search completed",
            extra={
                "path": path,
                "candidate_count": evaluated,
                "suggestion_count": len(suggestions),
            },
        )
        return suggestions

    def _candidates(self, document: Dict[str, Any], path: str) -> Iterator[Suggestion]:
        """Yields candidate suggestions in enumeration order, unevaluated."""
        rules: Tuple[str, ...] = self._catalog.builtin_rule_names + tuple(
            rule_names(document)
        )
        for rule in rules:
            for pii_kind in self._catalog.pii_kinds:
                candidate = apply_rule_to_kind(document, pii_kind, rule)
                yield ValueSuggestion(
                    pii_kind=pii_kind, rule_name=rule, config=serialize(candidate)
                )

        key = path.rpartition(PATH_SEPARATOR)[2]
        if not key:
            return

        rule = KEY_RULE_TEMPLATE.format(key=key)
        keyed = define_redact_pair_rule(document, rule, key)
        for pii_kind in self._catalog.pii_kinds:
            candidate = apply_rule_to_kind(keyed, pii_kind, rule)
            yield KeySuggestion(pii_kind=pii_kind, key=key, config=serialize(candidate))

    def _changes_value(
        self,
        event: AnnotatedValue,
        config_text: str,
        path: str,
        observed: Union[Optional[Value], Missing],
    ) -> bool:
        try:
            result = self._processor.strip(
                self._processor.parse_config(config_text), event
            )
        except (ConfigParseError, ProcessingError) as e:
            logger.debug(
                "Discarding candidate config",
                extra={"path": path, "error_type": type(e).__name__},
            )
            return False

        return observed_value(result, path) != observed


class SuggestionService:
    """Singleton holder for the engine configured from settings."""

    _instance: Optional[SuggestionEngine] = None
    _lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> SuggestionEngine:
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    processor = RedactionProcessor(
                        hash_key=settings.hash_key,
                        hash_algorithm=settings.default_hash_algorithm,
                    )
                    cls._instance = SuggestionEngine(
                        processor=processor,
                        max_candidates=settings.max_candidates,
                    )
        return cls._instance


def suggest(event: AnnotatedValue, baseline_config: str, path: str) -> List[Suggestion]:
    """Main entry point: suggestions for the value at path in event."""
    return SuggestionService.get_instance().suggest(event, baseline_config, path)
