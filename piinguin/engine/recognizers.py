# piinguin/engine/recognizers.py

"""Presidio pattern recognizers backing the PII rule types."""

import logging
import re
from functools import lru_cache
from typing import List, Tuple

from presidio_analyzer import Pattern, PatternRecognizer

from piinguin.core.definitions import RuleType
from piinguin.core.exceptions import ConfigParseError
from piinguin.core.loader import RuleCatalog

logger = logging.getLogger(__name__)

# User patterns are matched as written
USER_REGEX_FLAGS = re.DOTALL | re.MULTILINE

# Distinct user patterns seen while editing a config
USER_RECOGNIZER_CACHE_SIZE = 256


class RulePatternRecognizer(PatternRecognizer):
    """Pattern recognizer labelled with the rule that owns it."""

    def __init__(self, rule_id: str, patterns: List[Pattern], flags: int):
        super().__init__(
            supported_entity=rule_id,
            name=f"{rule_id}_Recognizer",
            patterns=patterns,
            global_regex_flags=flags,
        )

    def find(self, text: str) -> List[Tuple[int, int]]:
        """Returns the (start, end) spans of all accepted matches in text."""
        results = self.analyze(text=text, entities=self.supported_entities)
        return sorted((r.start, r.end) for r in results)


class CreditCardRecognizer(RulePatternRecognizer):
    """Credit card recognizer with length validation."""

    def validate_result(self, pattern_text: str) -> bool:
        digits = pattern_text.replace("-", "").replace(" ", "")
        return 13 <= len(digits) <= 19


def named_pattern_recognizer(rule_type: str) -> RulePatternRecognizer:
    """Returns the cached recognizer for a catalog pattern type.

    Raises:
        ConfigParseError: If the catalog has no pattern for ``rule_type``.
    """
    definition = RuleCatalog.get_instance().get_pattern(rule_type)
    if definition is None:
        raise ConfigParseError(f"No pattern defined for rule type {rule_type!r}")
    return _named_recognizer(
        rule_type, definition["name"], definition["regex"], definition["score"]
    )


@lru_cache(maxsize=None)
def _named_recognizer(
    rule_type: str, name: str, regex: str, score: float
) -> RulePatternRecognizer:
    cls = (
        CreditCardRecognizer
        if rule_type == RuleType.CREDIT_CARD
        else RulePatternRecognizer
    )
    recognizer = cls(
        rule_id=rule_type,
        patterns=[Pattern(name=name, regex=regex, score=score)],
        flags=re.DOTALL | re.MULTILINE | re.IGNORECASE,
    )
    logger.debug("Created recognizer", extra={"rule_type": rule_type})
    return recognizer


@lru_cache(maxsize=USER_RECOGNIZER_CACHE_SIZE)
def user_pattern_recognizer(regex: str) -> RulePatternRecognizer:
    """Returns the cached recognizer for a user-supplied regex."""
    return RulePatternRecognizer(
        rule_id="pattern",
        patterns=[Pattern(name="user_pattern", regex=regex, score=1.0)],
        flags=USER_REGEX_FLAGS,
    )
