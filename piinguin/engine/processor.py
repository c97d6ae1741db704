# piinguin/engine/processor.py

"""PII processor: parses configs and events and strips events against configs."""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Pattern, Tuple

from presidio_anonymizer.entities import OperatorConfig
from pydantic import ValidationError

from piinguin.core.definitions import ROOT_PATH, PATH_SEPARATOR, RemarkType, ValueKind
from piinguin.core.domain import AnnotatedValue, Meta, Remark, Value, load_json
from piinguin.core.exceptions import (
    ConfigParseError,
    EventParseError,
    ProcessingError,
)
from piinguin.core.loader import RuleCatalog
from piinguin.engine.operators import (
    build_operator,
    redact_spans,
    redact_whole,
    remark_type,
)
from piinguin.engine.recognizers import (
    RulePatternRecognizer,
    named_pattern_recognizer,
    user_pattern_recognizer,
)
from piinguin.engine.schema import (
    AliasRule,
    MultipleRule,
    NamedPatternRule,
    PatternRule,
    PiiConfig,
    RedactPairRule,
    rule_adapter,
)

logger = logging.getLogger(__name__)

# Key of the metadata map carried by serialized events
META_KEY = "_meta"


@dataclass(frozen=True)
class CompiledRule:
    """A leaf rule ready to run against values.

    Exactly one of ``recognizer`` (substring rules) and ``key_regex``
    (key/value pair rules) is set.
    """

    rule_id: str
    redaction: Any
    operator: OperatorConfig
    recognizer: Optional[RulePatternRecognizer] = None
    key_regex: Optional[Pattern] = None


@dataclass
class CompiledConfig:
    """A parsed PII config with every rule reference resolved."""

    applications: Dict[str, List[CompiledRule]] = field(default_factory=dict)
    hash_key: str = ""
    hash_algorithm: str = "HMAC-SHA1"

    def rules_for(self, pii_kind: Optional[str]) -> List[CompiledRule]:
        if pii_kind is None:
            return []
        return self.applications.get(pii_kind, [])


class RedactionProcessor:
    """Applies PII configs to events.

    The processor is stateless between calls; every ``strip`` builds a new
    annotated tree and leaves the input event untouched.
    """

    def __init__(
        self,
        catalog: Optional[RuleCatalog] = None,
        hash_key: str = "",
        hash_algorithm: str = "HMAC-SHA1",
    ) -> None:
        self._catalog = catalog or RuleCatalog.get_instance()
        self._hash_key = hash_key
        self._hash_algorithm = hash_algorithm
        self._builtin_rules: Dict[str, Any] = {}

    def parse_event(self, text: str) -> AnnotatedValue:
        """Parses event JSON into an annotated tree without paths.

        Raises:
            EventParseError: If text is not a JSON object.
        """
        try:
            data = load_json(text)
        except ValueError as e:
            raise EventParseError(f"Failed to parse event: {e}") from e

        if not isinstance(data, dict):
            raise EventParseError("Event must be a JSON object")

        data.pop(META_KEY, None)
        return AnnotatedValue.from_json(data)

    def parse_config(self, text: str) -> CompiledConfig:
        """Parses and compiles PII config JSON.

        Raises:
            ConfigParseError: If the text is not a valid config or references
                unknown rules.
        """
        try:
            data = load_json(text)
        except ValueError as e:
            raise ConfigParseError(f"Failed to parse PII config: {e}") from e

        if not isinstance(data, dict):
            raise ConfigParseError("PII config must be a JSON object")

        try:
            config = PiiConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigParseError(f"Invalid PII config: {e}") from e

        return self._compile(config)

    def _compile(self, config: PiiConfig) -> CompiledConfig:
        compiled = CompiledConfig(
            hash_key=(
                config.vars.hash_key
                if config.vars.hash_key is not None
                else self._hash_key
            ),
            hash_algorithm=self._hash_algorithm,
        )
        for pii_kind, references in config.applications.items():
            rules: List[CompiledRule] = []
            for reference in references:
                rules.extend(self._resolve(reference, config, compiled, (), None))
            compiled.applications[pii_kind] = rules
        return compiled

    def _lookup(self, reference: str, config: PiiConfig):
        if reference in config.rules:
            return config.rules[reference]

        if reference not in self._builtin_rules:
            definition = self._catalog.get_builtin_rule(reference)
            if definition is None:
                raise ConfigParseError(f"Unknown rule reference: {reference!r}")
            self._builtin_rules[reference] = rule_adapter.validate_python(definition)
        return self._builtin_rules[reference]

    def _resolve(
        self,
        reference: str,
        config: PiiConfig,
        compiled: CompiledConfig,
        stack: Tuple[str, ...],
        outer_id: Optional[str],
    ) -> List[CompiledRule]:
        """Flattens a rule reference into leaf rules.

        ``outer_id`` replaces the reported rule id of every leaf when an
        enclosing ``multiple`` or ``alias`` rule hides its inner rules.
        """
        if reference in stack:
            raise ConfigParseError(
                f"Recursive rule reference: {' -> '.join(stack + (reference,))}"
            )

        rule = self._lookup(reference, config)
        rule_id = outer_id or reference
        stack = stack + (reference,)

        if isinstance(rule, (MultipleRule, AliasRule)):
            inner = rule.rules if isinstance(rule, MultipleRule) else [rule.rule]
            hidden_id = outer_id or (reference if rule.hide_inner else None)
            rv: List[CompiledRule] = []
            for child in inner:
                rv.extend(self._resolve(child, config, compiled, stack, hidden_id))
            return rv

        operator = build_operator(
            rule.redaction, compiled.hash_algorithm, compiled.hash_key
        )

        if isinstance(rule, RedactPairRule):
            return [
                CompiledRule(
                    rule_id=rule_id,
                    redaction=rule.redaction,
                    operator=operator,
                    key_regex=re.compile(rule.key_pattern),
                )
            ]

        if isinstance(rule, PatternRule):
            recognizer = user_pattern_recognizer(rule.pattern)
        elif isinstance(rule, NamedPatternRule):
            recognizer = named_pattern_recognizer(rule.type)
        else:
            raise ConfigParseError(f"Unsupported rule: {reference!r}")

        return [
            CompiledRule(
                rule_id=rule_id,
                redaction=rule.redaction,
                operator=operator,
                recognizer=recognizer,
            )
        ]

    def strip(self, config: CompiledConfig, event: AnnotatedValue) -> AnnotatedValue:
        """Applies config to event and returns the annotated result.

        Raises:
            ProcessingError: If a rule cannot be applied.
        """
        try:
            return self._process(event, (), None, config)
        except ProcessingError:
            raise
        except Exception as e:
            logger.error("Event stripping failed", exc_info=True)
            raise ProcessingError(f"Failed to strip event: {e}") from e

    def _process(
        self,
        node: AnnotatedValue,
        segments: Tuple[str, ...],
        key: Optional[str],
        config: CompiledConfig,
    ) -> AnnotatedValue:
        meta = Meta(
            path=PATH_SEPARATOR.join(segments) if segments else ROOT_PATH,
            remarks=list(node.meta.remarks),
            errors=list(node.meta.errors),
        )
        value = node.value

        for rule in config.rules_for(self._catalog.kind_for(segments)):
            if value is None:
                break
            if rule.key_regex is not None:
                if key is not None and rule.key_regex.search(key):
                    value = self._redact_value(value, rule, config, meta)
            elif value.kind is ValueKind.STRING:
                value = self._redact_substrings(value, rule, meta)

        if value is not None and value.kind is ValueKind.ARRAY:
            value = Value.array(
                [
                    self._process(child, segments + (str(i),), None, config)
                    for i, child in enumerate(value.data)
                ]
            )
        elif value is not None and value.kind is ValueKind.MAP:
            value = Value.map(
                {
                    k: self._process(child, segments + (k,), k, config)
                    for k, child in value.data.items()
                }
            )

        return AnnotatedValue(value=value, meta=meta)

    def _redact_value(
        self, value: Value, rule: CompiledRule, config: CompiledConfig, meta: Meta
    ) -> Optional[Value]:
        """Redacts a whole value. Containers and nulls can only be removed."""
        if value.kind is ValueKind.STRING:
            text: Optional[str] = value.data
        elif value.kind is ValueKind.BOOL:
            text = "true" if value.data else "false"
        elif value.kind in (ValueKind.I64, ValueKind.U64, ValueKind.F64):
            text = str(value.data)
        else:
            text = None

        new_text = None
        if text is not None:
            new_text = redact_whole(
                text, rule.redaction, config.hash_algorithm, config.hash_key
            )

        ty = remark_type(rule.redaction) if new_text is not None else RemarkType.REMOVED
        meta.remarks.append(Remark(rule_id=rule.rule_id, ty=ty))
        return Value.string(new_text) if new_text is not None else None

    def _redact_substrings(
        self, value: Value, rule: CompiledRule, meta: Meta
    ) -> Value:
        spans = rule.recognizer.find(value.data)
        if not spans:
            return value

        text, ranges = redact_spans(value.data, spans, rule.rule_id, rule.operator)
        ty = remark_type(rule.redaction)
        meta.remarks.extend(Remark(rule_id=rule.rule_id, ty=ty, range=r) for r in ranges)
        return Value.string(text)

