# piinguin/logic/pii_config.py

"""Structural editing of PII config documents.

These helpers only know the JSON shape of a config (``rules`` and
``applications``), not what the rules do. Every edit returns a modified deep
copy so candidate configs never share state with the baseline.
"""

import copy
import json
from typing import Any, Dict, List

from piinguin.core.definitions import RuleType
from piinguin.core.domain import load_json
from piinguin.core.exceptions import MalformedConfig

RULES = "rules"
APPLICATIONS = "applications"


def parse_structural(text: str) -> Dict[str, Any]:
    """Parses config text into a JSON object.

    Raises:
        MalformedConfig: If text is not JSON or not an object.
    """
    try:
        document = load_json(text)
    except ValueError as e:
        raise MalformedConfig(f"Bad PII config: {e}") from e

    if not isinstance(document, dict):
        raise MalformedConfig(f"Bad PII config: expected an object, got {document!r}")
    return document


def apply_rule_to_kind(
    document: Dict[str, Any], pii_kind: str, rule_ref: str
) -> Dict[str, Any]:
    """Appends rule_ref to the application list of pii_kind.

    Existing references are kept, so applying the same rule twice lists it
    twice.

    Raises:
        MalformedConfig: If ``applications`` or its entry for pii_kind has
            the wrong type.
    """
    rv = copy.deepcopy(document)

    applications = rv.setdefault(APPLICATIONS, {})
    if not isinstance(applications, dict):
        raise MalformedConfig("Bad applications value")

    references = applications.setdefault(pii_kind, [])
    if not isinstance(references, list):
        raise MalformedConfig(f"Bad PII kind value for {pii_kind!r}")

    references.append(rule_ref)
    return rv


def define_redact_pair_rule(
    document: Dict[str, Any], rule_name: str, key_pattern: str
) -> Dict[str, Any]:
    """Adds (or overwrites) a redactPair rule matching keys by key_pattern.

    Raises:
        MalformedConfig: If ``rules`` is not an object.
    """
    rv = copy.deepcopy(document)

    rules = rv.setdefault(RULES, {})
    if not isinstance(rules, dict):
        raise MalformedConfig("Bad rules value")

    rules[rule_name] = {"type": RuleType.REDACT_PAIR, "keyPattern": key_pattern}
    return rv


def rule_names(document: Dict[str, Any]) -> List[str]:
    """Returns the names of user-defined rules in document order."""
    rules = document.get(RULES)
    if not isinstance(rules, dict):
        return []
    return list(rules)


def serialize(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=2)
