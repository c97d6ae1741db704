# piinguin/engine/operators.py

"""Redaction methods expressed as presidio anonymizer operators."""

import hashlib
import hmac
from functools import partial
from typing import List, Optional, Tuple

from presidio_anonymizer import AnonymizerEngine
from presidio_anonymizer.entities import OperatorConfig, RecognizerResult

from piinguin.core.definitions import RemarkType
from piinguin.engine.schema import (
    HashRedaction,
    MaskRedaction,
    RemoveRedaction,
    ReplaceRedaction,
)

_HASH_FUNCTIONS = {
    "HMAC-SHA1": hashlib.sha1,
    "HMAC-SHA256": hashlib.sha256,
    "HMAC-SHA512": hashlib.sha512,
}

_anonymizer = AnonymizerEngine()


def hash_text(text: str, algorithm: str, key: str) -> str:
    """Returns the uppercase hex HMAC digest of text."""
    digest = hmac.new(key.encode("utf-8"), text.encode("utf-8"), _HASH_FUNCTIONS[algorithm])
    return digest.hexdigest().upper()


def mask_text(
    text: str,
    mask_char: str,
    chars_to_ignore: str,
    mask_range: Tuple[Optional[int], Optional[int]],
) -> str:
    """Masks the characters of text within ``mask_range``.

    The range follows slice semantics, so ``(None, -4)`` keeps the last four
    characters. Characters listed in ``chars_to_ignore`` are kept as they are.
    """
    start, end = mask_range
    indices = range(len(text))[slice(start, end)]
    chars = list(text)
    for i in indices:
        if chars[i] not in chars_to_ignore:
            chars[i] = mask_char
    return "".join(chars)


def remark_type(redaction) -> RemarkType:
    if isinstance(redaction, RemoveRedaction):
        return RemarkType.REMOVED
    if isinstance(redaction, ReplaceRedaction):
        return RemarkType.SUBSTITUTED
    if isinstance(redaction, MaskRedaction):
        return RemarkType.MASKED
    return RemarkType.PSEUDONYMIZED


def build_operator(redaction, hash_algorithm: str, hash_key: str) -> OperatorConfig:
    """Translates a config redaction into a presidio operator."""
    if isinstance(redaction, RemoveRedaction):
        return OperatorConfig("redact", {})
    if isinstance(redaction, ReplaceRedaction):
        return OperatorConfig("replace", {"new_value": redaction.text})
    if isinstance(redaction, MaskRedaction):
        return OperatorConfig(
            "custom",
            {
                "lambda": partial(
                    mask_text,
                    mask_char=redaction.mask_char,
                    chars_to_ignore=redaction.chars_to_ignore,
                    mask_range=redaction.range,
                )
            },
        )
    if isinstance(redaction, HashRedaction):
        return OperatorConfig(
            "custom",
            {
                "lambda": partial(
                    hash_text,
                    algorithm=redaction.algorithm or hash_algorithm,
                    key=redaction.key if redaction.key is not None else hash_key,
                )
            },
        )
    raise TypeError(f"Unknown redaction: {redaction!r}")


def redact_spans(
    text: str,
    spans: List[Tuple[int, int]],
    rule_id: str,
    operator: OperatorConfig,
) -> Tuple[str, List[Tuple[int, int]]]:
    """Applies operator to each span of text.

    Returns:
        The new text and the spans of the replacements within it.
    """
    results = [
        RecognizerResult(entity_type=rule_id, start=start, end=end, score=1.0)
        for start, end in spans
    ]
    engine_result = _anonymizer.anonymize(
        text=text, analyzer_results=results, operators={rule_id: operator}
    )
    ranges = sorted((item.start, item.end) for item in engine_result.items)
    return engine_result.text, ranges


def redact_whole(text: str, redaction, hash_algorithm: str, hash_key: str) -> Optional[str]:
    """Applies a redaction to an entire string; None means removed."""
    if isinstance(redaction, RemoveRedaction):
        return None
    if isinstance(redaction, ReplaceRedaction):
        return redaction.text
    if isinstance(redaction, MaskRedaction):
        return mask_text(
            text, redaction.mask_char, redaction.chars_to_ignore, redaction.range
        )
    if isinstance(redaction, HashRedaction):
        return hash_text(
            text,
            redaction.algorithm or hash_algorithm,
            redaction.key if redaction.key is not None else hash_key,
        )
    raise TypeError(f"Unknown redaction: {redaction!r}")
