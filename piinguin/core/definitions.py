# piinguin/core/definitions.py

"""Constants shared by the value model, the processor and the engine."""

from enum import Enum


class ValueKind(str, Enum):
    """Tags of the structured value union."""

    NULL = "null"
    BOOL = "bool"
    I64 = "i64"
    U64 = "u64"
    F64 = "f64"
    STRING = "string"
    ARRAY = "array"
    MAP = "map"


class RemarkType(str, Enum):
    """How a rule altered a value."""

    REMOVED = "x"
    SUBSTITUTED = "s"
    MASKED = "m"
    PSEUDONYMIZED = "p"


class RuleType:
    """Rule ``type`` identifiers accepted in PII configs."""

    PATTERN = "pattern"
    REDACT_PAIR = "redactPair"
    MULTIPLE = "multiple"
    ALIAS = "alias"

    # Named patterns backed by the catalog
    IMEI = "imei"
    MAC = "mac"
    UUID = "uuid"
    EMAIL = "email"
    IP = "ip"
    CREDIT_CARD = "creditcard"
    USER_PATH = "userpath"


ROOT_PATH = "."
PATH_SEPARATOR = "."
KEY_RULE_TEMPLATE = "remove_all_{key}_keys"
