# piinguin/engine/schema.py

"""Pydantic models describing the PII config accepted by the processor."""

import re
from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from piinguin.core.loader import RuleCatalog


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _check_regex(v: str) -> str:
    try:
        re.compile(v)
    except re.error as e:
        raise ValueError(f"Invalid regex {v!r}: {e}") from e
    return v


class RemoveRedaction(_Model):
    method: Literal["remove"] = "remove"


class ReplaceRedaction(_Model):
    method: Literal["replace"] = "replace"
    text: str = "[redacted]"


class MaskRedaction(_Model):
    method: Literal["mask"] = "mask"
    mask_char: str = Field(default="*", alias="maskChar", min_length=1, max_length=1)
    chars_to_ignore: str = Field(default="", alias="charsToIgnore")
    range: Tuple[Optional[int], Optional[int]] = (None, None)


class HashRedaction(_Model):
    method: Literal["hash"] = "hash"
    algorithm: Optional[Literal["HMAC-SHA1", "HMAC-SHA256", "HMAC-SHA512"]] = None
    key: Optional[str] = None


Redaction = Annotated[
    Union[RemoveRedaction, ReplaceRedaction, MaskRedaction, HashRedaction],
    Field(discriminator="method"),
]


class PatternRule(_Model):
    """Redacts substrings matching ``pattern``."""

    type: Literal["pattern"]
    pattern: str
    redaction: Redaction = Field(default_factory=ReplaceRedaction)

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        return _check_regex(v)


class RedactPairRule(_Model):
    """Redacts whole values whose key matches ``keyPattern``."""

    type: Literal["redactPair"]
    key_pattern: str = Field(alias="keyPattern")
    redaction: Redaction = Field(default_factory=RemoveRedaction)

    @field_validator("key_pattern")
    @classmethod
    def validate_key_pattern(cls, v: str) -> str:
        return _check_regex(v)


class NamedPatternRule(_Model):
    """Redacts substrings matching one of the catalog patterns."""

    type: Literal["imei", "mac", "uuid", "email", "ip", "creditcard", "userpath"]
    redaction: Redaction = Field(default_factory=ReplaceRedaction)


class MultipleRule(_Model):
    """Applies several rules in order."""

    type: Literal["multiple"]
    rules: List[str]
    hide_inner: bool = Field(default=False, alias="hideInner")


class AliasRule(_Model):
    """Applies another rule under a new name."""

    type: Literal["alias"]
    rule: str
    hide_inner: bool = Field(default=False, alias="hideInner")


Rule = Annotated[
    Union[PatternRule, RedactPairRule, NamedPatternRule, MultipleRule, AliasRule],
    Field(discriminator="type"),
]

rule_adapter: TypeAdapter = TypeAdapter(Rule)


class Vars(_Model):
    hash_key: Optional[str] = Field(default=None, alias="hashKey")


class PiiConfig(_Model):
    """A parsed PII config: user rules and their applications to PII kinds."""

    rules: Dict[str, Rule] = Field(default_factory=dict)
    applications: Dict[str, List[str]] = Field(default_factory=dict)
    vars: Vars = Field(default_factory=Vars)

    @field_validator("applications")
    @classmethod
    def validate_pii_kinds(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        """Ensure every application targets a known PII kind."""
        known = RuleCatalog.get_instance().pii_kinds
        unknown = [kind for kind in v if kind not in known]
        if unknown:
            raise ValueError(f"Unknown PII kinds: {unknown}")
        return v
