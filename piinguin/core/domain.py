# piinguin/core/domain.py

"""Domain models: the annotated value tree and rule suggestions."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from piinguin.core.definitions import RemarkType, ValueKind


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON token {name}")


def load_json(text: str) -> Any:
    """Decodes strict JSON text.

    Raises:
        ValueError: If text is not JSON, including the ``NaN`` and
            ``Infinity`` tokens the json module accepts by default.
    """
    return json.loads(text, parse_constant=_reject_constant)


@dataclass(frozen=True)
class Remark:
    """Descriptor of one transformation applied to a value.

    Attributes:
        rule_id: Rule reference that produced the change
        ty: Kind of change (removed, substituted, masked, pseudonymized)
        range: Affected span of the resulting string, None for the whole value
    """

    rule_id: str
    ty: RemarkType
    range: Optional[Tuple[int, int]] = None

    def to_json(self) -> List[Any]:
        rv: List[Any] = [self.rule_id, self.ty.value]
        if self.range is not None:
            rv.extend(self.range)
        return rv


@dataclass
class Meta:
    """Metadata attached to every node of a processed tree."""

    path: Optional[str] = None
    remarks: List[Remark] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.remarks and not self.errors


@dataclass(frozen=True, eq=False)
class Value:
    """Tagged union of the structured document types.

    ``data`` holds the Python payload: ``None`` for null, ``bool``, ``int``,
    ``float``, ``str``, a list of ``AnnotatedValue`` for arrays or an ordered
    dict of ``AnnotatedValue`` for maps.

    Equality compares raw values only. Annotations of nested children are
    ignored, so two trees that differ only in remarks or paths are equal.
    """

    kind: ValueKind
    data: Any = None

    @classmethod
    def null(cls) -> "Value":
        return cls(ValueKind.NULL)

    @classmethod
    def string(cls, text: str) -> "Value":
        return cls(ValueKind.STRING, text)

    @classmethod
    def array(cls, items: List["AnnotatedValue"]) -> "Value":
        return cls(ValueKind.ARRAY, list(items))

    @classmethod
    def map(cls, entries: Dict[str, "AnnotatedValue"]) -> "Value":
        return cls(ValueKind.MAP, dict(entries))

    @classmethod
    def from_json(cls, obj: Any) -> "Value":
        """Builds a value from a decoded JSON object."""
        if obj is None:
            return cls.null()
        # bool is a subclass of int
        if isinstance(obj, bool):
            return cls(ValueKind.BOOL, obj)
        if isinstance(obj, int):
            return cls(ValueKind.U64 if obj >= 0 else ValueKind.I64, obj)
        if isinstance(obj, float):
            return cls(ValueKind.F64, obj)
        if isinstance(obj, str):
            return cls.string(obj)
        if isinstance(obj, list):
            return cls.array([AnnotatedValue.from_json(x) for x in obj])
        if isinstance(obj, dict):
            return cls.map({k: AnnotatedValue.from_json(v) for k, v in obj.items()})
        raise TypeError(f"Unsupported JSON type: {type(obj).__name__}")

    def to_json(self) -> Any:
        if self.kind is ValueKind.ARRAY:
            return [item.to_json() for item in self.data]
        if self.kind is ValueKind.MAP:
            return {k: v.to_json() for k, v in self.data.items()}
        return self.data

    def is_scalar(self) -> bool:
        return self.kind not in (ValueKind.ARRAY, ValueKind.MAP)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        if self.kind is not other.kind:
            return False
        if self.kind is ValueKind.ARRAY:
            return len(self.data) == len(other.data) and all(
                a.value == b.value for a, b in zip(self.data, other.data)
            )
        if self.kind is ValueKind.MAP:
            return self.data.keys() == other.data.keys() and all(
                v.value == other.data[k].value for k, v in self.data.items()
            )
        return self.data == other.data

    __hash__ = None  # type: ignore[assignment]


@dataclass
class AnnotatedValue:
    """A value (absent when redacted) paired with its metadata."""

    value: Optional[Value] = None
    meta: Meta = field(default_factory=Meta)

    @classmethod
    def from_json(cls, obj: Any) -> "AnnotatedValue":
        return cls(value=Value.from_json(obj))

    def to_json(self) -> Any:
        """Returns the plain JSON payload; absent values become ``None``."""
        return self.value.to_json() if self.value is not None else None


@dataclass(frozen=True)
class ValueSuggestion:
    """Applying ``rule_name`` to ``pii_kind`` changes the selected value."""

    pii_kind: str
    rule_name: str
    config: str


@dataclass(frozen=True)
class KeySuggestion:
    """Removing keys named ``key`` from ``pii_kind`` changes the selected value."""

    pii_kind: str
    key: str
    config: str


Suggestion = Union[ValueSuggestion, KeySuggestion]


def describe_suggestion(suggestion: Suggestion) -> str:
    """Returns the one-line explanation shown next to a suggestion."""
    if isinstance(suggestion, ValueSuggestion):
        return (
            f"Apply rule {suggestion.rule_name} "
            f"to all {suggestion.pii_kind} fields"
        )
    if isinstance(suggestion, KeySuggestion):
        return (
            f"Remove keys named {suggestion.key} "
            f"from all {suggestion.pii_kind} fields"
        )
    raise TypeError(f"Unknown suggestion type: {type(suggestion).__name__}")
