# piinguin/logic/paths.py

"""Resolution of dot-delimited paths against annotated value trees."""

from enum import Enum
from typing import Optional, Union

from piinguin.core.definitions import PATH_SEPARATOR, ROOT_PATH, ValueKind
from piinguin.core.domain import AnnotatedValue, Value


class PathFault(AssertionError):
    """Raised for malformed paths.

    Paths are produced by the processor itself, so an empty segment or a
    non-numeric array index is a programming error rather than bad input.
    """


def resolve(root: AnnotatedValue, path: str) -> Optional[AnnotatedValue]:
    """Returns the node at path, or None if nothing is there.

    Args:
        root: Tree to search
        path: Dot-delimited keys and array indices; "" and "." mean root

    Raises:
        PathFault: If path has an empty segment or indexes an array with
            something other than a non-negative integer.
    """
    if not path or path == ROOT_PATH:
        return root

    segment, _, remainder = path.partition(PATH_SEPARATOR)
    if not segment:
        raise PathFault(f"Empty segment in path {path!r}")

    value = root.value
    if value is None:
        return None

    if value.kind is ValueKind.ARRAY:
        if not (segment.isascii() and segment.isdigit()):
            raise PathFault(f"Failed to parse array index {segment!r} in {path!r}")
        index = int(segment)
        if index >= len(value.data):
            return None
        child = value.data[index]
    elif value.kind is ValueKind.MAP:
        child = value.data.get(segment)
        if child is None:
            return None
    else:
        return None

    return resolve(child, remainder)


class Missing(Enum):
    """Marks a path with no node behind it."""

    MISSING = "missing"


MISSING = Missing.MISSING


def observed_value(
    root: AnnotatedValue, path: str
) -> Union[Optional[Value], Missing]:
    """Returns the raw value at path.

    A node whose value was removed observes as None, which is distinct from
    MISSING when there is no node at all.
    """
    node = resolve(root, path)
    return node.value if node is not None else MISSING
