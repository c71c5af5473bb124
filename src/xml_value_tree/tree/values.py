"""Value tree model.

A value tree is built from plain Python objects so it can be handed straight
to :mod:`json`: ``None`` for an empty node, scalars (``str``, ``int``,
``float``, ``complex``), lists for ordered sequences and dicts for maps.
:func:`kind_of` maps any value onto the closed set of :class:`ValueKind`
variants that the reconciler, merge engine and serializer dispatch on.
"""

from enum import Enum, auto
from typing import Any, Dict, List, Union

Scalar = Union[str, int, float, complex]
Value = Union[None, Scalar, List[Any], Dict[str, Any]]

# Reserved keys produced during conversion
CONTENT = "CONTENT"
ATTRIBUTE = "ATTRIBUTE"
COMMENT = "COMMENT"
CDATA_SECTION = "CDATA_SECTION"
PROCESSING_INSTRUCTION = "PROCESSING_INSTRUCTION"
DOCUMENT_TYPE = "DOCUMENT_TYPE"


class ValueKind(Enum):
    """Shape of a value tree node."""

    EMPTY = auto()
    SCALAR = auto()
    SEQUENCE = auto()
    MAP = auto()


def kind_of(value: Value) -> ValueKind:
    """Classify a value tree node.

    Raises:
        TypeError: if the value is not part of the value tree model
    """
    if value is None:
        return ValueKind.EMPTY
    if isinstance(value, dict):
        return ValueKind.MAP
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    if isinstance(value, (str, int, float, complex)):
        return ValueKind.SCALAR
    raise TypeError(f"Unsupported value tree node type: {type(value).__name__}")


def is_empty(value: Value) -> bool:
    """Check whether a value counts as empty (``None``, ``""`` or ``[]``)."""
    kind = kind_of(value)
    if kind is ValueKind.EMPTY:
        return True
    if kind is ValueKind.SCALAR:
        return value == ""
    if kind is ValueKind.SEQUENCE:
        return len(value) == 0  # type: ignore[arg-type]
    return False


def is_record_sequence(value: Value) -> bool:
    """Check whether a value is a non-empty list whose items are all maps."""
    if kind_of(value) is not ValueKind.SEQUENCE or not value:
        return False
    return all(kind_of(item) is ValueKind.MAP for item in value)  # type: ignore[union-attr]
