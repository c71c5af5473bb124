"""JSON round-tripping of value trees."""

import json
import math
from pathlib import Path
from typing import Any, Union

from xml_value_tree.shared import SourceUnreadableError
from xml_value_tree.tree.values import Value


def _format_real(number: float) -> str:
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "Inf" if number > 0 else "-Inf"
    if number.is_integer():
        return str(int(number))
    return repr(number)


def format_complex(number: complex) -> str:
    """Render a complex number the way the scalar coercion reads it back.

    Example:
        >>> format_complex(complex(1, -2))
        '1-2i'
    """
    real = _format_real(number.real)
    imag = number.imag
    sign = "-" if imag < 0 or (imag == 0 and math.copysign(1.0, imag) < 0) else "+"
    return f"{real}{sign}{_format_real(abs(imag))}i"


def to_json_compatible(value: Any) -> Any:
    """Return a copy of ``value`` that :func:`json.dumps` accepts.

    Non-finite floats become ``None``, complex numbers become ``"a+bi"``
    strings and tuples become lists. Map keys are stringified.

    Raises:
        TypeError: for objects that are not part of a value tree
    """
    if value is None or isinstance(value, (bool, str, int)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, complex):
        return format_complex(value)
    if isinstance(value, dict):
        return {str(key): to_json_compatible(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_compatible(item) for item in value]
    raise TypeError(f"Object of type {type(value).__name__} is not a value tree node")


def dumps(value: Value, pretty: bool = True) -> str:
    """Serialize a value tree as JSON text."""
    return json.dumps(
        to_json_compatible(value),
        indent=2 if pretty else None,
        ensure_ascii=False,
        allow_nan=False,
    )


def write_json(path: Union[str, Path], value: Value, pretty: bool = True) -> Path:
    """Write a value tree to ``path`` as UTF-8 JSON and return the path."""
    target = Path(path)
    target.write_text(dumps(value, pretty=pretty) + "\n", encoding="utf-8")
    return target


def read_json(path: Union[str, Path]) -> Value:
    """Load a value tree from a JSON file.

    Raises:
        SourceUnreadableError: if the file cannot be read or is not JSON
    """
    source = Path(path)
    try:
        return json.loads(source.read_text(encoding="utf-8"))
    except (OSError, UnicodeError, json.JSONDecodeError) as e:
        raise SourceUnreadableError(
            f"Failed to read JSON file {source}: {e}", source=str(source)
        ) from e
