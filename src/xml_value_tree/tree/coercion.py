"""Heuristic conversion of text values into numbers and numeric arrays.

A string is only considered numeric when nothing is left after removing
every character that can appear in a number or a numeric matrix: digits,
signs, decimal points, exponent markers, the ``Inf``/``NaN``/``pi`` tokens,
whitespace, the imaginary marker ``i``/``I`` and the matrix punctuation
``* [ ] ; ,``. Such strings are then parsed as a scalar, a row, a column or a
matrix; when parsing yields nothing the original string is kept.
"""

import math
import re
from typing import List, Optional, Union

from xml_value_tree.tree.values import Value

Number = Union[int, float, complex]

_NUMERIC_TOKENS = re.compile(r"Inf|inf|NaN|nan|pi")
_NUMERIC_CHARS = re.compile(r"[0-9+\-.eEiI*\[\];,\s]")

_REAL = r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|Inf|inf|NaN|nan|pi"
_REAL_RE = re.compile(rf"(?P<sign>[+-]?)(?P<real>{_REAL})")
_IMAG_RE = re.compile(rf"(?P<sign>[+-]?)(?P<imag>{_REAL})[iI]")
_COMPLEX_RE = re.compile(
    rf"(?P<rsign>[+-]?)(?P<real>{_REAL})(?P<isign>[+-])(?P<imag>{_REAL})[iI]"
)
_INTEGER_RE = re.compile(r"\d+")
# Same bound CPython 3.11+ applies to int(str)
_MAX_INTEGER_DIGITS = 4300
_ROW_SEPARATOR = re.compile(r"[;\n]")
_ELEMENT_SEPARATOR = re.compile(r"[,\s]+")


def looks_numeric(text: str) -> bool:
    """Check whether only number/matrix characters remain in ``text``."""
    residue = _NUMERIC_CHARS.sub("", _NUMERIC_TOKENS.sub("", text))
    return residue == ""


def coerce_scalar(text: str) -> Value:
    """Convert ``text`` to a number or numeric array when it looks numeric.

    Example:
        >>> coerce_scalar("42")
        42
        >>> coerce_scalar("1 2 3")
        [1, 2, 3]
        >>> coerce_scalar("1 2; 3 4")
        [[1, 2], [3, 4]]
        >>> coerce_scalar("v1.2")
        'v1.2'
    """
    if not text or not looks_numeric(text):
        return text
    parsed = parse_numeric(text)
    if parsed is None:
        return text
    return parsed


def parse_numeric(text: str) -> Optional[Value]:
    """Parse a numeric scalar, vector or matrix; ``None`` when not possible."""
    body = text.strip()
    if body.startswith("[") and body.endswith("]"):
        body = body[1:-1]

    rows: List[List[Number]] = []
    for row_text in _ROW_SEPARATOR.split(body):
        row_text = row_text.strip()
        if not row_text:
            continue
        row: List[Number] = []
        for element in _ELEMENT_SEPARATOR.split(row_text):
            if not element:
                continue
            number = _parse_element(element)
            if number is None:
                return None
            row.append(number)
        rows.append(row)

    if not rows:
        return None
    if len(rows) == 1:
        return rows[0][0] if len(rows[0]) == 1 else rows[0]
    width = len(rows[0])
    if any(len(row) != width for row in rows):
        return None
    if width == 1:
        return [row[0] for row in rows]
    return rows  # type: ignore[return-value]


def _parse_element(element: str) -> Optional[Number]:
    factors = element.split("*")
    product: Number = 1
    for factor in factors:
        number = _parse_number(factor)
        if number is None:
            return None
        product = product * number
    return product


def _parse_number(token: str) -> Optional[Number]:
    try:
        return _match_number(token)
    except ValueError:
        # digit runs beyond the integer conversion limit
        return None


def _match_number(token: str) -> Optional[Number]:
    match = _REAL_RE.fullmatch(token)
    if match:
        return _signed(match.group("sign"), _real_value(match.group("real")))
    match = _IMAG_RE.fullmatch(token)
    if match:
        imag = _signed(match.group("sign"), _real_value(match.group("imag")))
        return complex(0, imag)
    match = _COMPLEX_RE.fullmatch(token)
    if match:
        real = _signed(match.group("rsign"), _real_value(match.group("real")))
        imag = _signed(match.group("isign"), _real_value(match.group("imag")))
        return complex(real, imag)
    return None


def _real_value(literal: str) -> Union[int, float]:
    if literal in ("Inf", "inf"):
        return math.inf
    if literal in ("NaN", "nan"):
        return math.nan
    if literal == "pi":
        return math.pi
    if _INTEGER_RE.fullmatch(literal):
        if len(literal) > _MAX_INTEGER_DIGITS:
            raise ValueError(f"Integer literal exceeds {_MAX_INTEGER_DIGITS} digits")
        return int(literal)
    return float(literal)


def _signed(sign: str, value: Union[int, float]) -> Union[int, float]:
    return -value if sign == "-" else value
