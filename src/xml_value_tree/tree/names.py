"""Normalization of XML names into identifier-safe map keys."""

import keyword
import re

from xml_value_tree.shared import get_logger

COLON_MARKER = "_COLON_"
DASH_MARKER = "_DASH_"

_INVALID_CHARS = re.compile(r"\W")
_NON_ASCII_WORD = re.compile(r"[^A-Za-z0-9_]")

_logger = get_logger(__name__, component="names")


def is_valid_key(name: str) -> bool:
    """Check whether ``name`` is usable as an identifier."""
    return name.isidentifier() and not keyword.iskeyword(name)


def sanitize_key(name: str) -> str:
    """Turn an arbitrary string into a valid identifier deterministically.

    Invalid characters become ``_``, a leading non-letter gets an ``x`` prefix
    and keywords become ``x`` plus the capitalized keyword.

    Example:
        >>> sanitize_key("1st.value")
        'x1st_value'
        >>> sanitize_key("class")
        'xClass'
    """
    key = _INVALID_CHARS.sub("_", name)
    if not key or not key[0].isalpha():
        key = "x" + key
    if keyword.iskeyword(key):
        key = "x" + key[0].upper() + key[1:]
    if not key.isidentifier():
        key = _NON_ASCII_WORD.sub("_", key)
        if not key[0].isalpha():
            key = "x" + key
    return key


def normalize_name(name: str) -> str:
    """Normalize an element or attribute name into a map key.

    Colons and dashes are escaped with fixed markers first; anything still
    invalid is passed through :func:`sanitize_key`. Never fails.

    Example:
        >>> normalize_name("xi:include")
        'xi_COLON_include'
        >>> normalize_name("data-id")
        'data_DASH_id'
    """
    key = name.replace(":", COLON_MARKER).replace("-", DASH_MARKER)
    if is_valid_key(key):
        return key
    sanitized = sanitize_key(key)
    _logger.debug(
        "Sanitized invalid identifier",
        extra={"original_name": name, "key": sanitized},
    )
    return sanitized
