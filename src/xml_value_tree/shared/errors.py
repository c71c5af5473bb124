"""Exception hierarchy for XML value tree conversion."""

from typing import Optional


class XMLValueTreeError(Exception):
    """Base exception for all conversion failures."""


class SourceUnreadableError(XMLValueTreeError):
    """The XML source could not be opened or parsed into a node tree."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class ConversionError(XMLValueTreeError):
    """Converting a node tree into a value tree failed.

    The whole document conversion is abandoned; no partial tree is returned.
    """

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class MergeFieldMissingError(XMLValueTreeError):
    """An array merge found a record without the configured identity field."""

    def __init__(self, field_name: str, side: str, index: int):
        super().__init__(
            f"Field '{field_name}' used to identify array items not found "
            f"in {side} item {index}"
        )
        self.field_name = field_name
        self.side = side
        self.index = index
