"""XML Value Tree.

Converts parsed XML documents into nested dict/list/scalar value trees that
round-trip through JSON, with include/override composition of documents.

Progressive API Disclosure:
- Level 1: Simple functions - read(), read_string(), read_file()
- Level 2: Configured reader - XMLTreeReader class with ReaderConfig
- Level 3: Building blocks - TreeBuilder, merge_trees, coerce_scalar
"""

__version__ = "0.1.0"
__author__ = "XML Value Tree Team"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Configured reader
from .api.reader import ReadResult, XMLTreeReader, read, read_file, read_string
from .api.serialization import dumps, read_json, write_json

# Configuration and errors for advanced usage
from .shared.config import ConfigError, ConfigValidationError, ReaderConfig
from .shared.errors import (
    ConversionError,
    MergeFieldMissingError,
    SourceUnreadableError,
    XMLValueTreeError,
)

# Level 3: Building blocks
from .tree import TreeBuilder, coerce_scalar, merge_trees

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple reading functions
    "read",
    "read_string",
    "read_file",

    # Level 2: Configured reader
    "XMLTreeReader",
    "ReadResult",
    "ReaderConfig",

    # JSON helpers
    "dumps",
    "read_json",
    "write_json",

    # Building blocks
    "TreeBuilder",
    "coerce_scalar",
    "merge_trees",

    # Errors
    "XMLValueTreeError",
    "ConfigError",
    "ConfigValidationError",
    "ConversionError",
    "MergeFieldMissingError",
    "SourceUnreadableError",
]
