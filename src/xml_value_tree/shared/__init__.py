"""Shared utilities for XML value tree conversion.

This module provides configuration, diagnostics, error types and logging
helpers used across the tree building and API layers.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    ReaderConfig,
)
from .errors import (
    ConversionError,
    MergeFieldMissingError,
    SourceUnreadableError,
    XMLValueTreeError,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)
from .result import (
    ConversionMetrics,
    DiagnosticCode,
    DiagnosticEntry,
    DiagnosticSeverity,
)

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "ReaderConfig",
    "ConversionError",
    "MergeFieldMissingError",
    "SourceUnreadableError",
    "XMLValueTreeError",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
    "ConversionMetrics",
    "DiagnosticCode",
    "DiagnosticEntry",
    "DiagnosticSeverity",
]
