"""Diagnostic and metrics types for XML value tree conversion.

Conversion either succeeds completely or raises; diagnostics record the
non-fatal events seen along the way (unsupported nodes, dropped attributes).
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Debug-level information
    INFO = auto()       # Informational messages
    WARNING = auto()    # Recovered problems (node skipped, value dropped)
    ERROR = auto()      # Errors reported alongside a raised exception


class DiagnosticCode:
    """Stable identifiers for the diagnostics the reader can emit."""

    UNSUPPORTED_NODE_TYPE = "UnsupportedNodeType"
    ATTRIBUTES_DROPPED = "AttributesDropped"
    INCLUDE_RESOLVED = "IncludeResolved"


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert the entry to a JSON friendly dictionary."""
        return {
            "severity": self.severity.name,
            "code": self.code,
            "message": self.message,
            "component": self.component,
            "details": dict(self.details or {}),
        }


@dataclass
class ConversionMetrics:
    """Counters collected while converting one document (and its includes)."""

    processing_time_ms: float = 0.0
    nodes_visited: int = 0
    elements_converted: int = 0
    attributes_read: int = 0
    includes_resolved: int = 0

    @property
    def nodes_per_second(self) -> float:
        """Calculate nodes visited per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.nodes_visited * 1000.0) / self.processing_time_ms

    def absorb(self, other: "ConversionMetrics") -> None:
        """Add the node counters of a nested (included) conversion."""
        self.nodes_visited += other.nodes_visited
        self.elements_converted += other.elements_converted
        self.attributes_read += other.attributes_read
        self.includes_resolved += other.includes_resolved
