"""Configuration for XML value tree conversion.

:class:`ReaderConfig` is an immutable dataclass holding every option that
shapes the conversion: which node kinds are read, how scalars are coerced,
how record arrays are normalized and how include/override composition works.
"""

import json
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from xml_value_tree.shared.errors import XMLValueTreeError

SUPPORTED_BACKENDS = ("minidom", "lxml")

# Option names used by configuration files written for the original readers
_OPTION_ALIASES = {
    "itemTagName": "item_tag_name",
    "readAttributes": "read_attributes",
    "readSpecialNodes": "read_special_nodes",
    "coerceScalars": "coerce_scalars",
    "forceUniformArrays": "force_uniform_arrays",
    "maxDepth": "max_depth",
    "rootOnly": "root_only",
    "identityField": "identity_field",
    "debugMode": "debug_mode",
}


class ConfigError(XMLValueTreeError):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ReaderConfig:
    """Options controlling how an XML document becomes a value tree.

    Thread-safe due to frozen dataclass implementation; use :meth:`override`
    to derive a modified copy.
    """

    # Node selection
    item_tag_name: str = "item"
    read_attributes: bool = True
    read_special_nodes: bool = True
    max_depth: Optional[int] = None
    root_only: bool = True
    # Off keeps the root ATTRIBUTE map; on removes it from every read tree
    strip_root_attributes: bool = False

    # Value shaping
    coerce_scalars: bool = True
    force_uniform_arrays: bool = True

    # Include/override composition
    identity_field: str = "name"
    include_field: str = "xi_COLON_include"
    local_field: str = "local"
    max_include_depth: int = 16
    search_paths: Tuple[str, ...] = ()

    # Parsing
    backend: str = "minidom"
    process_xinclude: bool = False
    debug_mode: bool = False

    def __post_init__(self) -> None:
        """Validate reader configuration."""
        if not self.item_tag_name:
            raise ConfigValidationError(
                "item_tag_name cannot be empty", field_name="item_tag_name"
            )
        if not self.identity_field:
            raise ConfigValidationError(
                "identity_field cannot be empty", field_name="identity_field"
            )
        if self.max_depth is not None and self.max_depth < 0:
            raise ConfigValidationError(
                "max_depth must be >= 0 or None", field_name="max_depth"
            )
        if self.max_include_depth < 0:
            raise ConfigValidationError(
                "max_include_depth must be >= 0", field_name="max_include_depth"
            )
        if self.include_field == self.local_field:
            raise ConfigValidationError(
                "include_field and local_field must differ",
                field_name="local_field",
            )
        if self.backend not in SUPPORTED_BACKENDS:
            raise ConfigValidationError(
                f"backend must be one of {list(SUPPORTED_BACKENDS)}",
                field_name="backend",
                suggestions=list(SUPPORTED_BACKENDS),
            )
        if self.process_xinclude and self.backend != "lxml":
            raise ConfigValidationError(
                "process_xinclude requires the lxml backend",
                field_name="process_xinclude",
                suggestions=["Set backend='lxml'", "Disable process_xinclude"],
            )

    def override(self, **kwargs: Any) -> "ReaderConfig":
        """Create a new configuration with specific overrides.

        Camel-case option names (``itemTagName``, ``rootOnly``...) are
        accepted as aliases.

        Example:
            >>> config = ReaderConfig().override(read_attributes=False)
            >>> config.read_attributes
            False
        """
        return replace(self, **_normalize_options(kwargs))

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        result = asdict(self)
        result["search_paths"] = list(self.search_paths)
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReaderConfig":
        """Create configuration from dictionary.

        Raises:
            ConfigValidationError: for unknown option names or invalid values
        """
        return cls(**_normalize_options(data))

    @classmethod
    def from_json(cls, json_str: str) -> "ReaderConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError("Configuration JSON must be an object")
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "ReaderConfig":
        """Load configuration from a JSON file."""
        path = Path(config_path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Could not read configuration file {path}: {e}") from e
        return cls.from_json(text)

    # Preset factory methods
    @classmethod
    def structure_only(cls) -> "ReaderConfig":
        """Preset reading element structure and text only."""
        return cls(read_attributes=False, read_special_nodes=False)

    @classmethod
    def strings_only(cls) -> "ReaderConfig":
        """Preset keeping every text and attribute value as a string."""
        return cls(coerce_scalars=False)


def _normalize_options(options: Dict[str, Any]) -> Dict[str, Any]:
    known = {f.name for f in fields(ReaderConfig)}
    normalized: Dict[str, Any] = {}
    for key, value in options.items():
        name = _OPTION_ALIASES.get(key, key)
        if name not in known:
            raise ConfigValidationError(
                f"Unknown configuration option: {key}",
                field_name=key,
                suggestions=sorted(known),
            )
        if name == "search_paths":
            value = tuple(str(p) for p in value)
        normalized[name] = value
    return normalized
