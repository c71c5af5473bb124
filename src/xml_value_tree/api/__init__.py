"""Public reader API: document sources, reading, JSON and DataFrame export."""

from .adapters import from_dataframe, select_path, to_dataframe
from .reader import ReadResult, XMLTreeReader, read, read_file, read_string
from .serialization import dumps, read_json, to_json_compatible, write_json
from .sources import DocumentSource, open_source, resolve_source_path

__all__ = [
    "ReadResult",
    "XMLTreeReader",
    "read",
    "read_file",
    "read_string",
    "DocumentSource",
    "open_source",
    "resolve_source_path",
    "dumps",
    "read_json",
    "to_json_compatible",
    "write_json",
    "from_dataframe",
    "select_path",
    "to_dataframe",
]
