"""Tabular export of value trees through pandas.

Record arrays (lists of maps, typically produced by repeated elements) map
naturally onto DataFrame rows; nested maps are flattened into dotted column
names by :func:`pandas.json_normalize`.
"""

from typing import Any, Dict, List, Optional, Union

from xml_value_tree.api.reader import ReadResult
from xml_value_tree.shared import get_logger
from xml_value_tree.tree.values import Value, ValueKind, is_record_sequence, kind_of

logger = get_logger(__name__, component="pandas_adapter")


def select_path(tree: Value, path: Optional[str]) -> Value:
    """Walk ``tree`` along a dotted path.

    Segments address map keys; numeric segments index lists.

    Example:
        >>> select_path({"a": {"b": [10, 20]}}, "a.b.1")
        20

    Raises:
        ValueError: if a segment does not exist
    """
    current = tree
    if not path:
        return current
    for segment in path.split("."):
        kind = kind_of(current)
        if kind is ValueKind.MAP and segment in current:  # type: ignore[operator]
            current = current[segment]  # type: ignore[index]
        elif kind is ValueKind.SEQUENCE and segment.lstrip("-").isdigit():
            try:
                current = current[int(segment)]  # type: ignore[index]
            except IndexError as e:
                raise ValueError(f"Index {segment} out of range in path '{path}'") from e
        else:
            raise ValueError(f"Path segment '{segment}' not found in path '{path}'")
    return current


def records_of(value: Value) -> List[Dict[str, Any]]:
    """Return ``value`` as a list of records.

    Raises:
        ValueError: if ``value`` is neither a map nor a record array
    """
    if kind_of(value) is ValueKind.MAP:
        return [value]  # type: ignore[list-item]
    if is_record_sequence(value):
        return list(value)  # type: ignore[arg-type]
    raise ValueError(
        f"Only maps and record arrays convert to a DataFrame, got {kind_of(value).name}"
    )


def to_dataframe(
    source: Union[ReadResult, Value],
    path: Optional[str] = None,
    sep: str = "."
) -> Any:
    """Convert a record array (or single map) into a pandas DataFrame.

    Args:
        source: ReadResult or value tree
        path: Dotted path of the record array inside the tree
        sep: Separator joining nested keys into column names

    Returns:
        pandas DataFrame with one row per record

    Raises:
        ValueError: if the selected value is not a map or record array

    Example:
        >>> frame = to_dataframe({"row": [{"a": 1}, {"a": 2}]}, path="row")
        >>> list(frame["a"])
        [1, 2]
    """
    import pandas as pd

    tree = source.tree if isinstance(source, ReadResult) else source
    records = records_of(select_path(tree, path))
    frame = pd.json_normalize(records, sep=sep)
    logger.debug(
        "Converted records to DataFrame",
        extra={"path": path, "row_count": len(frame), "column_count": len(frame.columns)}
    )
    return frame


def from_dataframe(frame: Any) -> List[Dict[str, Value]]:
    """Convert a DataFrame back into a record array.

    Missing cells become ``None``; columns stay flat.

    Raises:
        TypeError: if ``frame`` is not a pandas DataFrame
    """
    import pandas as pd

    if not isinstance(frame, pd.DataFrame):
        raise TypeError("Target data is not a pandas DataFrame")
    cleaned = frame.astype(object).where(frame.notna(), None)
    return [
        {str(key): _plain(value) for key, value in row.items()}
        for row in cleaned.to_dict(orient="records")
    ]


def _plain(value: Any) -> Value:
    # numpy scalars expose item() returning the matching Python scalar
    item = getattr(value, "item", None)
    return item() if callable(item) else value
