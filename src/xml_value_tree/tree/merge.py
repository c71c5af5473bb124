"""Identity-keyed deep merge of value trees.

Used by include/override composition: the included document is the base and
the including document's local fragment is the override. Maps merge field by
field; record arrays merge element by element, matching records on an
identity field.
"""

import copy
from typing import Any, Dict, List

from xml_value_tree.shared.errors import MergeFieldMissingError
from xml_value_tree.tree.values import (
    CONTENT,
    Value,
    ValueKind,
    is_record_sequence,
    kind_of,
)


def merge_trees(base: Value, override: Value, identity_field: str = "name") -> Value:
    """Merge ``override`` on top of ``base`` without mutating either.

    Args:
        base: Tree providing defaults
        override: Tree whose values win
        identity_field: Field matching records of record arrays

    Returns:
        New merged tree

    Raises:
        MergeFieldMissingError: if a record array merge meets a record
            without ``identity_field``

    Example:
        >>> merge_trees(
        ...     [{"name": "x", "v": 1}, {"name": "y", "v": 2}],
        ...     [{"name": "x", "v": 9}],
        ... )
        [{'name': 'x', 'v': 9}, {'name': 'y', 'v': 2}]
    """
    return _merge(copy.deepcopy(base), copy.deepcopy(override), identity_field)


def is_map_shaped(value: Value) -> bool:
    """Maps and record arrays (non-empty lists of maps) are map-shaped."""
    return kind_of(value) is ValueKind.MAP or is_record_sequence(value)


def identity_of(record: Dict[str, Value], identity_field: str) -> Value:
    """Identity value of a record; a map-valued identity compares its CONTENT."""
    identity = record[identity_field]
    if kind_of(identity) is ValueKind.MAP:
        return identity.get(CONTENT)  # type: ignore[union-attr]
    return identity


def _merge(base: Value, override: Value, identity_field: str) -> Value:
    if not is_map_shaped(base) or not is_map_shaped(override):
        return override
    if is_record_sequence(base) or is_record_sequence(override):
        return _merge_records(_as_records(base), _as_records(override), identity_field)

    result: Dict[str, Value] = dict(base)  # type: ignore[arg-type]
    for name, value in override.items():  # type: ignore[union-attr]
        if name in result:
            result[name] = _merge(result[name], value, identity_field)
        else:
            result[name] = value
    return result


def _as_records(value: Value) -> List[Dict[str, Value]]:
    if kind_of(value) is ValueKind.MAP:
        return [value]  # type: ignore[list-item]
    return list(value)  # type: ignore[arg-type]


def _require_identity(
    records: List[Dict[str, Value]], identity_field: str, side: str
) -> None:
    for index, record in enumerate(records):
        if identity_field not in record:
            raise MergeFieldMissingError(identity_field, side, index)


def _merge_records(
    base: List[Dict[str, Value]],
    override: List[Dict[str, Value]],
    identity_field: str,
) -> List[Dict[str, Value]]:
    _require_identity(base, identity_field, "base")
    _require_identity(override, identity_field, "override")

    result: List[Dict[str, Value]] = list(base)
    for item in override:
        key = identity_of(item, identity_field)
        matches = [
            index for index, record in enumerate(result)
            if identity_of(record, identity_field) == key
        ]
        if matches:
            for index in matches:
                result[index] = _merge(result[index], item, identity_field)  # type: ignore[assignment]
            continue
        appended: Dict[str, Any] = {name: None for name in result[0]} if result else {}
        appended.update(item)
        result.append(appended)

    return _pad_records(result)


def _pad_records(records: List[Dict[str, Value]]) -> List[Dict[str, Value]]:
    all_fields: Dict[str, None] = {}
    for record in records:
        for name in record:
            all_fields.setdefault(name, None)
    for record in records:
        for name in all_fields:
            record.setdefault(name, None)
    return records
