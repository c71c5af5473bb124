"""Shape normalization applied to every freshly built map.

The tree builder groups children by name; this module turns the grouped
fields into their final shape: parallel arrays become records, item tags are
unwrapped, content wrappers are flattened and record arrays are given a
uniform set of fields.
"""

from typing import Dict, List, Mapping

from xml_value_tree.tree.values import (
    CONTENT,
    Value,
    ValueKind,
    is_empty,
    is_record_sequence,
    kind_of,
)


def transpose_fields(fields: Dict[str, Value], counts: Mapping[str, int]) -> Value:
    """Turn a map of equally long arrays into an array of maps.

    Applies when there are at least two fields and every field occurred the
    same number of times, more than once. Any map matching that pattern is
    transposed, even when its arrays are unrelated.

    Example:
        >>> transpose_fields({"a": [1, 2], "b": [3, 4]}, {"a": 2, "b": 2})
        [{'a': 1, 'b': 3}, {'a': 2, 'b': 4}]
    """
    occurrences = [counts.get(name, 1) for name in fields]
    if len(occurrences) < 2 or occurrences[0] < 2:
        return fields
    if any(count != occurrences[0] for count in occurrences):
        return fields
    length = occurrences[0]
    return [
        {name: values[index] for name, values in fields.items()}  # type: ignore[index]
        for index in range(length)
    ]


def unwrap_item_tag(fields: Dict[str, Value], item_tag_name: str) -> Value:
    """Remove the item wrapper level used by some dialects to itemize arrays.

    A sole item field replaces the map; otherwise it moves under ``CONTENT``.
    """
    if item_tag_name not in fields:
        return fields
    if len(fields) == 1:
        return fields[item_tag_name]
    fields[CONTENT] = fields.pop(item_tag_name)
    return fields


def trim_trailing_empty(values: List[Value]) -> Value:
    """Drop trailing empty entries; a single survivor is returned bare.

    Interior empty entries are kept. A list with nothing but empty entries
    collapses to ``None``.
    """
    end = len(values)
    while end > 0 and is_empty(values[end - 1]):
        end -= 1
    if end == 0:
        return None
    if end == 1:
        return values[0]
    return values[:end]


def flatten_content(fields: Dict[str, Value]) -> Value:
    """Clean up the ``CONTENT`` field and unwrap content-only maps."""
    if CONTENT not in fields:
        return fields
    content = fields[CONTENT]
    if kind_of(content) is ValueKind.SEQUENCE:
        content = trim_trailing_empty(list(content))  # type: ignore[arg-type]
        fields[CONTENT] = content
    if len(fields) == 1:
        return content
    return fields


def reconcile_map(
    fields: Dict[str, Value],
    counts: Mapping[str, int],
    item_tag_name: str = "item",
) -> Value:
    """Apply transposition, item unwrapping and content flattening.

    Args:
        fields: Grouped children of one element, in first-seen order
        counts: Number of values stored under each field
        item_tag_name: Name of the itemizing wrapper tag

    Returns:
        The reconciled value (a map, a list or a bare value)
    """
    shaped = transpose_fields(fields, counts)
    if kind_of(shaped) is not ValueKind.MAP:
        return shaped
    shaped = unwrap_item_tag(shaped, item_tag_name)  # type: ignore[arg-type]
    if kind_of(shaped) is not ValueKind.MAP:
        return shaped
    return flatten_content(shaped)  # type: ignore[arg-type]


def has_uniform_fields(records: List[Dict[str, Value]]) -> bool:
    """Check whether every record has the same set of keys."""
    first = set(records[0])
    return all(set(record) == first for record in records[1:])


def force_uniform_records(records: List[Dict[str, Value]]) -> List[Dict[str, Value]]:
    """Rewrite records onto the union of their fields, padding with ``None``.

    Field order follows first appearance across the records.

    Example:
        >>> force_uniform_records([{"a": 1}, {"b": 2}])
        [{'a': 1, 'b': None}, {'a': None, 'b': 2}]
    """
    all_fields: Dict[str, None] = {}
    for record in records:
        for name in record:
            all_fields.setdefault(name, None)
    return [
        {name: record.get(name) for name in all_fields}
        for record in records
    ]


def unify_record_fields(value: Value, force_uniform: bool = True) -> Value:
    """Make every record-array field of ``value`` field-uniform.

    ``value`` may be a map or a list of maps (each map is processed). Fields
    whose records already share one key set are left alone; others are padded
    through :func:`force_uniform_records` when ``force_uniform`` is set.
    """
    kind = kind_of(value)
    if kind is ValueKind.MAP:
        containers = [value]
    elif kind is ValueKind.SEQUENCE and is_record_sequence(value):
        containers = list(value)  # type: ignore[arg-type]
    else:
        return value

    if not force_uniform:
        return value

    for container in containers:
        for name, field_value in container.items():  # type: ignore[union-attr]
            if not is_record_sequence(field_value):
                continue
            if not has_uniform_fields(field_value):  # type: ignore[arg-type]
                container[name] = force_uniform_records(field_value)  # type: ignore[index, arg-type]
    return value
