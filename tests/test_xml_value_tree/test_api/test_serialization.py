"""Tests for JSON serialization of value trees."""

import json
import math

import pytest

from xml_value_tree.api.serialization import (
    dumps,
    format_complex,
    read_json,
    to_json_compatible,
    write_json,
)
from xml_value_tree.shared import SourceUnreadableError
from xml_value_tree.tree.coercion import coerce_scalar


class TestToJsonCompatible:
    """Test conversion into JSON-ready objects."""

    def test_plain_values_unchanged(self):
        """Test JSON native values pass through."""
        tree = {"a": [1, 2.5, "x", None, True], "b": {"c": "d"}}
        assert to_json_compatible(tree) == tree

    def test_non_finite_floats(self):
        """Test Inf and NaN become null."""
        assert to_json_compatible([math.inf, -math.inf, math.nan]) == [None, None, None]

    def test_complex_numbers(self):
        """Test complex numbers become strings the coercion reads back."""
        assert to_json_compatible(complex(1, 2)) == "1+2i"
        assert format_complex(complex(1.5, -0.5)) == "1.5-0.5i"
        assert format_complex(complex(0, 2)) == "0+2i"
        assert coerce_scalar(format_complex(complex(3, -4))) == complex(3, -4)

    def test_tuples_become_lists(self):
        """Test tuples are serialized as lists."""
        assert to_json_compatible((1, (2, 3))) == [1, [2, 3]]

    def test_unknown_objects_rejected(self):
        """Test objects outside the value model."""
        with pytest.raises(TypeError, match="not a value tree node"):
            to_json_compatible(object())


class TestJsonFiles:
    """Test JSON text and file helpers."""

    def test_dumps(self):
        """Test pretty and compact output."""
        tree = {"a": [1, math.nan], "é": "ü"}

        assert json.loads(dumps(tree)) == {"a": [1, None], "é": "ü"}
        assert dumps(tree, pretty=False) == '{"a": [1, null], "é": "ü"}'
        assert "\n" in dumps(tree)

    def test_write_and_read(self, tmp_path):
        """Test a tree survives a file round trip."""
        tree = {"param": [{"name": "a", "value": 1}, {"name": "b", "value": None}]}
        path = write_json(tmp_path / "tree.json", tree)

        assert path.read_text(encoding="utf-8").endswith("\n")
        assert read_json(path) == tree

    def test_read_errors(self, tmp_path):
        """Test unreadable or invalid JSON files."""
        with pytest.raises(SourceUnreadableError, match="Failed to read JSON file"):
            read_json(tmp_path / "missing.json")

        bad = tmp_path / "bad.json"
        bad.write_text("{oops")
        with pytest.raises(SourceUnreadableError) as exc_info:
            read_json(bad)
        assert isinstance(exc_info.value.__cause__, json.JSONDecodeError)
