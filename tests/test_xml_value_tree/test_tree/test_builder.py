"""Tests for the recursive tree builder."""

import logging
from xml.dom import minidom

import pytest

from xml_value_tree.api.sources import DomSourceNode
from xml_value_tree.shared import DiagnosticCode, DiagnosticSeverity, ReaderConfig
from xml_value_tree.tree.builder import BuiltNode, TreeBuilder
from xml_value_tree.tree.classifier import NodeCategory
from xml_value_tree.tree.nodes import SourceNode, TextNode


class FakeNode(SourceNode):
    """Hand-built node for shapes a parser would not produce."""

    def __init__(self, node_type, name, children=None, attributes=None):
        self._node_type = node_type
        self._name = name
        self._children = children or []
        self._attributes = attributes or []

    @property
    def node_type(self):
        return self._node_type

    @property
    def name(self):
        return self._name

    @property
    def children(self):
        return self._children

    @property
    def attributes(self):
        return self._attributes


def build(xml, **options):
    """Build the value of the document element of ``xml``."""
    document = minidom.parseString(xml)
    try:
        builder = TreeBuilder(ReaderConfig(**options))
        return builder.build(DomSourceNode(document.documentElement)).value
    finally:
        document.unlink()


class TestBasicShapes:
    """Test the grouping rules of the builder."""

    def test_single_text_child_is_scalar(self):
        """Test an element with only text becomes a bare coerced value."""
        assert build("<a>5</a>") == 5
        assert build("<a>hello</a>") == "hello"

    def test_whitespace_only_element_is_empty(self):
        """Test stripped empty text contributes nothing."""
        assert build("<a>   </a>") is None
        assert build("<a/>") is None

    def test_empty_child_element_is_kept(self):
        """Test empty elements are stored as None."""
        assert build("<r><a/><b>1</b></r>") == {"a": None, "b": 1}

    def test_repeated_children_collapse_into_list(self):
        """Test same-named children become a list, single ones stay direct."""
        assert build("<a><b>1</b><b>2</b><c>x</c></a>") == {"b": [1, 2], "c": "x"}

    def test_first_seen_order(self):
        """Test fields keep first occurrence order."""
        value = build("<a><z>1</z><y>2</y><z>3</z></a>")
        assert list(value) == ["z", "y"]
        assert value == {"z": [1, 3], "y": 2}

    def test_nested_elements(self):
        """Test nested maps."""
        xml = "<config><db><host>localhost</host><port>5432</port></db></config>"
        assert build(xml) == {"db": {"host": "localhost", "port": 5432}}

    def test_indented_document(self):
        """Test whitespace text between elements is ignored."""
        xml = "<list>\n  <item>1</item>\n  <item>2</item>\n</list>"
        assert build(xml) == [1, 2]

    def test_mixed_content(self):
        """Test text around elements is stored under CONTENT."""
        value = build("<p>Hello <b>x</b> world</p>")
        assert value == {"CONTENT": ["Hello", "world"], "b": "x"}

    def test_trailing_empty_content_trimmed(self):
        """Test trailing empty text leaves a single bare CONTENT value."""
        value = build("<a>x<b/>  </a>")
        assert value == {"CONTENT": "x", "b": None}

    def test_coercion_disabled(self):
        """Test strings are kept when coercion is off."""
        assert build("<a><b>1</b><b>2.5</b></a>", coerce_scalars=False) == {"b": ["1", "2.5"]}

    def test_numeric_array_text(self):
        """Test numeric array text is coerced."""
        assert build("<m>1 2; 3 4</m>") == [[1, 2], [3, 4]]


class TestAttributes:
    """Test attribute attachment."""

    def test_attribute_promotes_scalar(self):
        """Test a scalar with attributes becomes a CONTENT/ATTRIBUTE map."""
        assert build('<a x="1">t</a>') == {"CONTENT": "t", "ATTRIBUTE": {"x": 1}}

    def test_attribute_on_empty_element(self):
        """Test attributes of empty elements promote None."""
        assert build('<a href="b.xml"/>') == {"CONTENT": None, "ATTRIBUTE": {"href": "b.xml"}}

    def test_attribute_added_to_map(self):
        """Test maps get an ATTRIBUTE key."""
        assert build('<a id="7"><b>1</b></a>') == {"b": 1, "ATTRIBUTE": {"id": 7}}

    def test_attribute_on_plain_list(self):
        """Test lists of non-maps are promoted."""
        value = build('<list a="1"><item>1</item><item>2</item></list>')
        assert value == {"CONTENT": [1, 2], "ATTRIBUTE": {"a": 1}}

    def test_attribute_names_normalized(self):
        """Test attribute names are normalized like element names."""
        value = build('<a data-id="x" xml:lang="en"/>')
        assert value["ATTRIBUTE"] == {"data_DASH_id": "x", "xml_COLON_lang": "en"}

    def test_attributes_disabled(self):
        """Test attributes are ignored when reading them is off."""
        assert build('<a x="1">t</a>', read_attributes=False) == "t"

    def test_attribute_values_not_coerced(self):
        """Test attribute values stay strings when coercion is off."""
        value = build('<a x="1">2</a>', coerce_scalars=False)
        assert value == {"CONTENT": "2", "ATTRIBUTE": {"x": "1"}}

    def test_attributes_on_record_array_dropped(self, caplog):
        """Test attributes of a transposed element are dropped with a warning."""
        document = minidom.parseString(
            '<t a="1"><x>1</x><y>2</y><x>3</x><y>4</y></t>'
        )
        builder = TreeBuilder()

        with caplog.at_level(logging.WARNING):
            value = builder.build(DomSourceNode(document.documentElement)).value

        assert value == [{"x": 1, "y": 2}, {"x": 3, "y": 4}]
        assert [d.code for d in builder.diagnostics] == [DiagnosticCode.ATTRIBUTES_DROPPED]
        assert builder.diagnostics[0].severity is DiagnosticSeverity.WARNING
        assert any("dropped" in r.getMessage() for r in caplog.records)


class TestReconciliation:
    """Test shape reconciliation during building."""

    def test_transposition(self):
        """Test parallel repeated fields become records."""
        xml = "<t><name>x</name><v>1</v><name>y</name><v>2</v></t>"
        assert build(xml) == [{"name": "x", "v": 1}, {"name": "y", "v": 2}]

    def test_no_transposition_for_unequal_counts(self):
        """Test differing counts keep the map of lists."""
        xml = "<t><a>1</a><a>2</a><b>3</b></t>"
        assert build(xml) == {"a": [1, 2], "b": 3}

    def test_item_tag_with_siblings_moves_to_content(self):
        """Test the item field is moved to CONTENT when other fields exist."""
        value = build("<a><item>1</item><item>2</item><n>k</n></a>")
        assert value == {"n": "k", "CONTENT": [1, 2]}

    def test_custom_item_tag(self):
        """Test a configured item tag name is unwrapped."""
        xml = "<list><entry>a</entry><entry>b</entry></list>"
        assert build(xml, item_tag_name="entry") == ["a", "b"]
        assert build(xml) == {"entry": ["a", "b"]}

    def test_records_made_uniform(self):
        """Test heterogeneous records are padded with None."""
        xml = "<r><p><n>a</n></p><p><n>b</n><m>1</m></p></r>"
        assert build(xml) == {"p": [{"n": "a", "m": None}, {"n": "b", "m": 1}]}

    def test_uniform_records_disabled(self):
        """Test heterogeneous records are kept when padding is off."""
        xml = "<r><p><n>a</n></p><p><n>b</n><m>1</m></p></r>"
        assert build(xml, force_uniform_arrays=False) == {
            "p": [{"n": "a"}, {"n": "b", "m": 1}]
        }


class TestSpecialNodes:
    """Test comments, CDATA and processing instructions."""

    def test_comment_stored(self):
        """Test comments are stored under COMMENT."""
        assert build("<a><!-- note --><b>1</b></a>") == {"COMMENT": "note", "b": 1}

    def test_special_nodes_disabled(self):
        """Test special nodes are skipped when disabled."""
        xml = "<a><!-- note --><b>1</b><?pi x?></a>"
        assert build(xml, read_special_nodes=False) == {"b": 1}

    def test_cdata_section(self):
        """Test CDATA text is kept verbatim."""
        assert build("<a><![CDATA[<x> & y]]></a>") == {"CDATA_SECTION": "<x> & y"}

    def test_processing_instruction(self):
        """Test processing instructions combine target and data."""
        assert build("<a><?render fast?></a>") == {"PROCESSING_INSTRUCTION": "render fast"}


class TestDepthLimit:
    """Test max_depth handling."""

    XML = "<a><b><c>1</c></b></a>"

    def test_unbounded(self):
        """Test no limit by default."""
        assert build(self.XML) == {"b": {"c": 1}}

    def test_children_below_limit_not_stored(self):
        """Test elements at the depth limit keep no children."""
        assert build(self.XML, max_depth=1) == {"b": None}
        assert build(self.XML, max_depth=0) is None

    def test_text_at_limit_kept(self):
        """Test a sole text child is still read at the limit."""
        assert build("<a>5</a>", max_depth=0) == 5


class TestBuilderBookkeeping:
    """Test diagnostics and metrics of the builder."""

    def test_unsupported_node_reported(self, caplog):
        """Test unsupported nodes are skipped with a warning diagnostic."""
        entity = FakeNode(SourceNode.ENTITY_REFERENCE_NODE, "copy")
        root = FakeNode(
            SourceNode.ELEMENT_NODE,
            "r",
            children=[FakeNode(SourceNode.ELEMENT_NODE, "a", [TextNode("1")]), entity],
        )
        builder = TreeBuilder()

        with caplog.at_level(logging.WARNING):
            built = builder.build(root)

        assert built.value == {"a": 1}
        assert len(builder.diagnostics) == 1
        diagnostic = builder.diagnostics[0]
        assert diagnostic.code == DiagnosticCode.UNSUPPORTED_NODE_TYPE
        assert diagnostic.details["node_type"] == "ENTITY_REFERENCE_NODE"
        assert any("Unknown node type" in r.getMessage() for r in caplog.records)

    def test_unsupported_node_alone(self):
        """Test an element whose only child is unsupported is empty."""
        root = FakeNode(
            SourceNode.ELEMENT_NODE,
            "r",
            children=[FakeNode(SourceNode.NOTATION_NODE, "n")],
        )
        built = TreeBuilder().build(root)

        assert built == BuiltNode(None, "r", NodeCategory.ELEMENT)

    def test_metrics(self):
        """Test counters of a conversion."""
        document = minidom.parseString('<a x="1" y="2"><b>1</b><b>2</b></a>')
        builder = TreeBuilder()
        builder.build(DomSourceNode(document.documentElement))

        assert builder.metrics.elements_converted == 3
        assert builder.metrics.attributes_read == 2
        assert builder.metrics.nodes_visited == 5

    def test_built_node_absent(self):
        """Test only empty leaves are absent."""
        assert BuiltNode("", "CONTENT", NodeCategory.TEXT).is_absent
        assert not BuiltNode(None, "a", NodeCategory.ELEMENT).is_absent
        assert not BuiltNode(0, "CONTENT", NodeCategory.TEXT).is_absent


@pytest.mark.parametrize(
    "xml, expected",
    [
        ("<r><a>1</a></r>", {"a": 1}),
        ("<r><a>1</a><a>2</a></r>", {"a": [1, 2]}),
        ("<r><item>x</item></r>", "x"),
    ],
)
def test_repetition_rule(xml, expected):
    """Test single occurrences are direct and repeated ones are lists."""
    assert build(xml) == expected
