"""Tests for the document reader API."""

import io
import json
import logging
from pathlib import Path
from xml.dom import minidom
from xml.parsers.expat import ExpatError

import pytest
from lxml import etree

from xml_value_tree.api.reader import ReadResult, XMLTreeReader, read, read_file, read_string
from xml_value_tree.shared import (
    ConversionError,
    DiagnosticCode,
    MergeFieldMissingError,
    ReaderConfig,
    SourceUnreadableError,
)

XI = 'xmlns:xi="http://www.w3.org/2001/XInclude"'

BASE_XML = """<config>
  <param><name>a</name><value>1</value></param>
  <param><name>b</name><value>2</value></param>
</config>
"""

MAIN_XML = f"""<config {XI}>
  <xi:include href="base.xml"/>
  <local>
    <param><name>b</name><value>20</value></param>
    <param><name>c</name><value>3</value></param>
  </local>
</config>
"""

MERGED_PARAMS = [
    {"name": "a", "value": 1},
    {"name": "b", "value": 20},
    {"name": "c", "value": 3},
]


def write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


class TestModuleFunctions:
    """Test the simple reading functions."""

    def test_read_string(self):
        """Test basic string conversion."""
        result = read_string("<a><b>1</b><b>2</b></a>")

        assert isinstance(result, ReadResult)
        assert result.tree == {"b": [1, 2]}
        assert result.root_name == "a"
        assert result.source == "<string>"

    def test_overlong_number_stays_text(self):
        """Test a huge digit run does not abort the document."""
        digits = "7" * 5000

        result = read_string(f"<a><b>{digits}</b><c>x</c></a>")

        assert result.tree == {"b": digits, "c": "x"}

    def test_read_accepts_options(self):
        """Test keyword options override the configuration."""
        assert read('<a x="1">t</a>').tree == {"CONTENT": "t", "ATTRIBUTE": {"x": 1}}
        assert read('<a x="1">t</a>', readAttributes=False).tree == "t"
        assert read('<a x="1">t</a>', ReaderConfig(read_attributes=False)).tree == "t"

    def test_read_file(self, tmp_path):
        """Test file conversion by str and Path."""
        path = write(tmp_path / "doc.xml", "<doc><title>T</title></doc>")

        assert read_file(path).tree == {"title": "T"}
        assert read_file(str(path)).tree == {"title": "T"}
        assert read(str(path)).source == str(path)

    def test_read_bytes_and_streams(self):
        """Test bytes and binary file objects."""
        data = '<?xml version="1.0" encoding="utf-8"?><a>é</a>'.encode("utf-8")

        assert read(data).tree == "é"
        assert read(io.BytesIO(data)).tree == "é"

    def test_read_parsed_documents(self):
        """Test already parsed minidom and lxml documents."""
        document = minidom.parseString("<a><b>1</b></a>")
        tree = etree.ElementTree(etree.fromstring("<a><b>1</b></a>"))

        assert read(document).tree == {"b": 1}
        assert read(tree).tree == {"b": 1}
        assert read(tree.getroot()).tree == {"b": 1}

    def test_read_string_rejects_paths(self):
        """Test read_string only accepts markup."""
        with pytest.raises(SourceUnreadableError, match="has to start with markup"):
            read_string("doc.xml")


class TestDocumentNodes:
    """Test document-level nodes and wrapping."""

    XML = '<?xml-stylesheet href="s.css"?><!-- about --><root><v>1</v></root>'

    def test_root_info(self):
        """Test the root name, processing instruction and comment triple."""
        result = read(self.XML)

        assert result.tree == {"v": 1}
        assert result.root_info == ("root", 'xml-stylesheet href="s.css"', "about")

    def test_wrapped_document(self):
        """Test root_only off wraps the root with the document-level nodes."""
        result = read(self.XML, root_only=False)

        assert result.tree == {
            "PROCESSING_INSTRUCTION": 'xml-stylesheet href="s.css"',
            "COMMENT": "about",
            "root": {"v": 1},
        }
        assert list(result.tree) == ["PROCESSING_INSTRUCTION", "COMMENT", "root"]

    def test_wrapped_document_without_special_nodes(self):
        """Test special nodes are left out of the wrapper when disabled."""
        result = read(self.XML, root_only=False, read_special_nodes=False)

        assert result.tree == {"root": {"v": 1}}
        assert result.processing_instruction is None

    def test_document_type(self):
        """Test the document type declaration text."""
        result = read('<!DOCTYPE note SYSTEM "note.dtd"><note>x</note>', root_only=False)

        assert result.document_type == 'note SYSTEM "note.dtd"'
        assert result.tree == {"DOCUMENT_TYPE": 'note SYSTEM "note.dtd"', "note": "x"}

    def test_strip_root_attributes(self):
        """Test root attributes can be dropped."""
        assert read('<a v="1"><b>2</b></a>', strip_root_attributes=True).tree == {"b": 2}
        assert read('<a v="1">t</a>', strip_root_attributes=True).tree == "t"
        assert read('<a v="1"><b>2</b></a>').tree == {"b": 2, "ATTRIBUTE": {"v": 1}}


class TestErrors:
    """Test error reporting of the reader."""

    def test_malformed_xml(self):
        """Test parse errors are wrapped with the cause chained."""
        with pytest.raises(SourceUnreadableError) as exc_info:
            read("<a><b></a>")

        assert isinstance(exc_info.value.__cause__, ExpatError)

    def test_malformed_xml_debug_mode(self):
        """Test debug mode propagates the parser's exception."""
        with pytest.raises(ExpatError):
            read("<a><b></a>", debug_mode=True)

    def test_malformed_xml_lxml(self):
        """Test lxml syntax errors are wrapped too."""
        with pytest.raises(SourceUnreadableError) as exc_info:
            read("<a><b></a>", backend="lxml")

        assert isinstance(exc_info.value.__cause__, etree.XMLSyntaxError)

    def test_missing_file(self, tmp_path):
        """Test unreadable paths."""
        with pytest.raises(SourceUnreadableError, match="Failed to read XML source"):
            read(tmp_path / "missing.xml")

    def test_unsupported_input_type(self):
        """Test inputs that are no XML source."""
        with pytest.raises(SourceUnreadableError, match="Input has to be"):
            read(42)

    def test_no_root_element(self):
        """Test documents without an element."""
        with pytest.raises(ConversionError, match="No root element"):
            read(minidom.Document())

    def test_conversion_failure_wrapped(self, monkeypatch):
        """Test failures while building become a generic ConversionError."""
        def boom(self, node, depth=0):
            raise RuntimeError("broken builder")

        monkeypatch.setattr("xml_value_tree.api.reader.TreeBuilder.build", boom)

        with pytest.raises(ConversionError, match="Unable to parse XML document <string>") as exc_info:
            read("<a/>")
        assert isinstance(exc_info.value.__cause__, RuntimeError)

        with pytest.raises(RuntimeError, match="broken builder"):
            read("<a/>", debug_mode=True)


class TestIncludes:
    """Test include/override composition."""

    def test_include_and_override(self, tmp_path):
        """Test the local fragment is merged on top of the included document."""
        write(tmp_path / "base.xml", BASE_XML)
        main = write(tmp_path / "main.xml", MAIN_XML)

        result = read_file(main)

        assert result.tree == {"param": MERGED_PARAMS}
        assert result.included_sources == [str((tmp_path / "base.xml").resolve())]
        assert result.metrics.includes_resolved == 1
        assert DiagnosticCode.INCLUDE_RESOLVED in [d.code for d in result.diagnostics]

    def test_include_without_local(self, tmp_path):
        """Test an include alone yields the included tree."""
        write(tmp_path / "base.xml", BASE_XML)
        main = write(tmp_path / "main.xml", f'<config {XI}><xi:include href="base.xml"/></config>')

        assert read_file(main).tree == {
            "param": [{"name": "a", "value": 1}, {"name": "b", "value": 2}]
        }

    def test_local_after_xinclude_substitution(self):
        """Test the first other field is the base once lxml substituted includes."""
        xml = (
            "<config><defaults><a>1</a><b>2</b></defaults>"
            "<local><b>3</b></local></config>"
        )
        assert read(xml, backend="lxml", process_xinclude=True).tree == {"a": 1, "b": 3}

    def test_plain_local_field_is_kept(self):
        """Test a local child without an include marker is ordinary data."""
        xml = "<settings><timezone>UTC</timezone><local>en</local></settings>"

        assert read(xml).tree == {"timezone": "UTC", "local": "en"}
        assert read(xml, readAttributes=False).tree == {"timezone": "UTC", "local": "en"}

    def test_include_from_string_uses_base_dir(self, tmp_path):
        """Test includes of in-memory documents resolve against base_dir."""
        write(tmp_path / "base.xml", BASE_XML)

        result = XMLTreeReader().read(MAIN_XML, base_dir=tmp_path)

        assert result.tree == {"param": MERGED_PARAMS}

    def test_include_search_paths(self, tmp_path):
        """Test includes are looked up in the search paths."""
        shared = tmp_path / "shared"
        shared.mkdir()
        write(shared / "base.xml", BASE_XML)
        main = write(tmp_path / "main.xml", MAIN_XML)

        with pytest.raises(SourceUnreadableError, match="Referenced document not found"):
            read_file(main)

        result = read_file(main, search_paths=[str(shared)])
        assert result.tree == {"param": MERGED_PARAMS}

    def test_nested_includes(self, tmp_path):
        """Test includes are expanded recursively."""
        write(tmp_path / "c.xml", "<r><x>1</x><y>2</y></r>")
        write(tmp_path / "b.xml", f'<r {XI}><xi:include href="c.xml"/><local><y>3</y></local></r>')
        main = write(tmp_path / "a.xml", f'<r {XI}><xi:include href="b.xml"/><local><z>4</z></local></r>')

        result = read_file(main)

        assert result.tree == {"x": 1, "y": 3, "z": 4}
        assert result.metrics.includes_resolved == 2
        assert len(result.included_sources) == 2

    def test_include_cycle(self, tmp_path):
        """Test cyclic includes are detected."""
        write(tmp_path / "b.xml", f'<r {XI}><xi:include href="a.xml"/></r>')
        main = write(tmp_path / "a.xml", f'<r {XI}><xi:include href="b.xml"/></r>')

        with pytest.raises(ConversionError, match="Include cycle"):
            read_file(main)

    def test_include_depth_limit(self, tmp_path):
        """Test include chains are bounded."""
        write(tmp_path / "base.xml", BASE_XML)
        main = write(tmp_path / "main.xml", MAIN_XML)

        with pytest.raises(ConversionError, match="Include depth exceeds 0"):
            read_file(main, max_include_depth=0)

    def test_include_requires_attributes(self, tmp_path):
        """Test composition fails when attributes are not read."""
        write(tmp_path / "base.xml", BASE_XML)
        main = write(tmp_path / "main.xml", MAIN_XML)

        with pytest.raises(ConversionError, match="requires read_attributes"):
            read_file(main, read_attributes=False)

    def test_include_without_href(self, tmp_path):
        """Test include elements must name their target."""
        main = write(tmp_path / "main.xml", f"<r {XI}><xi:include/></r>")

        with pytest.raises(ConversionError, match="without href"):
            read_file(main)

    def test_override_without_identity(self, tmp_path):
        """Test merge failures propagate unchanged."""
        write(tmp_path / "base.xml", BASE_XML)
        main = write(
            tmp_path / "main.xml",
            f'<config {XI}><xi:include href="base.xml"/>'
            "<local><param><value>9</value></param></local></config>",
        )

        with pytest.raises(MergeFieldMissingError, match="override item 0"):
            read_file(main)

    def test_lxml_xinclude_substitution(self, tmp_path):
        """Test documents whose includes were substituted by lxml."""
        write(tmp_path / "base.xml", BASE_XML)
        main = write(tmp_path / "main.xml", MAIN_XML)

        result = read_file(main, backend="lxml", process_xinclude=True)

        assert result.tree["param"] == MERGED_PARAMS


class TestXMLTreeReader:
    """Test the configured reader class."""

    def test_statistics(self):
        """Test usage statistics across reads."""
        reader = XMLTreeReader(correlation_id="req-7")
        reader.read("<a>1</a>")
        with pytest.raises(SourceUnreadableError):
            reader.read("<a>")

        stats = reader.statistics
        assert stats["total_reads"] == 2
        assert stats["successful_reads"] == 1
        assert stats["failed_reads"] == 1
        assert stats["correlation_id"] == "req-7"

    def test_logging(self, caplog):
        """Test reads are logged with their source."""
        with caplog.at_level(logging.INFO, logger="xml_value_tree.api.reader"):
            XMLTreeReader().read("<a>1</a>")

        messages = [r.getMessage() for r in caplog.records]
        assert "Starting XML read" in messages
        assert "XML read completed" in messages
        assert caplog.records[-1].source == "<string>"

    def test_result_helpers(self):
        """Test JSON export and summary of a result."""
        result = XMLTreeReader().read("<a><v>1.5</v><w>Inf</w></a>")

        assert json.loads(result.to_json()) == {"v": 1.5, "w": None}
        summary = result.summary()
        assert summary["root_name"] == "a"
        assert summary["root_kind"] == "MAP"
        assert result.metrics.processing_time_ms >= 0
        assert result.warnings == []
