"""Parser adapters producing the node trees consumed by the tree builder.

Two parsers are supported: :mod:`xml.dom.minidom`, whose W3C DOM nodes map
one-to-one onto :class:`SourceNode`, and :mod:`lxml.etree`, whose text/tail
storage is unfolded into separate text nodes and whose namespace maps are
surfaced as ``xmlns`` attributes. :func:`open_source` scopes parsing and
cleanup of one document.
"""

import io
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple, Union
from xml.dom import minidom
from xml.parsers.expat import ExpatError

from lxml import etree

from xml_value_tree.shared import (
    ReaderConfig,
    SourceUnreadableError,
    get_logger,
)
from xml_value_tree.tree.nodes import SourceNode, TextNode

SourceType = Union[str, bytes, Path, Any]

_XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"
_READ_ERRORS = (
    OSError,
    ExpatError,
    etree.XMLSyntaxError,
    etree.XIncludeError,
    UnicodeError,
    ValueError,
)


class DomSourceNode(SourceNode):
    """Adapter for W3C DOM nodes such as those of :mod:`xml.dom.minidom`."""

    def __init__(self, node: Any) -> None:
        self._node = node

    @property
    def node_type(self) -> int:
        return self._node.nodeType

    @property
    def name(self) -> str:
        return self._node.nodeName or ""

    @property
    def data(self) -> str:
        if self._node.nodeType == self.DOCUMENT_TYPE_NODE:
            return doctype_text(
                self._node.name, self._node.publicId, self._node.systemId
            )
        return getattr(self._node, "data", None) or ""

    @property
    def target(self) -> str:
        return getattr(self._node, "target", None) or ""

    @property
    def children(self) -> List[SourceNode]:
        return [DomSourceNode(child) for child in self._node.childNodes]

    @property
    def attributes(self) -> List[Tuple[str, str]]:
        attributes = self._node.attributes
        if not attributes:
            return []
        return list(attributes.items())


class LeafSourceNode(SourceNode):
    """Leaf node built from already extracted values."""

    def __init__(self, node_type: int, name: str, data: str = "", target: str = "") -> None:
        self._node_type = node_type
        self._name = name
        self._data = data
        self._target = target

    @property
    def node_type(self) -> int:
        return self._node_type

    @property
    def name(self) -> str:
        return self._name

    @property
    def data(self) -> str:
        return self._data

    @property
    def target(self) -> str:
        return self._target


class LxmlElementNode(SourceNode):
    """Adapter for :mod:`lxml.etree` elements."""

    def __init__(self, element: Any) -> None:
        self._element = element

    @property
    def node_type(self) -> int:
        return self.ELEMENT_NODE

    @property
    def name(self) -> str:
        local_name = etree.QName(self._element).localname
        prefix = self._element.prefix
        return f"{prefix}:{local_name}" if prefix else local_name

    @property
    def children(self) -> List[SourceNode]:
        nodes: List[SourceNode] = []
        if self._element.text:
            nodes.append(TextNode(self._element.text))
        for child in self._element:
            nodes.append(wrap_lxml_node(child))
            if child.tail:
                nodes.append(TextNode(child.tail))
        return nodes

    @property
    def attributes(self) -> List[Tuple[str, str]]:
        element = self._element
        parent = element.getparent()
        inherited = parent.nsmap if parent is not None else {}

        pairs: List[Tuple[str, str]] = []
        for prefix, uri in element.nsmap.items():
            if inherited.get(prefix) != uri:
                pairs.append((f"xmlns:{prefix}" if prefix else "xmlns", uri))
        for key, value in element.attrib.items():
            pairs.append((_qualified_attribute_name(key, element.nsmap), value))
        return pairs


def wrap_lxml_node(item: Any) -> SourceNode:
    """Wrap any lxml tree item (element, comment, PI, entity)."""
    if isinstance(item, etree._Comment):
        return LeafSourceNode(SourceNode.COMMENT_NODE, "#comment", item.text or "")
    if isinstance(item, etree._ProcessingInstruction):
        return LeafSourceNode(
            SourceNode.PROCESSING_INSTRUCTION_NODE,
            item.target,
            item.text or "",
            item.target,
        )
    if isinstance(item, etree._Entity):
        return LeafSourceNode(SourceNode.ENTITY_REFERENCE_NODE, item.name, item.text or "")
    return LxmlElementNode(item)


def _qualified_attribute_name(key: str, nsmap: dict) -> str:
    qname = etree.QName(key)
    if not qname.namespace:
        return qname.localname
    if qname.namespace == _XML_NAMESPACE:
        prefix: Optional[str] = "xml"
    else:
        prefix = next(
            (p for p, uri in nsmap.items() if p and uri == qname.namespace), None
        )
    return f"{prefix}:{qname.localname}" if prefix else qname.localname


def doctype_text(
    name: str, public_id: Optional[str] = None, system_id: Optional[str] = None
) -> str:
    """Render a document type declaration without the ``<!DOCTYPE`` markup."""
    text = name or ""
    if public_id:
        text += f' PUBLIC "{public_id}"'
    if system_id:
        text += f' "{system_id}"' if public_id else f' SYSTEM "{system_id}"'
    return text


@dataclass
class DocumentSource:
    """Top-level nodes of one parsed document plus where it came from."""

    nodes: List[SourceNode]
    name: str
    base_dir: Path
    path: Optional[Path] = None


def describe_source(source: SourceType) -> str:
    """Short human readable name of a source for messages."""
    if isinstance(source, Path):
        return str(source)
    if isinstance(source, str):
        return "<string>" if is_xml_text(source) else source
    if isinstance(source, (bytes, bytearray)):
        return "<bytes>"
    return getattr(source, "name", None) or f"<{type(source).__name__}>"


def is_xml_text(source: str) -> bool:
    """Strings starting with markup are XML text, anything else is a path."""
    return source.lstrip().startswith("<")


def resolve_source_path(
    reference: str,
    base_dir: Optional[Path] = None,
    search_paths: Sequence[str] = ()
) -> Path:
    """Locate a referenced document.

    Absolute paths are used as-is; relative ones are looked up in
    ``base_dir`` and then in each of ``search_paths``.

    Raises:
        SourceUnreadableError: if no candidate exists
    """
    path = Path(reference).expanduser()
    if path.is_absolute():
        candidates = [path]
    else:
        roots = [base_dir or Path.cwd()] + [Path(p) for p in search_paths]
        candidates = [root / path for root in roots]
    for candidate in candidates:
        if candidate.is_file():
            return candidate.resolve()
    raise SourceUnreadableError(
        f"Referenced document not found: {reference}", source=reference
    )


@contextmanager
def open_source(
    source: SourceType,
    config: Optional[ReaderConfig] = None,
    base_dir: Optional[Path] = None
) -> Iterator[DocumentSource]:
    """Parse ``source`` and yield its top-level nodes.

    Accepts a path (``Path`` or non-markup ``str``), XML text, bytes, a binary
    file object, a minidom node or an lxml tree/element. Parsed minidom
    documents are unlinked when the context exits, on every exit path.

    Raises:
        SourceUnreadableError: if the source cannot be read or parsed; in
            debug mode the parser's own exception propagates instead
    """
    config = config or ReaderConfig()
    name = describe_source(source)
    logger = get_logger(__name__, component="sources").bind(source=name)

    try:
        document, cleanup = _load(source, config, name, base_dir)
    except SourceUnreadableError:
        raise
    except _READ_ERRORS as e:
        if config.debug_mode:
            raise
        raise SourceUnreadableError(
            f"Failed to read XML source {name}: {e}", source=name
        ) from e

    logger.debug("Opened XML source", extra={"backend": config.backend})
    try:
        yield document
    finally:
        cleanup()


def _noop() -> None:
    return None


def _load(
    source: SourceType,
    config: ReaderConfig,
    name: str,
    base_dir: Optional[Path]
) -> Tuple[DocumentSource, Callable[[], None]]:
    if isinstance(source, (etree._ElementTree, etree._Element)):
        return _from_lxml(source, name, base_dir or Path.cwd()), _noop
    if hasattr(source, "nodeType"):
        nodes = (
            list(source.childNodes)
            if source.nodeType == SourceNode.DOCUMENT_NODE else [source]
        )
        document = DocumentSource(
            [DomSourceNode(node) for node in nodes], name, base_dir or Path.cwd()
        )
        return document, _noop

    if isinstance(source, str) and not is_xml_text(source):
        source = Path(source)

    if isinstance(source, Path):
        path = source.expanduser()
        with path.open("rb") as stream:
            return _parse_stream(stream, config, name, path.parent, path)
    if isinstance(source, str):
        source = source.encode("utf-8")
    if isinstance(source, (bytes, bytearray)):
        return _parse_stream(io.BytesIO(source), config, name, base_dir or Path.cwd())
    if hasattr(source, "read"):
        return _parse_stream(source, config, name, base_dir or Path.cwd())

    raise SourceUnreadableError(
        f"Input has to be a path, XML text, bytes, a file object or a parsed "
        f"document, got {type(source).__name__}",
        source=name,
    )


def _parse_stream(
    stream: Any,
    config: ReaderConfig,
    name: str,
    base_dir: Path,
    path: Optional[Path] = None
) -> Tuple[DocumentSource, Callable[[], None]]:
    if config.backend == "lxml":
        parser = etree.XMLParser(
            remove_blank_text=False,
            resolve_entities=False,
            strip_cdata=False,
            no_network=True,
        )
        base_url = str(path) if path is not None else None
        tree = etree.parse(stream, parser, base_url=base_url)
        if config.process_xinclude:
            tree.xinclude()
        document = _from_lxml(tree, name, base_dir)
        document.path = path
        return document, _noop

    dom = minidom.parse(stream)
    document = DocumentSource(
        [DomSourceNode(node) for node in dom.childNodes], name, base_dir, path
    )
    return document, dom.unlink


def _from_lxml(source: Any, name: str, base_dir: Path) -> DocumentSource:
    if isinstance(source, etree._ElementTree):
        root = source.getroot()
        nodes: List[SourceNode] = []
        doctype = source.docinfo.doctype
        if doctype:
            nodes.append(_lxml_doctype_node(source.docinfo))
        nodes.extend(
            wrap_lxml_node(item)
            for item in reversed(list(root.itersiblings(preceding=True)))
        )
        nodes.append(wrap_lxml_node(root))
        nodes.extend(wrap_lxml_node(item) for item in root.itersiblings())
        return DocumentSource(nodes, name, base_dir)
    return DocumentSource([wrap_lxml_node(source)], name, base_dir)


def _lxml_doctype_node(docinfo: Any) -> SourceNode:
    text = doctype_text(docinfo.root_name, docinfo.public_id, docinfo.system_url)
    return LeafSourceNode(SourceNode.DOCUMENT_TYPE_NODE, docinfo.root_name or "", text)
