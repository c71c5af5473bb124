"""Node interface consumed by the tree builder.

The builder never talks to a parser directly. Parsers are wrapped into
:class:`SourceNode` implementations (see :mod:`xml_value_tree.api.sources`)
exposing the W3C DOM node type, name, text payload, children and attributes.
"""

from abc import ABC, abstractmethod
from typing import List, Tuple
from xml.dom import Node


class SourceNode(ABC):
    """Read-only view of one node of an already parsed XML document."""

    ELEMENT_NODE = Node.ELEMENT_NODE
    ATTRIBUTE_NODE = Node.ATTRIBUTE_NODE
    TEXT_NODE = Node.TEXT_NODE
    CDATA_SECTION_NODE = Node.CDATA_SECTION_NODE
    ENTITY_REFERENCE_NODE = Node.ENTITY_REFERENCE_NODE
    ENTITY_NODE = Node.ENTITY_NODE
    PROCESSING_INSTRUCTION_NODE = Node.PROCESSING_INSTRUCTION_NODE
    COMMENT_NODE = Node.COMMENT_NODE
    DOCUMENT_NODE = Node.DOCUMENT_NODE
    DOCUMENT_TYPE_NODE = Node.DOCUMENT_TYPE_NODE
    DOCUMENT_FRAGMENT_NODE = Node.DOCUMENT_FRAGMENT_NODE
    NOTATION_NODE = Node.NOTATION_NODE

    @property
    @abstractmethod
    def node_type(self) -> int:
        """W3C DOM node type constant."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Qualified node name (``prefix:local`` for namespaced elements)."""

    @property
    def data(self) -> str:
        """Text payload of text, comment, CDATA, PI and doctype nodes."""
        return ""

    @property
    def target(self) -> str:
        """Target of a processing instruction."""
        return ""

    @property
    def children(self) -> List["SourceNode"]:
        """Child nodes in document order."""
        return []

    @property
    def attributes(self) -> List[Tuple[str, str]]:
        """Attribute ``(name, value)`` pairs in document order."""
        return []

    @property
    def has_attributes(self) -> bool:
        """Check if the node carries any attribute."""
        return len(self.attributes) > 0


class TextNode(SourceNode):
    """Free-standing text node, used by adapters that store text on elements."""

    def __init__(self, text: str) -> None:
        self._text = text

    @property
    def node_type(self) -> int:
        return self.TEXT_NODE

    @property
    def name(self) -> str:
        return "#text"

    @property
    def data(self) -> str:
        return self._text
