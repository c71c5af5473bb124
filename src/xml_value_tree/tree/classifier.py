"""Classification of source nodes into value tree categories."""

from enum import Enum, auto
from typing import Tuple

from xml_value_tree.tree.names import normalize_name
from xml_value_tree.tree.nodes import SourceNode
from xml_value_tree.tree.values import (
    CDATA_SECTION,
    COMMENT,
    CONTENT,
    DOCUMENT_TYPE,
    PROCESSING_INSTRUCTION,
)


class NodeCategory(Enum):
    """How a source node contributes to the value tree."""

    ELEMENT = auto()
    TEXT = auto()
    COMMENT = auto()
    CDATA_SECTION = auto()
    DOCUMENT_TYPE = auto()
    PROCESSING_INSTRUCTION = auto()
    UNSUPPORTED = auto()

    @property
    def is_leaf(self) -> bool:
        """Leaves carry a text payload and never have structural children."""
        return self is not NodeCategory.ELEMENT

    @property
    def is_special(self) -> bool:
        """Special leaves are only read when special nodes are enabled."""
        return self in _SPECIAL_CATEGORIES


_SPECIAL_CATEGORIES = frozenset({
    NodeCategory.COMMENT,
    NodeCategory.CDATA_SECTION,
    NodeCategory.DOCUMENT_TYPE,
    NodeCategory.PROCESSING_INSTRUCTION,
})

_LEAF_TYPES = {
    SourceNode.TEXT_NODE: (CONTENT, NodeCategory.TEXT),
    SourceNode.COMMENT_NODE: (COMMENT, NodeCategory.COMMENT),
    SourceNode.CDATA_SECTION_NODE: (CDATA_SECTION, NodeCategory.CDATA_SECTION),
    SourceNode.DOCUMENT_TYPE_NODE: (DOCUMENT_TYPE, NodeCategory.DOCUMENT_TYPE),
    SourceNode.PROCESSING_INSTRUCTION_NODE: (
        PROCESSING_INSTRUCTION,
        NodeCategory.PROCESSING_INSTRUCTION,
    ),
}

NODE_TYPE_NAMES = {
    SourceNode.ELEMENT_NODE: "ELEMENT",
    SourceNode.ATTRIBUTE_NODE: "ATTRIBUTE",
    SourceNode.TEXT_NODE: "TEXT",
    SourceNode.CDATA_SECTION_NODE: "CDATA_SECTION",
    SourceNode.ENTITY_REFERENCE_NODE: "ENTITY_REFERENCE",
    SourceNode.ENTITY_NODE: "ENTITY",
    SourceNode.PROCESSING_INSTRUCTION_NODE: "PROCESSING_INSTRUCTION",
    SourceNode.COMMENT_NODE: "COMMENT",
    SourceNode.DOCUMENT_NODE: "DOCUMENT",
    SourceNode.DOCUMENT_TYPE_NODE: "DOCUMENT_TYPE",
    SourceNode.DOCUMENT_FRAGMENT_NODE: "DOCUMENT_FRAGMENT",
    SourceNode.NOTATION_NODE: "NOTATION",
}


def classify_node(node: SourceNode) -> Tuple[str, NodeCategory]:
    """Return the normalized name and category of ``node``.

    Elements are named after their normalized tag, leaves after the reserved
    key they are stored under. Any other node type is ``UNSUPPORTED``.
    """
    node_type = node.node_type
    if node_type == SourceNode.ELEMENT_NODE:
        return normalize_name(node.name), NodeCategory.ELEMENT
    if node_type in _LEAF_TYPES:
        return _LEAF_TYPES[node_type]
    return normalize_name(node.name or "node"), NodeCategory.UNSUPPORTED


def node_type_name(node_type: int) -> str:
    """Human readable name of a DOM node type (``ENTITY_REFERENCE_NODE``)."""
    return f"{NODE_TYPE_NAMES.get(node_type, 'UNKNOWN')}_NODE"
