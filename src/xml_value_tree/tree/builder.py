"""Recursive conversion of source nodes into value tree nodes.

The builder walks a parsed document top-down and shapes every element
bottom-up: children are grouped by normalized name, the grouped map is
reconciled (see :mod:`xml_value_tree.tree.reconcile`), attributes are
attached and record arrays are made field-uniform.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from xml_value_tree.shared import (
    ConversionMetrics,
    DiagnosticCode,
    DiagnosticEntry,
    DiagnosticSeverity,
    ReaderConfig,
    get_logger,
)
from xml_value_tree.tree.classifier import NodeCategory, classify_node, node_type_name
from xml_value_tree.tree.coercion import coerce_scalar
from xml_value_tree.tree.names import normalize_name
from xml_value_tree.tree.nodes import SourceNode
from xml_value_tree.tree.reconcile import reconcile_map, unify_record_fields
from xml_value_tree.tree.values import (
    ATTRIBUTE,
    CONTENT,
    Value,
    ValueKind,
    is_empty,
    is_record_sequence,
    kind_of,
)

# Parsers emit many whitespace-only text nodes, so the text count is capped
_MAX_CONTENT_COUNT = 2


@dataclass
class BuiltNode:
    """Result of converting one source node."""

    value: Value
    name: str
    category: NodeCategory

    @property
    def is_absent(self) -> bool:
        """Empty leaves contribute nothing to their parent."""
        return self.category.is_leaf and is_empty(self.value)


class TreeBuilder:
    """Converts source nodes into value trees according to a ReaderConfig.

    A builder collects diagnostics and metrics across the calls made on it;
    use one builder per document.
    """

    def __init__(
        self,
        config: Optional[ReaderConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the tree builder.

        Args:
            config: Conversion options (defaults to ``ReaderConfig()``)
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or ReaderConfig()
        self.correlation_id = correlation_id
        self.diagnostics: List[DiagnosticEntry] = []
        self.metrics = ConversionMetrics()
        self._logger = get_logger(__name__, correlation_id, "tree_builder")

    def build(self, node: SourceNode, depth: int = 0) -> BuiltNode:
        """Convert ``node`` and its descendants.

        Args:
            node: Node to convert
            depth: Depth of ``node`` below the document root element

        Returns:
            BuiltNode with the value, normalized name and category
        """
        self.metrics.nodes_visited += 1
        name, category = classify_node(node)

        if category is NodeCategory.UNSUPPORTED:
            self._report_unsupported(node, name)
            return BuiltNode(None, name, category)

        if category.is_leaf:
            if category.is_special and not self.config.read_special_nodes:
                return BuiltNode(None, name, category)
            return BuiltNode(self._leaf_value(node, category), name, category)

        max_depth = self.config.max_depth
        if max_depth is not None and depth > max_depth:
            return BuiltNode(None, name, category)

        self.metrics.elements_converted += 1
        value = self._build_children(node, depth)

        if node.has_attributes and self.config.read_attributes:
            value = self._attach_attributes(node, name, value)

        value = unify_record_fields(value, self.config.force_uniform_arrays)
        return BuiltNode(value, name, category)

    def _leaf_value(self, node: SourceNode, category: NodeCategory) -> Value:
        text = node.data.strip()
        if category is NodeCategory.TEXT:
            return coerce_scalar(text) if self.config.coerce_scalars else text
        if category is NodeCategory.PROCESSING_INSTRUCTION:
            return " ".join(part for part in (node.target.strip(), text) if part)
        return text

    def _counts_by_name(self, children: List[SourceNode]) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for child in children:
            child_name, child_category = classify_node(child)
            if child_category is NodeCategory.UNSUPPORTED:
                continue
            if child_category.is_special and not self.config.read_special_nodes:
                continue
            counts[child_name] = counts.get(child_name, 0) + 1
        if counts.get(CONTENT, 0) > _MAX_CONTENT_COUNT:
            counts[CONTENT] = _MAX_CONTENT_COUNT
        return counts

    def _build_children(self, node: SourceNode, depth: int) -> Value:
        children = node.children
        expected = self._counts_by_name(children)
        max_depth = self.config.max_depth

        value: Value = None
        fields: Dict[str, Value] = {}
        stored: Dict[str, int] = {}
        sequences: Set[str] = set()

        for child in children:
            built = self.build(child, depth + 1)
            if built.is_absent:
                continue
            if len(children) == 1 and built.category is NodeCategory.TEXT:
                value = built.value
                continue
            if max_depth is not None and depth >= max_depth:
                continue

            field_name = built.name
            if field_name not in fields:
                if expected.get(field_name, 1) > 1:
                    fields[field_name] = [built.value]
                    sequences.add(field_name)
                else:
                    fields[field_name] = built.value
                stored[field_name] = 1
                continue

            if field_name not in sequences:
                fields[field_name] = [fields[field_name]]
                sequences.add(field_name)
            fields[field_name].append(built.value)  # type: ignore[union-attr]
            stored[field_name] += 1

        if not fields:
            return value
        return reconcile_map(fields, stored, self.config.item_tag_name)

    def _attach_attributes(self, node: SourceNode, name: str, value: Value) -> Value:
        attributes: Dict[str, Value] = {}
        for attr_name, attr_value in node.attributes:
            key = normalize_name(attr_name)
            attributes[key] = (
                coerce_scalar(attr_value) if self.config.coerce_scalars else attr_value
            )
        self.metrics.attributes_read += len(attributes)

        kind = kind_of(value)
        if kind is ValueKind.MAP:
            value[ATTRIBUTE] = attributes  # type: ignore[index]
            return value
        if is_record_sequence(value):
            message = f"Attributes of record array element '{name}' dropped"
            self._logger.warning(message, extra={"element": name})
            self._add_diagnostic(
                DiagnosticSeverity.WARNING,
                message,
                DiagnosticCode.ATTRIBUTES_DROPPED,
                {"element": name, "attributes": sorted(attributes)},
            )
            return value
        return {CONTENT: value, ATTRIBUTE: attributes}

    def _report_unsupported(self, node: SourceNode, name: str) -> None:
        type_name = node_type_name(node.node_type)
        message = f"Unknown node type encountered: {type_name} ({node.name})"
        self._logger.warning(message, extra={"node_type": type_name, "node_name": name})
        self._add_diagnostic(
            DiagnosticSeverity.WARNING,
            message,
            DiagnosticCode.UNSUPPORTED_NODE_TYPE,
            {"node_type": type_name, "node_name": node.name},
        )

    def _add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        code: str,
        details: Optional[Dict[str, object]] = None
    ) -> None:
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component="tree_builder",
                code=code,
                details=dict(details or {}),
                correlation_id=self.correlation_id,
            )
        )
