"""Value tree construction engine.

This module converts parsed XML node trees into nested dict/list/scalar value
trees and merges value trees for include/override composition.

Key Components:
    TreeBuilder: Recursive node-to-value conversion
    classify_node: Node name normalization and categorization
    coerce_scalar: Number and numeric array detection in text
    reconcile_map: Shape normalization of built maps
    merge_trees: Identity-keyed deep merge
"""

from .builder import BuiltNode, TreeBuilder
from .classifier import NodeCategory, classify_node
from .coercion import coerce_scalar
from .merge import merge_trees
from .names import normalize_name
from .nodes import SourceNode, TextNode
from .reconcile import reconcile_map, unify_record_fields
from .values import Value, ValueKind, is_empty, kind_of

__all__ = [
    "BuiltNode",
    "TreeBuilder",
    "NodeCategory",
    "classify_node",
    "coerce_scalar",
    "merge_trees",
    "normalize_name",
    "SourceNode",
    "TextNode",
    "reconcile_map",
    "unify_record_fields",
    "Value",
    "ValueKind",
    "is_empty",
    "kind_of",
]
