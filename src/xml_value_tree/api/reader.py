"""Document reader API with progressive disclosure.

Module-level :func:`read`, :func:`read_string` and :func:`read_file` cover
one-off conversions; :class:`XMLTreeReader` keeps a configuration (and
usage statistics) across many reads. Both turn a whole XML document into a
:class:`ReadResult`, expanding include/override composition on the way.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from xml_value_tree.api.serialization import dumps
from xml_value_tree.api.sources import (
    DocumentSource,
    SourceType,
    describe_source,
    is_xml_text,
    open_source,
    resolve_source_path,
)
from xml_value_tree.shared import (
    ConversionError,
    ConversionMetrics,
    DiagnosticCode,
    DiagnosticEntry,
    DiagnosticSeverity,
    ReaderConfig,
    SourceUnreadableError,
    XMLValueTreeError,
    get_logger,
)
from xml_value_tree.tree import NodeCategory, SourceNode, TreeBuilder, classify_node
from xml_value_tree.tree.merge import merge_trees
from xml_value_tree.tree.values import (
    ATTRIBUTE,
    COMMENT,
    CONTENT,
    DOCUMENT_TYPE,
    PROCESSING_INSTRUCTION,
    Value,
    ValueKind,
    kind_of,
)

MS_PER_SECOND = 1000  # Milliseconds per second conversion


@dataclass
class ReadResult:
    """Value tree of one document plus what was learned while reading it.

    Attributes:
        tree: Converted value tree (the root element's value, or the wrapped
            document when ``root_only`` is off)
        root_name: Normalized name of the root element
        processing_instruction: Value of the first top-level processing
            instruction, if any
        comment: Value of the first top-level comment, if any
        document_type: Document type declaration text, if any
        source: Human readable name of the source
        diagnostics: Non-fatal events (unsupported nodes, dropped attributes,
            resolved includes)
        metrics: Counters and timing of the read
        included_sources: Paths of documents pulled in through includes
    """

    tree: Value
    root_name: str
    processing_instruction: Value = None
    comment: Value = None
    document_type: Value = None
    source: Optional[str] = None
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    metrics: ConversionMetrics = field(default_factory=ConversionMetrics)
    included_sources: List[str] = field(default_factory=list)

    @property
    def root_info(self) -> Tuple[str, Value, Value]:
        """Root name, processing instruction and comment of the document."""
        return self.root_name, self.processing_instruction, self.comment

    @property
    def warnings(self) -> List[DiagnosticEntry]:
        """Diagnostics of WARNING severity or above."""
        return [
            d for d in self.diagnostics
            if d.severity in (DiagnosticSeverity.WARNING, DiagnosticSeverity.ERROR)
        ]

    def to_json(self, pretty: bool = True) -> str:
        """Serialize the value tree as JSON text."""
        return dumps(self.tree, pretty=pretty)

    def summary(self) -> Dict[str, Any]:
        """Short description of the read, suitable for logging or reports."""
        return {
            "source": self.source,
            "root_name": self.root_name,
            "root_kind": kind_of(self.tree).name,
            "diagnostics": len(self.diagnostics),
            "included_sources": list(self.included_sources),
            "nodes_visited": self.metrics.nodes_visited,
            "processing_time_ms": self.metrics.processing_time_ms,
        }


@dataclass
class _TopLevelNodes:
    root: Optional[SourceNode] = None
    processing_instruction: Optional[SourceNode] = None
    comment: Optional[SourceNode] = None
    document_type: Optional[SourceNode] = None


@dataclass
class _ReadState:
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    metrics: ConversionMetrics = field(default_factory=ConversionMetrics)
    included_sources: List[str] = field(default_factory=list)


def _scan_top_level(nodes: List[SourceNode]) -> _TopLevelNodes:
    found = _TopLevelNodes()
    for node in nodes:
        _, category = classify_node(node)
        if category is NodeCategory.ELEMENT and found.root is None:
            found.root = node
        elif category is NodeCategory.PROCESSING_INSTRUCTION and found.processing_instruction is None:
            found.processing_instruction = node
        elif category is NodeCategory.COMMENT and found.comment is None:
            found.comment = node
        elif category is NodeCategory.DOCUMENT_TYPE and found.document_type is None:
            found.document_type = node
    return found


class XMLTreeReader:
    """Configured reader converting XML documents into value trees.

    Attributes:
        config: Conversion options
        correlation_id: Correlation ID attached to logs and diagnostics

    Examples:
        Basic usage with default configuration:
        >>> reader = XMLTreeReader()
        >>> reader.read('<a><b>1</b><b>2</b></a>').tree
        {'b': [1, 2]}

        Keeping the document-level nodes:
        >>> reader = XMLTreeReader(ReaderConfig(root_only=False))
        >>> reader.read('<!-- hi --><a>x</a>').tree
        {'COMMENT': 'hi', 'a': 'x'}
    """

    def __init__(
        self,
        config: Optional[ReaderConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the reader.

        Args:
            config: Conversion options (defaults to ``ReaderConfig()``)
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or ReaderConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "tree_reader")

        self._read_count = 0
        self._failed_reads = 0
        self._total_processing_time = 0.0

    def read(self, source: SourceType, base_dir: Optional[Path] = None) -> ReadResult:
        """Convert a whole XML document.

        Args:
            source: Path, XML text, bytes, binary file object or parsed document
            base_dir: Directory relative include references are resolved
                against when ``source`` is not a path (defaults to the cwd)

        Returns:
            ReadResult with the value tree, document-level nodes, diagnostics
            and metrics

        Raises:
            SourceUnreadableError: if the source or an included document
                cannot be read
            ConversionError: if conversion or include expansion fails
            MergeFieldMissingError: if an override record lacks the
                identity field
        """
        start_time = time.time()
        name = describe_source(source)
        logger = self.logger.bind(source=name)
        logger.info(
            "Starting XML read",
            extra={"input_type": type(source).__name__, "backend": self.config.backend}
        )

        state = _ReadState()
        try:
            result = self._read_document(source, base_dir, (), state)
        except XMLValueTreeError:
            self._read_count += 1
            self._failed_reads += 1
            raise

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        result.metrics.processing_time_ms = processing_time
        result = self._finish(result)

        self._read_count += 1
        self._total_processing_time += processing_time
        logger.info(
            "XML read completed",
            extra={
                "root_name": result.root_name,
                "processing_time_ms": processing_time,
                "diagnostic_count": len(result.diagnostics),
                "includes_resolved": result.metrics.includes_resolved,
            }
        )
        return result

    def read_string(self, xml_text: str) -> ReadResult:
        """Convert XML text.

        Raises:
            SourceUnreadableError: if ``xml_text`` does not start with markup
        """
        if not is_xml_text(xml_text):
            raise SourceUnreadableError(
                "XML text has to start with markup", source="<string>"
            )
        return self.read(xml_text)

    def read_file(self, file_path: Union[str, Path]) -> ReadResult:
        """Convert the XML document stored at ``file_path``."""
        return self.read(Path(file_path))

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get reader usage statistics.

        Returns:
            Dictionary with read counts and timings
        """
        successful = self._read_count - self._failed_reads
        return {
            "total_reads": self._read_count,
            "successful_reads": successful,
            "failed_reads": self._failed_reads,
            "average_processing_time_ms": (
                self._total_processing_time / successful if successful > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def _read_document(
        self,
        source: SourceType,
        base_dir: Optional[Path],
        chain: Tuple[Path, ...],
        state: _ReadState
    ) -> ReadResult:
        """Convert one document root-only and expand its includes."""
        builder = TreeBuilder(self.config, self.correlation_id)

        with open_source(source, self.config, base_dir) as document:
            top_level = _scan_top_level(document.nodes)
            if top_level.root is None:
                raise ConversionError(
                    f"No root element found in XML document {document.name}",
                    source=document.name,
                )
            if document.path is not None:
                chain = chain + (document.path.resolve(),)
            result = self._build_document(builder, document, top_level)

        state.diagnostics.extend(builder.diagnostics)
        state.metrics.absorb(builder.metrics)

        result.tree = self._expand_includes(result.tree, document, chain, state)
        result.diagnostics = state.diagnostics
        result.metrics = state.metrics
        result.included_sources = state.included_sources
        return result

    def _build_document(
        self,
        builder: TreeBuilder,
        document: DocumentSource,
        top_level: _TopLevelNodes
    ) -> ReadResult:
        try:
            root = builder.build(top_level.root)  # type: ignore[arg-type]
            specials = [
                builder.build(node).value if node is not None else None
                for node in (
                    top_level.processing_instruction,
                    top_level.comment,
                    top_level.document_type,
                )
            ]
        except XMLValueTreeError:
            raise
        except Exception as e:
            if self.config.debug_mode:
                raise
            self.logger.exception(
                "XML conversion failed", extra={"source": document.name}
            )
            raise ConversionError(
                f"Unable to parse XML document {document.name}",
                source=document.name,
            ) from e

        return ReadResult(
            tree=root.value,
            root_name=root.name,
            processing_instruction=specials[0],
            comment=specials[1],
            document_type=specials[2],
            source=document.name,
        )

    def _expand_includes(
        self,
        tree: Value,
        document: DocumentSource,
        chain: Tuple[Path, ...],
        state: _ReadState
    ) -> Value:
        """Replace an include/override root by the merged tree it describes."""
        include_field = self.config.include_field
        local_field = self.config.local_field
        if kind_of(tree) is not ValueKind.MAP:
            return tree
        has_include = include_field in tree  # type: ignore[operator]
        # Without a marker only XInclude-substituted trees compose
        if not has_include and not (self.config.process_xinclude and local_field in tree):  # type: ignore[operator]
            return tree
        if not self.config.read_attributes:
            raise ConversionError(
                "Include/override composition requires read_attributes",
                source=document.name,
            )

        if has_include:
            base = self._read_include(tree[include_field], document, chain, state)  # type: ignore[index]
        else:
            base_field = next(
                (key for key in tree if key not in (local_field, ATTRIBUTE)),  # type: ignore[union-attr]
                None,
            )
            base = (
                self._expand_includes(tree[base_field], document, chain, state)  # type: ignore[index]
                if base_field is not None else None
            )

        if local_field not in tree:  # type: ignore[operator]
            return base
        return merge_trees(base, tree[local_field], self.config.identity_field)  # type: ignore[index]

    def _read_include(
        self,
        include: Value,
        document: DocumentSource,
        chain: Tuple[Path, ...],
        state: _ReadState
    ) -> Value:
        href = _include_href(include)
        if href is None:
            raise ConversionError(
                f"Include element without href in XML document {document.name}",
                source=document.name,
            )
        if len(chain) > self.config.max_include_depth:
            raise ConversionError(
                f"Include depth exceeds {self.config.max_include_depth} "
                f"in XML document {document.name}",
                source=document.name,
            )

        path = resolve_source_path(href, document.base_dir, self.config.search_paths)
        if path in chain:
            raise ConversionError(
                f"Include cycle detected: {path} includes itself",
                source=document.name,
            )

        self.logger.debug(
            "Resolving include",
            extra={"href": href, "resolved_path": str(path), "include_depth": len(chain)}
        )
        included = self._read_document(path, None, chain, state)

        state.metrics.includes_resolved += 1
        state.included_sources.append(str(path))
        state.diagnostics.append(
            DiagnosticEntry(
                severity=DiagnosticSeverity.INFO,
                message=f"Included {path}",
                component="tree_reader",
                code=DiagnosticCode.INCLUDE_RESOLVED,
                details={"href": href, "path": str(path)},
                correlation_id=self.correlation_id,
            )
        )
        return included.tree

    def _finish(self, result: ReadResult) -> ReadResult:
        """Apply root attribute stripping and document wrapping."""
        tree = result.tree
        if self.config.strip_root_attributes and kind_of(tree) is ValueKind.MAP:
            tree = dict(tree)  # type: ignore[arg-type]
            tree.pop(ATTRIBUTE, None)
            if list(tree) == [CONTENT]:
                tree = tree[CONTENT]
            elif not tree:
                tree = None

        if not self.config.root_only:
            wrapped: Dict[str, Value] = {}
            if self.config.read_special_nodes:
                for key, value in (
                    (PROCESSING_INSTRUCTION, result.processing_instruction),
                    (COMMENT, result.comment),
                    (DOCUMENT_TYPE, result.document_type),
                ):
                    if value is not None:
                        wrapped[key] = value
            wrapped[result.root_name] = tree
            tree = wrapped

        result.tree = tree
        return result


def _include_href(include: Value) -> Optional[str]:
    if kind_of(include) is not ValueKind.MAP:
        return None
    attributes = include.get(ATTRIBUTE)  # type: ignore[union-attr]
    if kind_of(attributes) is not ValueKind.MAP or "href" not in attributes:  # type: ignore[operator]
        return None
    return str(attributes["href"])  # type: ignore[index]


def _effective_config(config: Optional[ReaderConfig], options: Dict[str, Any]) -> ReaderConfig:
    config = config or ReaderConfig()
    return config.override(**options) if options else config


def read(
    source: SourceType,
    config: Optional[ReaderConfig] = None,
    correlation_id: Optional[str] = None,
    **options: Any
) -> ReadResult:
    """Convert an XML document from any supported source.

    Keyword options override fields of ``config`` (snake_case or the
    camelCase aliases).

    Examples:
        >>> read('<a><b>1</b><b>2</b></a>').tree
        {'b': [1, 2]}
        >>> read('<a x="1">t</a>', readAttributes=False).tree
        't'
    """
    return XMLTreeReader(_effective_config(config, options), correlation_id).read(source)


def read_string(
    xml_text: str,
    config: Optional[ReaderConfig] = None,
    correlation_id: Optional[str] = None,
    **options: Any
) -> ReadResult:
    """Convert XML text."""
    reader = XMLTreeReader(_effective_config(config, options), correlation_id)
    return reader.read_string(xml_text)


def read_file(
    file_path: Union[str, Path],
    config: Optional[ReaderConfig] = None,
    correlation_id: Optional[str] = None,
    **options: Any
) -> ReadResult:
    """Convert an XML file; relative includes resolve against its directory."""
    reader = XMLTreeReader(_effective_config(config, options), correlation_id)
    return reader.read_file(file_path)
