"""Main CLI entry point for the xml-value-tree command-line tool.

Converts XML documents into JSON value trees, merges JSON trees the way
include/override composition does, and exports record arrays as CSV.
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from xml_value_tree import __version__
from xml_value_tree.api.adapters import to_dataframe
from xml_value_tree.api.reader import XMLTreeReader
from xml_value_tree.api.serialization import dumps, read_json, write_json
from xml_value_tree.shared import (
    ConfigError,
    ReaderConfig,
    XMLValueTreeError,
    configure_logging,
    get_logger,
)
from xml_value_tree.shared.config import SUPPORTED_BACKENDS
from xml_value_tree.tree.merge import merge_trees

XML_SUFFIXES = {".xml", ".xhtml", ".svg"}

PRESETS = {
    "default": ReaderConfig,
    "structure_only": ReaderConfig.structure_only,
    "strings_only": ReaderConfig.strings_only,
}

logger = get_logger(__name__, component="cli")


def find_xml_files(path: Path, recursive: bool = False) -> Iterator[Path]:
    """Yield ``path`` itself, or the XML files inside a directory."""
    if path.is_dir():
        pattern = "**/*" if recursive else "*"
        for candidate in sorted(path.glob(pattern)):
            if candidate.is_file() and candidate.suffix.lower() in XML_SUFFIXES:
                yield candidate
    else:
        yield path


def _add_reader_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="JSON file with reader options"
    )
    parser.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        default="default",
        help="Reader configuration preset (default: default)"
    )
    parser.add_argument("--item-tag-name", dest="item_tag_name", help="Item wrapper tag name")
    parser.add_argument(
        "--no-attributes", dest="read_attributes", action="store_const", const=False,
        help="Ignore attributes"
    )
    parser.add_argument(
        "--no-special-nodes", dest="read_special_nodes", action="store_const", const=False,
        help="Ignore comments, CDATA, processing instructions and document types"
    )
    parser.add_argument(
        "--no-coerce", dest="coerce_scalars", action="store_const", const=False,
        help="Keep all text as strings"
    )
    parser.add_argument(
        "--no-uniform-arrays", dest="force_uniform_arrays", action="store_const", const=False,
        help="Do not pad record arrays to a common set of fields"
    )
    parser.add_argument("--max-depth", dest="max_depth", type=int, help="Maximum element depth")
    parser.add_argument(
        "--keep-document", dest="root_only", action="store_const", const=False,
        help="Wrap the root with the document-level nodes"
    )
    parser.add_argument(
        "--strip-root-attributes", dest="strip_root_attributes",
        action="store_const", const=True,
        help="Drop the attributes of the root element"
    )
    parser.add_argument("--identity-field", dest="identity_field", help="Record identity field")
    parser.add_argument("--include-field", dest="include_field", help="Include marker field")
    parser.add_argument("--local-field", dest="local_field", help="Local override field")
    parser.add_argument(
        "--max-include-depth", dest="max_include_depth", type=int,
        help="Maximum include chain length"
    )
    parser.add_argument(
        "--search-path", dest="search_paths", action="append",
        help="Additional include lookup directory (repeatable)"
    )
    parser.add_argument("--backend", choices=SUPPORTED_BACKENDS, help="XML parser backend")
    parser.add_argument(
        "--xinclude", dest="process_xinclude", action="store_const", const=True,
        help="Let lxml substitute XInclude elements while parsing"
    )
    parser.add_argument(
        "--debug", dest="debug_mode", action="store_const", const=True,
        help="Propagate underlying errors unchanged"
    )


_READER_OPTIONS = (
    "item_tag_name", "read_attributes", "read_special_nodes", "coerce_scalars",
    "force_uniform_arrays", "max_depth", "root_only", "strip_root_attributes",
    "identity_field", "include_field", "local_field", "max_include_depth",
    "search_paths", "backend", "process_xinclude", "debug_mode",
)


def build_config(args: argparse.Namespace) -> ReaderConfig:
    """Combine preset, configuration file and command-line flags."""
    config = PRESETS[args.preset]()
    if args.config:
        config = config.override(**ReaderConfig.from_file(args.config).to_dict())
    overrides: Dict[str, Any] = {
        name: getattr(args, name) for name in _READER_OPTIONS
        if getattr(args, name, None) is not None
    }
    return config.override(**overrides) if overrides else config


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="xml-value-tree",
        description="Convert XML documents into nested JSON value trees"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Convert command
    convert_parser = subparsers.add_parser("convert", help="Convert XML files to JSON")
    convert_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="XML files or directories to convert"
    )
    convert_parser.add_argument(
        "--recursive", "-r",
        action="store_true",
        help="Recursively process directories"
    )
    output_group = convert_parser.add_mutually_exclusive_group()
    output_group.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    output_group.add_argument(
        "--output-dir", "-d",
        type=Path,
        help="Write one <name>.json per input into this directory"
    )
    convert_parser.add_argument(
        "--compact",
        action="store_true",
        help="Write JSON without indentation"
    )
    _add_reader_options(convert_parser)

    # Merge command
    merge_parser = subparsers.add_parser(
        "merge", help="Merge an override JSON tree on top of a base JSON tree"
    )
    merge_parser.add_argument("base", type=Path, help="Base JSON file")
    merge_parser.add_argument("override", type=Path, help="Override JSON file")
    merge_parser.add_argument(
        "--identity-field",
        default="name",
        help="Field identifying records of arrays (default: name)"
    )
    merge_parser.add_argument("--output", "-o", type=Path, help="Output file (default: stdout)")
    merge_parser.add_argument("--compact", action="store_true", help="Write JSON without indentation")

    # Table command
    table_parser = subparsers.add_parser("table", help="Export a record array as CSV")
    table_parser.add_argument("source", type=Path, help="XML or JSON file")
    table_parser.add_argument("--path", "-p", help="Dotted path of the record array")
    table_parser.add_argument("--output", "-o", type=Path, help="Output CSV file (default: stdout)")
    _add_reader_options(table_parser)

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def _emit(text: str, output: Optional[Path]) -> None:
    if output is None:
        print(text)
        return
    output.write_text(text + "\n", encoding="utf-8")
    print(f"Results written to {output}", file=sys.stderr)


def cmd_convert(args: argparse.Namespace) -> int:
    """Handle convert command."""
    reader = XMLTreeReader(build_config(args))
    inputs: List[Tuple[Path, Path]] = []
    for path in args.paths:
        inputs.extend((path, found) for found in find_xml_files(path, args.recursive))
    files = [file_path for _, file_path in inputs]
    if not files:
        print("No XML files found", file=sys.stderr)
        return 1

    trees: Dict[str, Any] = {}
    written: Dict[Path, Path] = {}
    failures = 0
    for root, file_path in inputs:
        try:
            result = reader.read_file(file_path)
        except XMLValueTreeError as e:
            failures += 1
            logger.debug("Conversion failed", extra={"file": str(file_path)})
            print(f"Error: {file_path}: {e}", file=sys.stderr)
            continue

        if args.output_dir:
            target = _output_path(args.output_dir, root, file_path)
            if target in written:
                failures += 1
                print(
                    f"Error: {file_path}: {target} already written from {written[target]}",
                    file=sys.stderr,
                )
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            write_json(target, result.tree, pretty=not args.compact)
            written[target] = file_path
        else:
            trees[str(file_path)] = result.tree

    if not args.output_dir and trees:
        payload = next(iter(trees.values())) if len(files) == 1 else trees
        _emit(dumps(payload, pretty=not args.compact), args.output)
    elif args.output_dir:
        print(
            f"{len(written)} file(s) written to {args.output_dir}",
            file=sys.stderr,
        )

    return 0 if failures == 0 else 1


def _output_path(output_dir: Path, root: Path, file_path: Path) -> Path:
    """Mirror the location of ``file_path`` below its input directory."""
    if root.is_dir():
        return output_dir / file_path.relative_to(root).with_suffix(".json")
    return output_dir / f"{file_path.stem}.json"


def cmd_merge(args: argparse.Namespace) -> int:
    """Handle merge command."""
    try:
        merged = merge_trees(
            read_json(args.base), read_json(args.override), args.identity_field
        )
    except XMLValueTreeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    _emit(dumps(merged, pretty=not args.compact), args.output)
    return 0


def cmd_table(args: argparse.Namespace) -> int:
    """Handle table command."""
    try:
        if args.source.suffix.lower() == ".json":
            tree = read_json(args.source)
        else:
            tree = XMLTreeReader(build_config(args)).read_file(args.source).tree
        frame = to_dataframe(tree, path=args.path)
    except (XMLValueTreeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.output:
        frame.to_csv(args.output, index=False)
        print(f"Results written to {args.output}", file=sys.stderr)
    else:
        print(frame.to_csv(index=False), end="")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    configure_logging(verbose=args.verbose, quiet=args.quiet)

    # Route to appropriate command handler
    try:
        if args.command == "convert":
            return cmd_convert(args)
        if args.command == "merge":
            return cmd_merge(args)
        if args.command == "table":
            return cmd_table(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
