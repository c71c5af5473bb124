#!/usr/bin/env python3
"""
Quick Start Guide for xml-value-tree.

Walks through converting a document, composing a configuration from a base
file plus local overrides, and exporting a record array as a table.
"""

import sys
import tempfile
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from xml_value_tree import ReaderConfig, XMLTreeReader, dumps, read
from xml_value_tree.api.adapters import to_dataframe

BASE_XML = """<settings>
  <param><name>timeout</name><value>30</value></param>
  <param><name>retries</name><value>3</value></param>
  <paths>/usr/lib /opt/lib</paths>
</settings>
"""

SITE_XML = """<settings xmlns:xi="http://www.w3.org/2001/XInclude">
  <xi:include href="base.xml"/>
  <local>
    <param><name>timeout</name><value>60</value></param>
    <param><name>verbose</name><value>1</value></param>
  </local>
</settings>
"""


def quick_start_example():
    """Quick start example showing basic usage."""

    print("QUICK START - xml-value-tree")
    print("=" * 45)

    # Step 1: Convert a document
    print("\nStep 1: Converting a document")
    print("-" * 30)

    result = read('<book id="123"><title>My Book</title><price>19.99</price></book>')
    print(dumps(result.tree))
    print(f"Root element: {result.root_name}")

    # Step 2: Repeated elements and numeric text
    print("\nStep 2: Repeated elements")
    print("-" * 30)

    result = read("<grid><row>1 2 3</row><row>4 5 6</row><label>demo</label></grid>")
    print(dumps(result.tree, pretty=False))

    # Step 3: Include and override
    print("\nStep 3: Include and override")
    print("-" * 30)

    with tempfile.TemporaryDirectory() as directory:
        folder = Path(directory)
        (folder / "base.xml").write_text(BASE_XML, encoding="utf-8")
        (folder / "site.xml").write_text(SITE_XML, encoding="utf-8")

        reader = XMLTreeReader(ReaderConfig(identity_field="name"))
        composed = reader.read_file(folder / "site.xml")

    print(dumps(composed.tree))
    print(f"Included: {len(composed.included_sources)} document(s)")

    # Step 4: Tabular export
    print("\nStep 4: DataFrame export")
    print("-" * 30)

    frame = to_dataframe(composed, path="param")
    print(frame.to_string(index=False))

    print("\nQuick start complete.")


if __name__ == "__main__":
    quick_start_example()
