"""Command-line interface module for xml-value-tree.

This module provides the convert, merge and table commands.
"""

from .main import main

__all__ = ["main"]
