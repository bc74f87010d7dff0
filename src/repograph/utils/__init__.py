"""Shared utilities: ignore patterns and ignore-aware source discovery."""

from repograph.utils.ignore import (
    build_spec,
    is_ignored,
    iter_source_files,
    load_patterns,
    load_spec,
    parse_ignore_file,
)

__all__ = [
    "build_spec",
    "is_ignored",
    "iter_source_files",
    "load_patterns",
    "load_spec",
    "parse_ignore_file",
]
