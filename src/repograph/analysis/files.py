"""Input file records."""

from __future__ import annotations

from typing import Iterable, List, NamedTuple, Tuple, Union


class SourceFile(NamedTuple):
    """A (file path, source text) pair handed to the pipeline."""

    path: str
    content: str


FileInput = Union[SourceFile, Tuple[str, str]]


def as_source_files(files: Iterable[FileInput]) -> List[SourceFile]:
    """Accept SourceFile records or plain (path, text) pairs."""
    return [f if isinstance(f, SourceFile) else SourceFile._make(f) for f in files]
