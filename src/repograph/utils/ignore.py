"""Ignore handling for source discovery: builtin patterns, .repographignore, .gitignore and config additions."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Iterator

from pathspec import PathSpec

REPOGRAPHIGNORE = ".repographignore"
GITIGNORE = ".gitignore"


def parse_ignore_file(path: Path) -> list[str]:
    """
    Read a gitignore-style file and return its pattern lines.

    Blank lines and ``#`` comments are dropped; ``\\#`` keeps a literal leading hash.
    """
    if not path.is_file():
        return []
    patterns: list[str] = []
    for line in path.read_text(encoding="utf-8-sig").splitlines():
        s = line.strip()
        if not s or s.startswith("#"):
            continue
        patterns.append(s)
    return patterns


def load_patterns(project_root: Path, config: dict) -> list[tuple[str, str]]:
    """
    Combined pattern list, each tagged with where it came from.

    Order is builtin, .repographignore ('file'), .gitignore (only when
    ignore.use_gitignore is on), then additional. Later patterns win, so a
    ``!pattern`` in .repographignore can re-include a builtin exclusion.
    """
    project_root = Path(project_root).resolve()
    ignore_cfg = config.get("ignore", {}) or {}

    sources = [
        ("builtin", ignore_cfg.get("builtin_patterns", []) or []),
        ("file", parse_ignore_file(project_root / REPOGRAPHIGNORE)),
        (
            "gitignore",
            parse_ignore_file(project_root / GITIGNORE) if ignore_cfg.get("use_gitignore", True) else [],
        ),
        ("additional", ignore_cfg.get("additional_patterns", []) or []),
    ]
    return [(pattern, source) for source, patterns in sources for pattern in patterns]


def build_spec(patterns: list[str]) -> PathSpec:
    """Build a PathSpec from pattern strings (gitignore-style)."""
    return PathSpec.from_lines("gitignore", patterns)


def load_spec(project_root: Path, config: dict) -> PathSpec:
    """PathSpec for a project, from load_patterns."""
    return build_spec([pattern for pattern, _ in load_patterns(project_root, config)])


def _matches(rel_str: str, spec: PathSpec, is_dir: bool = False) -> bool:
    if spec.match_file(rel_str):
        return True
    # Directory-only patterns ("node_modules/") need the trailing slash
    return (is_dir or not rel_str.endswith("/")) and spec.match_file(rel_str.rstrip("/") + "/")


def is_ignored(
    path: Path | str,
    project_root: Path | str,
    spec: PathSpec,
) -> bool:
    """
    Return True if the path is ignored by the given spec.

    path is made relative to project_root and normalised to posix for matching.
    Paths outside project_root are never ignored.
    """
    path = Path(path).resolve()
    root = Path(project_root).resolve()
    try:
        rel = path.relative_to(root)
    except ValueError:
        return False
    return _matches(rel.as_posix(), spec)


def iter_source_files(
    path: Path,
    project_root: Path,
    spec: PathSpec,
    accept: Callable[[str], bool],
) -> Iterator[Path]:
    """
    Yield files under path that are not ignored and whose name passes accept.

    Ignored directories are pruned rather than walked, so vendored trees such
    as node_modules/ cost nothing. Output is sorted by posix path.

    Args:
        path: File or directory to scan.
        project_root: Root the ignore patterns are relative to.
        spec: Patterns from load_spec.
        accept: File-name predicate, usually LanguageDetector.is_supported.
    """
    path = Path(path).resolve()
    root = Path(project_root).resolve()

    if path.is_file():
        if not is_ignored(path, root, spec) and accept(path.name):
            yield path
        return
    if not path.is_dir():
        return

    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(path):
        current = Path(dirpath)
        try:
            rel_dir = current.relative_to(root).as_posix()
        except ValueError:
            rel_dir = None
        prefix = "" if rel_dir in (None, ".") else rel_dir + "/"
        if rel_dir is not None:
            dirnames[:] = [d for d in dirnames if not _matches(prefix + d, spec, is_dir=True)]
        for name in filenames:
            if not accept(name):
                continue
            if rel_dir is not None and _matches(prefix + name, spec):
                continue
            found.append(current / name)
    yield from sorted(found, key=lambda p: p.as_posix())
