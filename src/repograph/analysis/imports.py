"""Regex-based import scanning over raw source text.

This is a grammar-agnostic heuristic: it has no lexical awareness, so it also
matches import-like text inside strings and comments. Keeping it textual lets
files with partial or foreign syntax still contribute import edges.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .entities import Language


@dataclass(frozen=True)
class ImportInfo:
    """One import statement: the module it names and the symbols it binds."""

    source: str  # Module path as written ('./a', 'pkg.mod', 'com.acme.Foo')
    specifiers: Tuple[str, ...]  # Imported names
    line: int  # 1-based line of the statement


# Python: `from X import a, b as c` and `import X.Y`
_PY_FROM_IMPORT = re.compile(r"from\s+(\S+)\s+import\s+([^;\n]+)")
_PY_IMPORT = re.compile(r"^import\s+(\S+)", re.MULTILINE)
# Java: `import pkg.Class;` and `import static pkg.Class.member;`
_JAVA_IMPORT = re.compile(r"import\s+(?:static\s+)?([^;]+);")
# ES modules: `import { a, b as c } from 'x'`, `import d from 'x'`, `import d, { a } from 'x'`
_ES_IMPORT = re.compile(
    r"import\s+(?:(?:\{([^}]+)\})|(?:(\w+)(?:\s*,\s*\{([^}]+)\})?))\s+from\s+['\"]([^'\"]+)['\"]"
)
# CommonJS: `const x = require('x')`, `const { a, b } = require('x')`
_REQUIRE = re.compile(
    r"(?:const|let|var)\s+(?:\{([^}]+)\}|(\w+))\s*=\s*require\s*\(\s*['\"]([^'\"]+)['\"]\s*\)"
)
_AS = re.compile(r"\s+as\s+")

_SOURCE_EXTENSION = re.compile(r"\.(ts|tsx|js|jsx|java|py)$")


def _line_at(content: str, offset: int) -> int:
    return content.count("\n", 0, offset) + 1


def _split_names(text: str, strip_alias: bool = True) -> List[str]:
    names = []
    for part in text.split(","):
        name = part.strip()
        if strip_alias:
            name = _AS.split(name)[0].strip()
        if name:
            names.append(name)
    return names


def scan_imports(content: str, language: Optional[Language]) -> List[ImportInfo]:
    """
    Extract import statements from source text.

    Args:
        content: Raw file contents.
        language: Language of the file; None returns no imports.

    Returns:
        Imports in scan order (Python: from-imports first, then plain imports).
    """
    if language is None:
        return []
    if language is Language.PYTHON:
        return _scan_python(content)
    if language is Language.JAVA:
        return _scan_java(content)
    return _scan_javascript(content)


def _scan_python(content: str) -> List[ImportInfo]:
    imports: List[ImportInfo] = []
    for match in _PY_FROM_IMPORT.finditer(content):
        imports.append(
            ImportInfo(
                source=match.group(1),
                specifiers=tuple(_split_names(match.group(2))),
                line=_line_at(content, match.start()),
            )
        )
    for match in _PY_IMPORT.finditer(content):
        module = match.group(1)
        imports.append(
            ImportInfo(
                source=module,
                specifiers=(module.split(".")[-1],),
                line=_line_at(content, match.start()),
            )
        )
    return imports


def _scan_java(content: str) -> List[ImportInfo]:
    imports: List[ImportInfo] = []
    for match in _JAVA_IMPORT.finditer(content):
        full_path = match.group(1).strip()
        imports.append(
            ImportInfo(
                source=full_path,
                specifiers=(full_path.split(".")[-1],),
                line=_line_at(content, match.start()),
            )
        )
    return imports


def _scan_javascript(content: str) -> List[ImportInfo]:
    imports: List[ImportInfo] = []
    for match in _ES_IMPORT.finditer(content):
        named = match.group(1) or match.group(3) or ""
        default = match.group(2) or ""
        specifiers: List[str] = []
        if default:
            specifiers.append(default)
        if named:
            specifiers.extend(_split_names(named))
        imports.append(
            ImportInfo(
                source=match.group(4),
                specifiers=tuple(specifiers),
                line=_line_at(content, match.start()),
            )
        )
    for match in _REQUIRE.finditer(content):
        named = match.group(1) or ""
        default = match.group(2) or ""
        specifiers = []
        if default:
            specifiers.append(default)
        if named:
            specifiers.extend(_split_names(named, strip_alias=False))
        imports.append(
            ImportInfo(
                source=match.group(3),
                specifiers=tuple(specifiers),
                line=_line_at(content, match.start()),
            )
        )
    return imports


# --- import path resolution ---


def resolve_relative_path(from_file: str, import_path: str) -> str:
    """Resolve './x' or '../x' against the importing file's directory."""
    from_dir = posixpath.dirname(from_file)
    parts = from_dir.split("/") if from_dir else []
    for segment in import_path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if parts:
                parts.pop()
        else:
            parts.append(segment)
    return "/".join(parts)


def python_module_to_path(module: str) -> str:
    """'.a' -> './a', '..pkg.mod' -> '../pkg/mod', 'pkg.mod' -> 'pkg/mod'."""
    dots = len(module) - len(module.lstrip("."))
    rest = module[dots:].replace(".", "/")
    if dots == 0:
        return rest
    prefix = "./" if dots == 1 else "../" * (dots - 1)
    return f"{prefix}{rest}" if rest else prefix.rstrip("/")


def strip_source_extension(path: str) -> str:
    return _SOURCE_EXTENSION.sub("", path)


def path_matches(file_path: str, resolved_path: str) -> bool:
    """Tolerant comparison: extensionless equality, substring, or suffix."""
    if not resolved_path:
        return False
    stripped_file = strip_source_extension(file_path)
    stripped_resolved = strip_source_extension(resolved_path)
    return (
        stripped_file == stripped_resolved
        or resolved_path in file_path
        or stripped_file.endswith(stripped_resolved)
    )


def module_path_matches(file_path: str, module_path: str) -> bool:
    """'pkg/mod' matches 'src/pkg/mod.py' but not 'src/xpkg/mod.py'."""
    if not module_path:
        return False
    stripped_file = strip_source_extension(file_path)
    return stripped_file == module_path or stripped_file.endswith(f"/{module_path}")


def relative_import_path(source: str, language: Optional[Language]) -> Optional[str]:
    """The import written as a relative path, or None for non-relative imports."""
    if not source.startswith("."):
        return None
    if language is Language.PYTHON:
        return python_module_to_path(source)
    return source


def dotted_module_path(source: str, language: Optional[Language]) -> Optional[str]:
    """Slash form of an absolute dotted module (Python/Java), else None."""
    if source.startswith(".") or language not in (Language.PYTHON, Language.JAVA):
        return None
    return source.replace(".", "/")
