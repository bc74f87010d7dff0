"""Per-language entity extractors."""

from __future__ import annotations

from typing import List, Protocol

from ..entities import CodeEntity, Language
from ..grammars import SyntaxTree
from .java import JavaExtractor
from .javascript import JavaScriptExtractor
from .python import PythonExtractor
from .typescript import TypeScriptExtractor


class EntityExtractor(Protocol):
    def extract_entities(self, tree: SyntaxTree) -> List[CodeEntity]: ...


def default_extractors() -> dict[Language, EntityExtractor]:
    """One extractor per language; TypeScript composes its own JavaScript extractor."""
    return {
        Language.JAVASCRIPT: JavaScriptExtractor(),
        Language.TYPESCRIPT: TypeScriptExtractor(),
        Language.JAVA: JavaExtractor(),
        Language.PYTHON: PythonExtractor(),
    }


__all__ = [
    "EntityExtractor",
    "JavaExtractor",
    "JavaScriptExtractor",
    "PythonExtractor",
    "TypeScriptExtractor",
    "default_extractors",
]
