"""File extension -> language and grammar detection."""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Mapping

from .entities import Language

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: dict[str, Language] = {
    ".js": Language.JAVASCRIPT,
    ".jsx": Language.JAVASCRIPT,
    ".mjs": Language.JAVASCRIPT,
    ".cjs": Language.JAVASCRIPT,
    ".ts": Language.TYPESCRIPT,
    ".tsx": Language.TYPESCRIPT,
    ".mts": Language.TYPESCRIPT,
    ".cts": Language.TYPESCRIPT,
    ".java": Language.JAVA,
    ".py": Language.PYTHON,
    ".pyw": Language.PYTHON,
}

# Language -> tree-sitter grammar id
_GRAMMAR_FOR_LANGUAGE: dict[Language, str] = {
    Language.JAVASCRIPT: "javascript",
    Language.TYPESCRIPT: "typescript",
    Language.JAVA: "java",
    Language.PYTHON: "python",
}

# Extensions that need a different grammar than their language's default
_GRAMMAR_FOR_EXTENSION: dict[str, str] = {
    ".tsx": "tsx",
}


def file_extension(file_path: str) -> str:
    """Lowercased final suffix ('' when there is none)."""
    return PurePosixPath(file_path.replace("\\", "/")).suffix.lower()


class LanguageDetector:
    """Maps file paths to a language and a grammar id via an extension table."""

    def __init__(self, extensions: Mapping[str, Language | str] | None = None) -> None:
        """
        Args:
            extensions: Extra extension -> language mappings layered over the
                defaults. Values may be Language members or their string values.
        """
        self._extensions: dict[str, Language] = dict(DEFAULT_EXTENSIONS)
        for ext, lang in (extensions or {}).items():
            key = ext.lower() if ext.startswith(".") else f".{ext.lower()}"
            self._extensions[key] = lang if isinstance(lang, Language) else Language(lang)

    def detect(self, file_path: str) -> Language | None:
        """Return the language for file_path, or None if the extension is unmapped."""
        language = self._extensions.get(file_extension(file_path))
        if language is None:
            logger.debug("Unknown file extension: %s", file_path)
        return language

    def grammar_for(self, file_path: str) -> str | None:
        """Return the grammar id to parse file_path with (.tsx gets the tsx grammar)."""
        language = self.detect(file_path)
        if language is None:
            return None
        ext = file_extension(file_path)
        return _GRAMMAR_FOR_EXTENSION.get(ext, _GRAMMAR_FOR_LANGUAGE[language])

    def is_supported(self, file_path: str) -> bool:
        return self.detect(file_path) is not None

    def extension_table(self) -> dict[str, Language]:
        """Copy of the effective extension table."""
        return dict(self._extensions)


def grammar_for_language(language: Language) -> str:
    return _GRAMMAR_FOR_LANGUAGE[language]
