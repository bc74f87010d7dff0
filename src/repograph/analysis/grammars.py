"""Tree-sitter grammar registry: lazy, cached, thread-safe grammar loading and parsing."""

from __future__ import annotations

import importlib
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from tree_sitter import Language as TSLanguage
from tree_sitter import Node, Parser, Tree

from .entities import Language
from .errors import GrammarLoadError, ParseError, ParsingUnavailableError, UnsupportedFileKind
from .languages import LanguageDetector

logger = logging.getLogger(__name__)

# Grammar id -> (import name, factory function returning the language pointer)
GRAMMAR_MODULES: dict[str, tuple[str, str]] = {
    "javascript": ("tree_sitter_javascript", "language"),
    "typescript": ("tree_sitter_typescript", "language_typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx"),
    "java": ("tree_sitter_java", "language"),
    "python": ("tree_sitter_python", "language"),
}

GrammarLoader = Callable[[], Any]


def _module_loader(import_name: str, factory: str) -> GrammarLoader:
    def load() -> Any:
        module = importlib.import_module(import_name)
        return getattr(module, factory)()

    return load


def default_loaders() -> dict[str, GrammarLoader]:
    return {name: _module_loader(mod, fn) for name, (mod, fn) in GRAMMAR_MODULES.items()}


@dataclass(frozen=True)
class SyntaxTree:
    """A parsed file: the tree-sitter tree plus the source it was parsed from."""

    tree: Tree
    source: bytes  # UTF-8 source; node byte offsets index into this
    file_path: str
    language: Language
    grammar: str

    @property
    def root_node(self) -> Node:
        return self.tree.root_node

    @property
    def has_error(self) -> bool:
        return self.tree.root_node.has_error

    @property
    def text(self) -> str:
        return self.source.decode("utf-8", errors="replace")


class GrammarRegistry:
    """
    Cached-by-grammar-name store of loaded tree-sitter grammars.

    Construct once and pass into the pipeline. The first load of each grammar
    name is serialized by a per-name lock; cached reads take no lock.
    """

    def __init__(
        self,
        detector: Optional[LanguageDetector] = None,
        loaders: Optional[Mapping[str, GrammarLoader]] = None,
        strict: bool = False,
    ) -> None:
        """
        Args:
            detector: Extension table used to pick a grammar for a file path.
            loaders: Grammar id -> zero-arg callable returning a language pointer.
                Defaults to importing the tree-sitter grammar wheels.
            strict: If True, trees whose root reports syntax errors raise ParseError.
        """
        self.detector = detector or LanguageDetector()
        self._loaders: dict[str, GrammarLoader] = default_loaders() if loaders is None else dict(loaders)
        self.strict = strict
        self._grammars: dict[str, TSLanguage] = {}
        self._name_locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()
        self._initialized = False

    def initialize(self) -> None:
        """Verify the parsing capability is usable. Idempotent."""
        with self._guard:
            if self._initialized:
                return
            try:
                Parser()
            except Exception as e:
                raise ParsingUnavailableError(f"Failed to initialize tree-sitter: {e}") from e
            self._initialized = True
            logger.debug("tree-sitter initialized (%d grammars known)", len(self._loaders))

    @property
    def initialized(self) -> bool:
        return self._initialized

    def cleanup(self) -> None:
        """Drop every cached grammar. The registry can be initialized again."""
        with self._guard:
            self._grammars.clear()
            self._name_locks.clear()
            self._initialized = False

    def loaded_grammars(self) -> list[str]:
        return sorted(self._grammars)

    def _lock_for(self, grammar: str) -> threading.Lock:
        with self._guard:
            lock = self._name_locks.get(grammar)
            if lock is None:
                lock = threading.Lock()
                self._name_locks[grammar] = lock
            return lock

    def load(self, grammar: str) -> TSLanguage:
        """
        Return the cached grammar, loading it on first use.

        Raises:
            GrammarLoadError: Unknown grammar id, or the grammar package failed to load.
        """
        cached = self._grammars.get(grammar)
        if cached is not None:
            return cached

        loader = self._loaders.get(grammar)
        if loader is None:
            raise GrammarLoadError(grammar, "no loader registered")

        with self._lock_for(grammar):
            cached = self._grammars.get(grammar)
            if cached is not None:
                return cached
            try:
                language = TSLanguage(loader())
            except Exception as e:
                raise GrammarLoadError(grammar, str(e)) from e
            self._grammars[grammar] = language
            logger.debug("Loaded %s grammar", grammar)
            return language

    def parse(
        self, source_text: str, file_path: str, grammar: Optional[str] = None
    ) -> SyntaxTree:
        """
        Parse source text with the grammar chosen for file_path.

        Args:
            source_text: File contents.
            file_path: Path hint used for language and grammar detection.
            grammar: Explicit grammar id, overriding the path-based choice.

        Returns:
            SyntaxTree for the file.

        Raises:
            UnsupportedFileKind: file_path has an unmapped extension.
            GrammarLoadError: The grammar cannot be loaded.
            ParseError: tree-sitter failed, or strict mode rejected a tree with errors.
        """
        if not self._initialized:
            self.initialize()

        language = self.detector.detect(file_path)
        if language is None:
            raise UnsupportedFileKind(file_path)
        grammar_name = grammar or self.detector.grammar_for(file_path)
        ts_language = self.load(grammar_name)

        source = source_text.encode("utf-8", errors="replace")
        try:
            tree = Parser(ts_language).parse(source)
        except Exception as e:
            raise ParseError(file_path, str(e)) from e
        if tree is None:
            raise ParseError(file_path, "parser returned no tree")
        if self.strict and tree.root_node.has_error:
            raise ParseError(file_path, "syntax errors in source")

        return SyntaxTree(
            tree=tree,
            source=source,
            file_path=file_path,
            language=language,
            grammar=grammar_name,
        )
