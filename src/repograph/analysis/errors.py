"""Error kinds raised by the analysis engine."""

from __future__ import annotations


class RepographError(Exception):
    """Base class for all analysis errors."""


class UnsupportedFileKind(RepographError):
    """File extension is not mapped to a language. Callers skip the file."""

    def __init__(self, file_path: str) -> None:
        super().__init__(f"Unsupported file kind: {file_path}")
        self.file_path = file_path


class GrammarLoadError(RepographError):
    """A grammar package is missing or could not be loaded."""

    def __init__(self, grammar: str, reason: str = "") -> None:
        message = f"Failed to load {grammar} grammar"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.grammar = grammar


class ParseError(RepographError):
    """Source text could not be parsed into a syntax tree."""

    def __init__(self, file_path: str, reason: str = "") -> None:
        message = f"Failed to parse {file_path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.file_path = file_path


class ExtractionError(RepographError):
    """An extractor hit an internal fault. Contained per file."""


class ParsingUnavailableError(RepographError):
    """The parsing capability cannot be initialized at all (fatal)."""


class AnalysisCancelled(RepographError):
    """Raised when a cancellation signal is observed between files or stages."""
