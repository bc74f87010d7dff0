"""Static analysis: language detection, grammar loading, entity extraction and relationship resolution."""

from .entities import CodeEntity, EntityMetadata, EntityType, Language, Visibility
from .errors import (
    AnalysisCancelled,
    ExtractionError,
    GrammarLoadError,
    ParseError,
    ParsingUnavailableError,
    RepographError,
    UnsupportedFileKind,
)
from .files import SourceFile
from .grammars import GrammarRegistry, SyntaxTree
from .languages import LanguageDetector
from .pipeline import AnalysisResult, ParsingPipeline
from .relationships import Relationship, RelationshipType
from .resolver import RelationshipResolver

__all__ = [
    "AnalysisCancelled",
    "AnalysisResult",
    "CodeEntity",
    "EntityMetadata",
    "EntityType",
    "ExtractionError",
    "GrammarLoadError",
    "GrammarRegistry",
    "Language",
    "LanguageDetector",
    "ParseError",
    "ParsingPipeline",
    "ParsingUnavailableError",
    "Relationship",
    "RelationshipResolver",
    "RelationshipType",
    "RepographError",
    "SourceFile",
    "SyntaxTree",
    "UnsupportedFileKind",
]
