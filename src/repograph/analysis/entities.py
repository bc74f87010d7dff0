"""Code entity data models for static analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class EntityType(Enum):
    """Types of code entities we extract."""

    CLASS = "class"
    FUNCTION = "function"
    METHOD = "method"
    INTERFACE = "interface"


class Language(Enum):
    """Source languages with an extractor."""

    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    JAVA = "java"
    PYTHON = "python"


class Visibility(Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    PROTECTED = "protected"


@dataclass(frozen=True)
class Position:
    """1-based line, 0-based column."""

    line: int
    column: int


@dataclass(frozen=True)
class Location:
    start: Position
    end: Position

    def to_dict(self) -> dict:
        return {
            "start": {"line": self.start.line, "column": self.start.column},
            "end": {"line": self.end.line, "column": self.end.column},
        }


@dataclass(frozen=True)
class Parameter:
    name: str
    type: Optional[str] = None


@dataclass(frozen=True)
class EntityMetadata:
    """Optional facts an extractor could read off the declaration."""

    visibility: Optional[Visibility] = None
    is_static: bool = False
    is_async: bool = False
    is_abstract: bool = False
    return_type: Optional[str] = None
    parameters: Tuple[Parameter, ...] = ()
    decorators: Tuple[str, ...] = ()
    docstring: Optional[str] = None
    extends_from: Optional[str] = None
    implements: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """Convert to dictionary, omitting unset fields."""
        data: dict = {}
        if self.visibility is not None:
            data["visibility"] = self.visibility.value
        if self.is_static:
            data["is_static"] = True
        if self.is_async:
            data["is_async"] = True
        if self.is_abstract:
            data["is_abstract"] = True
        if self.return_type:
            data["return_type"] = self.return_type
        if self.parameters:
            data["parameters"] = [
                {"name": p.name, "type": p.type} if p.type else {"name": p.name}
                for p in self.parameters
            ]
        if self.decorators:
            data["decorators"] = list(self.decorators)
        if self.docstring:
            data["docstring"] = self.docstring
        if self.extends_from:
            data["extends_from"] = self.extends_from
        if self.implements:
            data["implements"] = list(self.implements)
        return data


def make_entity_id(file_path: str, start_line: int, name: str) -> str:
    """Deterministic id from (file path, start line, name)."""
    return f"{file_path}:{start_line}:{name}"


@dataclass(frozen=True)
class CodeEntity:
    """Represents a code entity (class, function, method, interface)."""

    id: str
    name: str
    type: EntityType
    language: Language
    file_path: str  # As given to the pipeline (normalized posix)
    location: Location
    metadata: EntityMetadata = field(default_factory=EntityMetadata)
    parent_id: Optional[str] = None  # Owning class/interface id (methods only)

    @classmethod
    def create(
        cls,
        name: str,
        type: EntityType,
        language: Language,
        file_path: str,
        location: Location,
        metadata: Optional[EntityMetadata] = None,
        parent_id: Optional[str] = None,
    ) -> "CodeEntity":
        """Build an entity, deriving its id from file path, start line and name."""
        return cls(
            id=make_entity_id(file_path, location.start.line, name),
            name=name,
            type=type,
            language=language,
            file_path=file_path,
            location=location,
            metadata=metadata or EntityMetadata(),
            parent_id=parent_id,
        )

    @property
    def start_line(self) -> int:
        return self.location.start.line

    @property
    def end_line(self) -> int:
        return self.location.end.line

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "language": self.language.value,
            "file_path": self.file_path,
            "location": self.location.to_dict(),
            "metadata": self.metadata.to_dict(),
            "parent_id": self.parent_id,
        }
