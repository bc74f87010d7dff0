"""Code relationship data models for static analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class RelationshipType(Enum):
    """Types of relationships between code entities."""

    CALL = "call"
    INHERITANCE = "inheritance"
    IMPORT = "import"
    OWNERSHIP = "ownership"
    IMPLEMENTS = "implements"


# Fixed per type: Ownership > Inheritance/Implements > Import > Call
CONFIDENCE: dict[RelationshipType, float] = {
    RelationshipType.OWNERSHIP: 1.0,
    RelationshipType.INHERITANCE: 0.9,
    RelationshipType.IMPLEMENTS: 0.9,
    RelationshipType.IMPORT: 0.8,
    RelationshipType.CALL: 0.7,
}


@dataclass(frozen=True)
class RelationshipMetadata:
    line: Optional[int] = None
    column: Optional[int] = None
    context: Optional[str] = None  # Short human-readable snippet
    is_external: bool = False

    def to_dict(self) -> dict:
        data: dict = {}
        if self.line is not None:
            data["location"] = {"line": self.line, "column": self.column or 0}
        if self.context:
            data["context"] = self.context
        if self.is_external:
            data["is_external"] = True
        return data


def make_relationship_id(type: RelationshipType, source: str, target: str) -> str:
    return f"{type.value}:{source}:{target}"


@dataclass(frozen=True)
class Relationship:
    """Directed edge between two entity ids."""

    id: str
    type: RelationshipType
    source: str
    target: str
    confidence: float
    metadata: RelationshipMetadata = field(default_factory=RelationshipMetadata)

    @classmethod
    def create(
        cls,
        type: RelationshipType,
        source: str,
        target: str,
        metadata: Optional[RelationshipMetadata] = None,
    ) -> "Relationship":
        """Build a relationship with the confidence fixed for its type."""
        return cls(
            id=make_relationship_id(type, source, target),
            type=type,
            source=source,
            target=target,
            confidence=CONFIDENCE[type],
            metadata=metadata or RelationshipMetadata(),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "id": self.id,
            "type": self.type.value,
            "source": self.source,
            "target": self.target,
            "confidence": self.confidence,
            "metadata": self.metadata.to_dict(),
        }
