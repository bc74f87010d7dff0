"""Relationship resolution over a complete entity batch.

A whole-program, name-based heuristic resolver, not a semantic one. Four
independent passes (ownership, inheritance/implements, imports, calls) run over
indices built from the full batch. An unmatched name produces no edge: the
resolver prefers precision over recall and never raises for missing targets.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .entities import CodeEntity, EntityType, Language
from .files import FileInput, SourceFile, as_source_files
from .imports import (
    dotted_module_path,
    module_path_matches,
    path_matches,
    relative_import_path,
    resolve_relative_path,
    scan_imports,
)
from .languages import LanguageDetector
from .relationships import Relationship, RelationshipMetadata, RelationshipType

logger = logging.getLogger(__name__)

_CALLABLE_TYPES = (EntityType.FUNCTION, EntityType.METHOD)
_TYPE_DECLARATIONS = (EntityType.CLASS, EntityType.INTERFACE)


def find_best_match(
    source: CodeEntity, candidates: Sequence[CodeEntity]
) -> Optional[CodeEntity]:
    """
    Pick one candidate among entities sharing a name.

    Tie-break order: same file, then same language, then top-level
    (no parent), then the first candidate.
    """
    if not candidates:
        return None
    if len(candidates) == 1:
        return candidates[0]
    for candidate in candidates:
        if candidate.file_path == source.file_path:
            return candidate
    for candidate in candidates:
        if candidate.language is source.language:
            return candidate
    for candidate in candidates:
        if candidate.parent_id is None:
            return candidate
    return candidates[0]


def entity_body(content_lines: Sequence[str], entity: CodeEntity) -> Optional[str]:
    """Source lines spanned by the entity's declared line range."""
    start = entity.start_line - 1
    end = min(entity.end_line, len(content_lines))
    if start < 0 or start >= len(content_lines):
        return None
    return "\n".join(content_lines[start:end])


class _CallPatterns:
    """Compiled `name(` / `new name(` patterns, built once per name."""

    def __init__(self) -> None:
        self._cache: Dict[str, Tuple[re.Pattern, re.Pattern]] = {}

    def search(self, name: str, text: str) -> Optional[re.Match]:
        patterns = self._cache.get(name)
        if patterns is None:
            escaped = re.escape(name)
            patterns = (
                re.compile(rf"\b{escaped}\s*\("),
                re.compile(rf"\bnew\s+{escaped}\s*\("),
            )
            self._cache[name] = patterns
        call, new = patterns
        return call.search(text) or new.search(text)


class RelationshipResolver:
    """Infer relationships between entities extracted from a whole source tree."""

    def __init__(self, detector: Optional[LanguageDetector] = None) -> None:
        self.detector = detector or LanguageDetector()
        self._by_id: Dict[str, CodeEntity] = {}
        self._by_name: Dict[str, List[CodeEntity]] = {}
        self._by_file: Dict[str, List[CodeEntity]] = {}
        self._call_patterns = _CallPatterns()

    def resolve(
        self, entities: Sequence[CodeEntity], files: Iterable[FileInput]
    ) -> Tuple[Relationship, ...]:
        """
        Resolve all relationships between entities.

        Args:
            entities: The complete entity batch of the run.
            files: The (path, text) pairs the entities were extracted from.

        Returns:
            Relationships deduplicated by id, first occurrence kept.
        """
        source_files = as_source_files(files)
        self._build_indices(entities)

        relationships: List[Relationship] = []
        relationships.extend(self._resolve_ownership(entities))
        relationships.extend(self._resolve_inheritance(entities))
        relationships.extend(self._resolve_imports(source_files))
        relationships.extend(self._resolve_calls(entities, source_files))

        seen: set[str] = set()
        unique: List[Relationship] = []
        for rel in relationships:
            if rel.id in seen:
                continue
            seen.add(rel.id)
            unique.append(rel)

        logger.debug(
            "Resolved %d relationships (%d before dedup) over %d entities",
            len(unique),
            len(relationships),
            len(entities),
        )
        return tuple(unique)

    def _build_indices(self, entities: Sequence[CodeEntity]) -> None:
        self._by_id = {}
        self._by_name = {}
        self._by_file = {}
        for entity in entities:
            self._by_id[entity.id] = entity
            self._by_name.setdefault(entity.name, []).append(entity)
            self._by_file.setdefault(entity.file_path, []).append(entity)

    def _resolve_ownership(self, entities: Sequence[CodeEntity]) -> List[Relationship]:
        """Members -> their declaring class/interface."""
        result: List[Relationship] = []
        for entity in entities:
            if entity.parent_id and entity.parent_id in self._by_id:
                result.append(
                    Relationship.create(
                        RelationshipType.OWNERSHIP,
                        entity.parent_id,
                        entity.id,
                        RelationshipMetadata(
                            line=entity.start_line,
                            column=entity.location.start.column,
                            context=f"{entity.name} is a member of its parent",
                        ),
                    )
                )
        return result

    def _resolve_inheritance(self, entities: Sequence[CodeEntity]) -> List[Relationship]:
        """Class/interface extends and implements clauses."""
        result: List[Relationship] = []
        for entity in entities:
            if entity.type not in _TYPE_DECLARATIONS:
                continue

            extends_from = entity.metadata.extends_from
            if extends_from:
                target = find_best_match(entity, self._by_name.get(extends_from, ()))
                if target:
                    result.append(
                        Relationship.create(
                            RelationshipType.INHERITANCE,
                            entity.id,
                            target.id,
                            RelationshipMetadata(
                                line=entity.start_line,
                                column=entity.location.start.column,
                                context=f"{entity.name} extends {target.name}",
                            ),
                        )
                    )

            for interface_name in entity.metadata.implements:
                target = find_best_match(entity, self._by_name.get(interface_name, ()))
                if target:
                    result.append(
                        Relationship.create(
                            RelationshipType.IMPLEMENTS,
                            entity.id,
                            target.id,
                            RelationshipMetadata(
                                line=entity.start_line,
                                column=entity.location.start.column,
                                context=f"{entity.name} implements {target.name}",
                            ),
                        )
                    )
        return result

    def _resolve_imports(self, files: Sequence[SourceFile]) -> List[Relationship]:
        """Import statements -> the imported entity, sourced from a proxy entity of the file."""
        result: List[Relationship] = []
        for file in files:
            file_entities = self._by_file.get(file.path)
            if not file_entities:
                continue
            # The file's first top-level entity stands in for the file itself
            source = next((e for e in file_entities if e.parent_id is None), file_entities[0])

            language = self.detector.detect(file.path)
            for imp in scan_imports(file.content, language):
                for specifier in imp.specifiers:
                    candidates = self._by_name.get(specifier)
                    if not candidates:
                        continue
                    target = self._find_import_target(imp.source, candidates, file.path, language)
                    if target is None:
                        continue
                    result.append(
                        Relationship.create(
                            RelationshipType.IMPORT,
                            source.id,
                            target.id,
                            RelationshipMetadata(
                                line=imp.line,
                                column=0,
                                context=f"imports {specifier} from '{imp.source}'",
                            ),
                        )
                    )
        return result

    def _find_import_target(
        self,
        import_source: str,
        candidates: Sequence[CodeEntity],
        from_file: str,
        language: Optional[Language],
    ) -> Optional[CodeEntity]:
        """Prefer the candidate whose path matches the import, else the first non-member."""
        relative = relative_import_path(import_source, language)
        if relative is not None:
            resolved = resolve_relative_path(from_file, relative)
            for candidate in candidates:
                if path_matches(candidate.file_path, resolved):
                    return candidate

        module_path = dotted_module_path(import_source, language)
        if module_path is not None:
            for candidate in candidates:
                if module_path_matches(candidate.file_path, module_path):
                    return candidate

        for candidate in candidates:
            if candidate.parent_id is None:
                return candidate
        return candidates[0] if candidates else None

    def _resolve_calls(
        self, entities: Sequence[CodeEntity], files: Sequence[SourceFile]
    ) -> List[Relationship]:
        """Textual `name(` / `new name(` matches inside function and method bodies."""
        lines_by_file = {f.path: f.content.split("\n") for f in files}

        # Insertion-ordered so output order is stable across runs
        known_names = list(dict.fromkeys(e.name for e in entities if len(e.name) > 1))

        result: List[Relationship] = []
        for entity in entities:
            if entity.type not in _CALLABLE_TYPES:
                continue
            lines = lines_by_file.get(entity.file_path)
            if not lines:
                continue
            body = entity_body(lines, entity)
            if not body:
                continue

            for target_name in known_names:
                if target_name == entity.name:
                    continue
                match = self._call_patterns.search(target_name, body)
                if match is None:
                    continue
                target = find_best_match(entity, self._by_name[target_name])
                if target is None or target.id == entity.id:
                    continue
                result.append(
                    Relationship.create(
                        RelationshipType.CALL,
                        entity.id,
                        target.id,
                        RelationshipMetadata(
                            line=entity.start_line + body.count("\n", 0, match.start()),
                            column=match.start() - (body.rfind("\n", 0, match.start()) + 1),
                            context=f"{entity.name} calls {target.name}",
                        ),
                    )
                )
        return result


def count_by_type(relationships: Iterable[Relationship]) -> Dict[str, int]:
    """Number of relationships per type value."""
    counts = Counter(rel.type.value for rel in relationships)
    return {t.value: counts.get(t.value, 0) for t in RelationshipType}
