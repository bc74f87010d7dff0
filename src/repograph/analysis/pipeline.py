"""Parsing pipeline: per-file detect -> parse -> extract, then batch relationship resolution."""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from .entities import CodeEntity, Language
from .errors import AnalysisCancelled, ExtractionError, RepographError, UnsupportedFileKind
from .extractors import EntityExtractor, default_extractors
from .extractors.base import extract_or_raise, unique_by_id
from .files import FileInput, SourceFile, as_source_files
from .grammars import GrammarRegistry
from .languages import LanguageDetector
from .relationships import Relationship
from .resolver import RelationshipResolver, count_by_type

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class CancelSignal(Protocol):
    def is_set(self) -> bool: ...


@dataclass(frozen=True)
class FileFailure:
    """A file that could not be parsed or extracted; it contributed no entities."""

    path: str
    reason: str


@dataclass(frozen=True)
class FileOutcome:
    path: str
    entities: Tuple[CodeEntity, ...] = ()
    skipped: bool = False  # Unsupported extension
    failure: Optional[str] = None


@dataclass(frozen=True)
class AnalysisResult:
    """Entities and relationships of one run, plus the per-file bookkeeping."""

    entities: Tuple[CodeEntity, ...]
    relationships: Tuple[Relationship, ...] = ()
    failures: Tuple[FileFailure, ...] = ()
    skipped: Tuple[str, ...] = ()
    file_count: int = 0

    def stats(self) -> dict:
        entity_counts: Dict[str, int] = {}
        for entity in self.entities:
            entity_counts[entity.type.value] = entity_counts.get(entity.type.value, 0) + 1
        return {
            "files": self.file_count,
            "skipped": len(self.skipped),
            "failed": len(self.failures),
            "entities": len(self.entities),
            "entities_by_type": entity_counts,
            "relationships": len(self.relationships),
            "relationships_by_type": count_by_type(self.relationships),
        }

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dict."""
        return {
            "entities": [e.to_dict() for e in self.entities],
            "relationships": [r.to_dict() for r in self.relationships],
            "failures": [{"path": f.path, "reason": f.reason} for f in self.failures],
            "skipped": list(self.skipped),
            "stats": self.stats(),
        }


def _check_cancel(cancel: Optional[CancelSignal], stage: str) -> None:
    if cancel is not None and cancel.is_set():
        raise AnalysisCancelled(f"Analysis cancelled {stage}")


class ParsingPipeline:
    """
    Orchestrates extraction over a batch of files, then resolution over the batch.

    Usage::

        registry = GrammarRegistry()
        pipeline = ParsingPipeline(registry, max_workers=4)
        pipeline.initialize()
        result = pipeline.run([("src/a.ts", text_a), ("src/b.py", text_b)])
        pipeline.cleanup()
    """

    def __init__(
        self,
        registry: GrammarRegistry,
        detector: Optional[LanguageDetector] = None,
        resolver: Optional[RelationshipResolver] = None,
        extractors: Optional[Dict[Language, EntityExtractor]] = None,
        max_workers: int = 1,
    ) -> None:
        """
        Args:
            registry: Grammar registry shared by every file of the run.
            detector: Extension table; defaults to the registry's.
            resolver: Relationship resolver; one is created if omitted.
            extractors: Language -> extractor; defaults to the built-in four.
            max_workers: Files extracted in parallel (1 = sequential).
        """
        self.registry = registry
        self.detector = detector or registry.detector
        self.resolver = resolver or RelationshipResolver(self.detector)
        self._extractors = default_extractors() if extractors is None else dict(extractors)
        self.max_workers = max(1, int(max_workers))

    def initialize(self) -> None:
        """Process-wide precondition: fails fatally if tree-sitter cannot start."""
        self.registry.initialize()

    def cleanup(self) -> None:
        self.registry.cleanup()

    def supports(self, file_path: str) -> bool:
        language = self.detector.detect(file_path)
        return language is not None and language in self._extractors

    def extract_file(self, file: FileInput) -> FileOutcome:
        """
        Detect, parse and extract a single file. Never raises for per-file problems.

        Unsupported extensions are reported as skipped; grammar and parse
        failures are reported as failures with no entities.
        """
        path, content = file
        language = self.detector.detect(path)
        extractor = self._extractors.get(language) if language is not None else None
        if extractor is None:
            logger.debug("Skipping unsupported file: %s", path)
            return FileOutcome(path=path, skipped=True)

        try:
            tree = self.registry.parse(content, path)
        except UnsupportedFileKind:
            return FileOutcome(path=path, skipped=True)
        except RepographError as e:
            logger.warning("Failed to parse %s: %s", path, e)
            return FileOutcome(path=path, failure=str(e))

        try:
            entities = extract_or_raise(extractor, tree)
        except ExtractionError as e:
            logger.exception("Failed to extract %s", path)
            return FileOutcome(path=path, failure=str(e))
        logger.debug("%s: %d entities", path, len(entities))
        return FileOutcome(path=path, entities=tuple(entities))

    def extract_all(
        self,
        files: Iterable[FileInput],
        on_progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancelSignal] = None,
    ) -> List[FileOutcome]:
        """
        Extract every file, reporting (completed, total) after each one.

        Outcomes are returned in input order regardless of completion order.

        Raises:
            AnalysisCancelled: cancel was set between two files.
        """
        source_files = as_source_files(files)
        total = len(source_files)
        _check_cancel(cancel, "before extraction")
        if self.max_workers == 1 or total <= 1:
            return self._extract_sequential(source_files, total, on_progress, cancel)
        return self._extract_parallel(source_files, total, on_progress, cancel)

    def _extract_sequential(
        self,
        files: Sequence[SourceFile],
        total: int,
        on_progress: Optional[ProgressCallback],
        cancel: Optional[CancelSignal],
    ) -> List[FileOutcome]:
        outcomes: List[FileOutcome] = []
        for i, file in enumerate(files):
            _check_cancel(cancel, "between files")
            outcomes.append(self.extract_file(file))
            if on_progress:
                on_progress(i + 1, total)
        return outcomes

    def _extract_parallel(
        self,
        files: Sequence[SourceFile],
        total: int,
        on_progress: Optional[ProgressCallback],
        cancel: Optional[CancelSignal],
    ) -> List[FileOutcome]:
        outcomes: List[Optional[FileOutcome]] = [None] * total
        completed = 0
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            pending: Dict[Future, int] = {
                pool.submit(self.extract_file, file): i for i, file in enumerate(files)
            }
            while pending:
                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    outcomes[pending.pop(future)] = future.result()
                    completed += 1
                    if on_progress:
                        on_progress(completed, total)
                if pending and cancel is not None and cancel.is_set():
                    for future in pending:
                        future.cancel()
                    raise AnalysisCancelled("Analysis cancelled between files")
        return [o for o in outcomes if o is not None]

    def resolve(
        self, entities: Sequence[CodeEntity], files: Iterable[FileInput]
    ) -> Tuple[Relationship, ...]:
        """Resolve relationships over the complete entity batch."""
        return self.resolver.resolve(entities, files)

    def run(
        self,
        files: Iterable[FileInput],
        on_progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancelSignal] = None,
    ) -> AnalysisResult:
        """
        Extract every file, then resolve relationships over the joined batch.

        Raises:
            ParsingUnavailableError: tree-sitter cannot be initialized.
            AnalysisCancelled: cancel was set between files or stages.
        """
        source_files = as_source_files(files)
        self.initialize()

        outcomes = self.extract_all(source_files, on_progress=on_progress, cancel=cancel)
        entities: List[CodeEntity] = []
        for outcome in outcomes:
            entities.extend(outcome.entities)
        entities = unique_by_id(entities)

        _check_cancel(cancel, "before relationship resolution")
        relationships = self.resolve(entities, source_files)

        result = AnalysisResult(
            entities=tuple(entities),
            relationships=relationships,
            failures=tuple(
                FileFailure(path=o.path, reason=o.failure) for o in outcomes if o.failure
            ),
            skipped=tuple(o.path for o in outcomes if o.skipped),
            file_count=len(source_files),
        )
        logger.info(
            "Analyzed %d file(s): %d entities, %d relationships (%d skipped, %d failed)",
            len(source_files),
            len(result.entities),
            len(result.relationships),
            len(result.skipped),
            len(result.failures),
        )
        return result
