"""Unit tests for the parsing pipeline (extraction, isolation, progress, cancellation)."""

from __future__ import annotations

import threading

import pytest

from repograph.analysis.entities import EntityType, Language
from repograph.analysis.errors import AnalysisCancelled, ParsingUnavailableError
from repograph.analysis.extractors import JavaScriptExtractor, PythonExtractor, default_extractors
from repograph.analysis.files import SourceFile
from repograph.analysis.grammars import GrammarRegistry, default_loaders
from repograph.analysis.pipeline import ParsingPipeline
from repograph.analysis.relationships import RelationshipType

FILES = [
    ("src/zoo.ts", "export class Animal {\n  speak() {}\n}\n"),
    (
        "src/dog.ts",
        "import { Animal } from './zoo';\n"
        "export class Dog extends Animal {\n"
        "  bark() {\n"
        "    return this.speak();\n"
        "  }\n"
        "}\n",
    ),
    ("pkg/models.py", "class A:\n  def foo(self): pass\n"),
    (
        "pkg/service.py",
        "from .models import A\n\n"
        "def run():\n"
        "    return A().foo()\n",
    ),
    ("src/Main.java", "public class Main {\n  public static void main(String[] args) {}\n}\n"),
    ("README.md", "# not code\n"),
]


class Counter:
    """Cancellation signal that trips after a number of checks."""

    def __init__(self, trip_after: int) -> None:
        self.trip_after = trip_after
        self.checks = 0

    def is_set(self) -> bool:
        self.checks += 1
        return self.checks > self.trip_after


@pytest.fixture
def pipeline() -> ParsingPipeline:
    p = ParsingPipeline(GrammarRegistry())
    yield p
    p.cleanup()


def test_run_extracts_and_resolves(pipeline: ParsingPipeline) -> None:
    result = pipeline.run(FILES)
    names = {(e.name, e.type) for e in result.entities}
    assert ("Animal", EntityType.CLASS) in names
    assert ("Dog", EntityType.CLASS) in names
    assert ("A", EntityType.CLASS) in names
    assert ("foo", EntityType.METHOD) in names
    assert ("run", EntityType.FUNCTION) in names
    assert ("main", EntityType.METHOD) in names

    by_name = {e.name: e for e in result.entities}
    edges = {(r.type, r.source, r.target) for r in result.relationships}
    assert (RelationshipType.INHERITANCE, by_name["Dog"].id, by_name["Animal"].id) in edges
    assert (RelationshipType.IMPORT, by_name["Dog"].id, by_name["Animal"].id) in edges
    assert (RelationshipType.IMPORT, by_name["run"].id, by_name["A"].id) in edges
    assert (RelationshipType.OWNERSHIP, by_name["A"].id, by_name["foo"].id) in edges
    assert (RelationshipType.CALL, by_name["bark"].id, by_name["speak"].id) in edges
    assert (RelationshipType.CALL, by_name["run"].id, by_name["foo"].id) in edges


def test_unsupported_files_are_skipped_not_failed(pipeline: ParsingPipeline) -> None:
    result = pipeline.run(FILES)
    assert result.skipped == ("README.md",)
    assert result.failures == ()
    assert result.file_count == len(FILES)


def test_languages_follow_extensions(pipeline: ParsingPipeline) -> None:
    result = pipeline.run(FILES)
    languages = {e.file_path: e.language for e in result.entities}
    assert languages["src/zoo.ts"] is Language.TYPESCRIPT
    assert languages["pkg/models.py"] is Language.PYTHON
    assert languages["src/Main.java"] is Language.JAVA


def test_entity_ids_are_unique(pipeline: ParsingPipeline) -> None:
    result = pipeline.run(FILES)
    ids = [e.id for e in result.entities]
    assert len(ids) == len(set(ids))


def test_every_parent_id_has_an_ownership_edge(pipeline: ParsingPipeline) -> None:
    result = pipeline.run(FILES)
    ids = {e.id for e in result.entities}
    ownership = {(r.source, r.target) for r in result.relationships if r.type is RelationshipType.OWNERSHIP}
    for entity in result.entities:
        if entity.parent_id is not None:
            assert entity.parent_id in ids
            assert (entity.parent_id, entity.id) in ownership


def test_run_is_deterministic(pipeline: ParsingPipeline) -> None:
    first = pipeline.run(FILES)
    second = pipeline.run(FILES)
    assert first.entities == second.entities
    assert first.relationships == second.relationships


def test_parallel_extraction_matches_sequential() -> None:
    sequential = ParsingPipeline(GrammarRegistry(), max_workers=1).run(FILES)
    parallel = ParsingPipeline(GrammarRegistry(), max_workers=4).run(FILES)
    assert parallel.entities == sequential.entities
    assert parallel.relationships == sequential.relationships


def test_progress_is_reported_after_every_file(pipeline: ParsingPipeline) -> None:
    calls = []
    pipeline.run(FILES, on_progress=lambda done, total: calls.append((done, total)))
    assert calls == [(i, len(FILES)) for i in range(1, len(FILES) + 1)]


def test_parallel_progress_counts_up_to_total() -> None:
    calls = []
    lock = threading.Lock()

    def on_progress(done: int, total: int) -> None:
        with lock:
            calls.append((done, total))

    ParsingPipeline(GrammarRegistry(), max_workers=3).run(FILES, on_progress=on_progress)
    assert [done for done, _ in calls] == list(range(1, len(FILES) + 1))
    assert all(total == len(FILES) for _, total in calls)


def test_grammar_failure_is_isolated_to_its_files() -> None:
    loaders = default_loaders()

    def broken():
        raise OSError("grammar asset corrupt")

    loaders["java"] = broken
    pipeline = ParsingPipeline(GrammarRegistry(loaders=loaders))
    result = pipeline.run(FILES)
    assert [f.path for f in result.failures] == ["src/Main.java"]
    assert "java" in result.failures[0].reason
    assert all(e.file_path != "src/Main.java" for e in result.entities)
    assert any(e.name == "Dog" for e in result.entities)


def test_strict_parse_failure_is_isolated() -> None:
    files = [("ok.py", "def ok():\n    pass\n"), ("bad.py", "def broken(:\n")]
    result = ParsingPipeline(GrammarRegistry(strict=True)).run(files)
    assert [e.name for e in result.entities] == ["ok"]
    assert [f.path for f in result.failures] == ["bad.py"]


def test_extractor_fault_is_isolated() -> None:
    class Exploding:
        def extract_entities(self, tree):
            raise RuntimeError("boom")

    extractors = default_extractors()
    extractors[Language.JAVA] = Exploding()
    pipeline = ParsingPipeline(GrammarRegistry(), extractors=extractors)
    result = pipeline.run(FILES)
    assert [f.path for f in result.failures] == ["src/Main.java"]
    assert any(e.name == "Animal" for e in result.entities)


def test_builtin_extractor_fault_is_recorded_as_failure(monkeypatch) -> None:
    def explode(self, node, tree):
        raise RuntimeError("class walk broke")

    monkeypatch.setattr(PythonExtractor, "_extract_class", explode)
    files = [("a.py", "class A:\n    pass\n"), ("b.py", "def f():\n    pass\n")]
    result = ParsingPipeline(GrammarRegistry()).run(files)
    assert [e.name for e in result.entities] == ["f"]
    assert [f.path for f in result.failures] == ["a.py"]
    assert "class walk broke" in result.failures[0].reason


def test_javascript_fault_inside_typescript_is_recorded(monkeypatch) -> None:
    def explode(self, node, tree):
        raise RuntimeError("function walk broke")

    monkeypatch.setattr(JavaScriptExtractor, "_extract_function", explode)
    result = ParsingPipeline(GrammarRegistry()).run([("a.ts", "function f() {}\n")])
    assert result.entities == ()
    assert [f.path for f in result.failures] == ["a.ts"]


def test_empty_extractor_table_skips_everything() -> None:
    result = ParsingPipeline(GrammarRegistry(), extractors={}).run(FILES)
    assert result.entities == ()
    assert len(result.skipped) == len(FILES)


def test_cancel_before_start() -> None:
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(AnalysisCancelled):
        ParsingPipeline(GrammarRegistry()).run(FILES, cancel=cancel)


def test_cancel_between_files_stops_extraction() -> None:
    progress = []
    # Checks: before extraction, then before each file
    cancel = Counter(trip_after=3)
    with pytest.raises(AnalysisCancelled):
        ParsingPipeline(GrammarRegistry()).run(
            FILES, on_progress=lambda done, total: progress.append(done), cancel=cancel
        )
    assert progress == [1, 2]


def test_cancel_before_resolution() -> None:
    # One check before extraction, one per file, then the stage check trips
    cancel = Counter(trip_after=1 + len(FILES))
    with pytest.raises(AnalysisCancelled, match="resolution"):
        ParsingPipeline(GrammarRegistry()).run(FILES, cancel=cancel)


def test_parsing_unavailable_is_fatal(monkeypatch) -> None:
    import repograph.analysis.grammars as grammars

    def failing_parser(*args, **kwargs):
        raise RuntimeError("no native library")

    monkeypatch.setattr(grammars, "Parser", failing_parser)
    with pytest.raises(ParsingUnavailableError):
        ParsingPipeline(GrammarRegistry()).run(FILES)


def test_accepts_source_file_records(pipeline: ParsingPipeline) -> None:
    result = pipeline.run([SourceFile("a.py", "def f():\n    pass\n")])
    assert [e.id for e in result.entities] == ["a.py:1:f"]
    assert result.relationships == ()


def test_empty_input(pipeline: ParsingPipeline) -> None:
    result = pipeline.run([])
    assert result.entities == ()
    assert result.relationships == ()
    assert result.stats()["files"] == 0


def test_result_to_dict_is_json_ready(pipeline: ParsingPipeline) -> None:
    import json

    data = pipeline.run(FILES).to_dict()
    encoded = json.loads(json.dumps(data))
    assert encoded["stats"]["files"] == len(FILES)
    assert encoded["stats"]["relationships_by_type"]["ownership"] >= 3
    assert encoded["skipped"] == ["README.md"]
    assert {"id", "name", "type", "language", "file_path", "location", "metadata", "parent_id"} <= set(
        encoded["entities"][0]
    )
