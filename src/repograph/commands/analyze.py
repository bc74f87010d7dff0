"""Analyze command: extract entities and relationships from a project and write them as JSON."""

from __future__ import annotations

import json
import logging
import sys
import time
from argparse import Namespace
from pathlib import Path

from pathspec import PathSpec

from repograph.analysis import (
    GrammarRegistry,
    LanguageDetector,
    ParsingPipeline,
    ParsingUnavailableError,
    SourceFile,
)
from repograph.config import analysis_settings, get_project_root, load_config
from repograph.utils.ignore import iter_source_files, load_spec

logger = logging.getLogger(__name__)


def _collect_files_to_analyze(
    path: Path,
    project_root: Path,
    spec: PathSpec,
    detector: LanguageDetector,
) -> list[Path]:
    """Collect analyzable files under path (respect ignore, supported languages)."""
    return list(iter_source_files(path, project_root, spec, detector.is_supported))


def _read_sources(files: list[Path], project_root: Path) -> list[SourceFile]:
    """Read each file as text; paths are posix and relative to project_root."""
    sources: list[SourceFile] = []
    for file_path in files:
        try:
            content = file_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Cannot read %s: %s", file_path, e)
            continue
        sources.append(SourceFile(file_path.relative_to(project_root).as_posix(), content))
    return sources


def run(args: Namespace) -> None:
    """Run the analyze command."""
    path = Path(getattr(args, "path", Path("."))).resolve()
    verbose = getattr(args, "verbose", False)
    dry_run = getattr(args, "dry_run", False)
    output = getattr(args, "output", None)

    if not path.exists():
        print(f"Path does not exist: {path}", file=sys.stderr)
        sys.exit(1)

    project_root = get_project_root(path)
    config = load_config(project_root)
    max_workers, strict, extensions = analysis_settings(config)
    if getattr(args, "workers", None):
        max_workers = max(1, args.workers)
    if getattr(args, "strict", False):
        strict = True

    try:
        detector = LanguageDetector(extensions)
    except ValueError as e:
        print(f"Invalid analysis.extensions in config: {e}", file=sys.stderr)
        sys.exit(1)

    spec = load_spec(project_root, config)
    files = _collect_files_to_analyze(path, project_root, spec, detector)
    total = len(files)

    if total == 0:
        print(
            "No analyzable files found (JavaScript, TypeScript, Java, Python).",
            file=sys.stderr,
        )
        return

    if dry_run:
        print(f"Would analyze {total} file(s).", file=sys.stderr)
        for f in files:
            print(f"  {f.relative_to(project_root).as_posix()}", file=sys.stderr)
        return

    sources = _read_sources(files, project_root)
    registry = GrammarRegistry(detector, strict=strict)
    pipeline = ParsingPipeline(registry, max_workers=max_workers)

    def on_progress(completed: int, total_files: int) -> None:
        if verbose:
            print(f"  [{completed}/{total_files}]", file=sys.stderr)

    start = time.perf_counter()
    try:
        result = pipeline.run(sources, on_progress=on_progress)
    except ParsingUnavailableError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        pipeline.cleanup()
    elapsed = time.perf_counter() - start

    data = result.to_dict()
    data["root"] = project_root.as_posix()
    if output:
        out_path = Path(output)
        with out_path.open("w", encoding="utf-8") as out:
            json.dump(data, out, indent=2)
            out.write("\n")
    else:
        json.dump(data, sys.stdout, indent=2)
        sys.stdout.write("\n")

    stats = result.stats()
    print(
        f"Analyzed {stats['files']} file(s) in {elapsed:.1f}s: "
        f"{stats['entities']} entities, {stats['relationships']} relationships.",
        file=sys.stderr,
    )
    if result.failures:
        print(f"  ({len(result.failures)} file(s) had parse errors)", file=sys.stderr)
        if verbose:
            for failure in result.failures:
                print(f"    {failure.path}: {failure.reason}", file=sys.stderr)
