"""List supported file extensions, their languages and grammars."""

from __future__ import annotations

import sys
from argparse import Namespace
from pathlib import Path

from repograph.analysis import GrammarLoadError, GrammarRegistry, LanguageDetector
from repograph.config import analysis_settings, load_config


def run(args: Namespace) -> None:
    """Print the extension table; with --check, also load each grammar."""
    path = Path(getattr(args, "path", Path("."))).resolve()
    check = getattr(args, "check", False)

    _, _, extensions = analysis_settings(load_config(path if path.is_dir() else None))
    try:
        detector = LanguageDetector(extensions)
    except ValueError as e:
        print(f"Invalid analysis.extensions in config: {e}", file=sys.stderr)
        sys.exit(1)

    table = detector.extension_table()
    grammars = {ext: detector.grammar_for(f"file{ext}") for ext in table}
    for ext in sorted(table):
        print(f"{ext:<8} {table[ext].value:<12} {grammars[ext]}")

    if not check:
        return

    registry = GrammarRegistry(detector)
    failed = 0
    print()
    for grammar in sorted(set(grammars.values())):
        try:
            registry.load(grammar)
        except GrammarLoadError as e:
            failed += 1
            print(f"{grammar:<12} FAILED  {e}")
        else:
            print(f"{grammar:<12} ok")
    registry.cleanup()
    if failed:
        sys.exit(1)
