"""Unit tests for extension -> language/grammar detection."""

from __future__ import annotations

import pytest

from repograph.analysis.entities import Language
from repograph.analysis.languages import LanguageDetector, file_extension


@pytest.fixture
def detector() -> LanguageDetector:
    return LanguageDetector()


@pytest.mark.parametrize(
    "path, language",
    [
        ("src/app.js", Language.JAVASCRIPT),
        ("src/App.jsx", Language.JAVASCRIPT),
        ("lib/index.mjs", Language.JAVASCRIPT),
        ("src/app.ts", Language.TYPESCRIPT),
        ("src/App.tsx", Language.TYPESCRIPT),
        ("src/Main.java", Language.JAVA),
        ("pkg/mod.py", Language.PYTHON),
    ],
)
def test_detect_known_extensions(detector: LanguageDetector, path: str, language: Language) -> None:
    assert detector.detect(path) is language


def test_detect_is_case_insensitive(detector: LanguageDetector) -> None:
    assert detector.detect("Main.JAVA") is Language.JAVA
    assert detector.detect("x.PY") is Language.PYTHON


def test_detect_unknown_extension_returns_none(detector: LanguageDetector) -> None:
    assert detector.detect("main.go") is None
    assert detector.detect("Makefile") is None
    assert detector.is_supported("README.md") is False


def test_grammar_for_tsx_uses_tsx_grammar(detector: LanguageDetector) -> None:
    assert detector.grammar_for("a.ts") == "typescript"
    assert detector.grammar_for("a.tsx") == "tsx"
    assert detector.grammar_for("a.jsx") == "javascript"
    assert detector.grammar_for("a.rb") is None


def test_custom_extensions_layer_over_defaults() -> None:
    detector = LanguageDetector({".es6": "javascript", "pyi": Language.PYTHON})
    assert detector.detect("old.es6") is Language.JAVASCRIPT
    assert detector.detect("stubs.pyi") is Language.PYTHON
    # Defaults are still present
    assert detector.detect("a.ts") is Language.TYPESCRIPT


def test_custom_extension_with_unknown_language_raises() -> None:
    with pytest.raises(ValueError):
        LanguageDetector({".rb": "ruby"})


def test_extension_table_is_a_copy(detector: LanguageDetector) -> None:
    table = detector.extension_table()
    table[".go"] = Language.JAVA
    assert detector.detect("main.go") is None


def test_file_extension_handles_windows_separators() -> None:
    assert file_extension("src\\pkg\\Mod.Py") == ".py"
    assert file_extension("noext") == ""
