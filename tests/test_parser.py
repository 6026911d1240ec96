"""Tests for extractor dispatch and shared parsing helpers."""

from pathlib import Path

import pytest

from codeflow.models import Language, ParseResult
from codeflow.parser import (
    Extractor,
    column_number,
    detect_language,
    extract_source,
    get_extractor,
    line_number,
    parse_file,
    split_names,
)


class TestDispatch:
    """Extension to language routing."""

    @pytest.mark.parametrize(
        "name,language",
        [
            ("a.ts", Language.TYPESCRIPT),
            ("a.tsx", Language.REACT),
            ("a.js", Language.JAVASCRIPT),
            ("a.jsx", Language.REACT),
            ("a.py", Language.PYTHON),
            ("a.cs", Language.CSHARP),
        ],
    )
    def test_detect_language(self, name, language):
        assert detect_language(name) is language

    def test_unknown_extension(self):
        assert detect_language("README.md") is None

    def test_unsupported_file_type_is_error_result(self):
        result = extract_source("notes/readme.md", "# hello")

        assert result.declarations == []
        assert result.imports == []
        assert result.errors == ["Unsupported file type: .md"]

    def test_extractor_per_language(self):
        assert get_extractor(Language.TYPESCRIPT) is get_extractor(Language.REACT)
        assert get_extractor(Language.PYTHON).supports_language(Language.PYTHON)
        assert not get_extractor(Language.CSHARP).supports_language(Language.PYTHON)

    def test_routes_by_extension(self):
        result = extract_source("src/widget.py", "def build_widget():\n    pass\n")

        assert [d.name for d in result.declarations] == ["build_widget"]
        assert result.declarations[0].language is Language.PYTHON


class TestExtractorContract:
    """Extractors report failures instead of raising."""

    def test_internal_failure_keeps_partial_results(self):
        class HalfBroken(Extractor):
            languages = {Language.PYTHON}

            def _extract(self, file_path, content, language, result):
                result.errors.append("first pass ok")
                raise RuntimeError("boom")

        result = HalfBroken().extract("x.py", "")

        assert isinstance(result, ParseResult)
        assert result.errors == ["first pass ok", "boom"]

    def test_garbage_input_does_not_raise(self):
        for name in ("a.ts", "a.tsx", "a.py", "a.cs"):
            result = extract_source(name, "}{)(<<>>\x00 class ( def export {")
            assert isinstance(result, ParseResult)


class TestParseFile:
    """Reading files from disk."""

    def test_reads_and_extracts(self, temp_dir: Path):
        path = temp_dir / "util.ts"
        path.write_text("export const add = (a, b) => a + b;\n", encoding="utf-8")

        result = parse_file(path)

        assert result.file_path == str(path)
        assert [d.name for d in result.declarations] == ["add"]

    def test_undecodable_file_is_error_result(self, temp_dir: Path):
        path = temp_dir / "binary.py"
        path.write_bytes(b"\xff\xfe\x00bad")

        result = parse_file(path)

        assert result.is_empty
        assert len(result.errors) == 1

    def test_missing_file_is_error_result(self, temp_dir: Path):
        result = parse_file(temp_dir / "gone.ts")

        assert result.is_empty
        assert result.errors


class TestHelpers:
    def test_line_and_column(self):
        content = "one\ntwo\n  three"
        index = content.index("three")

        assert line_number(content, index) == 3
        assert column_number(content, index) == 2
        assert line_number(content, 0) == 1
        assert column_number(content, 0) == 0

    def test_split_names_aliases(self):
        assert split_names("a, b as c, d") == ["a", "c", "d"]
        assert split_names("a, b as c, d", keep="first") == ["a", "b", "d"]

    def test_split_names_skips_blanks_and_comments(self):
        assert split_names("a,\n  # trailing comment\n, b,", keep="first") == ["a", "b"]

    def test_split_names_comment_does_not_swallow_next_name(self):
        assert split_names("User,  # the user\n    Base,\n", keep="first") == ["User", "Base"]
        assert split_names("a, // note\n b") == ["a", "b"]
