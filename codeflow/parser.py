"""Regex-based declaration and import extraction for multi-language source trees.

Extractors deliberately avoid building a real syntax tree: they pattern-match
the source text for declarations, imports and exports and classify what they
find with naming/directory heuristics.  This keeps scanning fast and free of
compiler dependencies at the cost of occasional false positives/negatives.

Every extractor is a pure function of ``(file_path, content)``; failures are
recorded in ``ParseResult.errors`` rather than raised.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from .models import ComponentType, Declaration, ImportStatement, Language, ParseResult

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Language <-> file-extension mapping (fixed)
# ---------------------------------------------------------------------------
LANGUAGE_MAP: Dict[str, Language] = {
    ".ts": Language.TYPESCRIPT,
    ".tsx": Language.REACT,
    ".js": Language.JAVASCRIPT,
    ".jsx": Language.REACT,
    ".py": Language.PYTHON,
    ".cs": Language.CSHARP,
}

# Tried in this order when resolving relative import specifiers.
RESOLUTION_EXTENSIONS: List[str] = [".ts", ".tsx", ".js", ".jsx", ".py", ".cs", ""]

SKIP_DIRS: Set[str] = {
    "node_modules", "dist", "build", ".git", "venv", ".venv",
    "__pycache__", "bin", "obj",
}

_AS_SPLIT = re.compile(r"\s+as\s+")
# Python "#" and TS "//" comments inside multi-line name lists.
_LINE_COMMENT = re.compile(r"(?:#|//)[^\n]*")


# ===================================================================
# Abstract Extractor Interface
# ===================================================================

class Extractor(ABC):
    """Base class for all language extractors.

    Subclasses implement :meth:`_extract`, appending into the supplied
    :class:`ParseResult` as they go so that whatever was found before an
    internal failure is still returned.
    """

    languages: Set[Language] = set()

    def extract(
        self,
        file_path: str,
        content: str,
        language: Optional[Language] = None,
    ) -> ParseResult:
        result = ParseResult(file_path=file_path)
        lang = language or detect_language(file_path)
        try:
            self._extract(file_path, content, lang, result)
        except Exception as exc:
            logger.warning("Extraction failed for %s: %s", file_path, exc)
            result.errors.append(str(exc) or "Parse error")
        return result

    def supports_language(self, language: Language) -> bool:
        return language in self.languages

    @abstractmethod
    def _extract(
        self,
        file_path: str,
        content: str,
        language: Optional[Language],
        result: ParseResult,
    ) -> None:
        ...


# ===================================================================
# Shared Helpers
# ===================================================================

def detect_language(file_path: str) -> Optional[Language]:
    return LANGUAGE_MAP.get(Path(file_path).suffix.lower())


def line_number(content: str, index: int) -> int:
    """1-based line number of character offset *index*."""
    return content.count("\n", 0, index) + 1


def column_number(content: str, index: int) -> int:
    """0-based column of character offset *index*."""
    return index - (content.rfind("\n", 0, index) + 1)


def split_names(text: str, keep: str = "last") -> List[str]:
    """Split a comma separated name list, resolving ``a as b`` aliases.

    *keep* selects which side of an alias is returned: ``"last"`` gives the
    local binding, ``"first"`` gives the original name.
    """
    names: List[str] = []
    for raw in _LINE_COMMENT.sub("", text).split(","):
        part = raw.strip()
        if not part:
            continue
        pieces = _AS_SPLIT.split(part)
        name = (pieces[-1] if keep == "last" else pieces[0]).strip()
        if name:
            names.append(name)
    return names


def has_declaration(result: ParseResult, name: str) -> bool:
    return any(d.name == name for d in result.declarations)


def add_declaration(
    result: ParseResult,
    content: str,
    index: int,
    name: str,
    kind: ComponentType,
    language: Language,
    description: Optional[str] = None,
    exported_names: Optional[Iterable[str]] = None,
    column: Optional[int] = None,
) -> Optional[Declaration]:
    """Append a declaration unless *name* was already claimed in this file."""
    if not name or has_declaration(result, name):
        return None
    decl = Declaration(
        name=name,
        kind=kind,
        file_path=result.file_path,
        line=line_number(content, index),
        column=column_number(content, index) if column is None else column,
        language=language,
        description=description,
        exported_names=list(exported_names or []),
    )
    result.declarations.append(decl)
    return decl


def add_import(result: ParseResult, statement: ImportStatement) -> None:
    result.imports.append(statement)


# ===================================================================
# Dispatch
# ===================================================================

_EXTRACTORS: Dict[Language, Extractor] = {}


def get_extractor(language: Language) -> Extractor:
    if not _EXTRACTORS:
        from .lang_csharp import CSharpExtractor
        from .lang_python import PythonExtractor
        from .lang_typescript import TypeScriptExtractor

        for extractor in (TypeScriptExtractor(), PythonExtractor(), CSharpExtractor()):
            for lang in extractor.languages:
                _EXTRACTORS[lang] = extractor
    return _EXTRACTORS[language]


def extract_source(file_path: str, content: str) -> ParseResult:
    """Route *content* to the extractor registered for the file's extension."""
    language = detect_language(file_path)
    if language is None:
        return ParseResult(
            file_path=file_path,
            errors=[f"Unsupported file type: {Path(file_path).suffix}"],
        )
    return get_extractor(language).extract(file_path, content, language)


def parse_file(file_path: Path) -> ParseResult:
    """Read *file_path* from disk and extract it.

    I/O failures are reported in the result, never raised.
    """
    if detect_language(str(file_path)) is None:
        return extract_source(str(file_path), "")
    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not read %s: %s", file_path, exc)
        return ParseResult(file_path=str(file_path), errors=[str(exc)])
    return extract_source(str(file_path), content)
