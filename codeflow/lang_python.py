"""Python extractor: top-level classes/functions and import statements."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from .models import ComponentType, ImportStatement, Language, ParseResult
from .parser import Extractor, add_declaration, add_import, split_names


class PythonExtractor(Extractor):
    """Regex extractor for ``.py`` files.

    Only module-level definitions are recorded; methods and nested functions
    are ignored.  Base classes are passed to the graph builder through the
    declaration description (``"Extends: Base, Mixin"``).
    """

    languages = {Language.PYTHON}

    PATTERNS = {
        "from_import": re.compile(r"^[ \t]*from\s+([\w.]+)\s+import\s+([^#\n]+)", re.MULTILINE),
        "paren_names": re.compile(r"import\s*\(([^)]*)\)"),
        "import": re.compile(r"^[ \t]*import\s+([^#\n]+)", re.MULTILINE),
        "class": re.compile(r"^class\s+(\w+)(?:\s*\(([^)]*)\))?\s*:", re.MULTILINE),
        "function": re.compile(r"^(?:async\s+)?def\s+(\w+)\s*\(", re.MULTILINE),
    }

    def _extract(
        self,
        file_path: str,
        content: str,
        language: Optional[Language],
        result: ParseResult,
    ) -> None:
        self._parse_imports(content, result)
        self._parse_classes(content, result)
        self._parse_functions(content, result)

        for decl in result.declarations:
            decl.kind = infer_python_type(decl.name, file_path)

    def _parse_imports(self, content: str, result: ParseResult) -> None:
        for match in self.PATTERNS["from_import"].finditer(content):
            module, import_part = match.group(1), match.group(2).strip()

            if import_part.startswith("("):
                close = content.find(")", match.start())
                if close == -1:
                    continue
                names_match = self.PATTERNS["paren_names"].search(content, match.start(), close + 1)
                names = split_names(names_match.group(1), keep="first") if names_match else []
            else:
                names = split_names(import_part.rstrip("\\"), keep="first")

            if names:
                add_import(result, ImportStatement(source=module_to_specifier(module), names=names))

        for match in self.PATTERNS["import"].finditer(content):
            for part in match.group(1).split(","):
                pieces = re.split(r"\s+as\s+", part.strip())
                module = pieces[0].strip()
                if not re.fullmatch(r"[\w.]+", module):
                    continue
                alias = pieces[1].strip() if len(pieces) > 1 else module.split(".")[-1]
                add_import(
                    result,
                    ImportStatement(source=module, names=[alias], is_namespace=True),
                )

    def _parse_classes(self, content: str, result: ParseResult) -> None:
        for match in self.PATTERNS["class"].finditer(content):
            name, bases = match.group(1), match.group(2)
            bases = " ".join(bases.split()) if bases else ""
            add_declaration(
                result, content, match.start(), name, ComponentType.CLASS, Language.PYTHON,
                description=f"Extends: {bases}" if bases else None,
                exported_names=[name],
                column=0,
            )

    def _parse_functions(self, content: str, result: ParseResult) -> None:
        for match in self.PATTERNS["function"].finditer(content):
            name = match.group(1)
            if is_private_name(name):
                continue
            add_declaration(
                result, content, match.start(), name, ComponentType.FUNCTION, Language.PYTHON,
                exported_names=[name],
                column=0,
            )


def is_private_name(name: str) -> bool:
    """Single-underscore names and dunders are not part of a module's surface."""
    if name.startswith("__") and name.endswith("__"):
        return True
    return name.startswith("_") and not name.startswith("__")


def module_to_specifier(module: str) -> str:
    """Turn a relative Python module (``.a.b``, ``..pkg``) into a path specifier.

    Absolute dotted modules are returned unchanged.
    """
    if not module.startswith("."):
        return module
    stripped = module.lstrip(".")
    depth = len(module) - len(stripped)
    prefix = "./" if depth == 1 else "../" * (depth - 1)
    rest = stripped.replace(".", "/")
    if not rest:
        return prefix.rstrip("/") or "."
    return prefix + rest


def infer_python_type(name: str, file_path: str) -> ComponentType:
    lower_name = name.lower()
    path = Path(file_path)
    file_name = path.name.lower()
    dir_name = path.parent.name.lower()

    # Django/Flask style views and models
    if dir_name == "views" or "view" in file_name:
        return ComponentType.COMPONENT
    if dir_name == "models" or "model" in file_name:
        return ComponentType.CLASS
    if "service" in lower_name or dir_name == "services":
        return ComponentType.SERVICE
    if (
        "api" in lower_name or "route" in lower_name
        or dir_name in ("api", "routes")
    ):
        return ComponentType.API
    if (
        "util" in lower_name or "helper" in lower_name
        or dir_name in ("utils", "helpers")
    ):
        return ComponentType.UTIL
    if "config" in lower_name or "config" in file_name or file_name == "settings.py":
        return ComponentType.CONFIG
    if lower_name.startswith("test") or file_name.startswith("test_"):
        return ComponentType.FUNCTION
    return ComponentType.UNKNOWN
