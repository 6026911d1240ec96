"""TypeScript / JavaScript / React extractor.

Recognises import and re-export statements, UI components (arrow functions,
function declarations, class components and ``memo``/``forwardRef``
wrappers), plain classes and exported functions, then classifies every
declaration with naming and directory conventions.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Optional

from .models import (
    DEFAULT_EXPORT,
    WILDCARD,
    ComponentType,
    ImportStatement,
    Language,
    ParseResult,
)
from .parser import Extractor, add_declaration, add_import, has_declaration, split_names

# Body extraction limits (characters).
ARROW_WINDOW = 500
SCAN_WINDOW = 5000
IMPLICIT_CHUNK = 2000
FALLBACK_CHUNK = 1000

UI_BASE_CLASSES = ("Component", "PureComponent", "React.Component", "React.PureComponent")

_QUOTED = r"""['"]([^'"]+)['"]"""


class TypeScriptExtractor(Extractor):
    """Regex extractor for ``.ts``, ``.tsx``, ``.js`` and ``.jsx`` files."""

    languages = {Language.TYPESCRIPT, Language.JAVASCRIPT, Language.REACT}

    PATTERNS = {
        "named_import": re.compile(
            r"import\s+(?:type\s+)?(?:(\w+)\s*,\s*)?\{([^}]+)\}\s*from\s*" + _QUOTED
        ),
        "default_import": re.compile(
            r"import\s+(?:type\s+)?(?!type\b)(\w+)\s+from\s*" + _QUOTED
        ),
        "namespace_import": re.compile(
            r"import\s+(?:(\w+)\s*,\s*)?\*\s*as\s+(\w+)\s+from\s*" + _QUOTED
        ),
        "reexport_named": re.compile(r"export\s+(?:type\s+)?\{([^}]+)\}\s*from\s*" + _QUOTED),
        "reexport_all": re.compile(r"export\s*\*\s*from\s*" + _QUOTED),
        "reexport_namespace": re.compile(r"export\s*\*\s*as\s+(\w+)\s+from\s*" + _QUOTED),
        "arrow_component": re.compile(
            r"(?:export\s+)?(?:const|let)\s+([A-Z]\w*)\s*"
            r"(?::\s*(?:React\.)?(?:FC|VFC|FunctionComponent|ComponentType)(?:<(?:[^<>]|<[^<>]*>)*>)?\s*)?"
            r"=\s*(?:async\s+)?(?:<[^>]*>\s*)?(?:\([^)]*\)|\w+)\s*(?::\s*[^=]+?)?\s*=>"
        ),
        "function_component": re.compile(
            r"(?:export\s+(?:default\s+)?)?function\s+([A-Z]\w*)\s*(?:<[^>]*>)?\s*\("
        ),
        "class_component": re.compile(
            r"(?:export\s+(?:default\s+)?)?class\s+(\w+)(?:<[^>]*>)?\s+extends\s+"
            r"(?:React\.)?(?:Component|PureComponent)\b"
        ),
        "memo_component": re.compile(
            r"(?:export\s+)?(?:const|let)\s+([A-Z]\w*)\s*=\s*(?:React\.)?memo\s*(?:<[^>]*>)?\s*\("
        ),
        "forward_ref_component": re.compile(
            r"(?:export\s+)?(?:const|let)\s+([A-Z]\w*)\s*=\s*(?:React\.)?forwardRef\s*(?:<[^>]*>)?\s*\("
        ),
        "default_export_name": re.compile(
            r"^\s*export\s+default\s+(?!function\b|class\b|async\b|abstract\b)([A-Za-z_$][\w$]*)\s*;?\s*$",
            re.MULTILINE,
        ),
        "class": re.compile(
            r"(?:export\s+(?:default\s+)?)?(?:abstract\s+)?class\s+(\w+)(?:<[^>{]*>)?"
            r"(?:\s+extends\s+([\w.]+)(?:<[^>{]*>)?)?"
            r"(?:\s+implements\s+([\w.,\s<>]+?))?\s*\{"
        ),
        "exported_function": re.compile(
            r"export\s+(?:default\s+)?(?:async\s+)?function\s*\*?\s*(\w+)\s*(?:<[^>]*>)?\s*\("
        ),
        "exported_arrow": re.compile(
            r"export\s+(?:const|let)\s+(\w+)\s*(?::\s*[^=]+?)?=\s*(?:async\s+)?"
            r"(?:(?:<[^>]*>\s*)?(?:\([^)]*\)|\w+)\s*(?::\s*[^=]+?)?\s*=>|function\b)"
        ),
        "inline_export": re.compile(
            r"export\s+(default\s+)?(?:declare\s+)?(?:abstract\s+)?"
            r"(?:(?:async\s+)?function\s*\*?\s*|(?:const|let|var|class|interface|type|enum)\s+)(\w+)"
        ),
        "named_export": re.compile(r"export\s*\{([^}]+)\}(?!\s*from)"),
    }

    def _extract(
        self,
        file_path: str,
        content: str,
        language: Optional[Language],
        result: ParseResult,
    ) -> None:
        lang = language or Language.TYPESCRIPT

        self._parse_imports(content, result)
        self._parse_reexports(content, result)
        self._parse_components(content, lang, result)
        self._parse_classes(content, lang, result)
        self._parse_functions(content, lang, result)

        exports = parse_exports(content)
        for decl in result.declarations:
            decl.exported_names = list(exports.get(decl.name, []))

        for decl in result.declarations:
            decl.kind = infer_component_type(decl.name, file_path, content, decl.kind)

    # ------------------------------------------------------------------
    # Imports / re-exports
    # ------------------------------------------------------------------

    def _parse_imports(self, content: str, result: ParseResult) -> None:
        for match in self.PATTERNS["named_import"].finditer(content):
            default_name, names_text, source = match.groups()
            if default_name:
                add_import(result, ImportStatement(source=source, names=[default_name], is_default=True))
            names = split_names(names_text, keep="first")
            names = [n for n in (_strip_type_prefix(n) for n in names) if n]
            if names:
                add_import(result, ImportStatement(source=source, names=names))

        for match in self.PATTERNS["default_import"].finditer(content):
            name, source = match.groups()
            add_import(result, ImportStatement(source=source, names=[name], is_default=True))

        for match in self.PATTERNS["namespace_import"].finditer(content):
            default_name, alias, source = match.groups()
            if default_name:
                add_import(result, ImportStatement(source=source, names=[default_name], is_default=True))
            add_import(result, ImportStatement(source=source, names=[alias], is_namespace=True))

    def _parse_reexports(self, content: str, result: ParseResult) -> None:
        for match in self.PATTERNS["reexport_named"].finditer(content):
            names_text, source = match.groups()
            names = split_names(names_text, keep="first")
            if names:
                add_import(result, ImportStatement(source=source, names=names, is_reexport=True))

        for match in self.PATTERNS["reexport_all"].finditer(content):
            add_import(
                result,
                ImportStatement(
                    source=match.group(1), names=[WILDCARD], is_namespace=True, is_reexport=True,
                ),
            )

        for match in self.PATTERNS["reexport_namespace"].finditer(content):
            alias, source = match.groups()
            add_import(
                result,
                ImportStatement(source=source, names=[alias], is_namespace=True, is_reexport=True),
            )

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _parse_components(self, content: str, lang: Language, result: ParseResult) -> None:
        for match in self.PATTERNS["arrow_component"].finditer(content):
            body = extract_function_body(content, match.start())
            if has_jsx(body) or is_react_fc(match.group(0)):
                add_declaration(result, content, match.start(), match.group(1), ComponentType.COMPONENT, lang)

        for match in self.PATTERNS["function_component"].finditer(content):
            body = extract_function_body(content, match.start(), is_declaration=True)
            if has_jsx(body):
                add_declaration(result, content, match.start(), match.group(1), ComponentType.COMPONENT, lang)

        for match in self.PATTERNS["class_component"].finditer(content):
            add_declaration(result, content, match.start(), match.group(1), ComponentType.COMPONENT, lang)

        for key in ("memo_component", "forward_ref_component"):
            for match in self.PATTERNS[key].finditer(content):
                if has_declaration(result, match.group(1)):
                    continue
                body = extract_function_body(content, match.start())
                if has_jsx(body) or "=>" in body:
                    add_declaration(
                        result, content, match.start(), match.group(1), ComponentType.COMPONENT, lang,
                    )

    def _parse_classes(self, content: str, lang: Language, result: ParseResult) -> None:
        for match in self.PATTERNS["class"].finditer(content):
            name, base, interfaces = match.groups()
            if base and base in UI_BASE_CLASSES:
                continue
            add_declaration(
                result, content, match.start(), name, ComponentType.CLASS, lang,
                description=inheritance_description(
                    [base] if base else [],
                    split_names(interfaces or "", keep="first"),
                ),
            )

    def _parse_functions(self, content: str, lang: Language, result: ParseResult) -> None:
        for key in ("exported_function", "exported_arrow"):
            for match in self.PATTERNS[key].finditer(content):
                add_declaration(result, content, match.start(), match.group(1), ComponentType.FUNCTION, lang)


# ===================================================================
# Module-level helpers
# ===================================================================

def _strip_type_prefix(name: str) -> str:
    return name[5:].strip() if name.startswith("type ") else name


def inheritance_description(bases: List[str], interfaces: List[str]) -> Optional[str]:
    """Encode base classes / interfaces as ``"Extends: A; Implements: X, Y"``."""
    parts: List[str] = []
    if bases:
        parts.append("Extends: " + ", ".join(bases))
    if interfaces:
        parts.append("Implements: " + ", ".join(interfaces))
    return "; ".join(parts) or None


def parse_exports(content: str) -> Dict[str, List[str]]:
    """Map each locally declared name to the names it is exported under."""
    patterns = TypeScriptExtractor.PATTERNS
    exports: Dict[str, List[str]] = {}

    def _add(local: str, exported: str) -> None:
        bucket = exports.setdefault(local, [])
        if exported not in bucket:
            bucket.append(exported)

    for match in patterns["inline_export"].finditer(content):
        is_default, name = match.groups()
        _add(name, name)
        if is_default:
            _add(name, DEFAULT_EXPORT)

    for match in patterns["named_export"].finditer(content):
        for raw in match.group(1).split(","):
            pieces = [p.strip() for p in re.split(r"\s+as\s+", raw.strip()) if p.strip()]
            if not pieces:
                continue
            _add(pieces[0], pieces[-1])

    for match in patterns["default_export_name"].finditer(content):
        _add(match.group(1), DEFAULT_EXPORT)

    return exports


def has_jsx(content: str) -> bool:
    """Heuristic: does *content* look like it renders UI markup?"""
    return bool(
        re.search(r"<[A-Z]\w*[\s/>]", content)
        or re.search(r"</[A-Z]\w*>", content)
        or re.search(r"return\s*\(?\s*<", content)
        or re.search(r"=>\s*\(?\s*<", content)
        or "<>" in content
        or re.search(r"</?>", content)
        or re.search(r"<[a-z]+[\s/>]", content)
        or re.search(r"<[a-z]+-[a-z]+", content)
        or re.search(r"className[=:]", content)
        or re.search(r"onClick[=:]", content)
        or (re.search(r"\{.*\}", content) and re.search(r"<[^>]+>", content))
    )


def is_react_fc(signature: str) -> bool:
    """True when the declaration's type annotation or wrapper marks it as a component."""
    return bool(
        re.search(r":\s*(?:React\.)?(?:FC|FunctionComponent|ComponentType|VFC|PropsWithChildren)", signature)
        or re.search(r":\s*(?:React\.)?(?:ReactElement|ReactNode|JSX\.Element)", signature)
        or re.search(r"memo\s*\(", signature)
        or re.search(r"forwardRef\s*\(", signature)
    )


def _balanced(content: str, start: int, limit: int, open_ch: str, close_ch: str) -> Optional[int]:
    """Index of the bracket closing the one at *start*, or None within *limit*."""
    depth = 0
    for i in range(start, limit):
        ch = content[i]
        if ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return i
    return None


def _body_from(content: str, index: int, limit: int) -> str:
    """Extract the body beginning at the first non-space character at/after *index*."""
    while index < limit and content[index].isspace():
        index += 1
    if index >= limit:
        return content[index:min(index + FALLBACK_CHUNK, len(content))]

    ch = content[index]
    if ch == "{":
        end = _balanced(content, index, limit, "{", "}")
    elif ch == "(":
        end = _balanced(content, index, limit, "(", ")")
    else:
        # Implicit return (JSX or expression): take a bounded chunk.
        return content[index:min(index + IMPLICIT_CHUNK, len(content))]

    if end is None:
        return content[index:min(index + IMPLICIT_CHUNK, len(content))]
    return content[index:end + 1]


def extract_function_body(content: str, start: int, is_declaration: bool = False) -> str:
    """Return a rough function body for the declaration starting at *start*.

    Arrow functions are read from the ``=>``; function declarations from the
    opening brace that follows their parameter list.  Block bodies and
    parenthesised expression bodies are bracket-balanced; scanning never goes
    further than ``SCAN_WINDOW`` characters past *start*.
    """
    limit = min(len(content), start + SCAN_WINDOW)

    if not is_declaration:
        arrow = content.find("=>", start, min(limit, start + ARROW_WINDOW))
        if arrow != -1:
            return _body_from(content, arrow + 2, limit)

    paren = content.find("(", start, limit)
    if paren != -1:
        close = _balanced(content, paren, limit, "(", ")")
        search_from = close + 1 if close is not None else paren
    else:
        search_from = start
    brace = content.find("{", search_from, limit)
    if brace == -1:
        return content[start:min(start + FALLBACK_CHUNK, len(content))]
    return _body_from(content, brace, limit)


def infer_component_type(
    name: str,
    file_path: str,
    content: str,
    detected: ComponentType = ComponentType.UNKNOWN,
) -> ComponentType:
    """Classify a TS/JS declaration by naming convention and directory."""
    lower_name = name.lower()
    path = Path(file_path)
    file_name = path.name.lower()
    dir_name = path.parent.name.lower()

    if re.match(r"use[A-Z0-9_]", name):
        return ComponentType.HOOK
    if "context" in lower_name or "provider" in lower_name:
        return ComponentType.CONTEXT
    if "service" in lower_name or dir_name == "services":
        return ComponentType.SERVICE
    if "api" in lower_name or dir_name == "api":
        return ComponentType.API
    if "store" in lower_name or "slice" in lower_name or "reducer" in lower_name:
        return ComponentType.STORE
    if (
        "util" in lower_name or "helper" in lower_name
        or dir_name in ("utils", "helpers")
    ):
        return ComponentType.UTIL
    if file_name.endswith(".d.ts") or dir_name == "types" or "types" in lower_name:
        return ComponentType.TYPE
    if "config" in lower_name or "config" in file_name:
        return ComponentType.CONFIG

    if detected in (ComponentType.COMPONENT, ComponentType.FUNCTION, ComponentType.CLASS):
        return detected
    if has_jsx(content):
        return ComponentType.COMPONENT
    return ComponentType.UNKNOWN
