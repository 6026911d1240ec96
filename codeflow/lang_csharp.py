"""C# extractor, tuned for Unity and ASP.NET style projects."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Tuple

from .models import ComponentType, ImportStatement, Language, ParseResult
from .parser import Extractor, add_declaration, add_import

_MODIFIERS = r"(?:(?:public|private|protected|internal|abstract|sealed|static|partial|unsafe|new|readonly)\s+)*"
_ATTRIBUTES = r"(?:\[[^\]\n]*\]\s*)*"


class CSharpExtractor(Extractor):
    """Regex extractor for ``.cs`` files.

    Classes, interfaces and enums are exported under their bare name and,
    when a namespace is declared, under ``Namespace.Name`` as well.
    """

    languages = {Language.CSHARP}

    PATTERNS = {
        "using": re.compile(r"^[ \t]*(?:global\s+)?using\s+(?:static\s+)?([\w.]+)\s*;", re.MULTILINE),
        "using_alias": re.compile(r"^[ \t]*(?:global\s+)?using\s+(\w+)\s*=\s*([\w.]+)\s*;", re.MULTILINE),
        "namespace": re.compile(r"\bnamespace\s+([\w.]+)"),
        "class": re.compile(
            r"^[ \t]*" + _ATTRIBUTES + _MODIFIERS
            + r"class\s+(\w+)(?:<[^>{]+>)?(?:\s*:\s*([^{;]+?))?(?:\s+where\s+[^{;]+?)?\s*\{",
            re.MULTILINE,
        ),
        "interface": re.compile(
            r"^[ \t]*" + _ATTRIBUTES + _MODIFIERS
            + r"interface\s+(I[A-Z]\w*)(?:<[^>{]+>)?(?:\s*:\s*([^{;]+?))?(?:\s+where\s+[^{;]+?)?\s*\{",
            re.MULTILINE,
        ),
        "enum": re.compile(
            r"^[ \t]*" + _ATTRIBUTES + _MODIFIERS + r"enum\s+(\w+)(?:\s*:\s*\w+)?\s*\{",
            re.MULTILINE,
        ),
    }

    def _extract(
        self,
        file_path: str,
        content: str,
        language: Optional[Language],
        result: ParseResult,
    ) -> None:
        self._parse_usings(content, result)
        namespace = parse_namespace(content)

        bases_by_name = {}
        for key, kind in (("class", ComponentType.CLASS), ("interface", ComponentType.TYPE)):
            for match in self.PATTERNS[key].finditer(content):
                name = match.group(1)
                type_names = split_type_list(match.group(2) or "")
                if kind is ComponentType.TYPE:
                    description = f"Extends: {', '.join(type_names)}" if type_names else None
                else:
                    description = _class_description(type_names)
                decl = add_declaration(
                    result, content, _keyword_index(match), name, kind, Language.CSHARP,
                    description=description,
                    exported_names=qualified_names(name, namespace),
                )
                if decl is not None:
                    bases_by_name[name] = type_names

        for match in self.PATTERNS["enum"].finditer(content):
            name = match.group(1)
            add_declaration(
                result, content, _keyword_index(match), name, ComponentType.TYPE, Language.CSHARP,
                exported_names=qualified_names(name, namespace),
            )

        for decl in result.declarations:
            decl.kind = infer_csharp_type(
                decl.name, file_path, bases_by_name.get(decl.name, []), decl.kind,
            )

    def _parse_usings(self, content: str, result: ParseResult) -> None:
        for match in self.PATTERNS["using"].finditer(content):
            namespace = match.group(1)
            add_import(
                result,
                ImportStatement(source=namespace, names=[namespace.split(".")[-1]], is_namespace=True),
            )

        for match in self.PATTERNS["using_alias"].finditer(content):
            target = match.group(2)
            add_import(result, ImportStatement(source=target, names=[target.split(".")[-1]]))


def _keyword_index(match: re.Match) -> int:
    """Offset of the first non-blank character on the line holding the name."""
    content = match.string
    index = content.rfind("\n", 0, match.start(1)) + 1
    while content[index] in " \t":
        index += 1
    return index


def _class_description(type_names: List[str]) -> Optional[str]:
    bases, interfaces = partition_bases(type_names)
    parts = []
    if bases:
        parts.append("Extends: " + ", ".join(bases))
    if interfaces:
        parts.append("Implements: " + ", ".join(interfaces))
    return "; ".join(parts) or None


def parse_namespace(content: str) -> Optional[str]:
    match = CSharpExtractor.PATTERNS["namespace"].search(content)
    return match.group(1) if match else None


def qualified_names(name: str, namespace: Optional[str]) -> List[str]:
    return [name, f"{namespace}.{name}"] if namespace else [name]


def split_type_list(text: str) -> List[str]:
    """Split a C# base-type list on top-level commas, dropping generic args.

    ``"Base<T>, IFoo, IBar<K, V> where T : class"`` -> ``["Base", "IFoo", "IBar"]``.
    """
    text = re.split(r"\bwhere\b", text)[0]
    parts: List[str] = []
    depth = 0
    current = ""
    for ch in text:
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(current)
            current = ""
            continue
        if depth == 0 and ch not in "<>":
            current += ch
    parts.append(current)
    names = []
    for part in parts:
        name = part.strip().split(".")[-1]
        if name:
            names.append(name)
    return names


def is_interface_name(name: str) -> bool:
    return len(name) > 1 and name[0] == "I" and name[1].isupper()


def partition_bases(type_names: List[str]) -> Tuple[List[str], List[str]]:
    """Separate base classes from implemented interfaces by naming convention."""
    bases = [n for n in type_names if not is_interface_name(n)]
    interfaces = [n for n in type_names if is_interface_name(n)]
    return bases, interfaces


def infer_csharp_type(
    name: str,
    file_path: str,
    bases: List[str],
    detected: ComponentType = ComponentType.CLASS,
) -> ComponentType:
    lower_name = name.lower()
    dir_name = Path(file_path).parent.name.lower()

    # Unity
    if "MonoBehaviour" in bases:
        return ComponentType.COMPONENT
    if "ScriptableObject" in bases:
        return ComponentType.CONFIG

    if "service" in lower_name or dir_name == "services":
        return ComponentType.SERVICE
    if "controller" in lower_name or dir_name == "controllers":
        return ComponentType.API
    if "manager" in lower_name:
        return ComponentType.SERVICE
    if "repository" in lower_name or "repo" in lower_name:
        return ComponentType.SERVICE
    if "handler" in lower_name:
        return ComponentType.FUNCTION
    if dir_name in ("models", "entities"):
        return ComponentType.CLASS
    if is_interface_name(name):
        return ComponentType.TYPE
    if "util" in lower_name or "helper" in lower_name or dir_name == "utils":
        return ComponentType.UTIL
    if "config" in lower_name or "settings" in lower_name:
        return ComponentType.CONFIG
    if detected is ComponentType.TYPE:
        return ComponentType.TYPE
    return ComponentType.CLASS
