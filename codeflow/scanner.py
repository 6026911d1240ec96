"""Workspace scanner: walks a source tree and runs the extractors over it."""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .models import ParseResult
from .parser import LANGUAGE_MAP, SKIP_DIRS, parse_file

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative stop signal polled by the scanner between files."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled


def match_globs(rel_path: str, globs: Sequence[str]) -> bool:
    """Return True when *rel_path* (posix, relative to the root) matches any glob.

    ``fnmatch`` lets ``*`` cross directory separators, so ``**/x/**`` and
    ``x/**`` both exclude everything below a directory named ``x``.
    """
    if not globs:
        return False
    name = rel_path.rsplit("/", 1)[-1]
    for pattern in globs:
        candidates = [pattern]
        if pattern.startswith("**/"):
            candidates.append(pattern[3:])
        for candidate in candidates:
            if fnmatch.fnmatch(rel_path, candidate) or fnmatch.fnmatch(name, candidate):
                return True
    return False


class WorkspaceScanner:
    """Enumerate supported source files under a root and extract each one.

    Files are visited one extension at a time, each batch in sorted order, so
    repeated scans of the same tree produce results in the same order.
    """

    def __init__(self, exclude_globs: Optional[Sequence[str]] = None) -> None:
        self.exclude_globs: List[str] = list(exclude_globs or [])
        self.errors: List[ParseResult] = []
        self.files_scanned = 0

    def iter_files(self, root: Path, token: Optional[CancellationToken] = None):
        for ext in LANGUAGE_MAP:
            if token is not None and token.is_cancelled:
                return
            for file_path in sorted(root.rglob(f"*{ext}")):
                if token is not None and token.is_cancelled:
                    return
                if not file_path.is_file() or self._is_excluded(root, file_path):
                    continue
                yield file_path

    def _is_excluded(self, root: Path, file_path: Path) -> bool:
        rel = file_path.relative_to(root)
        if any(part in SKIP_DIRS for part in rel.parts[:-1]):
            return True
        return match_globs(rel.as_posix(), self.exclude_globs)

    def scan(
        self,
        root: Path,
        token: Optional[CancellationToken] = None,
        progress: Optional[Callable[[ParseResult], None]] = None,
    ) -> List[ParseResult]:
        """Extract every matching file under *root*.

        Only results with at least one declaration or import are returned.
        Results carrying errors are also collected on :attr:`errors`.  When
        *token* is cancelled the scan stops before the next file and returns
        what it has so far.
        """
        root = Path(root).resolve()
        self.errors = []
        self.files_scanned = 0
        results: List[ParseResult] = []

        for file_path in self.iter_files(root, token):
            try:
                result = parse_file(file_path)
            except Exception as exc:
                logger.warning("Failed to parse %s: %s", file_path, exc)
                result = ParseResult(file_path=str(file_path), errors=[str(exc)])

            self.files_scanned += 1
            if result.errors:
                self.errors.append(result)
            if not result.is_empty:
                results.append(result)
            if progress is not None:
                progress(result)

        if token is not None and token.is_cancelled:
            logger.info("Scan of %s cancelled after %d file(s)", root, self.files_scanned)
        else:
            logger.info(
                "Scanned %d file(s) under %s: %d with declarations or imports, %d with errors",
                self.files_scanned, root, len(results), len(self.errors),
            )
        return results


def scan_workspace(
    root: Path,
    exclude_globs: Optional[Sequence[str]] = None,
    token: Optional[CancellationToken] = None,
) -> List[ParseResult]:
    return WorkspaceScanner(exclude_globs).scan(root, token)
