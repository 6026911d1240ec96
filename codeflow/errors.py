"""Exceptions raised by the session layer for programmer-facing misuse.

Per-file scan and extraction problems are never raised; they are reported
through ``ParseResult.errors``.
"""

from __future__ import annotations


class CodeFlowError(Exception):
    """Base class for codeflow errors."""


class GraphNotBuiltError(CodeFlowError):
    def __init__(self) -> None:
        super().__init__("No component graph has been built yet. Call refresh() first.")


class UnknownNodeError(CodeFlowError):
    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(f"Unknown component: {node_id}")
