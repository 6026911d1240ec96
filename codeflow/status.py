"""Live edit-status overlay layered over an immutable graph snapshot."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Dict, Iterable, Optional, Set

from .errors import UnknownNodeError
from .models import ComponentGraph, EditStatus

logger = logging.getLogger(__name__)


@dataclass
class StatusEntry:
    status: EditStatus
    error_message: Optional[str] = None
    updated_at: Optional[float] = None


class StatusOverlay:
    """Edit statuses keyed by node id.

    The graph itself is never mutated; :meth:`apply` returns a copy with the
    statuses filled in.  Once bound to a graph, setting a status for an id the
    graph does not contain raises :class:`UnknownNodeError`.
    """

    def __init__(self, known_ids: Optional[Iterable[str]] = None) -> None:
        self._entries: Dict[str, StatusEntry] = {}
        self._known: Optional[Set[str]] = set(known_ids) if known_ids is not None else None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._entries

    def bind(self, graph: ComponentGraph) -> None:
        """Track *graph*'s node ids and drop statuses for ids it no longer has."""
        self._known = {node.id for node in graph.nodes}
        self.prune(self._known)

    def set_status(
        self,
        node_id: str,
        status: EditStatus,
        error_message: Optional[str] = None,
    ) -> None:
        if self._known is not None and node_id not in self._known:
            raise UnknownNodeError(node_id)
        if status is EditStatus.IDLE and error_message is None:
            self._entries.pop(node_id, None)
            return
        self._entries[node_id] = StatusEntry(status, error_message, time.time())
        logger.debug("Status of %s set to %s", node_id, status.value)

    def get(self, node_id: str) -> EditStatus:
        entry = self._entries.get(node_id)
        return entry.status if entry else EditStatus.IDLE

    def error_message(self, node_id: str) -> Optional[str]:
        entry = self._entries.get(node_id)
        return entry.error_message if entry else None

    def reset(self, keep_completed: bool = True) -> None:
        """Return every node to idle, optionally keeping completed ones."""
        if keep_completed:
            self._entries = {
                node_id: entry
                for node_id, entry in self._entries.items()
                if entry.status is EditStatus.COMPLETED
            }
        else:
            self._entries.clear()

    def clear(self) -> None:
        self._entries.clear()

    def prune(self, live_ids: Iterable[str]) -> int:
        live = set(live_ids)
        stale = [node_id for node_id in self._entries if node_id not in live]
        for node_id in stale:
            del self._entries[node_id]
        if stale:
            logger.debug("Dropped %d status(es) for removed components", len(stale))
        return len(stale)

    def apply(self, graph: ComponentGraph) -> ComponentGraph:
        if not self._entries:
            return graph
        nodes = []
        for node in graph.nodes:
            entry = self._entries.get(node.id)
            if entry is None:
                nodes.append(node)
            else:
                nodes.append(replace(
                    node,
                    edit_status=entry.status,
                    error_message=entry.error_message,
                    last_modified=entry.updated_at,
                ))
        return replace(graph, nodes=nodes)
