"""Per-document diagnostics published by the server."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass

from .types import Diagnostic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiagnosticsUpdate:
    """One publish for one document, as delivered to subscribers."""
    uri: str
    diagnostics: tuple[Diagnostic, ...]


class DiagnosticsTable:
    """Mapping of document URI to that document's latest diagnostics.

    Each publish replaces the document's entry wholesale. Reads return
    copies, so callers on other threads never observe a partial update.
    Subscribers receive every publish on their own unbounded queue; the
    publisher never waits on them.
    """

    def __init__(self) -> None:
        self._diagnostics: dict[str, list[Diagnostic]] = {}
        self._lock = threading.Lock()
        self._subscribers: list[asyncio.Queue[DiagnosticsUpdate]] = []

    def publish(self, uri: str, diagnostics: list[Diagnostic]) -> None:
        with self._lock:
            self._diagnostics[uri] = list(diagnostics)
            subscribers = list(self._subscribers)

        update = DiagnosticsUpdate(uri=uri, diagnostics=tuple(diagnostics))
        for queue in subscribers:
            queue.put_nowait(update)

    def get(self, uri: str) -> list[Diagnostic]:
        """Get current diagnostics for a document (empty if none published)."""
        with self._lock:
            return list(self._diagnostics.get(uri, []))

    def clear(self, uri: str) -> None:
        with self._lock:
            self._diagnostics.pop(uri, None)

    def subscribe(self) -> asyncio.Queue[DiagnosticsUpdate]:
        """
        Create a new subscription queue.

        Returns:
            A queue that will receive every subsequent publish
        """
        queue: asyncio.Queue[DiagnosticsUpdate] = asyncio.Queue()
        with self._lock:
            self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[DiagnosticsUpdate]) -> None:
        with self._lock:
            if queue in self._subscribers:
                self._subscribers.remove(queue)

    def __len__(self) -> int:
        with self._lock:
            return len(self._diagnostics)
