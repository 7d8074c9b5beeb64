"""
Protocol-level operations on top of an LSPConnection.

LSPClient is the only object the editor talks to for language features. It
runs the initialize handshake, keeps the server informed about open
documents, and turns completion/definition responses into typed results.
"""

from __future__ import annotations

import logging
import os
import threading
from enum import Enum
from pathlib import Path
from typing import Any

from .connection import LSPConnection
from .diagnostics import DiagnosticsTable
from .exceptions import HandshakeError, LSPError, NotReadyError, ResponseError
from .languages import LanguageTable
from .protocol import Response
from .types import (
    CompletionItem,
    CompletionResult,
    DefinitionResult,
    Diagnostic,
    Location,
    parse_completion_result,
    parse_definition_result,
)
from .uris import path_to_uri

logger = logging.getLogger(__name__)

# Completion trigger kind: invoked explicitly by the user
COMPLETION_TRIGGER_INVOKED = 1

# The features this editor consumes, and nothing more
CLIENT_CAPABILITIES: dict[str, Any] = {
    "textDocument": {
        "synchronization": {
            "didOpen": True,
            "didChange": True,
            "didClose": True,
        },
        "completion": {
            "completionItem": {
                "snippetSupport": True,
            },
        },
        "definition": {
            "linkSupport": True,
        },
        "publishDiagnostics": {
            "relatedInformation": True,
        },
    },
    "workspace": {
        "workspaceFolders": True,
    },
}


class ClientState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    SHUTTING_DOWN = "shutting down"
    TERMINATED = "terminated"


class LSPClient:
    """LSP client for a single language server instance."""

    def __init__(
        self,
        connection: LSPConnection,
        languages: LanguageTable | None = None,
        request_timeout: float | None = None,
    ):
        self.connection = connection
        self.languages = languages if languages is not None else LanguageTable()
        self.request_timeout = request_timeout
        self.capabilities: dict[str, Any] = {}
        self.server_info: dict[str, Any] | None = None
        self._state = ClientState.UNINITIALIZED
        self._state_lock = threading.Lock()

    @property
    def state(self) -> ClientState:
        with self._state_lock:
            return self._state

    @property
    def is_initialized(self) -> bool:
        """True once the handshake has completed and until shutdown begins."""
        return self.state is ClientState.READY

    @property
    def diagnostics(self) -> DiagnosticsTable:
        return self.connection.diagnostics

    def _set_state(self, state: ClientState) -> None:
        with self._state_lock:
            self._state = state

    def _require_ready(self, operation: str) -> None:
        state = self.state
        if state is not ClientState.READY:
            raise NotReadyError(f"Cannot {operation}: client is {state.value}")

    async def _request(self, method: str, params: Any) -> Response:
        """Send a feature request; a protocol-level error becomes ResponseError."""
        response = await self.connection.request(method, params, timeout=self.request_timeout)
        if response.error is not None:
            raise ResponseError(
                method,
                response.error.code,
                response.error.message,
                response.error.data,
            )
        return response

    # --- Lifecycle ---

    async def initialize(
        self,
        root_path: str | Path,
        initialization_options: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send initialize request and initialized notification.

        Args:
            root_path: Workspace root directory
            initialization_options: Optional server-specific options

        Returns:
            Server capabilities

        Raises:
            NotReadyError: If initialize was already attempted
            HandshakeError: If the request could not be sent or answered,
                or the server answered with an error
        """
        with self._state_lock:
            if self._state is not ClientState.UNINITIALIZED:
                raise NotReadyError(f"Cannot initialize: client is {self._state.value}")
            self._state = ClientState.INITIALIZING

        root = Path(os.path.abspath(root_path))
        root_uri = path_to_uri(root)
        params: dict[str, Any] = {
            "processId": os.getpid(),
            "rootUri": root_uri,
            "rootPath": str(root),
            "capabilities": CLIENT_CAPABILITIES,
            "trace": "off",
            "workspaceFolders": [{"uri": root_uri, "name": root.name}],
        }
        if initialization_options:
            params["initializationOptions"] = initialization_options

        ready = False
        try:
            try:
                response = await self.connection.request(
                    "initialize", params, timeout=self.request_timeout
                )
            except LSPError as e:
                raise HandshakeError(f"Failed to initialize language server: {e}") from e

            if response.error is not None:
                raise HandshakeError(f"Initialize failed: {response.error.message}")

            result = response.result if isinstance(response.result, dict) else {}
            self.capabilities = result.get("capabilities") or {}
            self.server_info = result.get("serverInfo")

            self._set_state(ClientState.READY)
            try:
                await self.connection.notify("initialized", {})
            except LSPError as e:
                raise HandshakeError(f"Failed to send initialized notification: {e}") from e
            ready = True
        finally:
            if not ready:
                self._set_state(ClientState.UNINITIALIZED)

        logger.info("Language server initialized for %s", root)
        return self.capabilities

    async def shutdown(self) -> None:
        """Ask the server to shut down, then tell it to exit.

        A no-op if the client never finished initializing or has already
        shut down. ``exit`` is sent even when the shutdown response carries
        an error.

        Raises:
            NotReadyError: If the handshake is still in progress
        """
        with self._state_lock:
            state = self._state
            if state is ClientState.INITIALIZING:
                raise NotReadyError("Cannot shut down: initialize is in progress")
            if state is not ClientState.READY:
                return
            self._state = ClientState.SHUTTING_DOWN

        try:
            response = await self.connection.request("shutdown", None, timeout=self.request_timeout)
            if response.error is not None:
                logger.warning("Server reported error on shutdown: %s", response.error.message)
            await self.connection.notify("exit")
        finally:
            self._set_state(ClientState.TERMINATED)

        logger.info("Language server shut down")

    # --- Documents ---

    def document_uri(self, path: str | Path) -> str:
        return path_to_uri(path)

    async def open_document(self, path: str | Path, content: str) -> None:
        """Send textDocument/didOpen notification.

        Args:
            path: Path to the document
            content: Full text of the document
        """
        self._require_ready("open document")
        params = {
            "textDocument": {
                "uri": path_to_uri(path),
                "languageId": self.languages.language_id(path),
                "version": 1,
                "text": content,
            }
        }
        await self.connection.notify("textDocument/didOpen", params)

    async def change_document(self, path: str | Path, content: str, version: int) -> None:
        """Send textDocument/didChange with the document's entire new text."""
        self._require_ready("change document")
        params = {
            "textDocument": {
                "uri": path_to_uri(path),
                "version": version,
            },
            "contentChanges": [{"text": content}],
        }
        await self.connection.notify("textDocument/didChange", params)

    async def close_document(self, path: str | Path) -> None:
        """Send textDocument/didClose and forget the document's diagnostics."""
        self._require_ready("close document")
        uri = path_to_uri(path)
        await self.connection.notify("textDocument/didClose", {"textDocument": {"uri": uri}})
        self.diagnostics.clear(uri)

    # --- Features ---

    @staticmethod
    def _position_params(uri: str, line: int, character: int) -> dict[str, Any]:
        return {
            "textDocument": {"uri": uri},
            "position": {"line": line, "character": character},
        }

    async def completion_result(self, path: str | Path, line: int, character: int) -> CompletionResult:
        """Send textDocument/completion and return the result in its tagged shape."""
        self._require_ready("request completions")
        params = self._position_params(path_to_uri(path), line, character)
        params["context"] = {"triggerKind": COMPLETION_TRIGGER_INVOKED}

        response = await self._request("textDocument/completion", params)
        return parse_completion_result(response.result)

    async def completions(self, path: str | Path, line: int, character: int) -> list[CompletionItem]:
        """Get completion items at a position.

        Args:
            path: Path to source file
            line: 0-based line number
            character: 0-based character offset

        Returns:
            Completion items (empty if the server has none)
        """
        result = await self.completion_result(path, line, character)
        return list(result.items)

    async def definition_result(self, path: str | Path, line: int, character: int) -> DefinitionResult:
        self._require_ready("request definition")
        params = self._position_params(path_to_uri(path), line, character)
        response = await self._request("textDocument/definition", params)
        return parse_definition_result(response.result)

    async def definition(self, path: str | Path, line: int, character: int) -> Location | None:
        """Go to definition of symbol at position.

        Returns:
            The first definition location, or None if there is none
        """
        result = await self.definition_result(path, line, character)
        return result.location

    # --- Diagnostics ---

    def get_diagnostics(self, uri: str) -> list[Diagnostic]:
        return self.diagnostics.get(uri)

    def clear_diagnostics(self, uri: str) -> None:
        self.diagnostics.clear(uri)
