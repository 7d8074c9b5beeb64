"""
Language intelligence for one editor workspace.

LanguageService is what the editor UI holds. It launches the configured
language server for the workspace, runs the handshake, numbers document
versions as buffers change, and on close performs a protocol-level shutdown
before falling back to stopping the process.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from config import Config, LanguageServerConfig
from lsp import (
    ClientState,
    CompletionItem,
    Diagnostic,
    DiagnosticsTable,
    DiagnosticsUpdate,
    LanguageTable,
    Location,
    LSPClient,
    LSPError,
    NotReadyError,
    ProcessSupervisor,
    path_to_uri,
)

from .logging_config import log_timing, timed

logger = logging.getLogger(__name__)


class LanguageService:
    """Owns the language server process and client for a workspace root."""

    def __init__(
        self,
        root: str | Path,
        config: LanguageServerConfig | None = None,
        languages: LanguageTable | None = None,
    ):
        self.root = Path(root)
        self.config = config if config is not None else LanguageServerConfig()
        self.languages = languages if languages is not None else LanguageTable()
        self.supervisor = ProcessSupervisor(grace_period=self.config.shutdown_grace_period)
        self.client: LSPClient | None = None
        self._versions: dict[str, int] = {}
        self._versions_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, root: str | Path, config: Config) -> "LanguageService":
        return cls(
            root,
            config=config.language_server,
            languages=LanguageTable.from_overrides(config.languages),
        )

    async def __aenter__(self) -> "LanguageService":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def is_ready(self) -> bool:
        """Whether completions and go-to-definition may be offered in the UI."""
        return self.client is not None and self.client.is_initialized

    @property
    def diagnostics(self) -> DiagnosticsTable:
        return self.supervisor.diagnostics

    def _require_client(self) -> LSPClient:
        if self.client is None:
            raise NotReadyError("Language server not started")
        return self.client

    async def start(self) -> None:
        """Spawn the server and complete the initialize handshake.

        Raises:
            StartError: If the server could not be spawned
            HandshakeError: If initialize failed; the process is stopped
        """
        connection = await self.supervisor.start(self.config.command, self.root)
        self.client = LSPClient(
            connection,
            languages=self.languages,
            request_timeout=self.config.request_timeout,
        )
        try:
            with log_timing(logger, "initialize", level=logging.INFO):
                await self.client.initialize(self.root, self.config.initialization_options)
        except LSPError:
            await self.supervisor.stop()
            raise

    async def close(self) -> None:
        """Shut the server down politely, then make sure the process is gone."""
        if self.client is not None:
            try:
                await self.client.shutdown()
            except LSPError as e:
                logger.warning("Protocol shutdown failed: %s", e)
            else:
                if self.client.state is ClientState.TERMINATED:
                    await self.supervisor.wait_exited(self.config.shutdown_grace_period)
        await self.supervisor.stop()

    # --- Documents ---

    async def open_document(self, path: str | Path, text: str) -> None:
        client = self._require_client()
        await client.open_document(path, text)
        async with self._versions_lock:
            self._versions[path_to_uri(path)] = 1

    async def change_document(self, path: str | Path, text: str) -> int:
        """Send the buffer's full text under the document's next version.

        Returns:
            The version number sent
        """
        client = self._require_client()
        uri = path_to_uri(path)
        async with self._versions_lock:
            version = self._versions.get(uri, 1) + 1
            self._versions[uri] = version
        await client.change_document(path, text, version)
        return version

    async def close_document(self, path: str | Path) -> None:
        client = self._require_client()
        await client.close_document(path)
        async with self._versions_lock:
            self._versions.pop(path_to_uri(path), None)

    def document_version(self, path: str | Path) -> int | None:
        return self._versions.get(path_to_uri(path))

    # --- Features ---

    @timed("completions")
    async def completions(self, path: str | Path, line: int, character: int) -> list[CompletionItem]:
        return await self._require_client().completions(path, line, character)

    @timed("definition")
    async def definition(self, path: str | Path, line: int, character: int) -> Location | None:
        return await self._require_client().definition(path, line, character)

    # --- Diagnostics ---

    def get_diagnostics(self, uri: str) -> list[Diagnostic]:
        return self.diagnostics.get(uri)

    def clear_diagnostics(self, uri: str) -> None:
        self.diagnostics.clear(uri)

    def subscribe_diagnostics(self) -> asyncio.Queue[DiagnosticsUpdate]:
        return self.diagnostics.subscribe()

    def unsubscribe_diagnostics(self, queue: asyncio.Queue[DiagnosticsUpdate]) -> None:
        self.diagnostics.unsubscribe(queue)
