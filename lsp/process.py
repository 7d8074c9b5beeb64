"""
Language server process lifecycle.

The supervisor owns the child process and its three pipes, and runs the two
background tasks that read from it: the connection's read loop on stdout and
a drain loop on stderr. An unread stderr pipe can fill and stall the server,
so stderr is always consumed even though its content is discarded.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from enum import Enum
from pathlib import Path

from .connection import LSPConnection
from .diagnostics import DiagnosticsTable
from .exceptions import ServerNotFoundError, StartError

logger = logging.getLogger(__name__)

DEFAULT_SHUTDOWN_GRACE_PERIOD = 2.0  # seconds to wait for a voluntary exit before killing
STDERR_CHUNK_SIZE = 1024


class ServerState(Enum):
    NOT_STARTED = "not started"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class ProcessSupervisor:
    """Spawns a language server and stops it, politely or not."""

    def __init__(
        self,
        grace_period: float = DEFAULT_SHUTDOWN_GRACE_PERIOD,
        diagnostics: DiagnosticsTable | None = None,
    ):
        self.grace_period = grace_period
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticsTable()
        self.state = ServerState.NOT_STARTED
        self.command: list[str] = []
        self.cwd: Path | None = None
        self.process: asyncio.subprocess.Process | None = None
        self.connection: LSPConnection | None = None
        self._cancelled = asyncio.Event()
        self._read_task: asyncio.Task | None = None
        self._stderr_task: asyncio.Task | None = None
        self._stop_lock = asyncio.Lock()

    @property
    def pid(self) -> int | None:
        return self.process.pid if self.process else None

    @property
    def returncode(self) -> int | None:
        return self.process.returncode if self.process else None

    async def start(self, command: list[str], working_directory: str | Path) -> LSPConnection:
        """Spawn the server and start reading from it.

        Args:
            command: Executable and arguments
            working_directory: Directory the server runs in

        Returns:
            The connection speaking to the new process

        Raises:
            ServerNotFoundError: If the executable does not exist
            StartError: If the directory is invalid or the spawn fails
        """
        if self.state is not ServerState.NOT_STARTED:
            raise StartError(f"Language server already {self.state.value}")
        if not command:
            raise StartError("No language server command configured")

        try:
            cwd = Path(working_directory).resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise StartError(f"Failed to resolve working directory {working_directory}: {e}") from e
        if not cwd.is_dir():
            raise StartError(f"Working directory is not a directory: {cwd}")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd),
            )
        except FileNotFoundError as e:
            raise ServerNotFoundError(
                f"LSP server '{command[0]}' not found. Please install the language server."
            ) from e
        except (OSError, ValueError) as e:
            raise StartError(f"Failed to spawn LSP server: {e}") from e

        if process.stdin is None or process.stdout is None or process.stderr is None:
            process.kill()
            await process.wait()
            raise StartError("Failed to get process pipes")

        self.command = list(command)
        self.cwd = cwd
        self.process = process
        self.connection = LSPConnection(
            reader=process.stdout,
            writer=process.stdin,
            diagnostics=self.diagnostics,
            cancelled=self._cancelled,
        )
        self._read_task = asyncio.create_task(self.connection.read_loop())
        self._stderr_task = asyncio.create_task(self._drain_stderr(process.stderr))
        self.state = ServerState.RUNNING

        logger.info("Started language server %s (pid %d) in %s", command[0], process.pid, cwd)
        return self.connection

    async def _drain_stderr(self, stream: asyncio.StreamReader) -> None:
        while not self._cancelled.is_set():
            try:
                chunk = await stream.read(STDERR_CHUNK_SIZE)
            except OSError:
                return
            if not chunk:
                return

    async def wait_exited(self, timeout: float | None = None) -> int | None:
        """Wait for the process to exit on its own.

        Returns:
            The exit code, or None if it is still running after ``timeout``
        """
        if self.process is None:
            return None
        try:
            return await asyncio.wait_for(self.process.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    async def stop(self) -> int | None:
        """Stop the process and both background tasks.

        Fires cancellation, closes the server's stdin, sends an interrupt,
        and kills the process if it has not exited within the grace period.
        Returns only after the read and stderr loops have finished. Safe to
        call again, or after the process has already exited.

        Returns:
            The process exit code, or None if it was never started
        """
        async with self._stop_lock:
            if self.state is ServerState.NOT_STARTED:
                return None
            if self.state is ServerState.STOPPED:
                return self.returncode

            self.state = ServerState.STOPPING
            self._cancelled.set()
            process = self.process

            if process.stdin is not None:
                process.stdin.close()
            self._interrupt(process)

            try:
                returncode = await asyncio.wait_for(process.wait(), timeout=self.grace_period)
            except asyncio.TimeoutError:
                logger.warning(
                    "Language server did not exit within %.1fs, killing pid %d",
                    self.grace_period,
                    process.pid,
                )
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                returncode = await process.wait()

            await self._join_background_tasks()
            self.state = ServerState.STOPPED
            logger.info("Language server stopped (exit code %s)", returncode)
            return returncode

    def _interrupt(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return
        try:
            if sys.platform == "win32":
                process.terminate()
            else:
                process.send_signal(signal.SIGINT)
        except ProcessLookupError:
            pass

    async def _join_background_tasks(self) -> None:
        tasks = [task for task in (self._read_task, self._stderr_task) if task is not None]
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
