"""
JSON-RPC connection to a language server.

One background task (``read_loop``) owns the server's output stream and
decodes frames strictly in arrival order. Responses are matched to the
pending request with the same id by resolving that request's future;
server notifications go to a fixed table of handlers. Callers on any
number of other tasks ``send``/``wait``/``notify`` concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from pydantic import ValidationError

from .diagnostics import DiagnosticsTable
from .exceptions import (
    DecodeError,
    FramingError,
    LSPError,
    LSPTimeoutError,
    RequestCancelledError,
    TransportError,
)
from .protocol import (
    METHOD_NOT_FOUND,
    ErrorObject,
    FrameWriter,
    Message,
    Notification,
    Request,
    Response,
    parse_body,
    read_frame,
    write_frame,
)
from .types import Diagnostic, PublishDiagnosticsParams

logger = logging.getLogger(__name__)

PUBLISH_DIAGNOSTICS = "textDocument/publishDiagnostics"


def _mark_retrieved(future: asyncio.Future) -> None:
    # A request nobody waits on still fails quietly when the server goes away
    if not future.cancelled():
        future.exception()


class LSPConnection:
    """JSON-RPC 2.0 connection over stdio with Content-Length framing."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: FrameWriter,
        diagnostics: DiagnosticsTable | None = None,
        cancelled: asyncio.Event | None = None,
    ):
        self.reader = reader
        self.writer = writer
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticsTable()
        self._cancelled = cancelled if cancelled is not None else asyncio.Event()
        self._request_id = 0
        self._pending_requests: dict[int, asyncio.Future[Response]] = {}
        self._write_lock = asyncio.Lock()
        self._closed = False
        self._reply_tasks: set[asyncio.Task] = set()
        self._notification_handlers: dict[str, Callable[[Any], None]] = {
            PUBLISH_DIAGNOSTICS: self._handle_publish_diagnostics,
        }

    @property
    def closed(self) -> bool:
        """True once the server's output stream has ended."""
        return self._closed

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def pending_count(self) -> int:
        return len(self._pending_requests)

    def cancel(self) -> None:
        """Fire the shared cancellation signal. Every outstanding wait returns."""
        self._cancelled.set()

    # --- Outgoing ---

    async def _write(self, message: Message) -> None:
        # One frame at a time so frames from concurrent callers never interleave
        async with self._write_lock:
            await write_frame(self.writer, message)

    async def send(self, method: str, params: Any = None) -> int:
        """Send a request and register it as pending.

        Returns:
            The request id to pass to ``wait``

        Raises:
            RequestCancelledError: If the connection is cancelled or closed
            TransportError: If the frame could not be written
        """
        if self._cancelled.is_set() or self._closed:
            raise RequestCancelledError(f"Cannot send '{method}': connection is closed")

        self._request_id += 1
        request_id = self._request_id

        future: asyncio.Future[Response] = asyncio.get_running_loop().create_future()
        future.add_done_callback(_mark_retrieved)
        self._pending_requests[request_id] = future

        try:
            await self._write(Request(id=request_id, method=method, params=params))
        except (TransportError, asyncio.CancelledError):
            self._pending_requests.pop(request_id, None)
            raise

        logger.debug("Sent request %s (id=%d)", method, request_id)
        return request_id

    async def wait(self, request_id: int, timeout: float | None = None) -> Response:
        """Wait for the response to a pending request.

        The pending entry is removed when this returns or raises, whatever
        the outcome.

        Raises:
            RequestCancelledError: If cancellation fired or the server exited first
            DecodeError: If the response for this id could not be parsed
            LSPTimeoutError: If ``timeout`` elapsed first
        """
        future = self._pending_requests.get(request_id)
        if future is None:
            raise LSPError(f"No pending request with id {request_id}")

        cancel_waiter = asyncio.ensure_future(self._cancelled.wait())
        try:
            done, _ = await asyncio.wait(
                {future, cancel_waiter},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
            if future in done:
                return future.result()
            if cancel_waiter in done:
                raise RequestCancelledError(f"Request {request_id} cancelled: client is stopping")
            raise LSPTimeoutError(f"Request {request_id} timed out after {timeout}s")
        finally:
            cancel_waiter.cancel()
            if not future.done():
                future.cancel()
            self._pending_requests.pop(request_id, None)

    async def request(self, method: str, params: Any = None, timeout: float | None = None) -> Response:
        """Send a request and wait for its response."""
        request_id = await self.send(method, params)
        return await self.wait(request_id, timeout=timeout)

    async def notify(self, method: str, params: Any = None) -> None:
        """Send a notification (no response expected).

        Raises:
            TransportError: If the frame could not be written
        """
        await self._write(Notification(method=method, params=params))
        logger.debug("Sent notification %s", method)

    # --- Incoming ---

    async def read_loop(self) -> None:
        """Decode frames until the server's output ends or cancellation fires.

        When the loop exits for any reason, every request still pending is
        failed with RequestCancelledError.
        """
        try:
            while not self._cancelled.is_set():
                try:
                    body = await read_frame(self.reader)
                except FramingError as e:
                    logger.warning("Discarding malformed frame: %s", e)
                    continue
                except OSError as e:
                    logger.debug("Server output failed: %s", e)
                    break

                if body is None:
                    logger.debug("Server output closed")
                    break

                self._dispatch(body)
        finally:
            self._closed = True
            self._fail_pending("language server connection closed")

    def _dispatch(self, body: bytes) -> None:
        try:
            data = parse_body(body)
        except DecodeError as e:
            logger.warning("Dropping undecodable frame: %s", e)
            return

        msg_id = data.get("id")
        method = data.get("method")

        if msg_id is not None and method is None:
            self._handle_response(msg_id, data)
        elif method is not None and msg_id is None:
            self._handle_notification(method, data.get("params"))
        elif method is not None:
            self._decline_server_request(msg_id, method)
        else:
            logger.warning("Dropping message with neither id nor method")

    def _handle_response(self, msg_id: Any, data: dict[str, Any]) -> None:
        future = self._pending_requests.get(msg_id) if isinstance(msg_id, int) else None

        try:
            response = Response.model_validate(data)
        except ValidationError as e:
            if future is not None and not future.done():
                future.set_exception(DecodeError(f"Failed to parse response {msg_id}: {e}"))
            else:
                logger.warning("Dropping unparseable response %r: %s", msg_id, e)
            return

        if future is None or future.done():
            # The caller already gave up on this id
            logger.debug("Dropping response id=%r with no pending request", msg_id)
            return

        logger.debug("Received response id=%r", response.id)
        future.set_result(response)

    def _handle_notification(self, method: str, params: Any) -> None:
        handler = self._notification_handlers.get(method)
        if handler is None:
            logger.debug("Ignoring notification %s", method)
            return

        try:
            handler(params)
        except DecodeError as e:
            logger.warning("Ignoring malformed %s notification: %s", method, e)

    def _handle_publish_diagnostics(self, params: Any) -> None:
        """Handle textDocument/publishDiagnostics notification.

        Replaces the document's whole entry in the diagnostics table.
        Individual diagnostics that fail to parse are skipped.
        """
        try:
            published = PublishDiagnosticsParams.model_validate(params)
        except ValidationError as e:
            raise DecodeError(str(e)) from e

        diagnostics: list[Diagnostic] = []
        for raw in published.diagnostics:
            try:
                diagnostics.append(Diagnostic.model_validate(raw))
            except ValidationError as e:
                logger.warning("Skipping malformed diagnostic for %s: %s", published.uri, e)

        self.diagnostics.publish(published.uri, diagnostics)
        logger.debug("Stored %d diagnostics for %s", len(diagnostics), published.uri)

    def _decline_server_request(self, msg_id: Any, method: str) -> None:
        """Answer a server-to-client request with MethodNotFound.

        The reply is written from its own task so the reader never waits
        on the output stream.
        """
        if not isinstance(msg_id, int | str):
            logger.warning("Dropping server request %s with invalid id %r", method, msg_id)
            return

        logger.debug("Declining server request %s (id=%r)", method, msg_id)
        response = Response(
            id=msg_id,
            error=ErrorObject(code=METHOD_NOT_FOUND, message=f"Method not supported: {method}"),
        )
        task = asyncio.create_task(self._send_reply(response))
        self._reply_tasks.add(task)
        task.add_done_callback(self._reply_tasks.discard)

    async def _send_reply(self, response: Response) -> None:
        try:
            await self._write(response)
        except TransportError as e:
            logger.debug("Could not reply to server request %r: %s", response.id, e)

    def _fail_pending(self, reason: str) -> None:
        for request_id, future in list(self._pending_requests.items()):
            if not future.done():
                future.set_exception(RequestCancelledError(f"Request {request_id} cancelled: {reason}"))
