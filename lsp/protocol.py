"""
JSON-RPC 2.0 messages and Content-Length framing.

A frame on the wire is::

    Content-Length: <n>\\r\\n
    \\r\\n
    <n bytes of compact JSON>

This module knows nothing about request correlation; it turns messages into
frames and frames back into message bodies.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Literal, Protocol

from pydantic import BaseModel, ValidationError

from .exceptions import DecodeError, FramingError, TransportError

JSONRPC_VERSION = "2.0"
CONTENT_LENGTH_HEADER = "content-length"

# JSON-RPC error codes
METHOD_NOT_FOUND = -32601


class Request(BaseModel):
    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: int | str
    method: str
    params: Any = None


class Notification(BaseModel):
    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    method: str
    params: Any = None


class ErrorObject(BaseModel):
    code: int
    message: str
    data: Any = None


class Response(BaseModel):
    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: int | str
    result: Any = None
    error: ErrorObject | None = None


Message = Request | Response | Notification


class FrameWriter(Protocol):
    """The subset of asyncio.StreamWriter the codec writes to."""

    def write(self, data: bytes) -> None: ...

    async def drain(self) -> None: ...


def _message_dict(message: Message) -> dict[str, Any]:
    data: dict[str, Any] = {"jsonrpc": message.jsonrpc}

    if isinstance(message, Request | Response):
        data["id"] = message.id

    if isinstance(message, Response):
        if message.error is not None:
            error: dict[str, Any] = {"code": message.error.code, "message": message.error.message}
            if message.error.data is not None:
                error["data"] = message.error.data
            data["error"] = error
        else:
            # A successful response always carries "result", even when null
            data["result"] = message.result
        return data

    data["method"] = message.method
    if message.params is not None:
        data["params"] = message.params
    return data


def encode_message(message: Message) -> bytes:
    """Serialize a message to a complete frame."""
    body = json.dumps(_message_dict(message), separators=(",", ":")).encode("utf-8")
    header = f"Content-Length: {len(body)}\r\n\r\n".encode("ascii")
    return header + body


async def write_frame(writer: FrameWriter, message: Message) -> None:
    """Write one framed message and flush it.

    Raises:
        TransportError: If the underlying pipe is gone
    """
    frame = encode_message(message)
    try:
        writer.write(frame)
        await writer.drain()
    except (OSError, RuntimeError) as e:
        # RuntimeError is raised by asyncio when writing to a closed transport
        raise TransportError(f"Failed to write {type(message).__name__.lower()}: {e}") from e


async def read_frame(reader: asyncio.StreamReader) -> bytes | None:
    """Read one frame body from the stream.

    Header lines may come in any order and are matched case-insensitively;
    only Content-Length is interpreted.

    Returns:
        The body bytes, or None if the stream ended before a new frame began

    Raises:
        FramingError: If Content-Length is absent, not a number, a header
            line is too long, or the stream ends inside a frame
    """
    headers: dict[str, str] = {}
    started = False

    while True:
        try:
            line = await reader.readline()
        except (ValueError, asyncio.LimitOverrunError) as e:
            # readline has already discarded the oversized line
            raise FramingError(f"Header line exceeds stream limit: {e}") from e
        if not line:
            if started:
                raise FramingError("Stream ended inside frame headers")
            return None
        started = True

        line_str = line.decode("ascii", errors="replace").strip()
        if not line_str:
            break

        if ":" in line_str:
            key, value = line_str.split(":", 1)
            headers[key.strip().lower()] = value.strip()

    raw_length = headers.get(CONTENT_LENGTH_HEADER)
    if raw_length is None:
        raise FramingError("Missing Content-Length header")
    try:
        content_length = int(raw_length)
    except ValueError as e:
        raise FramingError(f"Invalid Content-Length: {raw_length!r}") from e
    if content_length < 0:
        raise FramingError(f"Invalid Content-Length: {raw_length!r}")

    try:
        return await reader.readexactly(content_length)
    except asyncio.IncompleteReadError as e:
        raise FramingError(
            f"Stream ended after {len(e.partial)} of {content_length} body bytes"
        ) from e


def parse_body(body: bytes) -> dict[str, Any]:
    """Parse a frame body into a JSON object without interpreting it."""
    try:
        data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"Frame body is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise DecodeError(f"Frame body is not a JSON object: {type(data).__name__}")
    return data


def decode_message(body: bytes) -> Message:
    """Decode a frame body into a Request, Response or Notification.

    Raises:
        DecodeError: If the body is not JSON or matches none of the shapes
    """
    data = parse_body(body)
    has_id = data.get("id") is not None
    has_method = "method" in data

    try:
        if has_method and has_id:
            return Request.model_validate(data)
        if has_method:
            return Notification.model_validate(data)
        if has_id:
            return Response.model_validate(data)
    except ValidationError as e:
        raise DecodeError(f"Malformed message: {e}") from e

    raise DecodeError("Message has neither id nor method")
