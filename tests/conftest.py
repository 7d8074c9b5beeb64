"""
Shared pytest fixtures for all tests.
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Callable, Iterator

import pytest

FAKE_SERVER = Path(__file__).parent / "fake_lsp_server.py"


def encode_frame(message: dict[str, Any] | str | bytes) -> bytes:
    """Frame an arbitrary payload, including ones the client should reject."""
    if isinstance(message, dict):
        body = json.dumps(message).encode("utf-8")
    elif isinstance(message, str):
        body = message.encode("utf-8")
    else:
        body = message
    return f"Content-Length: {len(body)}\r\n\r\n".encode("ascii") + body


def decode_frames(data: bytes) -> list[dict[str, Any]]:
    """Split a byte buffer written by the client into decoded messages."""
    messages = []
    while data:
        header, _, rest = data.partition(b"\r\n\r\n")
        length = int(header.split(b":", 1)[1])
        messages.append(json.loads(rest[:length]))
        data = rest[length:]
    return messages


class FakeWriter:
    """Stands in for the server's stdin: records frames, or fails on demand."""

    def __init__(self) -> None:
        self.buffer = bytearray()
        self.fail = False
        self.writes = 0

    def write(self, data: bytes) -> None:
        if self.fail:
            raise BrokenPipeError("pipe closed")
        self.writes += 1
        self.buffer.extend(data)

    async def drain(self) -> None:
        await asyncio.sleep(0)

    def messages(self) -> list[dict[str, Any]]:
        return decode_frames(bytes(self.buffer))

    def methods(self) -> list[str]:
        return [m["method"] for m in self.messages() if "method" in m]


@pytest.fixture
def fake_writer() -> FakeWriter:
    return FakeWriter()


@pytest.fixture
def frame() -> Callable[..., bytes]:
    return encode_frame


@pytest.fixture
def fake_server_command() -> Callable[..., list[str]]:
    """Build the command line for the scripted fake language server."""

    def build(*flags: str) -> list[str]:
        return [sys.executable, str(FAKE_SERVER), *flags]

    return build


@pytest.fixture
def workspace(tmp_path: Path) -> Iterator[Path]:
    """A small project directory with one Python file."""
    (tmp_path / "pyproject.toml").write_text("[project]\nname = 'demo'\n")
    (tmp_path / "main.py").write_text("import os\nx = 1\n")
    yield tmp_path
