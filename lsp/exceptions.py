"""
Exceptions raised by the language server client.

Every error derives from LSPError so callers in the editor can catch the
whole family at once and disable language features.
"""

from typing import Any


class LSPError(Exception):
    """Base exception for LSP errors."""
    pass


class FramingError(LSPError):
    """A frame header was missing, malformed, or declared a bad length."""
    pass


class StartError(LSPError):
    """The language server process could not be spawned."""
    pass


class ServerNotFoundError(StartError):
    """Language server binary not found."""
    pass


class HandshakeError(LSPError):
    """The initialize handshake failed."""
    pass


class NotReadyError(LSPError):
    """Operation attempted outside the lifecycle state that allows it."""
    pass


class TransportError(LSPError):
    """Writing a frame to the server failed."""
    pass


class DecodeError(LSPError):
    """A message body did not parse as the expected shape."""
    pass


class RequestCancelledError(LSPError):
    """The request was abandoned because the client is stopping or the server exited."""
    pass


class LSPTimeoutError(LSPError):
    """Request timed out."""
    pass


class ResponseError(LSPError):
    """The server answered a request with a JSON-RPC error object."""

    def __init__(self, method: str, code: int, message: str, data: Any = None):
        self.method = method
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"{method} failed ({code}): {message}")
