"""
Language Server Protocol client.

Spawns a language server, speaks JSON-RPC 2.0 with Content-Length framing
over its stdio, and exposes completions, go-to-definition and published
diagnostics to the editor.
"""

from .client import CLIENT_CAPABILITIES, ClientState, LSPClient
from .connection import PUBLISH_DIAGNOSTICS, LSPConnection
from .diagnostics import DiagnosticsTable, DiagnosticsUpdate
from .exceptions import (
    DecodeError,
    FramingError,
    HandshakeError,
    LSPError,
    LSPTimeoutError,
    NotReadyError,
    RequestCancelledError,
    ResponseError,
    ServerNotFoundError,
    StartError,
    TransportError,
)
from .languages import DEFAULT_LANGUAGES, PLAINTEXT, LanguageTable
from .process import DEFAULT_SHUTDOWN_GRACE_PERIOD, ProcessSupervisor, ServerState
from .protocol import (
    ErrorObject,
    Message,
    Notification,
    Request,
    Response,
    decode_message,
    encode_message,
    read_frame,
    write_frame,
)
from .types import (
    CompletionItem,
    CompletionItemKind,
    CompletionItems,
    CompletionList,
    CompletionResult,
    DefinitionResult,
    Diagnostic,
    DiagnosticSeverity,
    EmptyCompletions,
    Location,
    LocationArray,
    LocationLink,
    NoDefinition,
    Position,
    Range,
    SingleLocation,
    parse_completion_result,
    parse_definition_result,
)
from .uris import path_to_uri, uri_to_path

__all__ = [
    # Facade
    "CLIENT_CAPABILITIES",
    "ClientState",
    "LSPClient",
    # Connection and process
    "PUBLISH_DIAGNOSTICS",
    "LSPConnection",
    "DEFAULT_SHUTDOWN_GRACE_PERIOD",
    "ProcessSupervisor",
    "ServerState",
    # Diagnostics
    "DiagnosticsTable",
    "DiagnosticsUpdate",
    # Errors
    "DecodeError",
    "FramingError",
    "HandshakeError",
    "LSPError",
    "LSPTimeoutError",
    "NotReadyError",
    "RequestCancelledError",
    "ResponseError",
    "ServerNotFoundError",
    "StartError",
    "TransportError",
    # Languages
    "DEFAULT_LANGUAGES",
    "PLAINTEXT",
    "LanguageTable",
    # Wire
    "ErrorObject",
    "Message",
    "Notification",
    "Request",
    "Response",
    "decode_message",
    "encode_message",
    "read_frame",
    "write_frame",
    # Payload types
    "CompletionItem",
    "CompletionItemKind",
    "CompletionItems",
    "CompletionList",
    "CompletionResult",
    "DefinitionResult",
    "Diagnostic",
    "DiagnosticSeverity",
    "EmptyCompletions",
    "Location",
    "LocationArray",
    "LocationLink",
    "NoDefinition",
    "Position",
    "Range",
    "SingleLocation",
    "parse_completion_result",
    "parse_definition_result",
    # URIs
    "path_to_uri",
    "uri_to_path",
]
