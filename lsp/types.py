"""
Payload types exchanged with a language server.

Wire objects are pydantic models whose field names follow the protocol's
camelCase spelling, so they validate straight from decoded JSON. Results of
requests that allow several legal shapes are modelled as tagged unions, one
per operation, and decoded by the ``parse_*_result`` helpers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from .exceptions import DecodeError

logger = logging.getLogger(__name__)


class Position(BaseModel):
    """0-based line and character position."""

    line: int
    character: int


class Range(BaseModel):
    """Range with start and end positions."""

    start: Position
    end: Position


class Location(BaseModel):
    """A range inside a document identified by URI."""

    uri: str
    range: Range

    def pretty_format(self) -> str:
        # 1-based for display
        line = self.range.start.line + 1
        col = self.range.start.character + 1
        return f"{self.uri}:{line}:{col}"


class LocationLink(BaseModel):
    """Link form of a definition target, sent by servers when link support is declared."""

    targetUri: str
    targetRange: Range
    targetSelectionRange: Range
    originSelectionRange: Range | None = None

    def to_location(self) -> Location:
        return Location(uri=self.targetUri, range=self.targetSelectionRange)


class DiagnosticSeverity(IntEnum):
    """LSP diagnostic severity levels."""
    ERROR = 1
    WARNING = 2
    INFO = 3
    HINT = 4


class Diagnostic(BaseModel):
    """A single diagnostic from an LSP server.

    Attributes:
        range: Location of the diagnostic in the file
        severity: Error, warning, info, or hint
        message: The diagnostic message
        source: Name of the source (e.g., "pyflakes", "typescript")
        code: Optional diagnostic code
    """

    range: Range
    severity: DiagnosticSeverity = DiagnosticSeverity.ERROR
    message: str
    source: str = ""
    code: str | int | None = None

    def pretty_format(self) -> str:
        """Format diagnostic as human-readable string."""
        severity_names = {
            DiagnosticSeverity.ERROR: "ERROR",
            DiagnosticSeverity.WARNING: "WARN",
            DiagnosticSeverity.INFO: "INFO",
            DiagnosticSeverity.HINT: "HINT",
        }
        severity_str = severity_names.get(self.severity, "ERROR")
        line = self.range.start.line + 1
        col = self.range.start.character + 1
        source_str = f"[{self.source}] " if self.source else ""
        return f"{severity_str} {source_str}[{line}:{col}] {self.message}"


class CompletionItemKind(IntEnum):
    TEXT = 1
    METHOD = 2
    FUNCTION = 3
    CONSTRUCTOR = 4
    FIELD = 5
    VARIABLE = 6
    CLASS = 7
    INTERFACE = 8
    MODULE = 9
    PROPERTY = 10
    UNIT = 11
    VALUE = 12
    ENUM = 13
    KEYWORD = 14
    SNIPPET = 15
    COLOR = 16
    FILE = 17
    REFERENCE = 18
    FOLDER = 19
    ENUM_MEMBER = 20
    CONSTANT = 21
    STRUCT = 22
    EVENT = 23
    OPERATOR = 24
    TYPE_PARAMETER = 25


class CompletionItem(BaseModel):
    """One completion candidate. Unknown fields are ignored."""

    label: str
    kind: int | None = None
    detail: str | None = None
    documentation: str | dict[str, Any] | None = None
    insertText: str | None = None
    filterText: str | None = None
    sortText: str | None = None

    @property
    def kind_name(self) -> str:
        try:
            return CompletionItemKind(self.kind).name.lower()
        except ValueError:
            return ""

    @property
    def text_to_insert(self) -> str:
        return self.insertText or self.label


# --- Completion result shapes ---


@dataclass(frozen=True)
class EmptyCompletions:
    """Server answered null."""

    @property
    def items(self) -> list[CompletionItem]:
        return []


@dataclass(frozen=True)
class CompletionItems:
    """Server answered a bare array of items."""

    items: list[CompletionItem] = field(default_factory=list)


@dataclass(frozen=True)
class CompletionList:
    """Server answered ``{"isIncomplete": ..., "items": [...]}``."""

    items: list[CompletionItem] = field(default_factory=list)
    is_incomplete: bool = False


CompletionResult = EmptyCompletions | CompletionItems | CompletionList


def _decode_completion_items(raw_items: list[Any]) -> list[CompletionItem]:
    items: list[CompletionItem] = []
    for raw in raw_items:
        try:
            items.append(CompletionItem.model_validate(raw))
        except ValidationError as e:
            logger.debug("Skipping undecodable completion item %r: %s", raw, e)
    return items


def parse_completion_result(result: Any) -> CompletionResult:
    """Decode a textDocument/completion result into its tagged shape.

    Args:
        result: The raw ``result`` field of the response

    Returns:
        EmptyCompletions, CompletionItems or CompletionList

    Raises:
        DecodeError: If the result is none of the legal shapes
    """
    if result is None:
        return EmptyCompletions()

    if isinstance(result, list):
        return CompletionItems(items=_decode_completion_items(result))

    if isinstance(result, dict):
        raw_items = result.get("items")
        if not isinstance(raw_items, list):
            raw_items = []
        return CompletionList(
            items=_decode_completion_items(raw_items),
            is_incomplete=bool(result.get("isIncomplete", False)),
        )

    raise DecodeError(f"Unexpected completion result: {type(result).__name__}")


# --- Definition result shapes ---


@dataclass(frozen=True)
class NoDefinition:
    """Server answered null."""

    @property
    def location(self) -> Location | None:
        return None


@dataclass(frozen=True)
class SingleLocation:
    location: Location


@dataclass(frozen=True)
class LocationArray:
    locations: list[Location] = field(default_factory=list)

    @property
    def location(self) -> Location | None:
        return self.locations[0] if self.locations else None


DefinitionResult = NoDefinition | SingleLocation | LocationArray


def _decode_location(raw: Any) -> Location:
    try:
        if isinstance(raw, dict) and "targetUri" in raw:
            return LocationLink.model_validate(raw).to_location()
        return Location.model_validate(raw)
    except ValidationError as e:
        raise DecodeError(f"Invalid location: {e}") from e


def parse_definition_result(result: Any) -> DefinitionResult:
    """Decode a textDocument/definition result into its tagged shape.

    Location and LocationLink objects are both accepted; links are
    normalised to the target's selection range.

    Raises:
        DecodeError: If a location does not decode or the shape is unknown
    """
    if result is None:
        return NoDefinition()

    if isinstance(result, dict):
        return SingleLocation(location=_decode_location(result))

    if isinstance(result, list):
        return LocationArray(locations=[_decode_location(item) for item in result])

    raise DecodeError(f"Unexpected definition result: {type(result).__name__}")


class PublishDiagnosticsParams(BaseModel):
    uri: str
    version: int | None = None
    diagnostics: list[dict[str, Any]] = Field(default_factory=list)
