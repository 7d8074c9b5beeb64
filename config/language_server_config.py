"""LanguageServerConfig model."""

from typing import Any

from pydantic import BaseModel, Field

from .defaults import DEFAULT_ROOT_MARKERS, DEFAULT_SERVER_COMMAND, DEFAULT_SHUTDOWN_GRACE_PERIOD


class LanguageServerConfig(BaseModel):
    """How to launch and talk to the language server."""

    command: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SERVER_COMMAND),
        description="Executable and arguments of the language server",
    )
    initialization_options: dict[str, Any] | None = Field(
        default=None,
        description="Server-specific initializationOptions sent with initialize",
    )
    request_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds to wait for a response (None waits until the server answers or stops)",
    )
    shutdown_grace_period: float = Field(
        default=DEFAULT_SHUTDOWN_GRACE_PERIOD,
        ge=0,
        description="Seconds the server gets to exit on its own before it is killed",
    )
    root_markers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ROOT_MARKERS),
        description="Files whose presence marks a workspace root",
    )
