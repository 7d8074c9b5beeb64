"""Main Config model."""

from pydantic import BaseModel, Field

from .language_server_config import LanguageServerConfig


class Config(BaseModel):
    """Main configuration model."""

    language_server: LanguageServerConfig = Field(
        default_factory=LanguageServerConfig,
        description="Language server launch and protocol settings",
    )
    languages: dict[str, str] = Field(
        default_factory=dict,
        description="Extension (\".py\") or file name (\"Makefile\") to language ID overrides",
    )
    log_level: str | None = Field(
        default=None,
        description="Log level override (falls back to the LOG_LEVEL environment variable)",
    )
    log_file: str | None = Field(
        default=None,
        description="Append log records to this file instead of stderr",
    )
