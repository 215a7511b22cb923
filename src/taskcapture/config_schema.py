"""Pydantic configuration schema for the task-capture core.

This module defines the configuration schema that mirrors config.yaml structure.
All configuration is validated against these models on startup and hot-reload.

Usage:
    from taskcapture.config_schema import AppConfig

    # Validate a config dict
    config = AppConfig(**yaml_data)
"""

from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import regex
from pydantic import BaseModel, Field, field_validator

# Current schema version - increment when adding new required fields
CURRENT_SCHEMA_VERSION = 1

# Maximum custom folders per account
MAX_CUSTOM_FOLDERS = 15

SYSTEM_FOLDER_SLUGS = ("work", "personal", "ideas", "media", "notes")

RESERVED_SLUGS = frozenset(
    {
        *SYSTEM_FOLDER_SLUGS,
        "inbox",
        "all",
        "archive",
        "trash",
        "today",
        "upcoming",
    }
)

SplitMode = Literal["off", "shadow", "apply"]
ProviderName = Literal["openai", "anthropic", "gemini"]


def _validate_timezone(v: str) -> str:
    try:
        ZoneInfo(v)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown IANA timezone '{v}' (e.g. 'Europe/Moscow', 'UTC')") from e
    return v


class CaptureConfig(BaseModel):
    """Capture pipeline thresholds."""

    note_length_threshold: int = Field(
        default=500,
        ge=1,
        le=10000,
        description="Content longer than this many characters becomes a note",
    )
    default_folder: str = Field(
        default="personal",
        description="Folder for plain text that nothing else decides",
    )


class FolderConfig(BaseModel):
    """Custom folder (contributes its slug and display name as aliases)."""

    slug: str = Field(description="Folder slug (lowercase, digits, '-' or '_')")
    display_name: str = Field(description="Display name shown to the user")

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        """Ensure the slug is well-formed and not reserved."""
        if not regex.match(r"^[a-z0-9_-]{1,32}$", v, timeout=1):
            raise ValueError("Slug must be 1-32 chars of a-z, 0-9, '-' or '_'")
        if v in RESERVED_SLUGS:
            raise ValueError(f"Slug '{v}' is reserved")
        return v

    @field_validator("display_name")
    @classmethod
    def validate_display_name(cls, v: str) -> str:
        """Ensure display name is not empty."""
        if not v or not v.strip():
            raise ValueError("Display name cannot be empty")
        return v.strip()


class SplitterConfig(BaseModel):
    """Multi-item splitter configuration."""

    mode: SplitMode = Field(
        default="off",
        description="'off': parser only, 'shadow': AI compared but parser wins, 'apply': AI first",
    )
    timeout_ms: int = Field(
        default=3000,
        ge=100,
        le=30000,
        description="Per-provider timeout for the AI split call (milliseconds)",
    )
    providers: list[ProviderName] = Field(
        default=["openai", "gemini"],
        description="AI providers tried in order; providers without an API key are skipped",
    )

    @field_validator("providers")
    @classmethod
    def validate_unique_providers(cls, v: list[str]) -> list[str]:
        """Reject the same provider listed twice."""
        if len(set(v)) != len(v):
            raise ValueError("Each provider may be listed only once")
        return v


class ModelsConfig(BaseModel):
    """Model selection per AI split provider."""

    openai: str = Field(default="gpt-4o-mini", description="OpenAI chat model")
    anthropic: str = Field(
        default="claude-haiku-4-5-20251001",
        description="Anthropic messages model",
    )
    gemini: str = Field(default="gemini-1.5-flash", description="Gemini model")


class LoggingConfig(BaseModel):
    """Logging output configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    json_output: bool = Field(
        default=True,
        description="JSON logs for services; the CLI always uses console output",
    )


class AppConfig(BaseModel):
    """Root configuration schema for the task-capture core.

    This model validates the entire config.yaml structure. On startup and
    hot-reload, the YAML is parsed and validated against this schema.

    If validation fails on startup, the application exits with a clear error.
    If validation fails on hot-reload, the previous valid config is kept.
    """

    schema_version: int = Field(
        default=CURRENT_SCHEMA_VERSION,
        ge=1,
        description="Config schema version for migration tracking",
    )
    timezone: str = Field(
        default="UTC",
        description="Default timezone for date extraction when the caller gives none",
    )
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    folders: list[FolderConfig] = Field(
        default_factory=list,
        description="Custom folders shared by every capture",
    )
    splitter: SplitterConfig = Field(default_factory=SplitterConfig)
    models: ModelsConfig = Field(default_factory=ModelsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Ensure the timezone is a known IANA zone."""
        return _validate_timezone(v)

    @field_validator("folders")
    @classmethod
    def validate_folders(cls, v: list[FolderConfig]) -> list[FolderConfig]:
        """Enforce the custom folder limit and unique slugs."""
        if len(v) > MAX_CUSTOM_FOLDERS:
            raise ValueError(f"At most {MAX_CUSTOM_FOLDERS} custom folders are allowed")
        slugs = [f.slug for f in v]
        duplicates = sorted({s for s in slugs if slugs.count(s) > 1})
        if duplicates:
            raise ValueError(f"Duplicate folder slugs: {', '.join(duplicates)}")
        return v
