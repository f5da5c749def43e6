"""Configuration data models.

This module defines dataclasses for layout and logging configuration.
"""

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_USER_FIELDS_ENV = "LOGSTASH_LAYOUT_USER_FIELDS"


@dataclass
class LayoutConfig:
    """Configuration for the JSON event layout."""

    schema: str = "v1"
    """Output schema: legacy, v0, v1 or v2."""

    location_info: bool = True
    """Include caller file, line, class and method."""

    render_structured_messages: bool = False
    """Expand mapping/structured message payloads into document fields."""

    user_fields: str | None = None
    """Static ``key:value,key:value`` fields added to every event."""

    user_fields_env: str = DEFAULT_USER_FIELDS_ENV
    """Environment variable holding overriding user fields."""

    flatten_output: bool | None = None
    """Merge exception, caller and context into the top level.

    None keeps the schema's default shape.
    """

    field_names: str | None = None
    """Preset name or import path of a FieldNames registry."""

    context_depth: str = "deep"
    """How nested context values are written: shallow, deep or dotted."""

    malformed_user_fields: str = "skip"
    """Handling of user-field pairs without a colon: skip or empty."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_schemas = {"legacy", "v0", "v1", "v2"}
        if self.schema.lower() not in valid_schemas:
            raise ValueError(
                f"schema must be one of {valid_schemas}, got {self.schema}"
            )
        valid_depths = {"shallow", "deep", "dotted"}
        if self.context_depth.lower() not in valid_depths:
            raise ValueError(
                f"context_depth must be one of {valid_depths}, got {self.context_depth}"
            )
        valid_policies = {"skip", "empty"}
        if self.malformed_user_fields.lower() not in valid_policies:
            raise ValueError(
                f"malformed_user_fields must be one of {valid_policies}, "
                f"got {self.malformed_user_fields}"
            )
        if not self.user_fields_env:
            raise ValueError("user_fields_env must not be empty")


@dataclass
class LoggingConfig:
    """Configuration for process logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "json"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass
class Settings:
    """Complete configuration."""

    layout: LayoutConfig = field(default_factory=LayoutConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
