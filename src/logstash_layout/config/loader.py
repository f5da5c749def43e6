"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. Environment variables (LOGSTASH_LAYOUT_*)
2. Config file (TOML, ``[layout]`` and ``[logging]`` tables)
3. Default values

Environment variables:
- LOGSTASH_LAYOUT_CONFIG_PATH: Path to config file
- LOGSTASH_LAYOUT_SCHEMA: Output schema (legacy, v0, v1, v2)
- LOGSTASH_LAYOUT_LOCATION_INFO: Include caller information (true/false)
- LOGSTASH_LAYOUT_FLATTEN: Flatten nested sections (true/false)
- LOGSTASH_LAYOUT_RENDER_STRUCTURED: Expand structured messages (true/false)
- LOGSTASH_LAYOUT_LOG_LEVEL: Process log level

LOGSTASH_LAYOUT_USER_FIELDS is not read here: the layout reads it on every
format call so it can be changed while the process runs.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from logstash_layout.config.env import EnvReader
from logstash_layout.config.models import (
    DEFAULT_USER_FIELDS_ENV,
    LayoutConfig,
    LoggingConfig,
    Settings,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("logstash_layout.toml")


def get_default_config_path(env: EnvReader | None = None) -> Path:
    """Get the default config file path.

    Can be overridden by LOGSTASH_LAYOUT_CONFIG_PATH environment variable.

    Returns:
        Path to config file.
    """
    reader = env if env is not None else EnvReader()
    env_path = reader.get_path("LOGSTASH_LAYOUT_CONFIG_PATH", must_exist=False)
    if env_path:
        return env_path
    return DEFAULT_CONFIG_FILE


def load_config_file(path: Path | None = None) -> dict[str, Any]:
    """Load and parse a TOML config file.

    Args:
        path: Path to config file. Uses default if None.

    Returns:
        Parsed dict. Returns empty dict if the file doesn't exist or
        cannot be parsed.
    """
    if path is None:
        path = get_default_config_path()

    if not path.exists():
        logger.debug("Config file not found: %s", path)
        return {}

    try:
        with path.open("rb") as f:
            config = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Failed to load config file %s: %s", path, e)
        return {}

    logger.debug("Loaded config from %s", path)
    return config


def get_config(
    config_path: Path | None = None,
    env: EnvReader | None = None,
) -> Settings:
    """Get configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides LOGSTASH_LAYOUT_CONFIG_PATH).
        env: Environment reader, defaults to os.environ.

    Returns:
        Settings with merged configuration.

    Raises:
        ValueError: If a resulting value fails validation.
    """
    reader = env if env is not None else EnvReader()
    if config_path is None:
        config_path = get_default_config_path(reader)
    file_config = load_config_file(config_path)

    layout_file = file_config.get("layout", {})
    layout = LayoutConfig(
        schema=reader.get_str(
            "LOGSTASH_LAYOUT_SCHEMA", layout_file.get("schema", "v1")
        ),
        location_info=reader.get_bool(
            "LOGSTASH_LAYOUT_LOCATION_INFO", layout_file.get("location_info", True)
        ),
        render_structured_messages=reader.get_bool(
            "LOGSTASH_LAYOUT_RENDER_STRUCTURED",
            layout_file.get("render_structured_messages", False),
        ),
        user_fields=layout_file.get("user_fields"),
        user_fields_env=layout_file.get("user_fields_env", DEFAULT_USER_FIELDS_ENV),
        flatten_output=reader.get_bool(
            "LOGSTASH_LAYOUT_FLATTEN", layout_file.get("flatten_output")
        ),
        field_names=layout_file.get("field_names"),
        context_depth=layout_file.get("context_depth", "deep"),
        malformed_user_fields=layout_file.get("malformed_user_fields", "skip"),
    )

    logging_file = file_config.get("logging", {})
    log_path = logging_file.get("file")
    logging_config = LoggingConfig(
        level=reader.get_str(
            "LOGSTASH_LAYOUT_LOG_LEVEL", logging_file.get("level", "info")
        ),
        file=Path(log_path).expanduser() if log_path else None,
        format=logging_file.get("format", "json"),
        include_stderr=logging_file.get("include_stderr", False),
        max_bytes=logging_file.get("max_bytes", 10_485_760),
        backup_count=logging_file.get("backup_count", 5),
    )

    return Settings(layout=layout, logging=logging_config)
