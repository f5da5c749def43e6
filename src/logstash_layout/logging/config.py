"""Process logging setup.

Provides configure_logging() to install handlers that write logstash JSON
events (or plain text) based on LoggingConfig.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from logstash_layout.context import DiagnosticContextFilter
from logstash_layout.formatter import LogstashFormatter
from logstash_layout.layout import EventLayout

if TYPE_CHECKING:
    from logstash_layout.config.env import EnvReader
    from logstash_layout.config.models import LayoutConfig, LoggingConfig

# Map of lowercase level names to logging module constants.
_LEVEL_MAP: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def build_formatter(
    config: LoggingConfig,
    layout_config: LayoutConfig | None = None,
    env: EnvReader | None = None,
) -> logging.Formatter:
    """Create the formatter selected by ``config.format``."""
    if config.format.casefold() == "json":
        if layout_config is None:
            return LogstashFormatter(EventLayout(env=env))
        return LogstashFormatter(EventLayout.from_config(layout_config, env=env))
    return logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )


def configure_logging(
    config: LoggingConfig,
    layout_config: LayoutConfig | None = None,
    env: EnvReader | None = None,
) -> None:
    """Configure root logging.

    Sets up handlers for file and/or stderr output with the JSON event
    layout or a text formatter.

    Args:
        config: Logging configuration.
        layout_config: Layout settings for the JSON format.
        env: Environment reader passed to the layout.
    """
    level = _LEVEL_MAP.get(config.level.casefold(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = build_formatter(config, layout_config, env)
    context_filter = DiagnosticContextFilter()

    file_handler_added = False
    if config.file:
        try:
            file_path = Path(config.file).expanduser()
            file_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = RotatingFileHandler(
                file_path,
                maxBytes=config.max_bytes,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            file_handler.addFilter(context_filter)
            root_logger.addHandler(file_handler)
            file_handler_added = True
        except OSError as e:
            # Log file unavailable - fall back to stderr
            sys.stderr.write(f"Warning: Could not open log file {config.file}: {e}\n")

    if config.include_stderr or not file_handler_added:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(level)
        stderr_handler.setFormatter(formatter)
        stderr_handler.addFilter(context_filter)
        root_logger.addHandler(stderr_handler)
