"""Configuration for logstash_layout.

Precedence (highest to lowest): environment variables, config file,
defaults. See ``loader`` for the recognised variables.
"""

from logstash_layout.config.env import EnvReader
from logstash_layout.config.loader import (
    get_config,
    get_default_config_path,
    load_config_file,
)
from logstash_layout.config.models import LayoutConfig, LoggingConfig, Settings

__all__ = [
    "EnvReader",
    "LayoutConfig",
    "LoggingConfig",
    "Settings",
    "get_config",
    "get_default_config_path",
    "load_config_file",
]
