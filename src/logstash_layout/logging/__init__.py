"""Process logging setup for logstash_layout.

Installs handlers that emit logstash JSON events through LogstashFormatter,
with MDC/NDC stamped onto every record.
"""

from logstash_layout.logging.config import build_formatter, configure_logging

__all__ = [
    "build_formatter",
    "configure_logging",
]
