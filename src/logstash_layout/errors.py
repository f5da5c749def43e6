"""Exception types and configuration error reporting.

Formatting never raises for missing or malformed event data; the only error
that escapes ``EventLayout.format`` is ``EventSerializationError``.
Configuration problems are routed through an ``ErrorReporter`` so a bad
setting never interrupts logging.
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol

logger = logging.getLogger(__name__)


class LayoutError(Exception):
    """Base class for all logstash_layout errors."""


class ConfigurationError(LayoutError):
    """Invalid layout configuration (e.g. an unloadable field-name class)."""


class FieldNamesError(ConfigurationError):
    """A field-name registry violates its invariants."""


class EventSerializationError(LayoutError):
    """The assembled document could not be serialized to JSON."""


class ErrorReporter(Protocol):
    """Channel for configuration errors raised outside of formatting."""

    def error(self, message: str, exc: BaseException | None = None) -> None: ...


class OnlyOnceErrorReporter:
    """Report the first configuration error loudly, later ones quietly.

    The first error is logged at ERROR; subsequent ones at DEBUG so a
    misconfigured layout does not flood the log it is formatting.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._reported = False
        self.last_error: str | None = None

    def error(self, message: str, exc: BaseException | None = None) -> None:
        with self._lock:
            first = not self._reported
            self._reported = True
            self.last_error = message

        if first:
            logger.error("%s", message, exc_info=exc)
        else:
            logger.debug("%s", message, exc_info=exc)
