"""Framework-neutral event model consumed by the layout.

``LogEvent`` carries everything the encoder reads from the host logging
framework. ``event_from_record`` adapts a standard ``logging.LogRecord``.
"""

from __future__ import annotations

import logging
import traceback
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Protocol, runtime_checkable

# LogRecord attributes that are not user-supplied ``extra`` values
_STANDARD_ATTRS: frozenset[str] = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "asctime",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
        # stamped by DiagnosticContextFilter
        "mdc",
        "ndc",
    }
)

# Values logging uses when findCaller() cannot locate the caller
_UNKNOWN_FILE = "(unknown file)"
_UNKNOWN_FUNCTION = "(unknown function)"


@runtime_checkable
class StructuredMessage(Protocol):
    """Message payload that exposes its own ordered key/value pairs.

    When structured rendering is enabled on the layout, these pairs are
    written into the document in place of the rendered message text.
    """

    def structured_fields(self) -> Iterable[tuple[str, Any]]: ...


@dataclass(frozen=True)
class CallSite:
    """Where the logging call was made."""

    file: str | None = None
    line: int | None = None
    class_name: str | None = None
    method: str | None = None


@dataclass(frozen=True)
class ErrorInfo:
    """Error attached to an event.

    Attributes:
        type_name: Canonical dotted type name, or None if unresolvable.
        message: Error message, or None if the error carries none.
        frames: Pre-rendered stack-trace lines, or None.
    """

    type_name: str | None = None
    message: str | None = None
    frames: tuple[str, ...] | None = None

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        tb: TracebackType | None = None,
    ) -> ErrorInfo:
        """Build from a live exception.

        Args:
            exc: The exception instance.
            tb: Traceback to render. Defaults to ``exc.__traceback__``.

        Returns:
            ErrorInfo with the canonical type name, message and frames.
        """
        if tb is None:
            tb = exc.__traceback__
        rendered = "".join(traceback.format_exception(type(exc), exc, tb))
        return cls(
            type_name=canonical_type_name(type(exc)),
            message=_exception_message(exc),
            frames=tuple(rendered.splitlines()),
        )


def canonical_type_name(cls: type) -> str | None:
    """Return the dotted name of a class, or None for local classes.

    Builtins are reported by bare name (``ValueError``); classes defined
    inside a function have no importable name and yield None.
    """
    qualname = getattr(cls, "__qualname__", None)
    if not qualname or "<locals>" in qualname:
        return None
    module = getattr(cls, "__module__", None)
    if not module or module == "builtins":
        return qualname
    return f"{module}.{qualname}"


def _exception_message(exc: BaseException) -> str | None:
    if not exc.args:
        return None
    try:
        return str(exc)
    except Exception:
        return None


@dataclass(frozen=True)
class LogEvent:
    """One logging event as seen by the layout.

    Attributes:
        message: Message payload (a string or a structured object).
        timestamp_ms: Milliseconds since the Unix epoch.
        level: Canonical severity name.
        rendered_message: Pre-rendered text; falls back to ``str(message)``.
        logger_name: Logger/category name.
        thread_name: Name of the emitting thread.
        call_site: Call-site metadata, None when unavailable.
        context: Mapped diagnostic context.
        context_stack: Nested diagnostic context rendered as one string.
        error: Attached error, if any.
    """

    message: Any
    timestamp_ms: int
    level: str
    rendered_message: str | None = None
    logger_name: str | None = None
    thread_name: str | None = None
    call_site: CallSite | None = None
    context: Mapping[str, Any] | None = None
    context_stack: str | None = None
    error: ErrorInfo | None = None

    def rendered(self) -> str:
        """Return the message text to emit under the message key."""
        if self.rendered_message is not None:
            return self.rendered_message
        return str(self.message)


def event_from_record(
    record: logging.LogRecord,
    context: Mapping[str, Any] | None = None,
    context_stack: str | None = None,
) -> LogEvent:
    """Adapt a ``logging.LogRecord`` into a ``LogEvent``.

    Args:
        record: The record to adapt.
        context: Mapped diagnostic context for the record. ``extra``
            attributes on the record are merged over it.
        context_stack: Nested diagnostic context string.

    Returns:
        LogEvent for the record.
    """
    merged: dict[str, Any] = dict(context) if context else {}
    for key, value in record.__dict__.items():
        if key not in _STANDARD_ATTRS and not key.startswith("_"):
            merged[key] = value

    try:
        rendered = record.getMessage()
    except Exception:
        # mismatched %-args; keep the unformatted message
        rendered = str(record.msg)

    return LogEvent(
        message=record.msg,
        rendered_message=rendered,
        timestamp_ms=int(record.created * 1000),
        level=record.levelname,
        logger_name=record.name,
        thread_name=record.threadName,
        call_site=_call_site_from_record(record),
        context=merged or None,
        context_stack=context_stack,
        error=_error_from_record(record),
    )


def _call_site_from_record(record: logging.LogRecord) -> CallSite | None:
    if record.pathname == _UNKNOWN_FILE and record.funcName == _UNKNOWN_FUNCTION:
        return None
    return CallSite(
        file=record.filename,
        line=record.lineno,
        class_name=record.module,
        method=record.funcName,
    )


def _error_from_record(record: logging.LogRecord) -> ErrorInfo | None:
    exc_info = record.exc_info
    if not exc_info or exc_info[1] is None:
        return None
    return ErrorInfo.from_exception(exc_info[1], exc_info[2])
