"""Mapped and nested diagnostic context (MDC/NDC).

Both are held in ``contextvars`` so values are local to the current thread
or asyncio task. Values are stored copy-on-write: every update installs a new
dict/tuple, so a snapshot taken for one log record never changes afterwards.

Usage:
    with mdc_context(request_id="abc"), ndc_context("checkout"):
        logger.info("charging card")
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

_mdc: ContextVar[Mapping[str, Any]] = ContextVar("logstash_layout_mdc", default={})
_ndc: ContextVar[tuple[str, ...]] = ContextVar("logstash_layout_ndc", default=())


def mdc_put(key: str, value: Any) -> None:
    """Set one MDC entry for the current context."""
    current = dict(_mdc.get())
    current[key] = value
    _mdc.set(current)


def mdc_get(key: str, default: Any = None) -> Any:
    """Return one MDC entry."""
    return _mdc.get().get(key, default)


def mdc_remove(key: str) -> None:
    """Remove one MDC entry if present."""
    current = _mdc.get()
    if key in current:
        updated = dict(current)
        del updated[key]
        _mdc.set(updated)


def mdc_clear() -> None:
    """Remove all MDC entries."""
    _mdc.set({})


def get_mdc() -> dict[str, Any]:
    """Return a copy of the current MDC."""
    return dict(_mdc.get())


@contextmanager
def mdc_context(**values: Any) -> Iterator[None]:
    """Add MDC entries for the duration of a block.

    Previous entries are restored on exit, including on exceptions.
    """
    merged = dict(_mdc.get())
    merged.update(values)
    token = _mdc.set(merged)
    try:
        yield
    finally:
        _mdc.reset(token)


def ndc_push(message: str) -> None:
    """Push a message onto the NDC stack."""
    _ndc.set((*_ndc.get(), message))


def ndc_pop() -> str | None:
    """Pop and return the innermost NDC message, or None if empty."""
    stack = _ndc.get()
    if not stack:
        return None
    _ndc.set(stack[:-1])
    return stack[-1]


def ndc_clear() -> None:
    """Empty the NDC stack."""
    _ndc.set(())


def get_ndc() -> str | None:
    """Return the NDC stack joined by spaces, or None when empty."""
    stack = _ndc.get()
    if not stack:
        return None
    return " ".join(stack)


@contextmanager
def ndc_context(message: str) -> Iterator[None]:
    """Push an NDC message for the duration of a block."""
    token = _ndc.set((*_ndc.get(), message))
    try:
        yield
    finally:
        _ndc.reset(token)


class DiagnosticContextFilter(logging.Filter):
    """Stamp the current MDC/NDC onto log records.

    Records handed to another thread (e.g. by a QueueHandler) keep the
    context of the thread that logged them. Always returns True.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "mdc"):
            record.mdc = get_mdc()
        if not hasattr(record, "ndc"):
            record.ndc = get_ndc()
        return True
