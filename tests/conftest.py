"""Shared test fixtures for logstash_layout."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pytest

from logstash_layout.config.env import EnvReader
from logstash_layout.context import mdc_clear, ndc_clear
from logstash_layout.event import CallSite, ErrorInfo, LogEvent
from logstash_layout.layout import EventLayout

# 2013-04-01T19:36:31.207Z
SAMPLE_TIMESTAMP_MS = 1364844991207


@pytest.fixture(autouse=True)
def clear_diagnostic_context():
    """Start and finish every test with an empty MDC/NDC."""
    mdc_clear()
    ndc_clear()
    yield
    mdc_clear()
    ndc_clear()


@pytest.fixture
def sample_error() -> ErrorInfo:
    """Return an error with a type, a message and two frames."""
    return ErrorInfo(
        type_name="ValueError",
        message="shits on fire, yo",
        frames=("Traceback (most recent call last):", "ValueError: shits on fire, yo"),
    )


@pytest.fixture
def make_event() -> Callable[..., LogEvent]:
    """Return a factory for LogEvents with sensible defaults."""

    def _make(**overrides: Any) -> LogEvent:
        values: dict[str, Any] = {
            "message": "this is an info message",
            "timestamp_ms": SAMPLE_TIMESTAMP_MS,
            "level": "INFO",
            "logger_name": "tests.logger",
            "thread_name": "MainThread",
            "call_site": CallSite(
                file="test_layout.py",
                line=42,
                class_name="tests.test_layout",
                method="test_method",
            ),
        }
        values.update(overrides)
        return LogEvent(**values)

    return _make


@pytest.fixture
def make_layout() -> Callable[..., EventLayout]:
    """Return a layout factory isolated from the real environment."""

    def _make(schema: str = "v1", env: dict[str, str] | None = None, **kwargs: Any):
        kwargs.setdefault("hostname", "test-host")
        reader = EnvReader(env=env if env is not None else {})
        return EventLayout(schema, env=reader, **kwargs)

    return _make


@pytest.fixture
def render() -> Callable[[EventLayout, LogEvent], dict[str, Any]]:
    """Format an event and parse the resulting line."""

    def _render(layout: EventLayout, event: LogEvent) -> dict[str, Any]:
        line = layout.format(event)
        assert line.endswith("\n")
        return json.loads(line)

    return _render
