"""``logging.Formatter`` adapter for EventLayout.

Example:
    handler = logging.StreamHandler()
    handler.addFilter(DiagnosticContextFilter())
    handler.setFormatter(LogstashFormatter(EventLayout(SchemaVersion.V1)))
"""

from __future__ import annotations

import logging

from logstash_layout.context import get_mdc, get_ndc
from logstash_layout.event import event_from_record
from logstash_layout.layout import EventLayout


class LogstashFormatter(logging.Formatter):
    """Format log records as logstash JSON events.

    The MDC/NDC come from ``record.mdc`` / ``record.ndc`` when a
    DiagnosticContextFilter stamped them, otherwise from the formatting
    thread's current context. ``extra`` attributes are merged over the MDC.

    The returned line has no trailing newline: handlers append their own
    terminator.
    """

    def __init__(self, layout: EventLayout | None = None) -> None:
        super().__init__()
        self.layout = layout if layout is not None else EventLayout()

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as a JSON line.

        Args:
            record: Log record to format.

        Returns:
            JSON document without the trailing newline.

        Raises:
            EventSerializationError: If the document is not serializable.
        """
        context = getattr(record, "mdc", None)
        if context is None:
            context = get_mdc()
        if hasattr(record, "ndc"):
            context_stack = record.ndc
        else:
            context_stack = get_ndc()

        event = event_from_record(record, context=context, context_stack=context_stack)
        line = self.layout.format(event)
        return line[:-1]
