"""Logstash JSON event layout for Python logging."""

from logstash_layout.context import (
    DiagnosticContextFilter,
    mdc_context,
    ndc_context,
)
from logstash_layout.encoders import ContextDepth
from logstash_layout.errors import (
    ConfigurationError,
    EventSerializationError,
    FieldNamesError,
    LayoutError,
)
from logstash_layout.event import (
    CallSite,
    ErrorInfo,
    LogEvent,
    StructuredMessage,
    event_from_record,
)
from logstash_layout.fieldnames import FieldNames, load_field_names
from logstash_layout.formatter import LogstashFormatter
from logstash_layout.layout import EventLayout
from logstash_layout.schema import SchemaVersion
from logstash_layout.user_fields import MalformedPairPolicy

__version__ = "0.1.0"

__all__ = [
    "CallSite",
    "ConfigurationError",
    "ContextDepth",
    "DiagnosticContextFilter",
    "ErrorInfo",
    "EventLayout",
    "EventSerializationError",
    "FieldNames",
    "FieldNamesError",
    "LayoutError",
    "LogEvent",
    "LogstashFormatter",
    "MalformedPairPolicy",
    "SchemaVersion",
    "StructuredMessage",
    "__version__",
    "event_from_record",
    "load_field_names",
    "mdc_context",
    "ndc_context",
]
