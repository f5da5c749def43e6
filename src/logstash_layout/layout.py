"""JSON event layout.

``EventLayout`` turns one ``LogEvent`` into one newline-terminated JSON line.
The document is assembled in a fixed order:

1. version marker (schemas that have one)
2. timestamp
3. user fields: configured value, then the environment override
4. host name
5. message text, or the expanded fields of a structured message
6. exception section
7. call-site section (when location info is enabled)
8. logger name, context map, NDC, level, thread name

A flattened context key that matches a built-in key wins over it, also over
the NDC, level and thread name written after the context.

Steps 3 to 8 are best effort: a failure inside one of them drops that
step's fields and formatting continues. Only serialization of the finished
document can fail a call, with ``EventSerializationError``.

A layout is long lived and shared by all threads. Each call works on a
snapshot of the configuration taken when the call starts.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass
from typing import Any

from logstash_layout.config.env import EnvReader
from logstash_layout.config.models import DEFAULT_USER_FIELDS_ENV, LayoutConfig
from logstash_layout.dates import format_timestamp
from logstash_layout.encoders import (
    ContextDepth,
    encode_caller,
    encode_context,
    encode_exception,
    place_section,
    to_json_value,
)
from logstash_layout.errors import (
    ConfigurationError,
    ErrorReporter,
    EventSerializationError,
    OnlyOnceErrorReporter,
)
from logstash_layout.event import LogEvent, StructuredMessage
from logstash_layout.fieldnames import FieldNames, copy_field_names, load_field_names
from logstash_layout.host import resolve_hostname
from logstash_layout.schema import SchemaPolicy, SchemaVersion, get_schema
from logstash_layout.user_fields import MalformedPairPolicy, apply_user_fields

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Snapshot:
    names: FieldNames
    location_info: bool
    render_structured_messages: bool
    user_fields: str | None
    override_fields: str | None
    context_depth: ContextDepth
    malformed_user_fields: MalformedPairPolicy


def _put(
    document: dict[str, Any],
    key: str | None,
    value: Any,
    context_keys: Collection[str] = (),
) -> None:
    # keys merged from a flattened context keep the context value
    if key is not None and value is not None and key not in context_keys:
        document[key] = value


def _structured_fields(payload: Any) -> dict[str, Any] | None:
    """Expand a mapping or StructuredMessage payload; None if not possible."""
    if isinstance(payload, str):
        return None
    try:
        if isinstance(payload, Mapping):
            pairs = payload.items()
        elif isinstance(payload, StructuredMessage):
            pairs = payload.structured_fields()
        else:
            return None
        expanded = {
            str(key): to_json_value(value)
            for key, value in pairs
            if value is not None
        }
    except Exception:
        # Expansion is optional; the caller falls back to the rendered text
        return None
    return expanded or None


class EventLayout:
    """Encode log events as logstash JSON lines.

    Example:
        layout = EventLayout(SchemaVersion.V1, user_fields="service:billing")
        line = layout.format(event)
    """

    def __init__(
        self,
        schema: SchemaVersion | str = SchemaVersion.V1,
        *,
        location_info: bool = True,
        render_structured_messages: bool = False,
        user_fields: str | None = None,
        field_names: FieldNames | None = None,
        flatten_output: bool | None = None,
        context_depth: ContextDepth | str = ContextDepth.DEEP,
        malformed_user_fields: MalformedPairPolicy | str = MalformedPairPolicy.SKIP,
        user_fields_env: str = DEFAULT_USER_FIELDS_ENV,
        env: EnvReader | None = None,
        hostname: str | None = None,
        error_reporter: ErrorReporter | None = None,
    ) -> None:
        """Initialize the layout.

        Args:
            schema: Output schema version.
            location_info: Include call-site fields.
            render_structured_messages: Expand mapping and StructuredMessage
                payloads into document fields.
            user_fields: Static ``key:value,...`` fields.
            field_names: Registry to use instead of the schema's defaults.
            flatten_output: Flatten (True) or nest (False) the exception,
                caller and context sections. None keeps the registry as is.
            context_depth: Fidelity of nested context values.
            malformed_user_fields: Handling of pairs without a colon.
            user_fields_env: Environment variable with overriding fields.
            env: Environment reader, defaults to os.environ.
            hostname: Host name to report instead of resolving it.
            error_reporter: Receiver for configuration errors.
        """
        self.schema_version = SchemaVersion(schema.lower())
        self._schema: SchemaPolicy = get_schema(self.schema_version)
        self._errors: ErrorReporter = error_reporter or OnlyOnceErrorReporter()
        self._env = env if env is not None else EnvReader()
        self._user_fields_env = user_fields_env
        self._hostname = hostname or resolve_hostname()

        self._field_names = self._schema.field_names()
        if field_names is not None:
            self.set_field_names(field_names)
        if flatten_output is not None:
            self.set_flatten_output(flatten_output)

        self.location_info = location_info
        self.render_structured_messages = render_structured_messages
        self.context_depth = ContextDepth(context_depth)
        self.malformed_user_fields = MalformedPairPolicy(malformed_user_fields)
        self._user_fields: str | None = None
        self.user_fields = user_fields

    @classmethod
    def from_config(
        cls,
        config: LayoutConfig,
        env: EnvReader | None = None,
        error_reporter: ErrorReporter | None = None,
    ) -> EventLayout:
        """Build a layout from a LayoutConfig."""
        layout = cls(
            config.schema,
            location_info=config.location_info,
            render_structured_messages=config.render_structured_messages,
            user_fields=config.user_fields,
            context_depth=config.context_depth.lower(),
            malformed_user_fields=config.malformed_user_fields.lower(),
            user_fields_env=config.user_fields_env,
            env=env,
            error_reporter=error_reporter,
        )
        if config.field_names:
            layout.set_field_names_class(config.field_names)
        if config.flatten_output is not None:
            layout.set_flatten_output(config.flatten_output)
        return layout

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def hostname(self) -> str:
        return self._hostname

    @property
    def schema(self) -> SchemaPolicy:
        return self._schema

    @property
    def field_names(self) -> FieldNames:
        """The active registry.

        Changes made directly on it apply from the next format call.
        """
        return self._field_names

    @property
    def user_fields(self) -> str | None:
        return self._user_fields

    @user_fields.setter
    def user_fields(self, value: str | None) -> None:
        self._user_fields = value
        if value is not None and self._override_fields() is not None:
            logger.warning(
                "User fields from %s override conflicting configured user fields",
                self._user_fields_env,
            )

    def set_field_names(self, names: FieldNames) -> None:
        """Swap in a new registry.

        An invalid registry is reported to the error reporter and the
        current one is kept.
        """
        try:
            names.validate()
        except ConfigurationError as e:
            self._errors.error(f"Invalid field names, keeping current ones: {e}", e)
            return
        self._field_names = names

    def set_field_names_class(self, identifier: str) -> None:
        """Load and install a registry by preset name or import path.

        Failures are reported to the error reporter and the current
        registry is kept.
        """
        try:
            names = load_field_names(identifier)
        except ConfigurationError as e:
            self._errors.error(
                f"Failed to load field names {identifier!r}, keeping current ones: {e}",
                e,
            )
            return
        self.set_field_names(names)

    def set_flatten_output(self, flatten: bool) -> None:
        """Flatten or nest the exception, caller and context sections."""
        names = copy_field_names(self._field_names)
        names.set_flatten_output(flatten)
        self.set_field_names(names)

    def _override_fields(self) -> str | None:
        return self._env.get_str(self._user_fields_env)

    def _snapshot(self) -> _Snapshot:
        return _Snapshot(
            names=copy_field_names(self._field_names),
            location_info=self.location_info,
            render_structured_messages=self.render_structured_messages,
            user_fields=self._user_fields,
            override_fields=self._override_fields(),
            context_depth=self.context_depth,
            malformed_user_fields=self.malformed_user_fields,
        )

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    def format(self, event: LogEvent) -> str:
        """Format an event as one JSON line ending in a single newline.

        Raises:
            EventSerializationError: If the document is not serializable.
        """
        document = self.build_document(event)
        try:
            line = json.dumps(document, separators=(",", ":"), allow_nan=False)
        except (TypeError, ValueError) as e:
            raise EventSerializationError(f"Could not serialize event: {e}") from e
        return line + "\n"

    def build_document(self, event: LogEvent) -> dict[str, Any]:
        """Assemble the output document for an event."""
        snap = self._snapshot()
        names = snap.names
        document: dict[str, Any] = {}

        _put(document, names.version, self._schema.version)
        _put(
            document,
            names.timestamp,
            format_timestamp(event.timestamp_ms, self._schema.date_style),
        )

        self._step(
            apply_user_fields,
            document,
            snap.user_fields,
            snap.override_fields,
            snap.malformed_user_fields,
        )
        _put(document, names.host_name, self._hostname)

        if self._schema.envelope is not None:
            body: dict[str, Any] = {}
        else:
            body = document

        self._step(self._add_message, document, body, event, snap)
        if self._schema.envelope is not None:
            document[self._schema.envelope] = body

        self._step(
            lambda: place_section(
                body, names.exception, encode_exception(event.error, names)
            )
        )
        if snap.location_info:
            self._step(
                lambda: place_section(
                    body, names.caller, encode_caller(event.call_site, names)
                )
            )

        self._step(_put, body, names.logger, event.logger_name)
        context_keys: set[str] = set()
        self._step(self._add_context, body, event, snap, context_keys)
        self._step(self._add_ndc, body, event, names, context_keys)
        self._step(_put, body, names.level, event.level, context_keys)
        self._step(_put, body, names.thread, event.thread_name, context_keys)
        return document

    @staticmethod
    def _step(func: Callable[..., None], *args: Any) -> None:
        try:
            func(*args)
        except Exception:
            # Enrichment failures drop only that step's fields
            return

    @staticmethod
    def _add_message(
        document: dict[str, Any],
        body: dict[str, Any],
        event: LogEvent,
        snap: _Snapshot,
    ) -> None:
        if snap.render_structured_messages:
            expanded = _structured_fields(event.message)
            if expanded is not None:
                body.update(expanded)
                return
        _put(document, snap.names.message, event.rendered())

    @staticmethod
    def _add_context(
        body: dict[str, Any],
        event: LogEvent,
        snap: _Snapshot,
        context_keys: set[str],
    ) -> None:
        section = encode_context(event.context, snap.context_depth)
        place_section(body, snap.names.mdc, section)
        if section and snap.names.mdc is None:
            context_keys.update(section)

    def _add_ndc(
        self,
        body: dict[str, Any],
        event: LogEvent,
        names: FieldNames,
        context_keys: set[str],
    ) -> None:
        ndc = event.context_stack or None
        if ndc is None and self._schema.ndc_if_absent:
            ndc = ""
        _put(body, names.ndc, ndc, context_keys)
