"""Output field-name registry.

A ``FieldNames`` instance maps every logical event field to the key it is
written under. Setting a key to None suppresses that field.

Three grouping slots decide the shape of the document:

- ``exception``: key of the exception object
- ``caller``: key of the call-site object
- ``mdc``: key of the diagnostic context object

A slot holding a name nests that section under it; a slot holding None
merges the section's keys into the enclosing document ("flatten").
"""

from __future__ import annotations

import copy
import importlib
import logging
from dataclasses import dataclass, field

from logstash_layout.errors import ConfigurationError, FieldNamesError

logger = logging.getLogger(__name__)

EXCEPTION_DEFAULT = "exception"
CALLER_DEFAULT = "caller"
MDC_DEFAULT = "mdc"

GROUPING_DEFAULTS: dict[str, str] = {
    "exception": EXCEPTION_DEFAULT,
    "caller": CALLER_DEFAULT,
    "mdc": MDC_DEFAULT,
}


@dataclass
class CommonFieldNames:
    """Names every schema shares."""

    timestamp: str | None = "@timestamp"
    version: str | None = "@version"
    message: str | None = "message"

    def list_common_names(self) -> list[str]:
        """Return the configured common keys, in output order."""
        names = [self.timestamp, self.message, self.version]
        return [name for name in names if name is not None]


@dataclass
class FieldNames(CommonFieldNames):
    """Full registry of output keys.

    Defaults are the remappable names with every section flattened.
    """

    logger: str | None = "loggername"
    thread: str | None = "threadname"
    level: str | None = "level"

    caller_class: str | None = "classname"
    caller_method: str | None = "methodname"
    caller_file: str | None = "filename"
    caller_line: str | None = "linenumber"
    stack_trace: str | None = "stacktrace"
    ndc: str | None = "ndc"

    host_name: str | None = "hostname"
    exception_class: str | None = "exceptionclass"
    exception_message: str | None = "exceptionmessage"

    exception: str | None = None
    caller: str | None = None
    mdc: str | None = None

    _remembered: dict[str, str] = field(
        default_factory=dict, repr=False, compare=False
    )

    @property
    def is_flattened(self) -> bool:
        """True when no section is nested."""
        return all(getattr(self, slot) is None for slot in GROUPING_DEFAULTS)

    def set_flatten_output(self, flatten: bool) -> None:
        """Flatten or nest all three sections at once.

        Enabling remembers the current grouping names and clears them.
        Disabling restores the remembered names, or the defaults
        ``exception``, ``caller`` and ``mdc``.
        """
        if flatten:
            for slot in GROUPING_DEFAULTS:
                current = getattr(self, slot)
                if current:
                    self._remembered[slot] = current
                setattr(self, slot, None)
        else:
            for slot, default in GROUPING_DEFAULTS.items():
                current = getattr(self, slot)
                setattr(self, slot, current or self._remembered.get(slot, default))

    def list_names(self) -> list[str]:
        """Return every configured non-grouping key, in a fixed order."""
        names = [
            *self.list_common_names(),
            self.logger,
            self.thread,
            self.level,
            self.caller_class,
            self.caller_method,
            self.caller_file,
            self.caller_line,
            self.stack_trace,
            self.ndc,
            self.host_name,
            self.exception_class,
            self.exception_message,
        ]
        return [name for name in names if name is not None]

    def validate(self) -> None:
        """Check grouping names are non-empty and do not shadow other keys.

        Raises:
            FieldNamesError: If a name is not a string, or a grouping name is
                empty or collides.
        """
        listed = self.list_names()
        for name in listed:
            if not isinstance(name, str):
                raise FieldNamesError(f"Field name {name!r} must be a string")
        taken = set(listed)
        seen: set[str] = set()
        for slot in GROUPING_DEFAULTS:
            name = getattr(self, slot)
            if name is None:
                continue
            if not isinstance(name, str):
                raise FieldNamesError(
                    f"Grouping name for '{slot}' must be a string, got {name!r}"
                )
            if not name.strip():
                raise FieldNamesError(f"Grouping name for '{slot}' must not be empty")
            if name in taken or name in seen:
                raise FieldNamesError(
                    f"Grouping name '{name}' for '{slot}' collides with another field"
                )
            seen.add(name)


def legacy_field_names() -> FieldNames:
    """Names of the original ``@fields`` envelope layout."""
    return FieldNames(
        version=None,
        message="@message",
        host_name="@source_host",
        logger=None,
        thread=None,
        caller_class="class",
        caller_method="method",
        caller_file="file",
        caller_line="line_number",
        exception_class="exception_class",
        exception_message="exception_message",
        exception=EXCEPTION_DEFAULT,
        mdc=MDC_DEFAULT,
    )


def v0_field_names() -> FieldNames:
    """Names of the v0 ``@fields`` envelope layout."""
    names = legacy_field_names()
    names.logger = "loggerName"
    names.thread = "threadName"
    return names


def v1_field_names() -> FieldNames:
    """Names of the flat v1 layout."""
    return FieldNames(
        host_name="source_host",
        logger="logger_name",
        thread="thread_name",
        caller_class="class",
        caller_method="method",
        caller_file="file",
        caller_line="line_number",
        exception_class="exception_class",
        exception_message="exception_message",
        exception=EXCEPTION_DEFAULT,
        mdc=MDC_DEFAULT,
    )


def v2_field_names() -> FieldNames:
    """Remappable v2 names, flattened by default."""
    return FieldNames()


PRESETS = {
    "legacy": legacy_field_names,
    "v0": v0_field_names,
    "v1": v1_field_names,
    "v2": v2_field_names,
}


def copy_field_names(names: FieldNames) -> FieldNames:
    """Return an independent copy of a registry, including remembered slots."""
    clone = copy.copy(names)
    clone._remembered = dict(names._remembered)
    return clone


def load_field_names(identifier: str) -> FieldNames:
    """Load a registry by preset name or import path.

    Args:
        identifier: A preset (``legacy``, ``v0``, ``v1``, ``v2``) or an
            import path such as ``mypkg.names:CustomFieldNames`` or
            ``mypkg.names.CustomFieldNames``.

    Returns:
        A new FieldNames instance.

    Raises:
        ConfigurationError: If the target cannot be imported, instantiated,
            or is not a FieldNames.
    """
    preset = PRESETS.get(identifier.strip().lower())
    if preset is not None:
        return preset()

    if ":" in identifier:
        module_name, _, attr = identifier.partition(":")
    else:
        module_name, _, attr = identifier.rpartition(".")
    if not module_name or not attr:
        raise ConfigurationError(f"Invalid field names identifier: {identifier!r}")

    try:
        module = importlib.import_module(module_name)
        target = getattr(module, attr)
        instance = target() if callable(target) else target
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load field names from {identifier!r}: {e}"
        ) from e

    if not isinstance(instance, FieldNames):
        raise ConfigurationError(
            f"{identifier!r} is not a valid type for defining field names"
        )
    logger.debug("Loaded field names from %s", identifier)
    return instance
