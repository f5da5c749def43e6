"""Section encoders for exception, call-site and context data.

Each encoder returns a plain dict (or None when there is nothing to write).
``place_section`` then nests it under the registry's grouping key or merges
it into the enclosing document when that key is None.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, MutableMapping
from enum import Enum
from typing import Any

from logstash_layout.event import CallSite, ErrorInfo
from logstash_layout.fieldnames import FieldNames

_SCALARS = (str, int, float, bool)


class ContextDepth(str, Enum):
    """How nested values in the context map are written.

    - SHALLOW: every value becomes a string
    - DEEP: nested mappings stay nested JSON objects
    - DOTTED: nested mappings become ``parent.child`` keys
    """

    SHALLOW = "shallow"
    DEEP = "deep"
    DOTTED = "dotted"


def to_json_value(value: Any) -> Any:
    """Convert a value into JSON-compatible data, preserving structure.

    Mappings become objects with string keys, lists and tuples become
    arrays, JSON scalars pass through and anything else is stringified.
    """
    if value is None or isinstance(value, _SCALARS):
        return value
    if isinstance(value, Mapping):
        return {str(k): to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    return str(value)


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(to_json_value(value), separators=(",", ":"))
    return str(value)


def _dotted(prefix: str, value: Any, out: dict[str, Any]) -> None:
    if isinstance(value, Mapping) and value:
        for k, v in value.items():
            _dotted(f"{prefix}.{k}", v, out)
    else:
        out[prefix] = to_json_value(value)


def place_section(
    document: MutableMapping[str, Any],
    group_key: str | None,
    section: Mapping[str, Any] | None,
) -> None:
    """Nest a section under ``group_key`` or merge it into ``document``.

    Merging overwrites existing keys.
    """
    if not section:
        return
    if group_key is not None:
        document[group_key] = dict(section)
    else:
        document.update(section)


def _put(section: dict[str, Any], key: str | None, value: Any) -> None:
    if key is not None and value is not None:
        section[key] = value


def encode_exception(
    error: ErrorInfo | None, names: FieldNames
) -> dict[str, Any] | None:
    """Encode an attached error.

    Args:
        error: The event's error, if any.
        names: Registry supplying the output keys.

    Returns:
        Mapping with the exception class, message and stack trace (each
        only when known), or None when there is no error.
    """
    if error is None:
        return None

    section: dict[str, Any] = {}
    _put(section, names.exception_class, error.type_name)
    _put(section, names.exception_message, error.message)
    if error.frames:
        _put(section, names.stack_trace, "\n".join(error.frames))
    return section


def encode_caller(
    call_site: CallSite | None, names: FieldNames
) -> dict[str, Any] | None:
    """Encode call-site data; None when the call site is unknown."""
    if call_site is None:
        return None

    section: dict[str, Any] = {}
    _put(section, names.caller_file, call_site.file)
    _put(section, names.caller_line, call_site.line)
    _put(section, names.caller_class, call_site.class_name)
    _put(section, names.caller_method, call_site.method)
    return section


def encode_context(
    context: Mapping[str, Any] | None,
    depth: ContextDepth = ContextDepth.DEEP,
) -> dict[str, Any] | None:
    """Encode the mapped diagnostic context.

    Args:
        context: Context map; None values are skipped.
        depth: Fidelity for nested values.

    Returns:
        Encoded mapping, or None for an absent or empty context.
    """
    if not context:
        return None

    section: dict[str, Any] = {}
    for key, value in context.items():
        if value is None:
            continue
        key = str(key)
        if depth is ContextDepth.SHALLOW:
            section[key] = _stringify(value)
        elif depth is ContextDepth.DOTTED:
            _dotted(key, value, section)
        else:
            section[key] = to_json_value(value)
    return section or None
