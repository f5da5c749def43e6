"""Static user fields merged into every event.

User fields come as a comma-separated list of ``key:value`` pairs, e.g.
``"service:billing,env:prod"``. Only the first colon splits a pair, so
values may contain colons (``"url:http://host:80"``). Keys and values are
used verbatim, without trimming.

Two sources are applied in order: the layout's configured value, then the
override from the environment. The override wins on key collisions.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from enum import Enum
from typing import Any


class MalformedPairPolicy(str, Enum):
    """What to do with a pair that has no colon."""

    SKIP = "skip"
    EMPTY_VALUE = "empty"


def parse_user_fields(
    data: str | None,
    policy: MalformedPairPolicy = MalformedPairPolicy.SKIP,
) -> list[tuple[str, str]]:
    """Parse a ``key:value,key:value`` string.

    Args:
        data: Raw user-field string. None or empty yields no pairs.
        policy: Handling of pairs without a colon.

    Returns:
        Ordered (key, value) pairs. Pairs with an empty key are dropped.
    """
    if not data:
        return []

    pairs: list[tuple[str, str]] = []
    for pair in data.split(","):
        key, sep, value = pair.partition(":")
        if not key:
            continue
        if not sep:
            if policy is MalformedPairPolicy.SKIP:
                continue
            value = ""
        pairs.append((key, value))
    return pairs


def apply_user_fields(
    document: MutableMapping[str, Any],
    config_value: str | None,
    override_value: str | None,
    policy: MalformedPairPolicy = MalformedPairPolicy.SKIP,
) -> None:
    """Write user fields into a document, override last.

    Args:
        document: Document to update in place.
        config_value: User fields from layout configuration.
        override_value: User fields from the higher-precedence source.
        policy: Handling of pairs without a colon.
    """
    for source in (config_value, override_value):
        for key, value in parse_user_fields(source, policy):
            document[key] = value
