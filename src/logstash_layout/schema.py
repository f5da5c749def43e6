"""Historical output schemas.

Each schema is data, not a code path: it selects the default field names,
whether details live inside an ``@fields`` envelope, the version marker,
the timestamp convention and how an absent NDC is written.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from logstash_layout.dates import DateStyle
from logstash_layout.fieldnames import (
    FieldNames,
    legacy_field_names,
    v0_field_names,
    v1_field_names,
    v2_field_names,
)

FIELDS_ENVELOPE = "@fields"


class SchemaVersion(str, Enum):
    """Supported output schemas."""

    LEGACY = "legacy"
    V0 = "v0"
    V1 = "v1"
    V2 = "v2"


@dataclass(frozen=True)
class SchemaPolicy:
    """Shape rules for one schema version.

    Attributes:
        version: Value of the version marker, or None to omit it.
        envelope: Key of the object holding event details, or None to
            write them at the top level.
        date_style: Timestamp offset convention.
        ndc_if_absent: Emit an empty NDC string when there is none.
        field_names: Factory for the schema's default registry.
    """

    version: int | None
    envelope: str | None
    date_style: DateStyle
    ndc_if_absent: bool
    field_names: Callable[[], FieldNames]


SCHEMAS: dict[SchemaVersion, SchemaPolicy] = {
    SchemaVersion.LEGACY: SchemaPolicy(
        version=None,
        envelope=FIELDS_ENVELOPE,
        date_style=DateStyle.LOCAL_OFFSET,
        ndc_if_absent=True,
        field_names=legacy_field_names,
    ),
    SchemaVersion.V0: SchemaPolicy(
        version=None,
        envelope=FIELDS_ENVELOPE,
        date_style=DateStyle.UTC,
        ndc_if_absent=False,
        field_names=v0_field_names,
    ),
    SchemaVersion.V1: SchemaPolicy(
        version=1,
        envelope=None,
        date_style=DateStyle.UTC,
        ndc_if_absent=False,
        field_names=v1_field_names,
    ),
    SchemaVersion.V2: SchemaPolicy(
        version=1,
        envelope=None,
        date_style=DateStyle.UTC,
        ndc_if_absent=False,
        field_names=v2_field_names,
    ),
}


def get_schema(schema: SchemaVersion | str) -> SchemaPolicy:
    """Look up a schema policy by enum member or name.

    Raises:
        ValueError: If the schema name is unknown.
    """
    return SCHEMAS[SchemaVersion(schema.lower())]
