"""Developer CLI for inspecting schemas and sample output."""

from __future__ import annotations

import time

import click

from logstash_layout.encoders import ContextDepth
from logstash_layout.event import CallSite, ErrorInfo, LogEvent
from logstash_layout.layout import EventLayout
from logstash_layout.schema import SchemaVersion

_SCHEMA_CHOICE = click.Choice([s.value for s in SchemaVersion], case_sensitive=False)


class _CollectingReporter:
    """Error reporter that keeps configuration errors for display."""

    def __init__(self) -> None:
        self.errors: list[str] = []

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self.errors.append(message)


def _build_layout(
    schema: str,
    flatten: bool | None,
    field_names: str | None,
    **kwargs,
) -> EventLayout:
    reporter = _CollectingReporter()
    layout = EventLayout(schema, error_reporter=reporter, **kwargs)
    if field_names:
        layout.set_field_names_class(field_names)
    if flatten is not None:
        layout.set_flatten_output(flatten)
    if reporter.errors:
        raise click.ClickException(reporter.errors[0])
    return layout


def _sample_event(with_error: bool) -> LogEvent:
    error = None
    if with_error:
        try:
            raise ValueError("sample failure")
        except ValueError as e:
            error = ErrorInfo.from_exception(e)

    return LogEvent(
        message="sample event",
        timestamp_ms=int(time.time() * 1000),
        level="INFO",
        logger_name="logstash_layout.sample",
        thread_name="MainThread",
        call_site=CallSite(
            file="cli.py", line=1, class_name="logstash_layout.cli", method="sample"
        ),
        context={"request_id": "0000", "user": {"id": 1, "role": "admin"}},
        context_stack="sample",
        error=error,
    )


@click.group()
@click.version_option(package_name="logstash-layout")
def main() -> None:
    """logstash-layout - Inspect logstash JSON event schemas."""


@main.command("fields")
@click.option("--schema", type=_SCHEMA_CHOICE, default="v1", show_default=True)
@click.option(
    "--flatten/--no-flatten",
    default=None,
    help="Flatten or nest exception, caller and context sections.",
)
@click.option("--field-names", default=None, help="Preset or import path of names.")
def fields_command(schema: str, flatten: bool | None, field_names: str | None) -> None:
    """List the output keys and grouping names of a schema."""
    layout = _build_layout(schema, flatten, field_names, hostname="sample-host")
    names = layout.field_names

    for name in names.list_names():
        click.echo(name)
    for slot in ("exception", "caller", "mdc"):
        group = getattr(names, slot)
        click.echo(f"[{slot}] {group if group is not None else '(flattened)'}")


@main.command("sample")
@click.option("--schema", type=_SCHEMA_CHOICE, default="v1", show_default=True)
@click.option(
    "--flatten/--no-flatten",
    default=None,
    help="Flatten or nest exception, caller and context sections.",
)
@click.option("--field-names", default=None, help="Preset or import path of names.")
@click.option("--no-location", is_flag=True, help="Omit call-site fields.")
@click.option("--user-fields", default=None, help="key:value,key:value pairs.")
@click.option(
    "--context-depth",
    type=click.Choice([d.value for d in ContextDepth], case_sensitive=False),
    default=ContextDepth.DEEP.value,
    show_default=True,
)
@click.option("--with-error", is_flag=True, help="Attach a sample exception.")
def sample_command(
    schema: str,
    flatten: bool | None,
    field_names: str | None,
    no_location: bool,
    user_fields: str | None,
    context_depth: str,
    with_error: bool,
) -> None:
    """Print one sample event in the chosen schema."""
    layout = _build_layout(
        schema,
        flatten,
        field_names,
        location_info=not no_location,
        user_fields=user_fields,
        context_depth=context_depth.lower(),
    )
    click.echo(layout.format(_sample_event(with_error)), nl=False)
