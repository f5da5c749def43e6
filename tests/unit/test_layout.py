"""Tests for EventLayout document assembly."""

import json
import logging

import pytest

from logstash_layout.encoders import ContextDepth
from logstash_layout.errors import EventSerializationError
from logstash_layout.event import CallSite
from logstash_layout.fieldnames import FieldNames
from logstash_layout.layout import EventLayout
from logstash_layout.schema import SchemaVersion

USER_FIELDS_ENV = "LOGSTASH_LAYOUT_USER_FIELDS"

SCHEMAS = ["v1", "v2"]


class RecordingReporter:
    """Error reporter that keeps every message."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def error(self, message, exc=None) -> None:
        self.messages.append(message)


class Payment:
    """Message payload exposing structured fields."""

    def __init__(self, amount) -> None:
        self.amount = amount

    def structured_fields(self):
        return [("amount", self.amount), ("currency", "EUR"), ("note", None)]

    def __str__(self) -> str:
        return f"payment of {self.amount}"


class BrokenPayload:
    """Structured payload whose expansion fails."""

    def structured_fields(self):
        raise RuntimeError("cannot expand")

    def __str__(self) -> str:
        return "broken payload"


class TestFormat:
    """Tests for the JSON line contract."""

    @pytest.mark.parametrize("schema", SCHEMAS)
    def test_one_compact_line(self, schema, make_layout, make_event) -> None:
        line = make_layout(schema).format(make_event())
        assert line.endswith("\n")
        assert line.count("\n") == 1
        assert ", " not in line and '": ' not in line
        json.loads(line)

    @pytest.mark.parametrize("schema", SCHEMAS)
    def test_common_names_present(self, schema, make_layout, make_event, render) -> None:
        layout = make_layout(schema)
        document = render(layout, make_event())
        for name in layout.field_names.list_common_names():
            assert name in document

    def test_v1_document(self, make_layout, make_event, render) -> None:
        document = render(make_layout("v1"), make_event())
        assert document == {
            "@version": 1,
            "@timestamp": "2013-04-01T19:36:31.207Z",
            "source_host": "test-host",
            "message": "this is an info message",
            "file": "test_layout.py",
            "line_number": 42,
            "class": "tests.test_layout",
            "method": "test_method",
            "logger_name": "tests.logger",
            "level": "INFO",
            "thread_name": "MainThread",
        }

    def test_key_order(self, make_layout, make_event) -> None:
        """Keys follow the fixed assembly order."""
        document = json.loads(make_layout("v1").format(make_event()))
        keys = list(document)
        assert keys[:4] == ["@version", "@timestamp", "source_host", "message"]
        assert keys[-3:] == ["logger_name", "level", "thread_name"]

    def test_v2_uses_default_names(self, make_layout, make_event, render) -> None:
        document = render(make_layout("v2"), make_event())
        assert document["hostname"] == "test-host"
        assert document["loggername"] == "tests.logger"
        assert document["threadname"] == "MainThread"
        assert document["linenumber"] == 42

    def test_non_ascii_is_escaped(self, make_layout, make_event, render) -> None:
        line = make_layout().format(make_event(message="café \"quoted\"\n"))
        assert line.isascii()
        assert json.loads(line)["message"] == "café \"quoted\"\n"

    def test_non_finite_number_fails(self, make_layout, make_event) -> None:
        event = make_event(context={"ratio": float("nan")})
        with pytest.raises(EventSerializationError):
            make_layout().format(event)

    def test_far_future_timestamp(self, make_layout, make_event, render) -> None:
        event = make_event(timestamp_ms=10**15)
        document = render(make_layout("v1"), event)
        assert document["@timestamp"] == "+33658-09-27T01:46:40.000Z"

    def test_far_past_timestamp_local_offset(self, make_layout, make_event, render) -> None:
        """Local-offset schemas also render instants before year 1."""
        event = make_event(timestamp_ms=-(10**14))
        document = render(make_layout("legacy"), event)
        assert document["@timestamp"].startswith("-1199-02-1")

    def test_schema_from_enum(self, make_event, render) -> None:
        layout = EventLayout(SchemaVersion.V2, hostname="h")
        assert layout.schema_version is SchemaVersion.V2
        assert render(layout, make_event())["hostname"] == "h"

    def test_unknown_schema(self) -> None:
        with pytest.raises(ValueError):
            EventLayout("v9", hostname="h")


class TestUserFields:
    """Tests for configured and environment user fields."""

    @pytest.mark.parametrize("schema", SCHEMAS)
    def test_configured(self, schema, make_layout, make_event, render) -> None:
        layout = make_layout(schema, user_fields="field1:value1")
        assert render(layout, make_event())["field1"] == "value1"

    @pytest.mark.parametrize("schema", SCHEMAS)
    def test_environment_override(self, schema, make_layout, make_event, render) -> None:
        layout = make_layout(
            schema,
            env={USER_FIELDS_ENV: "field1:envvalue"},
            user_fields="field1:value1",
        )
        assert render(layout, make_event())["field1"] == "envvalue"

    def test_multiple_fields(self, make_layout, make_event, render) -> None:
        layout = make_layout(user_fields="field2:value2,field3:value3")
        document = render(layout, make_event())
        assert document["field2"] == "value2"
        assert document["field3"] == "value3"

    def test_environment_only(self, make_layout, make_event, render) -> None:
        layout = make_layout(env={USER_FIELDS_ENV: "env:test,url:http://a:80"})
        document = render(layout, make_event())
        assert document["env"] == "test"
        assert document["url"] == "http://a:80"

    def test_environment_is_read_per_call(self, make_layout, make_event) -> None:
        env: dict[str, str] = {}
        layout = make_layout(env=env)
        env[USER_FIELDS_ENV] = "late:value"
        assert json.loads(layout.format(make_event()))["late"] == "value"

    def test_malformed_pairs(self, make_layout, make_event, render) -> None:
        skipping = make_layout(user_fields="good:1,bad")
        assert "bad" not in render(skipping, make_event())

        keeping = make_layout(user_fields="good:1,bad", malformed_user_fields="empty")
        assert render(keeping, make_event())["bad"] == ""

    def test_does_not_shadow_later_fields(self, make_layout, make_event, render) -> None:
        """Built-in fields written after user fields win on collision."""
        layout = make_layout(user_fields="level:custom")
        assert render(layout, make_event())["level"] == "INFO"

    def test_override_warning(self, make_layout, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="logstash_layout.layout"):
            make_layout(env={USER_FIELDS_ENV: "a:b"}, user_fields="a:c")
        assert "override" in caplog.text


class TestContext:
    """Tests for MDC and NDC output."""

    def test_flattened_mdc(self, make_layout, make_event, render) -> None:
        document = render(make_layout("v2"), make_event(context={"foo": "bar"}))
        assert document["foo"] == "bar"

    def test_nested_mdc(self, make_layout, make_event, render) -> None:
        document = render(make_layout("v1"), make_event(context={"foo": "bar"}))
        assert document["mdc"] == {"foo": "bar"}
        assert "foo" not in document

    def test_deep_context(self, make_layout, make_event, render) -> None:
        event = make_event(context={"foo": {"bar": "baz"}})
        assert render(make_layout("v1"), event)["mdc"]["foo"]["bar"] == "baz"

    def test_shallow_context(self, make_layout, make_event, render) -> None:
        layout = make_layout("v1", context_depth=ContextDepth.SHALLOW)
        event = make_event(context={"foo": {"bar": "baz"}})
        assert render(layout, event)["mdc"]["foo"] == '{"bar":"baz"}'

    def test_dotted_context(self, make_layout, make_event, render) -> None:
        layout = make_layout("v2", context_depth="dotted")
        event = make_event(context={"foo": {"bar": "baz"}})
        assert render(layout, event)["foo.bar"] == "baz"

    def test_flattened_context_wins_over_built_in_keys(
        self, make_layout, make_event, render
    ) -> None:
        """Colliding context keys keep their value, before or after the context."""
        event = make_event(
            context={"loggername": "ctx-logger", "level": "ctx-level", "threadname": "t"}
        )
        document = render(make_layout("v2"), event)
        assert document["loggername"] == "ctx-logger"
        assert document["level"] == "ctx-level"
        assert document["threadname"] == "t"

    def test_flattened_context_wins_over_ndc(self, make_layout, make_event, render) -> None:
        event = make_event(context={"ndc": "from-context"}, context_stack="outer")
        assert render(make_layout("v2"), event)["ndc"] == "from-context"

    def test_nested_context_does_not_shadow(self, make_layout, make_event, render) -> None:
        document = render(make_layout("v1"), make_event(context={"level": "ctx"}))
        assert document["level"] == "INFO"
        assert document["mdc"] == {"level": "ctx"}

    def test_empty_context_omitted(self, make_layout, make_event, render) -> None:
        document = render(make_layout("v1"), make_event(context={}))
        assert "mdc" not in document

    def test_ndc(self, make_layout, make_event, render) -> None:
        event = make_event(context_stack="NDC message")
        assert render(make_layout("v1"), event)["ndc"] == "NDC message"

    def test_absent_ndc_omitted(self, make_layout, make_event, render) -> None:
        assert "ndc" not in render(make_layout("v1"), make_event())
        assert "ndc" not in render(make_layout("v1"), make_event(context_stack=""))


class TestException:
    """Tests for the exception section."""

    def test_nested_exception(self, make_layout, make_event, render, sample_error) -> None:
        document = render(make_layout("v1"), make_event(error=sample_error))
        assert document["exception"] == {
            "exception_class": "ValueError",
            "exception_message": "shits on fire, yo",
            "stacktrace": (
                "Traceback (most recent call last):\nValueError: shits on fire, yo"
            ),
        }

    def test_flattened_exception(self, make_layout, make_event, render, sample_error) -> None:
        document = render(make_layout("v2"), make_event(error=sample_error))
        assert document["exceptionclass"] == "ValueError"
        assert document["exceptionmessage"] == "shits on fire, yo"
        assert document["stacktrace"].startswith("Traceback")

    def test_no_exception(self, make_layout, make_event, render) -> None:
        document = render(make_layout("v1"), make_event())
        assert "exception" not in document
        assert "stacktrace" not in document


class TestLocationInfo:
    """Tests for call-site output."""

    def test_disabled(self, make_layout, make_event, render) -> None:
        document = render(make_layout("v2", location_info=False), make_event())
        for key in ("filename", "linenumber", "classname", "methodname"):
            assert key not in document

    def test_disabled_nested(self, make_layout, make_event, render) -> None:
        layout = make_layout(
            "v1", location_info=False, field_names=FieldNames(caller="caller")
        )
        document = render(layout, make_event())
        assert "caller" not in document
        for key in ("filename", "linenumber", "classname", "methodname"):
            assert key not in document

    def test_nested_caller(self, make_layout, make_event, render) -> None:
        layout = make_layout("v1", field_names=FieldNames(caller="caller"))
        assert render(layout, make_event())["caller"]["linenumber"] == 42

    def test_missing_call_site(self, make_layout, make_event, render) -> None:
        document = render(make_layout("v1"), make_event(call_site=None))
        assert "file" not in document
        assert "line_number" not in document

    def test_partial_call_site(self, make_layout, make_event, render) -> None:
        event = make_event(call_site=CallSite(file="a.py", line=None))
        document = render(make_layout("v1"), event)
        assert document["file"] == "a.py"
        assert "line_number" not in document


class TestStructuredMessages:
    """Tests for structured message expansion."""

    def test_disabled_by_default(self, make_layout, make_event, render) -> None:
        document = render(make_layout(), make_event(message=Payment(10)))
        assert document["message"] == "payment of 10"
        assert "amount" not in document

    def test_structured_message(self, make_layout, make_event, render) -> None:
        layout = make_layout(render_structured_messages=True)
        document = render(layout, make_event(message=Payment(10)))
        assert document["amount"] == 10
        assert document["currency"] == "EUR"
        assert "note" not in document
        assert "message" not in document

    def test_mapping_message(self, make_layout, make_event, render) -> None:
        layout = make_layout(render_structured_messages=True)
        event = make_event(message={"order": {"id": 7}}, rendered_message="order")
        document = render(layout, event)
        assert document["order"] == {"id": 7}
        assert "message" not in document

    def test_string_message_unchanged(self, make_layout, make_event, render) -> None:
        layout = make_layout(render_structured_messages=True)
        assert render(layout, make_event())["message"] == "this is an info message"

    def test_failed_expansion_falls_back(self, make_layout, make_event, render) -> None:
        layout = make_layout(render_structured_messages=True)
        document = render(layout, make_event(message=BrokenPayload()))
        assert document["message"] == "broken payload"

    def test_empty_expansion_falls_back(self, make_layout, make_event, render) -> None:
        layout = make_layout(render_structured_messages=True)
        event = make_event(message={}, rendered_message="nothing")
        assert render(layout, event)["message"] == "nothing"


class TestFieldNameConfiguration:
    """Tests for swapping and reshaping the registry."""

    def test_custom_names(self, make_layout, make_event, render) -> None:
        layout = make_layout("v2", field_names=FieldNames(message="msg", level="severity"))
        document = render(layout, make_event())
        assert document["msg"] == "this is an info message"
        assert document["severity"] == "INFO"

    def test_disabled_key(self, make_layout, make_event, render) -> None:
        layout = make_layout("v2", field_names=FieldNames(thread=None, version=None))
        document = render(layout, make_event())
        assert "threadname" not in document
        assert "@version" not in document

    def test_invalid_names_keep_previous(self, make_layout, make_event, render) -> None:
        reporter = RecordingReporter()
        layout = make_layout("v1", error_reporter=reporter)
        layout.set_field_names(FieldNames(mdc="level"))
        assert len(reporter.messages) == 1
        assert layout.field_names.logger == "logger_name"
        assert "logger_name" in render(layout, make_event())

    def test_non_string_names_are_reported(self, make_layout) -> None:
        reporter = RecordingReporter()
        layout = make_layout("v1", error_reporter=reporter)
        layout.set_field_names(FieldNames(mdc=7))
        assert "must be a string" in reporter.messages[0]
        assert layout.field_names.mdc == "mdc"

    def test_set_field_names_class(self, make_layout) -> None:
        layout = make_layout("v2")
        layout.set_field_names_class("v1")
        assert layout.field_names.host_name == "source_host"

    def test_unloadable_class_keeps_previous(self, make_layout) -> None:
        reporter = RecordingReporter()
        layout = make_layout("v2", error_reporter=reporter)
        layout.set_field_names_class("no_such_module_xyz:Names")
        assert "no_such_module_xyz" in reporter.messages[0]
        assert layout.field_names.host_name == "hostname"

    def test_flatten_output(self, make_layout, make_event, render, sample_error) -> None:
        layout = make_layout("v1", flatten_output=True)
        document = render(layout, make_event(context={"foo": "bar"}, error=sample_error))
        assert document["foo"] == "bar"
        assert document["exception_class"] == "ValueError"
        assert "mdc" not in document

    def test_unflatten_output(self, make_layout, make_event, render) -> None:
        layout = make_layout("v2")
        layout.set_flatten_output(False)
        document = render(layout, make_event(context={"foo": "bar"}))
        assert document["mdc"] == {"foo": "bar"}
        assert document["caller"]["filename"] == "test_layout.py"

    def test_flatten_does_not_touch_shared_registry(self, make_layout) -> None:
        names = FieldNames(mdc="ctx")
        layout = make_layout("v2", field_names=names)
        layout.set_flatten_output(True)
        assert names.mdc == "ctx"
        assert layout.field_names.mdc is None

    def test_registry_changes_apply_to_next_call(self, make_layout, make_event, render) -> None:
        layout = make_layout("v2")
        layout.field_names.level = "lvl"
        assert render(layout, make_event())["lvl"] == "INFO"


class TestDegradedSteps:
    """Tests for best-effort enrichment."""

    def test_failing_context_step_is_dropped(self, make_layout, make_event, render) -> None:
        class Exploding(dict):
            def items(self):
                raise RuntimeError("boom")

        event = make_event(context=Exploding(a=1))
        document = render(make_layout("v1"), event)
        assert "mdc" not in document
        assert document["level"] == "INFO"
        assert document["thread_name"] == "MainThread"

    def test_missing_optional_event_data(self, make_layout, make_event, render) -> None:
        event = make_event(logger_name=None, thread_name=None, call_site=None)
        document = render(make_layout("v1"), event)
        assert "logger_name" not in document
        assert "thread_name" not in document
        assert document["level"] == "INFO"


class TestFromConfig:
    """Tests for EventLayout.from_config()."""

    def test_applies_settings(self, make_event, render) -> None:
        from logstash_layout.config.env import EnvReader
        from logstash_layout.config.models import LayoutConfig

        config = LayoutConfig(
            schema="V2",
            location_info=False,
            user_fields="service:billing",
            flatten_output=False,
            context_depth="SHALLOW",
        )
        layout = EventLayout.from_config(config, env=EnvReader(env={}))
        assert layout.schema_version is SchemaVersion.V2
        assert layout.location_info is False
        assert layout.context_depth is ContextDepth.SHALLOW
        assert layout.field_names.mdc == "mdc"
        assert layout.user_fields == "service:billing"

    def test_field_names_identifier(self) -> None:
        from logstash_layout.config.env import EnvReader
        from logstash_layout.config.models import LayoutConfig

        config = LayoutConfig(schema="v2", field_names="v1")
        layout = EventLayout.from_config(config, env=EnvReader(env={}))
        assert layout.field_names.logger == "logger_name"
