"""Tests for structlog configuration and processors."""

import pytest
import structlog

from formschema.core.logger import (
    AppNameAdder,
    EventFormatter,
    LogIcon,
    LoggerConfig,
    LoggerError,
    LogLevel,
    build_processors,
    render_console,
)


class TestEventFormatter:
    """Tests for the event message processor."""

    def test_console_prefixes_icon(self) -> None:
        event = EventFormatter(debug=True)(None, "info", {"event": "form body normalized", "icon": LogIcon.NORMALIZE})
        assert event["event"] == f"{LogIcon.NORMALIZE.value} FORM BODY NORMALIZED"
        assert "icon" not in event

    def test_json_mode_has_no_icon(self) -> None:
        event = EventFormatter(debug=False)(None, "info", {"event": "ready"})
        assert event["event"] == "READY"

    def test_message_truncated(self) -> None:
        event = EventFormatter(debug=False, max_length=5)(None, "info", {"event": "abcdefgh"})
        assert event["event"] == "ABCDE"

    def test_unknown_icon_rejected(self) -> None:
        with pytest.raises(LoggerError, match="Unknown log icon"):
            EventFormatter(debug=True)(None, "info", {"event": "x", "icon": "nope"})


def test_app_name_added_once() -> None:
    adder = AppNameAdder("formschema")
    assert adder(None, "info", {"event": "x"})["app"] == "formschema"
    assert adder(None, "info", {"event": "x", "app": "other"})["app"] == "other"


def test_render_console_line() -> None:
    line = render_console(
        None,
        "warning",
        {
            "timestamp": "2026-01-01T00:00:00",
            "level": "warning",
            "event": "DEPTH",
            "shape": "array",
            "keys": ["a", "b"],
            "filename": "brackets.py",
            "lineno": 12,
        },
    )
    assert line == '2026-01-01T00:00:00 | WARNING | DEPTH | shape=array keys=["a","b"] | brackets.py:12'


class TestBuildProcessors:
    """Tests for the processor chain per mode."""

    def test_debug_renders_console(self) -> None:
        processors = build_processors(LoggerConfig(debug=True))
        assert processors[-1] is render_console

    def test_production_renders_json(self) -> None:
        processors = build_processors(LoggerConfig(debug=False))
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert any(isinstance(p, AppNameAdder) for p in processors)


def test_level_number() -> None:
    assert LoggerConfig(log_level=LogLevel.WARNING).level_number == 30
