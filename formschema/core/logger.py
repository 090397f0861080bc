import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import orjson
import structlog
from asgi_correlation_id import correlation_id
from beartype import beartype

from formschema.core.settings import settings

CONSOLE_FIELDS = ("timestamp", "level", "event", "filename", "lineno")


class LoggerError(Exception):
    """Exception for logger related issues."""


class LogLevel(StrEnum):
    """LogLevel types for logger configuration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
    NOTSET = "NOTSET"


class LogIcon(StrEnum):
    """Icon prefixes shown on console log lines."""

    DEFAULT = "📋"
    WARNING = "⚠️"
    START = "🚀"
    ADAPTER = "🔌"
    HEALTHCHECK = "❤️"

    # Request bodies
    FORM = "🧾"
    NORMALIZE = "🔀"
    VALIDATION = "✓"


def _default_level() -> LogLevel:
    return LogLevel.DEBUG if settings.DEBUG else LogLevel.INFO


@dataclass
class LoggerConfig:
    """Logger configuration; debug selects the console renderer."""
    debug: bool = field(default_factory=lambda: settings.DEBUG)
    app_name: str = field(default="formschema")
    log_level: LogLevel = field(default_factory=_default_level)
    max_event_length: int = 80

    @property
    def level_number(self) -> int:
        return logging.getLevelName(self.log_level.value)


def add_correlation_id(logger, method_name: str, event_dict: dict) -> dict:
    """Add correlation_id to event_dict if present in context."""
    request_id = correlation_id.get()
    if request_id:
        event_dict["correlation_id"] = request_id
    return event_dict


class EventFormatter:
    """Uppercase and bound the event message, prefixing its icon on the console.

    The ``icon`` keyword is consumed here and must be a ``LogIcon`` value.
    """

    def __init__(self, debug: bool, max_length: int = 80) -> None:
        self.debug = debug
        self.max_length = max_length

    @beartype
    def __call__(self, logger, name: str, event_dict: dict) -> dict:
        raw_icon = event_dict.pop("icon", LogIcon.DEFAULT)
        try:
            icon = LogIcon(raw_icon)
        except ValueError as err:
            raise LoggerError(f"Unknown log icon {raw_icon!r}, use a LogIcon member") from err

        message = str(event_dict.get("event", ""))[: self.max_length].upper()
        event_dict["event"] = f"{icon.value} {message}" if self.debug else message
        return event_dict


class AppNameAdder:
    """Tag machine-readable events with the service name."""

    def __init__(self, app_name: str) -> None:
        self.app_name = app_name

    def __call__(self, logger, name: str, event_dict: dict) -> dict:
        event_dict.setdefault("app", self.app_name)
        return event_dict


def _console_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return orjson.dumps(value, default=str).decode()


def render_console(logger, name: str, event_dict: dict) -> str:
    """One pipe-separated line: time, level, event, extra fields, call site."""
    extras = " ".join(
        f"{key}={_console_value(value)}" for key, value in event_dict.items() if key not in CONSOLE_FIELDS
    )
    filename = event_dict.get("filename")
    location = f"{filename}:{event_dict.get('lineno', '')}" if filename else ""

    parts = (
        event_dict.get("timestamp", ""),
        str(event_dict.get("level", LogLevel.INFO.value)).upper(),
        event_dict.get("event", ""),
        extras,
        location,
    )
    return " | ".join(part for part in parts if part)


def build_processors(config: LoggerConfig) -> list:
    """Processor chain: shared enrichment, then console or JSON output."""
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
            additional_ignores=["logger"]
        ),
        EventFormatter(debug=config.debug, max_length=config.max_event_length),
    ]

    if config.debug:
        return [*processors, render_console]

    return [
        *processors,
        AppNameAdder(config.app_name),
        add_correlation_id,
        structlog.processors.dict_tracebacks,
        structlog.processors.JSONRenderer(serializer=orjson.dumps),
    ]


def setup_logging(config: LoggerConfig) -> None:
    """Configure structlog for the given config."""
    structlog.configure(
        processors=build_processors(config),
        logger_factory=structlog.PrintLoggerFactory() if config.debug else structlog.BytesLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(config.level_number),
        cache_logger_on_first_use=True,
    )


setup_logging(LoggerConfig())

logger = structlog.get_logger()
