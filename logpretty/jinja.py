from __future__ import annotations

from datetime import datetime

from jinja2 import Environment, StrictUndefined, Template

from .types import Level, LogRecord

"""Jinja2 environment and filters backing compiled layout patterns.

A layout pattern is translated into Jinja2 source once at startup and every
record is rendered through the resulting template. The environment is created
once at import time and shared by all compiled patterns.
"""

DEFAULT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"

RESET = "\033[0m"
LEVEL_STYLES: dict[Level, str] = {
    Level.ERROR: "\033[1;31m",  # bold red
    Level.WARN: "\033[33m",  # yellow
}


def local_time(value: datetime, fmt: str | None = None) -> str:
    """Convert an aware datetime to local wall-clock time and format it."""
    return value.astimezone().strftime(fmt or DEFAULT_DATE_FORMAT)


def record_field(record: LogRecord, name: str, argument: str | None = None) -> str:
    """Return the text of a named record field; absent optional fields are empty."""
    if name == "level":
        return record.level.value
    if name == "date":
        return local_time(record.timestamp, argument)
    if name == "module":
        value = record.module_path
    else:
        value = getattr(record, name)
    return "" if value is None else str(value)


def fit(value: object, min_width: int | None = None, max_width: int | None = None, align: str = ">") -> str:
    """Truncate to max_width characters, then pad with spaces to min_width."""
    text = "" if value is None else str(value)
    if max_width is not None:
        text = text[:max_width]
    if min_width is not None:
        text = text.ljust(min_width) if align == "<" else text.rjust(min_width)
    return text


def highlight(text: str, level: Level, enabled: bool) -> str:
    style = LEVEL_STYLES.get(level)
    if not enabled or style is None:
        return text
    return f"{style}{text}{RESET}"


# Singleton environment reused across the process
JINJA_ENV: Environment = Environment(
    undefined=StrictUndefined,
    autoescape=False,
    keep_trailing_newline=True,
)
JINJA_ENV.filters.update(
    field=record_field,
    fit=fit,
    highlight=highlight,
    localtime=local_time,
)


def compile_template(source: str) -> Template:
    """Compile a Jinja2 template from a string.
    """
    return JINJA_ENV.from_string(source)
