from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Union

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator

# Source line numbers are unsigned 32-bit in the emitting services
MAX_LINE_NUMBER = 2**32 - 1


class Level(str, Enum):
    """Closed set of severities, most severe first."""
    ERROR = "ERROR"
    WARN = "WARN"
    INFO = "INFO"
    DEBUG = "DEBUG"
    TRACE = "TRACE"

    @property
    def rank(self) -> int:
        # ERROR is 1, TRACE is 5
        return list(Level).index(self) + 1


class LogRecord(BaseModel):
    """A structured log entry as serialized by the emitting service."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    timestamp: AwareDatetime = Field(alias="time")
    message: str
    module_path: str | None = None
    file: str | None = None
    line: int | None = Field(default=None, ge=0, le=MAX_LINE_NUMBER)
    level: Level
    target: str
    thread: str | None = None
    context: dict[str, str] = Field(alias="mdc")

    @field_validator("timestamp", mode="before")
    @classmethod
    def _require_timestamp_text(cls, v: Any) -> Any:
        # RFC 3339 text only; epoch numbers are rejected
        if not isinstance(v, (str, datetime)):
            raise ValueError("time must be an RFC 3339 string")
        if isinstance(v, str) and _is_number(v):
            raise ValueError("time must be an RFC 3339 string")
        return v

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: Any) -> Any:
        # "info" and "Info" name the same level; "WARNING" still does not
        return v.upper() if isinstance(v, str) else v


def _is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


class Envelope(BaseModel):
    """Outer wrapper written by a container runtime; 'message' holds the serialized record."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    message: str


@dataclass(frozen=True)
class FormatSpec:
    """Parsed ':<width.precision' suffix of a placeholder."""
    min_width: int | None = None
    max_width: int | None = None
    align: str = ">"


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class FieldRef:
    # One of: level, target, message, module, file, line, thread, date
    field: str
    spec: FormatSpec = FormatSpec()
    # strftime format for 'date'
    argument: str | None = None


@dataclass(frozen=True)
class HighlightedField:
    inner: FieldRef
    spec: FormatSpec = FormatSpec()


@dataclass(frozen=True)
class ContextRef:
    key: str
    default: str = ""
    spec: FormatSpec = FormatSpec()


@dataclass(frozen=True)
class Newline:
    pass


Token = Union[Literal, FieldRef, HighlightedField, ContextRef, Newline]


@dataclass(frozen=True)
class Decoded:
    """A line that decoded into a record ready for rendering."""
    record: LogRecord


@dataclass(frozen=True)
class Fallback:
    """A line that could not be decoded.

    - text: what goes to the error channel, verbatim
    """
    text: str


@dataclass(frozen=True)
class Skip:
    """A blank line; nothing is emitted."""


DecodeResult = Union[Decoded, Fallback, Skip]
