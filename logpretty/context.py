from __future__ import annotations

from collections.abc import Iterator, Mapping
from datetime import datetime

from .types import LogRecord

# Reserved key holding the record's timestamp in local time
TIMESTAMP_KEY = "__log-timestamp"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f%Z"


def format_timestamp(value: datetime) -> str:
    """Local wall-clock time with microseconds and zone abbreviation."""
    return value.astimezone().strftime(TIMESTAMP_FORMAT)


class ContextStore(Mapping[str, str]):
    """Diagnostic context of exactly one record.

    A store is built for a record, handed to the renderer and then dropped.
    It is read-only once built and never shared between records.
    """

    def __init__(self, entries: Mapping[str, str] | None = None) -> None:
        self._entries: dict[str, str] = dict(entries or {})

    @classmethod
    def for_record(cls, record: LogRecord) -> "ContextStore":
        entries = dict(record.context)
        entries[TIMESTAMP_KEY] = format_timestamp(record.timestamp)
        return cls(entries)

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ContextStore({self._entries!r})"
