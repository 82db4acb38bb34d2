import json
import time

import pytest

from logpretty.types import LogRecord


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("LOGPRETTY_PATTERN", "LOGPRETTY_ENVELOPED", "LOGPRETTY_COLOR", "LOGPRETTY_MAX_LINE_LENGTH", "NO_COLOR"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def utc_local(monkeypatch):
    """Make local time UTC so rendered timestamps are predictable."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    monkeypatch.setenv("TZ", "UTC")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def record_dict(**overrides):
    data = {
        "time": "2024-01-01T00:00:00Z",
        "message": "boot",
        "level": "INFO",
        "target": "svc",
        "mdc": {},
    }
    data.update(overrides)
    return data


def record_line(**overrides) -> str:
    return json.dumps(record_dict(**overrides)) + "\n"


def envelope_line(**overrides) -> str:
    return json.dumps({"message": json.dumps(record_dict(**overrides))}) + "\n"


@pytest.fixture
def make_record():
    def _make(**overrides) -> LogRecord:
        return LogRecord.model_validate(record_dict(**overrides))
    return _make
