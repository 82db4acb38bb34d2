from __future__ import annotations

from pydantic import ValidationError

from .errors import DecodeError
from .types import DecodeResult, Decoded, Envelope, Fallback, LogRecord, Skip


def summarize(error: ValidationError) -> str:
    """One-line description of a pydantic validation error."""
    errors = error.errors(include_url=False)
    if not errors:
        return str(error)
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    text = f"{loc}: {first['msg']}" if loc else first["msg"]
    if len(errors) > 1:
        text += f" (and {len(errors) - 1} more)"
    return text


def parse_record(text: str) -> LogRecord:
    """Decode a serialized LogRecord. Raises DecodeError."""
    try:
        return LogRecord.model_validate_json(text)
    except ValidationError as e:
        raise DecodeError(summarize(e), text) from e


def parse_envelope(text: str) -> Envelope:
    """Decode a runtime envelope. Raises DecodeError."""
    try:
        return Envelope.model_validate_json(text)
    except ValidationError as e:
        raise DecodeError(summarize(e), text) from e


def parse_failure(error: DecodeError, line: str) -> Fallback:
    return Fallback(f"Parse failure: {error.reason} in {line}")


def decode_line(raw_line: str, enveloped: bool) -> DecodeResult:
    """Decode one input line according to the input mode.

    Raw mode expects the line to be a LogRecord. Enveloped mode expects an
    Envelope whose 'message' is a LogRecord; when only the inner decode fails,
    the inner text is passed through verbatim since it is usually a plain
    human-readable log line.
    """
    line = raw_line.rstrip("\r\n")
    if not line.strip():
        return Skip()

    if not enveloped:
        try:
            return Decoded(parse_record(line))
        except DecodeError as e:
            return parse_failure(e, line)

    try:
        envelope = parse_envelope(line)
    except DecodeError as e:
        return parse_failure(e, line)

    try:
        return Decoded(parse_record(envelope.message))
    except DecodeError:
        if not envelope.message.strip():
            return Skip()
        return Fallback(envelope.message)
