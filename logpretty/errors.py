from __future__ import annotations


class LogprettyError(Exception):
    """Base class for every error raised by logpretty."""


class StartupConfigError(LogprettyError):
    """Configuration is unusable; the process must not start."""


class PatternError(StartupConfigError):
    """The layout pattern could not be compiled."""

    def __init__(self, message: str, pattern: str, position: int | None = None) -> None:
        self.pattern = pattern
        self.position = position
        if position is not None:
            message = f"{message} at position {position} in pattern {pattern!r}"
        else:
            message = f"{message} in pattern {pattern!r}"
        super().__init__(message)


class ConfigError(StartupConfigError):
    """The configuration file or environment holds invalid values."""


class DecodeError(LogprettyError):
    """A line did not match the expected JSON shape."""

    def __init__(self, reason: str, text: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.text = text


class RenderError(LogprettyError):
    """Producing output for a single record failed."""


class SinkUnavailableError(LogprettyError):
    """The output device cannot currently be written to."""


class InputIOError(LogprettyError):
    """Reading from the input source failed."""
