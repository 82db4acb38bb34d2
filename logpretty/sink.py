from __future__ import annotations

import os
from enum import Enum
from typing import TextIO

from .errors import SinkUnavailableError


class ColorMode(str, Enum):
    """When to emit ANSI color codes."""
    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"


class ConsoleSink:
    """Line-oriented output device.

    The stream may be missing or go away (closed, broken pipe); writes then
    raise SinkUnavailableError and the caller drops that record.
    """

    def __init__(self, stream: TextIO | None, color_mode: ColorMode = ColorMode.AUTO) -> None:
        self.stream = stream
        self.color_mode = color_mode
        self.colorize = self._should_colorize()

    def _should_colorize(self) -> bool:
        if self.color_mode == ColorMode.ALWAYS:
            return True
        if self.color_mode == ColorMode.NEVER or self.stream is None:
            return False
        if os.environ.get("NO_COLOR"):
            return False
        isatty = getattr(self.stream, "isatty", None)
        try:
            return bool(isatty and isatty())
        except ValueError:
            # closed stream
            return False

    def write(self, text: str) -> None:
        """Write one complete line and flush it."""
        if self.stream is None or getattr(self.stream, "closed", False):
            raise SinkUnavailableError("output stream is not available")
        try:
            self.stream.write(text)
            self.stream.flush()
        except (OSError, ValueError) as e:
            raise SinkUnavailableError(f"output stream is not writable: {e}") from e
