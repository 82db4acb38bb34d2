from __future__ import annotations

import logging
from collections.abc import Iterator, MutableMapping
from dataclasses import dataclass
from typing import Any, TextIO

from .config import Config
from .context import ContextStore
from .decoder import decode_line
from .errors import InputIOError, RenderError, SinkUnavailableError
from .renderer import Renderer
from .sink import ConsoleSink
from .types import Decoded, Fallback, LogRecord

logger = logging.getLogger(__name__)


class UnitLogAdapter(logging.LoggerAdapter):
    """Prefix diagnostics with the name of the unit rendering the record."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.extra['unit']}] {msg}", kwargs


@dataclass
class Processor:
    config: Config
    renderer: Renderer

    def process_stream(self, src: TextIO, sink: ConsoleSink, err: TextIO) -> None:
        """Pump lines from src until end of input.

        Each line is decoded, and a decoded record is rendered to the sink
        before the next line is read. Raises InputIOError if src fails.
        """
        for raw_line, overlong in self._read_lines(src):
            if overlong:
                limit = self.config.max_line_length
                self._report(f"Parse failure: line exceeds {limit} characters in {raw_line}", err)
                continue
            result = decode_line(raw_line, enveloped=self.config.enveloped)
            if isinstance(result, Decoded):
                self._dispatch(result.record, sink)
            elif isinstance(result, Fallback):
                self._report(result.text, err)

    def _dispatch(self, record: LogRecord, sink: ConsoleSink) -> None:
        """Render one record in its own context and write it out."""
        unit_log = UnitLogAdapter(logger, {"unit": record.thread or "main"})
        try:
            text = self._render(record)
        except RenderError as e:
            unit_log.error("%s", e)
            return
        if not text.endswith("\n"):
            text += "\n"
        try:
            sink.write(text)
        except SinkUnavailableError as e:
            unit_log.debug("dropping record: %s", e)

    def _render(self, record: LogRecord) -> str:
        try:
            context = ContextStore.for_record(record)
        except (OverflowError, ValueError, OSError) as e:
            raise RenderError(f"cannot build context for record from {record.target!r}: {e}") from e
        return self.renderer.render(record, context)

    def _read_lines(self, src: TextIO) -> Iterator[tuple[str, bool]]:
        """Yield (line, overlong) pairs.

        Lines longer than max_line_length are consumed to their end and
        yielded truncated with overlong set.
        """
        limit = self.config.max_line_length
        while True:
            line = self._readline(src, limit + 1)
            if not line:
                return
            if len(line) <= limit or line.endswith("\n"):
                yield line, False
                continue
            rest = line
            while rest and not rest.endswith("\n"):
                rest = self._readline(src, limit)
            yield line[:limit], True

    @staticmethod
    def _readline(src: TextIO, size: int) -> str:
        try:
            return src.readline(size)
        except (OSError, UnicodeDecodeError) as e:
            raise InputIOError(f"failed to read input: {e}") from e

    @staticmethod
    def _report(text: str, err: TextIO) -> None:
        if not text.endswith("\n"):
            text += "\n"
        try:
            err.write(text)
            err.flush()
        except (OSError, ValueError) as e:
            logger.debug("error channel is not writable: %s", e)
