from __future__ import annotations

from dataclasses import dataclass

from .context import ContextStore
from .errors import RenderError
from .pattern import CompiledPattern
from .types import LogRecord


@dataclass(frozen=True)
class Renderer:
    """Evaluate a compiled pattern against one record and its context.

    The whole line is produced in memory; callers write it only after
    render() returns, so a failure never leaves a partial line behind.
    """
    pattern: CompiledPattern
    colorize: bool = False

    def render(self, record: LogRecord, context: ContextStore) -> str:
        try:
            return self.pattern.template.render(
                record=record,
                ctx=context,
                args=self.pattern.args,
                colorize=self.colorize,
            )
        except Exception as e:
            raise RenderError(f"failed to render record from {record.target!r}: {e}") from e
