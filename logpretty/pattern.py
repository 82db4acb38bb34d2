"""Compiler for layout patterns such as '{h({l}):<5} {t:<20.20} - {m}{n}'.

Placeholders:
- {l} level, {t} target, {m} message, {M} module path, {f} file, {L} line,
  {T} thread, {d} / {d(strftime)} local timestamp, {n} newline
- {X(key)} / {X(key)(default)} diagnostic context lookup
- {h({l})} level with severity color
- long names (level, target, message, module, file, line, thread, date,
  mdc, highlight) are accepted as well
- ':<width.precision' after the arguments pads and truncates
- '{{' and '}}' are literal braces
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from jinja2 import Template

from .errors import PatternError
from .jinja import compile_template
from .types import ContextRef, FieldRef, FormatSpec, HighlightedField, Literal, Newline, Token

FIELD_NAMES: dict[str, str] = {
    "l": "level",
    "level": "level",
    "t": "target",
    "target": "target",
    "m": "message",
    "message": "message",
    "M": "module",
    "module": "module",
    "f": "file",
    "file": "file",
    "L": "line",
    "line": "line",
    "T": "thread",
    "thread": "thread",
    "d": "date",
    "date": "date",
}
CONTEXT_NAMES = {"X", "mdc"}
HIGHLIGHT_NAMES = {"h", "highlight"}
NEWLINE_NAMES = {"n"}

# Levels line up in columns unless the pattern says otherwise
DEFAULT_LEVEL_SPEC = FormatSpec(min_width=5, align="<")

_FORMAT_SPEC = re.compile(r"(?P<align>[<>])?(?P<width>\d+)?(?:\.(?P<precision>\d+))?")
_NAME = re.compile(r"[A-Za-z_]+")


@dataclass(frozen=True)
class CompiledPattern:
    """Immutable result of compiling a layout pattern.

    - tokens: the parsed placeholders and literal text, in order
    - template: Jinja2 template evaluating the tokens against a record
    - args: string operands referenced by index from the template source
    """
    source: str
    tokens: tuple[Token, ...]
    args: tuple[object, ...]
    template: Template = field(repr=False, compare=False)


def compile_pattern(source: str) -> CompiledPattern:
    """Parse a layout pattern and translate it into a Jinja2 template.

    Raises PatternError when the pattern is malformed.
    """
    tokens = tuple(_Parser(source).parse())
    jinja_source, args = _to_jinja(tokens)
    return CompiledPattern(source=source, tokens=tokens, args=tuple(args), template=compile_template(jinja_source))


class _Parser:
    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0

    def error(self, message: str, position: int | None = None) -> PatternError:
        return PatternError(message, self.source, self.pos if position is None else position)

    def parse(self) -> list[Token]:
        tokens: list[Token] = []
        literal: list[str] = []
        text = self.source
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == "{" and text.startswith("{{", self.pos):
                literal.append("{")
                self.pos += 2
            elif ch == "}" and text.startswith("}}", self.pos):
                literal.append("}")
                self.pos += 2
            elif ch == "}":
                raise self.error("unmatched '}'")
            elif ch == "{":
                if literal:
                    tokens.append(Literal("".join(literal)))
                    literal = []
                tokens.append(self.placeholder())
            else:
                literal.append(ch)
                self.pos += 1
        if literal:
            tokens.append(Literal("".join(literal)))
        return tokens

    def placeholder(self) -> Token:
        start = self.pos
        self.pos += 1
        m = _NAME.match(self.source, self.pos)
        if not m:
            raise self.error("expected a placeholder name")
        name = m.group(0)
        self.pos = m.end()

        args: list[str] = []
        while self.pos < len(self.source) and self.source[self.pos] == "(":
            args.append(self.argument())

        spec: FormatSpec | None = None
        if self.pos < len(self.source) and self.source[self.pos] == ":":
            self.pos += 1
            spec = self.format_spec()

        if self.pos >= len(self.source) or self.source[self.pos] != "}":
            raise self.error(f"unterminated placeholder {{{name}", start)
        self.pos += 1
        return self.build(name, args, spec, start)

    def argument(self) -> str:
        """Read a parenthesised argument, allowing nested parentheses."""
        start = self.pos
        depth = 0
        for i in range(self.pos, len(self.source)):
            ch = self.source[i]
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0:
                    self.pos = i + 1
                    return self.source[start + 1:i]
        raise self.error("unclosed '('", start)

    def format_spec(self) -> FormatSpec:
        end = self.source.find("}", self.pos)
        if end == -1:
            raise self.error("unterminated format spec")
        raw = self.source[self.pos:end]
        m = _FORMAT_SPEC.fullmatch(raw)
        if not m or not raw:
            raise self.error(f"invalid format spec {raw!r}")
        self.pos = end
        width = m.group("width")
        precision = m.group("precision")
        return FormatSpec(
            min_width=int(width) if width is not None else None,
            max_width=int(precision) if precision is not None else None,
            align=m.group("align") or ">",
        )

    def build(self, name: str, args: list[str], spec: FormatSpec | None, start: int) -> Token:
        if name in NEWLINE_NAMES:
            if args or spec is not None:
                raise self.error("{n} takes no arguments or format spec", start)
            return Newline()

        if name in CONTEXT_NAMES:
            if len(args) not in (1, 2) or not args[0]:
                raise self.error(f"{{{name}}} needs a key and an optional default", start)
            default = args[1] if len(args) == 2 else ""
            return ContextRef(key=args[0], default=default, spec=spec or FormatSpec())

        if name in HIGHLIGHT_NAMES:
            if len(args) != 1:
                raise self.error(f"{{{name}}} wraps exactly one placeholder", start)
            inner = _Parser(args[0]).parse()
            if len(inner) != 1 or not isinstance(inner[0], FieldRef) or inner[0].field != "level":
                raise self.error(f"{{{name}}} can only wrap the level placeholder", start)
            return HighlightedField(inner=inner[0], spec=spec or FormatSpec())

        if name in FIELD_NAMES:
            field_name = FIELD_NAMES[name]
            if field_name == "date":
                if len(args) > 1:
                    raise self.error("{d} takes at most one strftime argument", start)
                argument = args[0] if args else None
            elif args:
                raise self.error(f"{{{name}}} takes no arguments", start)
            else:
                argument = None
            if spec is None:
                spec = DEFAULT_LEVEL_SPEC if field_name == "level" else FormatSpec()
            return FieldRef(field=field_name, spec=spec, argument=argument)

        raise self.error(f"unknown placeholder {{{name}}}", start)


def _fit(spec: FormatSpec) -> str:
    if spec.min_width is None and spec.max_width is None:
        return ""
    return f" | fit({_num(spec.min_width)}, {_num(spec.max_width)}, {spec.align!r})"


def _num(value: int | None) -> str:
    return "none" if value is None else str(value)


def _field_expr(ref: FieldRef, args: list[object]) -> str:
    if ref.argument is None:
        call = f"record | field({ref.field!r})"
    else:
        args.append(ref.argument)
        call = f"record | field({ref.field!r}, args[{len(args) - 1}])"
    return call + _fit(ref.spec)


def _to_jinja(tokens: tuple[Token, ...]) -> tuple[str, list[object]]:
    """Translate tokens into Jinja2 source.

    User supplied text (literals, context keys, date formats) never appears in
    the source; it is passed in 'args' and referenced by index.
    """
    parts: list[str] = []
    args: list[object] = []
    for token in tokens:
        if isinstance(token, Literal):
            args.append(token.text)
            parts.append(f"{{{{ args[{len(args) - 1}] }}}}")
        elif isinstance(token, Newline):
            parts.append("\n")
        elif isinstance(token, FieldRef):
            parts.append(f"{{{{ {_field_expr(token, args)} }}}}")
        elif isinstance(token, HighlightedField):
            expr = _field_expr(token.inner, args) + _fit(token.spec)
            parts.append(f"{{{{ {expr} | highlight(record.level, colorize) }}}}")
        elif isinstance(token, ContextRef):
            args.append((token.key, token.default))
            i = len(args) - 1
            parts.append(f"{{{{ ctx.get(args[{i}][0], args[{i}][1]){_fit(token.spec)} }}}}")
    return "".join(parts), args
