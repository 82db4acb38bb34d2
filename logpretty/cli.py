from __future__ import annotations

import argparse
import logging
import os
import sys

from .config import Config, resolve_config
from .errors import InputIOError, StartupConfigError
from .processor import Processor
from .renderer import Renderer
from .sink import ColorMode, ConsoleSink

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="logpretty", description="Render JSON log records as readable lines.")
    parser.add_argument("input", type=str, nargs="?", default="-", help="Input file path or '-' for stdin")
    parser.add_argument("-o", "--output", type=str, default="-", help="Output file path or '-' for stdout")
    parser.add_argument(
        "-e",
        "--enveloped",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Each line wraps the record in a {\"message\": ...} envelope",
    )
    parser.add_argument("-p", "--pattern", type=str, default=None, help="Layout pattern, e.g. '{l} {t} - {m}{n}'")
    parser.add_argument("-c", "--config", type=str, default=None, help="Path to YAML config file")
    parser.add_argument(
        "--color",
        type=str,
        choices=[mode.value for mode in ColorMode],
        default=None,
        help="Highlight levels with ANSI colors (default: auto)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log diagnostics at DEBUG level")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    try:
        cfg: Config = resolve_config(
            args.config,
            os.environ,
            {"pattern": args.pattern, "enveloped": args.enveloped, "color": args.color},
        )
        pattern = cfg.compile_pattern()
    except StartupConfigError as e:
        print(f"logpretty: error: {e}", file=sys.stderr)
        return 2

    try:
        src = sys.stdin if args.input == "-" else open(args.input, "r", encoding="utf-8")
    except OSError as e:
        logger.error("cannot open input: %s", e)
        return 1

    try:
        dst = sys.stdout if args.output == "-" else open(args.output, "w", encoding="utf-8")
    except OSError as e:
        logger.error("cannot open output: %s", e)
        if src is not sys.stdin:
            src.close()
        return 1

    sink = ConsoleSink(dst, cfg.color)
    processor = Processor(config=cfg, renderer=Renderer(pattern, colorize=sink.colorize))
    try:
        processor.process_stream(src, sink, sys.stderr)
        return 0
    except InputIOError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        return 0
    finally:
        if src is not sys.stdin:
            src.close()
        if dst is not sys.stdout:
            dst.close()


if __name__ == "__main__":
    raise SystemExit(main())
