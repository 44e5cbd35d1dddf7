"""Command-line entry point: translate a JavaScript (or source IR JSON) file to Python."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import constants
from .api import dump_python, dump_target_ir, translate_file
from .config import TranslatorConfig
from .diagnostics import TranslationError

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pylower", description="Lower JavaScript-family source IR to Python"
    )
    parser.add_argument("file", nargs="?", help="Source file to translate")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Input is a JSON-serialized source IR program",
    )
    parser.add_argument(
        "--ir-only",
        action="store_true",
        help="Print the target IR as JSON instead of Python source",
    )
    parser.add_argument(
        "--cache", action="store_true", help="Reuse cached output of unchanged files"
    )
    parser.add_argument("--cache-dir", default="", help="Cache directory")
    parser.add_argument("--output", "-o", default=None, help="Write output to a file")
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = TranslatorConfig(use_cache=args.cache, cache_dir=args.cache_dir)

    try:
        if not args.file:
            print("No file provided. Using built-in demo:\n")
            print(constants.DEMO_SOURCE)
            source, from_json = constants.DEMO_SOURCE, False
        else:
            source = Path(args.file).read_text(encoding="utf-8")
            from_json = args.json

        if args.ir_only:
            output = dump_target_ir(source, config, from_json)
        elif args.file and not args.json:
            output = translate_file(args.file, config)
        else:
            output = dump_python(source, config, from_json)
    except TranslationError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        logger.info("Wrote %s", args.output)
    else:
        print(output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
