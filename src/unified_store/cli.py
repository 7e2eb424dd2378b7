"""Command-line host for the unified storage operations.

Usage:
    unified-store read fs notes/todo.txt --config '{"root": "/srv/data"}'
    unified-store write memory a.txt --content hello
    unified-store list s3 reports/ --config-file s3.json
    unified-store capability s3 --config-file s3.json

Prints the result (raw text for ``read``, JSON otherwise) and exits 0, or
prints the error message to stderr and exits 1.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from unified_store._boundary import call

if TYPE_CHECKING:
    from collections.abc import Sequence

_SINGLE_PATH = ("read", "exists", "delete", "stat", "create_dir", "list")
_TWO_PATHS = ("copy", "rename")


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("scheme", help="Backend scheme (fs, memory, s3, sftp)")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("-c", "--config", default="{}", help="Backend configuration as a JSON object")
    source.add_argument("--config-file", type=Path, help="Read the JSON configuration from a file")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="unified-store", description=__doc__.split("\n\n")[0])
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="operation", required=True)

    for name in _SINGLE_PATH:
        p = sub.add_parser(name, help=f"{name} a path")
        _add_common(p)
        p.add_argument("path")

    p = sub.add_parser("write", help="write text to a file")
    _add_common(p)
    p.add_argument("path")
    p.add_argument("--content", help="Text to write (default: read from stdin)")

    for name in _TWO_PATHS:
        p = sub.add_parser(name, help=f"{name} a file")
        _add_common(p)
        p.add_argument("source")
        p.add_argument("target")

    p = sub.add_parser("capability", help="show backend capabilities")
    _add_common(p)
    return parser


def _load_config(args: argparse.Namespace) -> str:
    if args.config_file is not None:
        return args.config_file.read_text(encoding="utf-8")
    return args.config


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = _load_config(args)
    except OSError as exc:
        print(f"error: cannot read config file: {exc}", file=sys.stderr)
        return 1

    op = args.operation
    if op in _SINGLE_PATH:
        response = call(op, args.scheme, args.path, config)
    elif op == "write":
        content = args.content if args.content is not None else sys.stdin.read()
        response = call(op, args.scheme, args.path, content, config)
    elif op in _TWO_PATHS:
        response = call(op, args.scheme, args.source, args.target, config)
    else:
        response = call(op, args.scheme, config)

    if not response.ok:
        print(f"error: {response.error}", file=sys.stderr)
        return 1
    if op == "read":
        sys.stdout.write(str(response.value))
    else:
        print(json.dumps(response.value, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
