#!/usr/bin/env python3
"""
huffman_cli.py : compress files into a .code table plus a packed .short
payload, and restore them.

Usage:
    huffman compress notes.txt                      # writes notes.code, notes.short
    huffman compress notes.txt --code t.code --short t.short
    huffman decompress notes.code notes.short notes.out
"""

import argparse
import logging
import os
import sys

from huffman_errors import HuffmanError
from huffman_service import HuffmanService

logger = logging.getLogger("huffman")

LOG_LEVEL = os.environ.get("HUFFMAN_LOG_LEVEL", "WARNING")


def build_parser():
    parser = argparse.ArgumentParser(prog="huffman", description="Huffman file compression.")
    parser.add_argument(
        "--log-level", default=LOG_LEVEL,
        help="logging level (default: $HUFFMAN_LOG_LEVEL or WARNING)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    comp = sub.add_parser("compress", help="write the code table and packed payload for a file")
    comp.add_argument("input")
    comp.add_argument("--code", default=None, help="table output path (default: INPUT with .code)")
    comp.add_argument("--short", default=None, help="payload output path (default: INPUT with .short)")

    decomp = sub.add_parser("decompress", help="restore a file from its table and payload")
    decomp.add_argument("code")
    decomp.add_argument("short")
    decomp.add_argument("output")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    level = logging.getLevelName(args.log_level.upper())
    if not isinstance(level, int):
        parser.error(f"unknown log level {args.log_level!r}")
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    service = HuffmanService()
    try:
        if args.command == "compress":
            code_path, short_path = service.compress_file(args.input, args.code, args.short)
            print(f"{code_path}\n{short_path}")
        else:
            service.decompress_file(args.code, args.short, args.output)
    except (HuffmanError, OSError, ValueError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
