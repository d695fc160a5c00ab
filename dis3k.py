#!/usr/bin/env python3
"""
dis3k - 3000 binary disassembler CLI

Usage:
    python dis3k.py [FILE] [-s] [--format txt|json] [-o OUTPUT]
                    [--label-prefix l] [--strict] [-v|-vv|-q] [--log-file LOG]

Reads the binary from FILE, or from stdin when no file is given.

Examples:
    python dis3k.py program.bin
    python dis3k.py program.bin --stats
    cat program.bin | python dis3k.py --format json -o program.json
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from dis3000 import __version__, disassemble_listing
from dis3000.errors import DisassemblerError

log = logging.getLogger("dis3000.cli")


def setup_logging(verbose: int = 0, quiet: bool = False,
                  log_file: Optional[str] = None) -> logging.Logger:
    """Configure the ``dis3000`` logger.

    Console: rich handler on stderr, WARNING by default (-v INFO, -vv DEBUG,
    -q ERROR). ``log_file`` additionally captures everything at DEBUG.
    """
    if quiet:
        console_level = logging.ERROR
    elif verbose == 0:
        console_level = logging.WARNING
    elif verbose == 1:
        console_level = logging.INFO
    else:  # -vv or more
        console_level = logging.DEBUG

    logger = logging.getLogger("dis3000")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG)

    ch = RichHandler(
        console=Console(stderr=True),
        level=console_level,
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
    )
    ch.setLevel(console_level)
    logger.addHandler(ch)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_path, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(fh)

    return logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dis3k",
        description="Disassembler for 3000 binaries",
    )
    parser.add_argument("file", nargs="?", metavar="FILE",
                        help="The binary to disassemble (default: stdin)")
    parser.add_argument("-s", "--stats", action="store_true",
                        help="Show statistics about the binary")
    parser.add_argument("--format", choices=["txt", "json"], default="txt",
                        help="Output format (default: txt)")
    parser.add_argument("-o", "--output",
                        help="Write the listing to a file instead of stdout")
    parser.add_argument("--label-prefix", default="l",
                        help="Prefix for generated labels (default: l)")
    parser.add_argument("--strict", action="store_true",
                        help="Fail on jumps that do not land on an instruction")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Increase verbosity (-v, -vv)")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Only log errors")
    parser.add_argument("--log-file", help="Also write a debug log to this file")
    parser.add_argument("--version", action="version",
                        version=f"dis3k {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.quiet, args.log_file)

    # Read input
    try:
        if args.file is None:
            name = "stdin"
            data = sys.stdin.buffer.read()
        else:
            name = args.file
            data = Path(args.file).read_bytes()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    log.info("Read %d bytes from %s", len(data), name)

    try:
        result = disassemble_listing(data, name=name, stats=args.stats,
                                     output=args.format,
                                     label_prefix=args.label_prefix,
                                     strict_targets=args.strict)
    except DisassemblerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        log.exception("Internal disassembler error")
        print(f"Internal disassembler error: {e}", file=sys.stderr)
        return 2

    if args.output:
        try:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(result)
                if not result.endswith("\n"):
                    f.write("\n")
        except OSError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        log.info("Output: %s (%s)", args.output, args.format)
    else:
        print(result, end="" if result.endswith("\n") else "\n")

    return 0


if __name__ == "__main__":
    sys.exit(main())
