"""
exprdata CLI - Command-line interface for expression dataset files.

Commands:
    exprdata info      - Summarize a stored dataset
    exprdata convert   - Convert between storage formats
    exprdata subset    - Select samples and/or features
    exprdata combine   - Concatenate datasets along samples
"""

import argparse
import sys
from typing import Optional, List


def main(args: Optional[List[str]] = None) -> int:
    """Main CLI dispatcher for exprdata."""
    parser = argparse.ArgumentParser(
        prog="exprdata",
        description="Inspect, convert, subset and combine expression datasets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  info      Print dimensions, metadata keys and experiment info
  convert   Convert between storage formats
  subset    Select samples and/or features
  combine   Concatenate datasets with identical features

Examples:
  exprdata info dataset.h5
  exprdata convert counts.csv dataset.parquet --sample-metadata samples.csv
  exprdata subset dataset.h5 controls.h5 --samples S1 S2 S5
  exprdata combine batch1.h5 batch2.h5 --output all.h5 --config exprdata.yaml
        """
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version="%(prog)s 0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Import and register subcommands
    from exprdata.cli import info, convert, subset, combine
    info.register_parser(subparsers)
    convert.register_parser(subparsers)
    subset.register_parser(subparsers)
    combine.register_parser(subparsers)

    raw_args = sys.argv[1:] if args is None else list(args)
    parsed_args = parser.parse_args(raw_args)

    if parsed_args.command is None:
        parser.print_help()
        return 0

    # Explicit options are needed to let CLI values beat config values
    parsed_args.raw_args = raw_args
    return parsed_args.func(parsed_args)


if __name__ == "__main__":
    sys.exit(main())
