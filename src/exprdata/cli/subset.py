"""
exprdata subset command - Select samples and/or features.

Usage:
    exprdata subset dataset.h5 out.h5 --samples S1 S3
    exprdata subset dataset.h5 out.h5 --features 0 1 2 --by-index
"""

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from exprdata.cli._common import LIBRARY_ERRORS, add_common_arguments, output_format, prepare


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the subset subcommand."""
    parser = subparsers.add_parser(
        "subset",
        help="Select samples and/or features",
        description=(
            "Select samples and/or features by name (default) or by 0-based "
            "position (--by-index). Order and repeats are preserved."
        ),
    )
    parser.add_argument("input", type=Path, help="Source file (format from suffix unless --input-format)")
    parser.add_argument("output", type=Path, help="Destination file")
    parser.add_argument("--samples", nargs="+", default=None,
                        help="Sample names (or positions with --by-index)")
    parser.add_argument("--features", nargs="+", default=None,
                        help="Feature names (or positions with --by-index)")
    parser.add_argument("--by-index", action="store_true",
                        help="Interpret --samples/--features as 0-based positions")
    parser.add_argument("--input-format", default=None,
                        help="Input format, overriding the suffix")
    parser.add_argument("--format", "-f", default=None,
                        help="Output format, overriding the suffix")
    add_common_arguments(parser)
    parser.set_defaults(func=run_subset)


def _selection(values: Optional[List[str]], by_index: bool):
    from exprdata.core.selectors import ByIndex, ByName

    if values is None:
        return None
    if not by_index:
        return ByName(values)
    try:
        return ByIndex([int(v) for v in values])
    except ValueError:
        raise ValueError(f"--by-index expects integer positions, got {values}") from None


def run_subset(args: argparse.Namespace) -> int:
    """Execute the subset command."""
    from exprdata.io.loaders import load_eset
    from exprdata.io.writers import save_eset

    logger = logging.getLogger(__name__)
    try:
        args, config = prepare(args)
        eset = load_eset(args.input, format=args.input_format)
        result = eset.subset(
            samples=_selection(args.samples, args.by_index),
            features=_selection(args.features, args.by_index),
        )
        fmt = output_format(args.output, args.format)
        save_eset(result, args.output, format=fmt, **config.writer_options(fmt))
    except LIBRARY_ERRORS as e:
        logger.error(f"subset failed: {e}")
        return 1

    print(f"Subset {eset.shape} -> {result.shape}, written to {args.output}")
    return 0
