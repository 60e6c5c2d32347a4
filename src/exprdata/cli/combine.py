"""
exprdata combine command - Concatenate datasets along samples.

Every input must carry the same feature names in the same order.

Usage:
    exprdata combine batch1.h5 batch2.h5 batch3.h5 --output all.h5
"""

import argparse
import logging
from pathlib import Path

from exprdata.cli._common import LIBRARY_ERRORS, add_common_arguments, output_format, prepare


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the combine subcommand."""
    parser = subparsers.add_parser(
        "combine",
        help="Concatenate datasets with identical features",
        description=(
            "Concatenate ExpressionSets along the sample axis. Feature metadata "
            "and annotation come from the first input; experiment data is kept "
            "only when every input has it."
        ),
    )
    parser.add_argument("inputs", type=Path, nargs="+", help="Files to combine, in order")
    parser.add_argument("--output", "-o", type=Path, required=True, help="Destination file")
    parser.add_argument("--input-format", default=None,
                        help="Format of every input, overriding the suffixes")
    parser.add_argument("--format", "-f", default=None,
                        help="Output format, overriding the suffix")
    add_common_arguments(parser)
    parser.set_defaults(func=run_combine)


def run_combine(args: argparse.Namespace) -> int:
    """Execute the combine command."""
    from exprdata.core.expression_set import combine
    from exprdata.io.loaders import load_eset
    from exprdata.io.writers import save_eset

    logger = logging.getLogger(__name__)
    try:
        args, config = prepare(args)
        esets = [load_eset(path, format=args.input_format) for path in args.inputs]
        result = combine(esets)
        fmt = output_format(args.output, args.format)
        save_eset(result, args.output, format=fmt, **config.writer_options(fmt))
    except LIBRARY_ERRORS as e:
        logger.error(f"combine failed: {e}")
        return 1

    print(f"Combined {len(args.inputs)} datasets -> {result.shape}, written to {args.output}")
    return 0
