"""
exprdata convert command - Re-save an ExpressionSet in another format.

Usage:
    exprdata convert counts.csv dataset.h5
    exprdata convert dataset.h5 dataset.bin --format parquet
"""

import argparse
import logging
from pathlib import Path

from exprdata.cli._common import LIBRARY_ERRORS, add_common_arguments, output_format, prepare


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the convert subcommand."""
    parser = subparsers.add_parser(
        "convert",
        help="Convert between storage formats",
        description="Load an ExpressionSet and write it back in the format of OUTPUT.",
    )
    parser.add_argument("input", type=Path, help="Source file (format from suffix)")
    parser.add_argument("output", type=Path, help="Destination file")
    parser.add_argument("--format", "-f", default=None,
                        help="Output format, overriding the suffix (pickle, npz, hdf5, arrow, parquet, csv)")
    parser.add_argument("--input-format", default=None,
                        help="Input format, overriding the suffix")
    parser.add_argument("--sample-metadata", type=Path, default=None,
                        help="Sample metadata CSV aligned by sample name (CSV input only)")
    add_common_arguments(parser)
    parser.set_defaults(func=run_convert)


def run_convert(args: argparse.Namespace) -> int:
    """Execute the convert command."""
    from exprdata.io.formats import StorageFormat, detect_format
    from exprdata.io.loaders import load_csv_matrix, load_eset
    from exprdata.io.writers import save_eset

    logger = logging.getLogger(__name__)
    try:
        args, config = prepare(args)
        if args.sample_metadata is not None:
            in_fmt = StorageFormat.parse(args.input_format) if args.input_format else detect_format(args.input)
            if in_fmt is not StorageFormat.CSV:
                raise ValueError("--sample-metadata only applies to CSV input")
            eset = load_csv_matrix(args.input, sample_metadata=args.sample_metadata)
        else:
            eset = load_eset(args.input, format=args.input_format)

        fmt = output_format(args.output, args.format)
        save_eset(eset, args.output, format=fmt, **config.writer_options(fmt))
    except LIBRARY_ERRORS as e:
        logger.error(f"convert failed: {e}")
        return 1

    print(f"Converted {args.input} -> {args.output} ({fmt.value})")
    return 0
