"""
exprdata info command - Summarize a stored ExpressionSet.

Usage:
    exprdata info dataset.h5
"""

import argparse
import logging
from pathlib import Path

import numpy as np

from exprdata.cli._common import LIBRARY_ERRORS, add_common_arguments, prepare


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the info subcommand."""
    parser = subparsers.add_parser(
        "info",
        help="Print dimensions, metadata keys and experiment info",
        description="Load an ExpressionSet and print a summary of its contents.",
    )
    parser.add_argument("input", type=Path, help="ExpressionSet file (format from suffix)")
    parser.add_argument("--input-format", default=None,
                        help="Input format, overriding the suffix (pickle, npz, hdf5, arrow, parquet, csv)")
    add_common_arguments(parser)
    parser.set_defaults(func=run_info)


def run_info(args: argparse.Namespace) -> int:
    """Execute the info command."""
    from exprdata.io.loaders import load_eset

    logger = logging.getLogger(__name__)
    try:
        args, _ = prepare(args)
        eset = load_eset(args.input, format=args.input_format)
    except LIBRARY_ERRORS as e:
        logger.error(f"info failed: {e}")
        return 1

    n_missing = int(np.isnan(eset.values).sum())
    print(f"\n{'='*70}")
    print(f"  {args.input}")
    print(f"{'='*70}")
    print(f"Features:          {eset.n_features:,}")
    print(f"Samples:           {eset.n_samples:,}")
    print(f"Annotation:        {eset.annotation}")
    print(f"Missing values:    {n_missing:,}")
    print(f"Sample metadata:   {', '.join(eset.sample_metadata) or '(none)'}")
    print(f"Feature metadata:  {', '.join(eset.feature_metadata) or '(none)'}")
    if eset.has_experiment_data:
        print()
        print(eset.experiment_data)
    else:
        print("Experiment data:   (none)")
    return 0
