"""Arguments and setup shared by every exprdata subcommand."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

from exprdata.cli.config import ConfigSchema, build_config, load_config, merge_config_with_args
from exprdata.core.errors import ExpressionDataError
from exprdata.io.formats import StorageFormat, detect_format

# Errors reported as a failed command (exit code 1) instead of a traceback
LIBRARY_ERRORS = (ExpressionDataError, OSError, ValueError, TypeError)

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", "-c", type=Path, default=None,
                        help="Path to YAML/JSON config file (optional, CLI args override config values)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        type=str.upper,
                        help="Logging verbosity (default: INFO)")


def prepare(args: argparse.Namespace) -> tuple[argparse.Namespace, ConfigSchema]:
    """
    Load and merge the config file, then configure logging.

    Raises:
        FileNotFoundError: If --config names a missing file
        ValueError: If the config file is invalid
    """
    config = {}
    if args.config:
        config = load_config(args.config)
        args = merge_config_with_args(config, args, getattr(args, 'raw_args', None))
    schema = build_config(config)

    logging.basicConfig(level=str(args.log_level).upper(), format=LOG_FORMAT)
    if args.config:
        logging.getLogger(__name__).info(f"Loaded configuration from {args.config}")
    return args, schema


def output_format(path: Path, explicit: Optional[str]) -> StorageFormat:
    """Explicit --format (or config ``format``) wins over the output suffix."""
    if explicit:
        return StorageFormat.parse(explicit)
    return detect_format(path)
