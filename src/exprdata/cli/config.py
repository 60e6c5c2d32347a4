"""
Configuration file support for the exprdata CLI.

Supports YAML and JSON config files with CLI argument override.

Example config (YAML):

    format: parquet
    log_level: DEBUG
    compression:
      hdf5:
        compression: lzf
      parquet:
        compression: zstd
"""

import json
from argparse import Namespace
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from exprdata.io.formats import StorageFormat

_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


@dataclass
class HDF5Config:
    """HDF5 dataset compression."""
    compression: Optional[str] = "gzip"
    compression_opts: Optional[int] = 4


@dataclass
class ParquetConfig:
    """Parquet column compression."""
    compression: Optional[str] = "snappy"


@dataclass
class CompressionConfig:
    hdf5: HDF5Config = field(default_factory=HDF5Config)
    parquet: ParquetConfig = field(default_factory=ParquetConfig)


@dataclass
class ConfigSchema:
    """
    Complete configuration schema for exprdata commands.

    Mirrors the CLI argument structure for consistency.
    """
    format: Optional[str] = None
    log_level: str = "INFO"
    compression: CompressionConfig = field(default_factory=CompressionConfig)

    def writer_options(self, fmt: StorageFormat) -> Dict[str, Any]:
        """Keyword options for the writer of ``fmt``."""
        if fmt is StorageFormat.HDF5:
            return {
                'compression': self.compression.hdf5.compression,
                'compression_opts': self.compression.hdf5.compression_opts,
            }
        if fmt is StorageFormat.PARQUET:
            return {'compression': self.compression.parquet.compression}
        return {}


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from YAML or JSON file.

    Parameters:
        config_path: Path to config file (.yaml, .yml, or .json)

    Returns:
        Dictionary with configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is unsupported or invalid

    Examples:
        >>> config = load_config(Path("exprdata.yaml"))
        >>> print(config['compression']['hdf5']['compression'])
        gzip
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()
    if suffix not in ('.yaml', '.yml', '.json'):
        raise ValueError(
            f"Unsupported config format: {suffix}. "
            f"Use .yaml, .yml, or .json"
        )

    try:
        with open(config_path, 'r') as f:
            if suffix == '.json':
                config = json.load(f)
            else:
                config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}") from e

    if config is None:
        return {}

    if not isinstance(config, dict):
        raise ValueError("Config file must contain a dictionary/mapping at top level")

    return config


def _explicit_args(cli_args: Optional[List[str]]) -> set:
    """Names of the options the user actually typed (``--log-level`` -> ``log_level``)."""
    short_to_long = {
        'f': 'format',
        'o': 'output',
        'c': 'config',
    }
    explicit = set()
    for arg in cli_args or []:
        if arg.startswith('--'):
            explicit.add(arg[2:].split('=', 1)[0].replace('-', '_'))
        elif arg.startswith('-') and len(arg) == 2 and arg[1] in short_to_long:
            explicit.add(short_to_long[arg[1]])
    return explicit


def merge_config_with_args(config: Dict[str, Any], args: Namespace, cli_args: Optional[List[str]] = None) -> Namespace:
    """
    Merge config file values with CLI arguments.

    Priority (highest to lowest):
    1. Explicitly provided CLI arguments
    2. Config file values
    3. CLI argument defaults

    Parameters:
        config: Configuration dictionary from load_config()
        args: Parsed CLI arguments (argparse.Namespace)
        cli_args: Raw CLI arguments list (for detecting explicit values)
                  If None, assumes all args are defaults

    Returns:
        Updated Namespace with merged values

    Examples:
        >>> config = {"format": "hdf5", "log_level": "DEBUG"}
        >>> args = parser.parse_args(["convert", "in.csv", "out", "--log-level", "INFO"])
        >>> merged = merge_config_with_args(config, args, ["--log-level", "INFO"])
        >>> merged.format, merged.log_level
        ('hdf5', 'INFO')
    """
    explicit = _explicit_args(cli_args)
    merged = Namespace(**vars(args))

    for key in ('format', 'log_level'):
        if key not in config or key in explicit:
            continue
        if config[key] is not None:
            setattr(merged, key, config[key])

    return merged


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration structure and values.

    Raises:
        ValueError: If configuration is invalid
    """
    if config.get('format') is not None:
        # Raises UnsupportedFormatError, a ValueError
        StorageFormat.parse(config['format'])

    level = config.get('log_level')
    if level is not None and str(level).upper() not in _LOG_LEVELS:
        raise ValueError(
            f"Invalid log_level '{level}'. Choose from: {', '.join(_LOG_LEVELS)}"
        )

    compression = config.get('compression') or {}
    if not isinstance(compression, dict):
        raise ValueError("'compression' must be a mapping with 'hdf5'/'parquet' sections")
    unknown = set(compression) - {'hdf5', 'parquet'}
    if unknown:
        raise ValueError(f"Unknown compression sections: {sorted(unknown)}")

    for section, allowed in (('hdf5', {'compression', 'compression_opts'}), ('parquet', {'compression'})):
        extra = set(compression.get(section) or {}) - allowed
        if extra:
            raise ValueError(f"Unknown {section} compression keys: {sorted(extra)}")

    opts = (compression.get('hdf5') or {}).get('compression_opts')
    if opts is not None and (not isinstance(opts, int) or not 0 <= opts <= 9):
        raise ValueError(f"hdf5 compression_opts must be an integer 0-9, got: {opts}")


def build_config(config: Optional[Dict[str, Any]] = None) -> ConfigSchema:
    """Build a ConfigSchema from a config mapping, filling defaults."""
    config = config or {}
    validate_config(config)
    compression = config.get('compression') or {}
    return ConfigSchema(
        format=config.get('format'),
        log_level=str(config.get('log_level') or 'INFO').upper(),
        compression=CompressionConfig(
            hdf5=HDF5Config(**(compression.get('hdf5') or {})),
            parquet=ParquetConfig(**(compression.get('parquet') or {})),
        ),
    )
