"""
I/O module for persisting expression datasets.

This module saves and loads ExpressionSet containers in several on-disk
formats, all sharing one logical record shape (see exprdata.io.records).

Key Functions:
    - save_eset / load_eset: Format-dispatching entry points
    - load_csv_matrix: Load a plain expression matrix from CSV
    - write_csv_matrix: Write the matrix for R/Excel
    - write_sample_metadata: Export sample annotations

Supported Formats:
    - Pickle, NPZ, HDF5, Arrow IPC, Parquet, CSV

Examples:
    >>> from exprdata.io import load_eset, save_eset
    >>> eset = load_eset("raw_data.csv")
    >>> save_eset(eset, "dataset.parquet")
"""

from exprdata.io.formats import StorageFormat, SUFFIXES, detect_format
from exprdata.io.records import (
    SCHEMA_VERSION,
    LEGACY_SCHEMA_VERSION,
    to_record,
    from_record,
    detect_schema_version,
)
from exprdata.io.loaders import (
    load_eset,
    load_pickle,
    load_npz,
    load_hdf5,
    load_arrow,
    load_parquet,
    load_csv_matrix,
)
from exprdata.io.writers import (
    save_eset,
    save_pickle,
    save_npz,
    save_hdf5,
    save_arrow,
    save_parquet,
    write_csv_matrix,
    write_sample_metadata,
)

__all__ = [
    'StorageFormat',
    'SUFFIXES',
    'detect_format',
    'SCHEMA_VERSION',
    'LEGACY_SCHEMA_VERSION',
    'to_record',
    'from_record',
    'detect_schema_version',
    'load_eset',
    'load_pickle',
    'load_npz',
    'load_hdf5',
    'load_arrow',
    'load_parquet',
    'load_csv_matrix',
    'save_eset',
    'save_pickle',
    'save_npz',
    'save_hdf5',
    'save_arrow',
    'save_parquet',
    'write_csv_matrix',
    'write_sample_metadata',
]
