"""
Loaders for ExpressionSet persistence.

load_eset() dispatches on the file suffix (or an explicit format) to one
loader per storage format, mirroring exprdata.io.writers. Every loader
rebuilds the generic record and hands it to records.from_record(), so the
schema-version discriminator applies uniformly, including to legacy
(``phenotype_data``/``feature_data``) records.

CSV import is kept separate (load_csv_matrix) because a CSV carries only the
matrix: sample metadata can be aligned from a second CSV.

Examples:
    >>> from exprdata.io.loaders import load_eset, load_csv_matrix
    >>>
    >>> eset = load_eset("results/dataset.h5")
    >>> print(f"Loaded {eset.n_features} features x {eset.n_samples} samples")
    >>>
    >>> # Plain count matrix plus a phenotype sheet
    >>> eset = load_csv_matrix(Path("counts.csv"), sample_metadata=Path("samples.csv"))
"""

from __future__ import annotations

import json
import logging
import pickle
import warnings
from pathlib import Path
from typing import Any, Optional

import h5py
import numpy as np
import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from exprdata.core.errors import InvalidRecordError
from exprdata.core.expression_set import ExpressionSet
from exprdata.io.formats import StorageFormat, detect_format
from exprdata.io.records import from_record, metadata_from_json
from exprdata.io.writers import HAS_MISSING_KEY, METADATA_KEY

__all__ = [
    'load_eset',
    'load_pickle',
    'load_npz',
    'load_hdf5',
    'load_arrow',
    'load_parquet',
    'load_csv_matrix',
]

logger = logging.getLogger(__name__)

_EXPERIMENT_GROUP = 'experiment_data'
_SEQUENCE_FIELDS = ('samples', 'hybridizations', 'norm_controls', 'preprocessing', 'other')


def _check_path(path: str | Path) -> Path:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if not path.is_file():
        raise ValueError(f"Path is not a file: {path}")
    return path


def _report_missing(values: np.ndarray, has_missing: bool, path: Path) -> None:
    """Log missing-value counts; the scan only runs when the file says there are any."""
    if not has_missing:
        return
    n_missing = int(np.isnan(values).sum())
    logger.info(
        f"{path}: {n_missing:,} missing values "
        f"({100 * n_missing / max(values.size, 1):.2f}% of data)"
    )


def load_eset(
    path: str | Path,
    format: Optional[str | StorageFormat] = None,
) -> ExpressionSet:
    """
    Load an ExpressionSet, choosing the loader from the suffix or ``format``.

    Args:
        path: File to read
        format: Explicit StorageFormat or format name; overrides the suffix

    Returns:
        ExpressionSet

    Raises:
        FileNotFoundError: If path does not exist
        UnsupportedFormatError: If the format cannot be determined
        InvalidRecordError: If the file content is not a valid record
    """
    path = _check_path(path)
    fmt = StorageFormat.parse(format) if format is not None else detect_format(path)

    loaders = {
        StorageFormat.PICKLE: load_pickle,
        StorageFormat.NPZ: load_npz,
        StorageFormat.HDF5: load_hdf5,
        StorageFormat.ARROW: load_arrow,
        StorageFormat.PARQUET: load_parquet,
        StorageFormat.CSV: load_csv_matrix,
    }
    eset = loaders[fmt](path)
    logger.info(f"Loaded {eset.n_features} × {eset.n_samples} ExpressionSet from {path} ({fmt.value})")
    return eset


def load_pickle(path: Path) -> ExpressionSet:
    """
    Load a pickled record (or a pickled ExpressionSet instance).

    Note:
        Unpickling runs arbitrary code from the file. Only load pickles you
        trust; prefer HDF5/Parquet for data exchange.
    """
    with open(path, 'rb') as f:
        obj = pickle.load(f)
    if isinstance(obj, ExpressionSet):
        # Unpickled arrays are writeable again; rebuilding restores the read-only copy
        return obj.copy(deep=False)
    if not isinstance(obj, dict):
        raise InvalidRecordError(f"Pickle at {path} holds {type(obj).__name__}, expected a record dict")
    return from_record(obj)


def load_npz(path: Path) -> ExpressionSet:
    """Load a NumPy binary container written by save_npz()."""
    with np.load(path, allow_pickle=False) as archive:
        missing = [key for key in ('values', 'metadata') if key not in archive.files]
        if missing:
            raise InvalidRecordError(f"NPZ archive {path} lacks arrays: {missing}")
        values = archive['values']
        record = metadata_from_json(archive['metadata'].item())
        has_missing = bool(archive['has_missing']) if 'has_missing' in archive.files else True

    _report_missing(values, has_missing, path)
    record['values'] = values
    return from_record(record)


def _attr_str(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode('utf-8')
    return str(value)


def load_hdf5(path: Path) -> ExpressionSet:
    """Load an HDF5 file written by save_hdf5()."""
    with h5py.File(path, 'r') as f:
        for key in ('values', 'sample_names', 'feature_names'):
            if key not in f:
                raise InvalidRecordError(f"HDF5 file {path} lacks dataset {key!r}")

        values = f['values'][()]
        attrs = f.attrs
        record: dict[str, Any] = {
            'format_version': int(attrs.get('format_version', 2)),
            'sample_names': list(f['sample_names'].asstr()[()]),
            'feature_names': list(f['feature_names'].asstr()[()]),
            'sample_metadata': json.loads(_attr_str(attrs.get('sample_metadata', '{}'))),
            'feature_metadata': json.loads(_attr_str(attrs.get('feature_metadata', '{}'))),
            'annotation': _attr_str(attrs['annotation']) if 'annotation' in attrs else None,
            'experiment_data': None,
        }
        has_missing = bool(attrs.get('has_missing', True))

        if _EXPERIMENT_GROUP in f:
            experiment: dict[str, Any] = {}
            for key, value in f[_EXPERIMENT_GROUP].attrs.items():
                value = _attr_str(value)
                experiment[key] = json.loads(value) if key in _SEQUENCE_FIELDS else value
            record['experiment_data'] = experiment

    _report_missing(values, has_missing, path)
    record['values'] = values
    return from_record(record)


def _from_table(table: pa.Table, path: Path) -> ExpressionSet:
    """
    Rebuild a container from the columnar layout.

    Tables without exprdata schema metadata (e.g. written by other tools)
    are read as a bare matrix: first column feature names, remaining
    columns samples.
    """
    if table.num_columns == 0:
        raise InvalidRecordError(f"Table at {path} has no columns")

    n_features = table.num_rows
    sample_columns = [table.column(i) for i in range(1, table.num_columns)]
    if sample_columns:
        values = np.column_stack([
            np.asarray(col.to_numpy(), dtype=np.float64) for col in sample_columns
        ])
    else:
        values = np.empty((n_features, 0), dtype=np.float64)

    metadata = table.schema.metadata or {}
    if METADATA_KEY not in metadata:
        logger.info(f"{path}: no exprdata metadata, reading as a bare matrix")
        return ExpressionSet(
            values=values,
            sample_names=table.column_names[1:],
            feature_names=[str(v) for v in table.column(0).to_pylist()],
        )

    record = metadata_from_json(metadata[METADATA_KEY])
    has_missing = metadata.get(HAS_MISSING_KEY, b'true') == b'true'
    _report_missing(values, has_missing, path)
    record['values'] = values
    return from_record(record)


def load_arrow(path: Path) -> ExpressionSet:
    """Load an Arrow IPC (Feather v2) file; nulls become NaN."""
    with pa.memory_map(str(path), 'r') as source:
        table = pa.ipc.open_file(source).read_all()
        return _from_table(table, path)


def load_parquet(path: Path) -> ExpressionSet:
    """Load a Parquet file; nulls become NaN."""
    table = pq.read_table(str(path))
    return _from_table(table, path)


def load_csv_matrix(
    path: Path,
    sample_metadata: Optional[Path] = None,
) -> ExpressionSet:
    """
    Load a CSV expression/count matrix into an ExpressionSet.

    Expected CSV format:
    - First column: feature names (header may be empty)
    - Remaining columns: sample names (headers) with numerical values
    - Empty cells / NA are missing values

    Example:
    ```
    "","S1","S2"
    "ENSG00000000003",612,1056
    "ENSG00000000005",0,
    ```

    Args:
        path: Path to CSV file
        sample_metadata: Optional CSV with one row per sample. Rows are
            matched by the first column (or a ``sample_names`` column) and
            reordered to the matrix columns; unmatched samples get None.

    Returns:
        ExpressionSet with sample metadata from the optional sheet

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If the CSV is empty or holds non-numeric values
    """
    path = _check_path(path)

    try:
        df = pd.read_csv(path, index_col=0)
    except pd.errors.EmptyDataError as e:
        raise ValueError(f"CSV file is empty: {path}") from e

    if df.shape[0] == 0:
        raise ValueError(f"CSV contains no features (rows): {path}")
    if df.shape[1] == 0:
        raise ValueError(f"CSV contains no samples (columns): {path}")

    # Check for duplicate feature IDs
    if df.index.duplicated().any():
        n_duplicates = df.index.duplicated().sum()
        warnings.warn(
            f"Found {n_duplicates} duplicate feature IDs. "
            "Using first occurrence of each.",
            UserWarning
        )
        df = df[~df.index.duplicated(keep='first')]

    # Convert to numerical matrix
    try:
        values = df.to_numpy(dtype=np.float64)
    except (ValueError, TypeError) as e:
        non_numeric = [
            str(col) for col in df.columns
            if not pd.api.types.is_numeric_dtype(df[col])
        ]
        raise ValueError(
            f"CSV contains non-numeric values in columns: {non_numeric[:5]}"
        ) from e

    if np.isnan(values).any():
        n_nan = int(np.isnan(values).sum())
        warnings.warn(
            f"Found {n_nan:,} missing values ({100 * n_nan / values.size:.2f}% of data).",
            UserWarning
        )

    sample_names = [str(c) for c in df.columns]
    metadata: dict[str, list] = {}
    if sample_metadata is not None:
        metadata = _align_sample_metadata(_check_path(sample_metadata), sample_names)

    return ExpressionSet(
        values=values,
        sample_names=sample_names,
        feature_names=[str(i) for i in df.index],
        sample_metadata=metadata,
    )


def _align_sample_metadata(path: Path, sample_names: list[str]) -> dict[str, list]:
    """Read a sample sheet and reorder its rows to match sample_names."""
    sheet = pd.read_csv(path)
    id_column = 'sample_names' if 'sample_names' in sheet.columns else sheet.columns[0]
    sheet = sheet.set_index(sheet[id_column].astype(str)).drop(columns=[id_column])
    sheet = sheet[~sheet.index.duplicated(keep='first')]

    unmatched = [name for name in sample_names if name not in sheet.index]
    if unmatched:
        logger.warning(f"{len(unmatched)} samples have no row in {path}")

    aligned = sheet.reindex(sample_names).astype(object)
    aligned = aligned.where(pd.notna(aligned), None)
    return {str(col): aligned[col].tolist() for col in aligned.columns}
