"""
Writers for ExpressionSet persistence.

save_eset() dispatches on the file suffix (or an explicit format) to one
writer per storage format. Every writer goes through the same record shape
(exprdata.io.records) and replaces the destination atomically.

Missing Values:
    Formats without a native null (HDF5, NPZ) store NaN in the matrix plus
    an explicit ``has_missing`` flag, so a reader knows whether NaN entries
    stand for missing measurements. Arrow and Parquet write true nulls and
    carry the flag as well.

Engineering Design:
    - One record shape, many layouts
    - Atomic replacement: a crash never leaves a half-written file
    - Columnar layouts mirror expression_values(): a ``feature_names`` column
      followed by one float64 column per sample

Examples:
    >>> from exprdata.io.writers import save_eset
    >>> save_eset(eset, "results/dataset.h5")
    >>> save_eset(eset, "results/dataset.bin", format="pickle")
    >>>
    >>> # Matrix + phenotype table for R/Excel
    >>> write_csv_matrix(eset, Path("results/dataset"))
    >>> write_sample_metadata(eset, Path("results/samples.csv"))
"""

from __future__ import annotations

import json
import logging
import pickle
from pathlib import Path
from typing import Any, Optional

import h5py
import numpy as np
import pyarrow as pa
import pyarrow.parquet as pq

from exprdata.core.expression_set import ExpressionSet
from exprdata.io.formats import StorageFormat, detect_format
from exprdata.io.records import SCHEMA_VERSION, json_default, metadata_to_json, to_record
from exprdata.utils.fileio import atomic_path, atomic_write_text

__all__ = [
    'save_eset',
    'save_pickle',
    'save_npz',
    'save_hdf5',
    'save_arrow',
    'save_parquet',
    'write_csv_matrix',
    'write_sample_metadata',
    'METADATA_KEY',
    'HAS_MISSING_KEY',
]

logger = logging.getLogger(__name__)

# Schema-metadata keys used by the columnar formats
METADATA_KEY = b'exprdata'
HAS_MISSING_KEY = b'exprdata.has_missing'

_EXPERIMENT_GROUP = 'experiment_data'


def _has_missing(eset: ExpressionSet) -> bool:
    return bool(np.isnan(eset.values).any())


def _check_type(eset: Any) -> None:
    if not isinstance(eset, ExpressionSet):
        raise TypeError(f"eset must be ExpressionSet, got {type(eset)}")


def save_eset(
    eset: ExpressionSet,
    path: str | Path,
    format: Optional[str | StorageFormat] = None,
    **options: Any,
) -> Path:
    """
    Save an ExpressionSet, choosing the writer from the suffix or ``format``.

    Args:
        eset: Container to save
        path: Destination file
        format: Explicit StorageFormat or format name; overrides the suffix
        **options: Writer options (``compression``, ``compression_opts``)

    Returns:
        The destination path

    Raises:
        UnsupportedFormatError: If the format cannot be determined
        TypeError: If eset is not an ExpressionSet
    """
    _check_type(eset)
    path = Path(path)
    fmt = StorageFormat.parse(format) if format is not None else detect_format(path)

    writers = {
        StorageFormat.PICKLE: save_pickle,
        StorageFormat.NPZ: save_npz,
        StorageFormat.HDF5: save_hdf5,
        StorageFormat.ARROW: save_arrow,
        StorageFormat.PARQUET: save_parquet,
        StorageFormat.CSV: _save_csv,
    }
    writers[fmt](eset, path, **options)
    logger.info(f"Wrote {eset.n_features} × {eset.n_samples} ExpressionSet to {path} ({fmt.value})")
    return path


def save_pickle(eset: ExpressionSet, path: Path, **options: Any) -> None:
    """Pickle the record dict (not the class), so the schema version travels with it."""
    with atomic_path(path) as tmp:
        with open(tmp, 'wb') as f:
            pickle.dump(to_record(eset), f, protocol=pickle.HIGHEST_PROTOCOL)


def save_npz(eset: ExpressionSet, path: Path, **options: Any) -> None:
    """
    NumPy binary container.

    Arrays: ``values`` (float64, NaN sentinels), ``has_missing`` (bool
    scalar) and ``metadata`` (JSON document with names, metadata maps,
    experiment data and annotation). Loadable with ``allow_pickle=False``.
    """
    record = to_record(eset)
    with atomic_path(path) as tmp:
        with open(tmp, 'wb') as f:
            np.savez_compressed(
                f,
                values=eset.values,
                has_missing=np.array(_has_missing(eset)),
                metadata=np.array(metadata_to_json(record)),
            )


def save_hdf5(
    eset: ExpressionSet,
    path: Path,
    compression: Optional[str] = "gzip",
    compression_opts: Optional[int] = 4,
    **options: Any,
) -> None:
    """
    HDF5 layout.

    ``/values``           float64 dataset, NaN sentinels
    ``/sample_names``     UTF-8 string dataset
    ``/feature_names``    UTF-8 string dataset
    ``/experiment_data``  group whose attributes hold the MIAME fields
                          (strings as-is, lists and ``other`` as JSON);
                          absent when the container has no experiment data
    root attributes       ``format_version``, ``annotation``, ``has_missing``,
                          ``sample_metadata``/``feature_metadata`` (JSON)
    """
    record = to_record(eset)
    string_dtype = h5py.string_dtype(encoding='utf-8')
    dataset_options: dict[str, Any] = {}
    # Zero-sized datasets cannot be chunked, so they are stored uncompressed
    if compression and eset.values.size > 0:
        dataset_options['compression'] = compression
        if compression == 'gzip' and compression_opts is not None:
            dataset_options['compression_opts'] = compression_opts

    with atomic_path(path) as tmp:
        with h5py.File(tmp, 'w') as f:
            f.attrs['format_version'] = SCHEMA_VERSION
            f.attrs['annotation'] = eset.annotation
            f.attrs['has_missing'] = _has_missing(eset)
            f.attrs['sample_metadata'] = json.dumps(
                record['sample_metadata'], default=json_default
            )
            f.attrs['feature_metadata'] = json.dumps(
                record['feature_metadata'], default=json_default
            )

            f.create_dataset('values', data=eset.values, **dataset_options)
            f.create_dataset(
                'sample_names', data=np.array(eset.sample_names, dtype=object), dtype=string_dtype
            )
            f.create_dataset(
                'feature_names', data=np.array(eset.feature_names, dtype=object), dtype=string_dtype
            )

            experiment = record['experiment_data']
            if experiment is not None:
                group = f.create_group(_EXPERIMENT_GROUP)
                for key, value in experiment.items():
                    group.attrs[key] = value if isinstance(value, str) else json.dumps(value)


def _to_table(eset: ExpressionSet) -> pa.Table:
    """Columnar layout: ``feature_names`` then one float64 column per sample."""
    names = eset.sample_names
    if len(set(names)) != len(names):
        raise ValueError("Columnar formats require unique sample names")
    if 'feature_names' in names:
        raise ValueError("A sample named 'feature_names' clashes with the feature column")

    arrays = [pa.array(eset.feature_names, type=pa.string())]
    arrays += [
        pa.array(np.ascontiguousarray(eset.values[:, j]), type=pa.float64(), from_pandas=True)
        for j in range(eset.n_samples)
    ]
    table = pa.Table.from_arrays(arrays, names=['feature_names', *names])
    return table.replace_schema_metadata({
        METADATA_KEY: metadata_to_json(to_record(eset)).encode('utf-8'),
        HAS_MISSING_KEY: b'true' if _has_missing(eset) else b'false',
    })


def save_arrow(eset: ExpressionSet, path: Path, **options: Any) -> None:
    """Arrow IPC file; missing values are written as nulls."""
    table = _to_table(eset)
    with atomic_path(path) as tmp:
        with pa.OSFile(str(tmp), 'wb') as sink:
            with pa.ipc.new_file(sink, table.schema) as writer:
                writer.write_table(table)


def save_parquet(
    eset: ExpressionSet,
    path: Path,
    compression: Optional[str] = "snappy",
    **options: Any,
) -> None:
    """Parquet file; missing values are written as nulls."""
    table = _to_table(eset)
    with atomic_path(path) as tmp:
        pq.write_table(table, str(tmp), compression=compression or 'none')


def _save_csv(eset: ExpressionSet, path: Path, **options: Any) -> None:
    """Matrix-only CSV: first column feature names, header sample names."""
    if 'feature_names' in eset.sample_names:
        raise ValueError("A sample named 'feature_names' clashes with the feature column")
    df = eset.expression_values().set_index('feature_names')
    df.index.name = None
    atomic_write_text(path, df.to_csv())


def write_csv_matrix(eset: ExpressionSet, path: Path) -> Path:
    """
    Write the expression matrix to ``{path}.data.csv``.

    Output:
    - First column: feature names (empty header)
    - Remaining columns: sample names with numerical values
    - Missing values as empty cells

    Args:
        eset: ExpressionSet to write
        path: Base path (without extension)
            Example: Path("output") -> output.data.csv

    Returns:
        Path of the written data file

    Raises:
        TypeError: If eset is not an ExpressionSet
        ValueError: If the matrix is empty
    """
    _check_type(eset)
    if eset.values.size == 0:
        raise ValueError("Cannot write empty matrix")

    data_path = Path(str(path) + ".data.csv")
    _save_csv(eset, data_path)
    logger.info(f"Wrote data matrix to {data_path}")
    return data_path


def write_sample_metadata(eset: ExpressionSet, path: Path) -> Path:
    """
    Write sample metadata (phenotype table) to CSV.

    Output:
    - ``sample_names`` as first column
    - Remaining columns: metadata keys (condition, batch, etc.)

    Examples:
        >>> write_sample_metadata(eset, Path("sample_annotations.csv"))
        >>> # Load in R for plotting
        >>> # metadata <- read.csv("sample_annotations.csv")
    """
    _check_type(eset)
    path = Path(path)
    atomic_write_text(path, eset.phenotype_data().to_csv(index=False))
    logger.info(f"Wrote sample metadata to {path}")
    return path
