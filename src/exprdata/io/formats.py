"""
Storage format registry for ExpressionSet persistence.

Each on-disk format is identified by its file suffix. The design philosophy:
**detect from the suffix, allow an explicit override, fail loudly otherwise**.

Formats:
    PICKLE   .pkl .pickle      Native Python serialization of the record dict
    NPZ      .npz              NumPy binary container (arrays + JSON metadata)
    HDF5     .h5 .hdf5         Hierarchical datasets and attributes (h5py)
    ARROW    .arrow .feather   Arrow IPC columnar file (pyarrow)
    PARQUET  .parquet .pq      Parquet columnar file (pyarrow)
    CSV      .csv              Plain matrix; metadata travels separately

Examples:
    >>> from exprdata.io.formats import StorageFormat, detect_format
    >>> detect_format("dataset.h5")
    <StorageFormat.HDF5: 'hdf5'>
    >>> StorageFormat.parse("parquet")
    <StorageFormat.PARQUET: 'parquet'>
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from exprdata.core.errors import UnsupportedFormatError

__all__ = [
    'StorageFormat',
    'SUFFIXES',
    'detect_format',
]


class StorageFormat(Enum):
    """On-disk representation of an ExpressionSet."""
    PICKLE = "pickle"
    NPZ = "npz"
    HDF5 = "hdf5"
    ARROW = "arrow"
    PARQUET = "parquet"
    CSV = "csv"

    @property
    def has_native_nulls(self) -> bool:
        """Whether the format can store a missing value without a NaN sentinel."""
        return self in (StorageFormat.ARROW, StorageFormat.PARQUET, StorageFormat.PICKLE)

    @property
    def is_columnar(self) -> bool:
        return self in (StorageFormat.ARROW, StorageFormat.PARQUET)

    @classmethod
    def parse(cls, value: str | StorageFormat) -> StorageFormat:
        """Resolve a format given by name (``"hdf5"``) or by suffix (``".h5"``)."""
        if isinstance(value, cls):
            return value
        key = str(value).lower()
        for fmt in cls:
            if fmt.value == key:
                return fmt
        suffix = key if key.startswith('.') else f".{key}"
        if suffix in SUFFIXES:
            return SUFFIXES[suffix]
        raise UnsupportedFormatError(
            value,
            f"Unknown storage format: {value!r}. "
            f"Use one of: {', '.join(fmt.value for fmt in cls)}",
        )


SUFFIXES: dict[str, StorageFormat] = {
    '.pkl': StorageFormat.PICKLE,
    '.pickle': StorageFormat.PICKLE,
    '.npz': StorageFormat.NPZ,
    '.h5': StorageFormat.HDF5,
    '.hdf5': StorageFormat.HDF5,
    '.arrow': StorageFormat.ARROW,
    '.feather': StorageFormat.ARROW,
    '.parquet': StorageFormat.PARQUET,
    '.pq': StorageFormat.PARQUET,
    '.csv': StorageFormat.CSV,
}


def detect_format(path: str | Path) -> StorageFormat:
    """
    Detect the storage format from a file suffix (case-insensitive).

    Args:
        path: File path

    Returns:
        Matching StorageFormat

    Raises:
        UnsupportedFormatError: If the suffix matches no known format
    """
    suffix = Path(path).suffix.lower()
    try:
        return SUFFIXES[suffix]
    except KeyError:
        raise UnsupportedFormatError(
            path,
            f"Unsupported file extension {suffix!r} for {path}. "
            f"Recognized: {', '.join(sorted(SUFFIXES))}",
        ) from None
