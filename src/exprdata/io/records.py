"""
Generic key/value record shape shared by all persistence adapters.

Every format stores the same logical record: the matrix, both name vectors,
both metadata maps, the experiment metadata as a flat field set and the
annotation as a string. Adapters only differ in how they lay that record out.

Schema versions:
    2 (current): keys ``format_version``, ``values``, ``sample_names``,
       ``feature_names``, ``sample_metadata``, ``feature_metadata``,
       ``experiment_data``, ``annotation``
    1 (legacy):  keys ``exprs``, ``phenotype_data`` and ``feature_data``
       (DataFrames holding a ``sample_names``/``feature_names`` column plus
       metadata columns), ``experiment_data``, ``annotation``

The version is resolved once by detect_schema_version(); records written by
this package always carry an explicit ``format_version``.

Examples:
    >>> from exprdata.io.records import to_record, from_record
    >>> record = to_record(eset)
    >>> record["format_version"]
    2
    >>> from_record(record) == eset
    True
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

import numpy as np
import pandas as pd

from exprdata.core.errors import InvalidRecordError
from exprdata.core.expression_set import ExpressionSet, NO_ANNOTATION
from exprdata.core.miame import MIAME

__all__ = [
    'SCHEMA_VERSION',
    'LEGACY_SCHEMA_VERSION',
    'to_record',
    'from_record',
    'detect_schema_version',
    'metadata_to_json',
    'metadata_from_json',
    'json_default',
]

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2
LEGACY_SCHEMA_VERSION = 1


def to_record(eset: ExpressionSet) -> dict[str, Any]:
    """Flatten an ExpressionSet into the current record shape."""
    experiment = eset.experiment_data
    return {
        'format_version': SCHEMA_VERSION,
        'values': eset.values,
        'sample_names': list(eset.sample_names),
        'feature_names': list(eset.feature_names),
        'sample_metadata': {k: list(v) for k, v in eset.sample_metadata.items()},
        'feature_metadata': {k: list(v) for k, v in eset.feature_metadata.items()},
        'experiment_data': experiment.to_dict() if experiment is not None else None,
        'annotation': eset.annotation,
    }


def detect_schema_version(record: Mapping[str, Any]) -> int:
    """
    Resolve the schema version of a persisted record.

    An explicit ``format_version`` wins. Records without one are classified
    by shape: ``sample_names`` means version 2, ``phenotype_data`` means
    version 1.

    Raises:
        InvalidRecordError: If the record matches neither shape
    """
    if 'format_version' in record:
        try:
            return int(record['format_version'])
        except (TypeError, ValueError):
            raise InvalidRecordError(
                f"format_version must be an integer, got {record['format_version']!r}"
            ) from None
    if 'sample_names' in record:
        return SCHEMA_VERSION
    if 'phenotype_data' in record:
        return LEGACY_SCHEMA_VERSION
    raise InvalidRecordError(
        "Unrecognized record: expected 'format_version', 'sample_names' or "
        f"'phenotype_data' keys, got {sorted(record)}"
    )


def from_record(record: Mapping[str, Any]) -> ExpressionSet:
    """
    Rebuild an ExpressionSet from any supported record shape.

    Raises:
        InvalidRecordError: If the version is unknown or a required key is missing
        DimensionMismatchError: If the stored vectors disagree with the matrix
    """
    version = detect_schema_version(record)
    if version == SCHEMA_VERSION:
        return _from_current(record)
    if version == LEGACY_SCHEMA_VERSION:
        logger.info("Reading legacy (version 1) record layout")
        return _from_legacy(record)
    raise InvalidRecordError(f"Unsupported record format_version: {version}")


def _require(record: Mapping[str, Any], key: str) -> Any:
    try:
        return record[key]
    except KeyError:
        raise InvalidRecordError(f"Record is missing required key {key!r}") from None


def _experiment(value: Any) -> MIAME | None:
    if value is None or isinstance(value, MIAME):
        return value
    if isinstance(value, Mapping):
        return MIAME.from_dict(value)
    raise InvalidRecordError(f"experiment_data must be a mapping or None, got {type(value)}")


def _annotation(value: Any) -> str:
    return NO_ANNOTATION if value is None else str(value)


def _from_current(record: Mapping[str, Any]) -> ExpressionSet:
    return ExpressionSet(
        values=_require(record, 'values'),
        sample_names=_require(record, 'sample_names'),
        feature_names=_require(record, 'feature_names'),
        sample_metadata=record.get('sample_metadata') or {},
        feature_metadata=record.get('feature_metadata') or {},
        experiment_data=_experiment(record.get('experiment_data')),
        annotation=_annotation(record.get('annotation')),
    )


def _split_table(table: Any, id_column: str) -> tuple[list[str], dict[str, list]]:
    """Split a legacy metadata table into its name column and metadata columns."""
    if not isinstance(table, pd.DataFrame):
        table = pd.DataFrame(table)
    if id_column in table.columns:
        names = [str(v) for v in table[id_column]]
    else:
        names = [str(v) for v in table.index]
    metadata = {
        str(col): table[col].tolist()
        for col in table.columns
        if col != id_column
    }
    return names, metadata


def _from_legacy(record: Mapping[str, Any]) -> ExpressionSet:
    sample_names, sample_metadata = _split_table(_require(record, 'phenotype_data'), 'sample_names')
    feature_names, feature_metadata = _split_table(_require(record, 'feature_data'), 'feature_names')
    return ExpressionSet(
        values=_require(record, 'exprs'),
        sample_names=sample_names,
        feature_names=feature_names,
        sample_metadata=sample_metadata,
        feature_metadata=feature_metadata,
        experiment_data=_experiment(record.get('experiment_data')),
        annotation=_annotation(record.get('annotation')),
    )


# =============================================================================
# JSON helpers for formats without native nested structures
# =============================================================================

def json_default(value: Any) -> Any:
    """Convert NumPy/pandas scalars that json cannot handle natively."""
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    if value is pd.NA or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    raise TypeError(f"Metadata value of type {type(value).__name__} is not JSON serializable")


def metadata_to_json(record: Mapping[str, Any]) -> str:
    """
    Serialize the non-matrix part of a record as a JSON document.

    Used by the NPZ, HDF5 and columnar adapters, which store the matrix
    natively and everything else as one JSON string.
    """
    payload = {
        'format_version': record['format_version'],
        'sample_names': record['sample_names'],
        'feature_names': record['feature_names'],
        'sample_metadata': record['sample_metadata'],
        'feature_metadata': record['feature_metadata'],
        'experiment_data': record['experiment_data'],
        'annotation': record['annotation'],
    }
    return json.dumps(payload, default=json_default)


def metadata_from_json(text: str | bytes) -> dict[str, Any]:
    """Parse a JSON metadata document written by metadata_to_json()."""
    if isinstance(text, bytes):
        text = text.decode('utf-8')
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidRecordError(f"Invalid metadata JSON: {e}") from e
    if not isinstance(payload, dict):
        raise InvalidRecordError("Metadata JSON must be an object at top level")
    return payload
