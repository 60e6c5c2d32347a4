"""
Core data structure for gene expression datasets.

ExpressionSet pairs a numerical expression matrix with sample metadata
(phenotypes), feature metadata (gene annotations), experiment-level MIAME
metadata and a platform annotation tag. It follows the ExpressionSet class of
Bioconductor's Biobase.

Biological Context:
    Expression matrices are the fundamental data structure in genomics:
    - Rows = features (genes, probes, transcripts)
    - Columns = samples (patients, arrays, time points)
    - Values = measurements, NaN where a measurement is missing

    Datasets travel with their context: which phenotype each sample has,
    which chromosome each gene sits on, which lab ran the arrays. Subsetting
    or merging the matrix must carry that context along consistently.

Engineering Design:
    - Immutable: subset()/combine() return new instances
    - Validated: constructor checks every vector against the matrix shape
    - Eager lookup tables: name -> position maps are built once at
      construction, so repeated name access is O(1) with no mutable cache
    - Read-only state: the matrix is a write-protected private copy, names
      are tuples and metadata is exposed through read-only mappings
    - NumPy for values, pandas DataFrames only for the tabular views

Examples:
    >>> import numpy as np
    >>> from exprdata.core.expression_set import ExpressionSet, combine
    >>>
    >>> eset = ExpressionSet(
    ...     values=np.array([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]]),
    ...     sample_names=["S1", "S2"],
    ...     feature_names=["A", "B", "C"],
    ...     sample_metadata={"condition": ["ctrl", "treated"]},
    ... )
    >>> eset.get("B", "S2")
    4.0
    >>> eset.subset(samples=["S1"]).expression_values(as_matrix=True)
    array([[1.],
           [3.],
           [5.]])
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from exprdata.core.errors import (
    DimensionMismatchError,
    EmptyInputError,
    IncompatibleFeaturesError,
    IndexOutOfBoundsError,
    NameNotFoundError,
)
from exprdata.core.miame import MIAME
from exprdata.core.selectors import ByIndex, ByName, Selector, as_selector

__all__ = ['ExpressionSet', 'NO_ANNOTATION', 'subset', 'combine']

logger = logging.getLogger(__name__)

NO_ANNOTATION = "none"
"""Annotation tag used when no platform identifier was supplied."""

COMBINED_TITLE_PREFIX = "Combined: "


def _build_lookup(names: Sequence[str], axis: str) -> dict[str, int]:
    """Map each name to its first position, warning on duplicates."""
    lookup: dict[str, int] = {}
    duplicates = []
    for i, name in enumerate(names):
        if name in lookup:
            duplicates.append(name)
        else:
            lookup[name] = i
    if duplicates:
        logger.warning(
            f"Found {len(duplicates)} duplicate {axis} names "
            f"(e.g. {duplicates[0]!r}); name lookup resolves to the first occurrence"
        )
    return lookup


def _as_values(values) -> np.ndarray:
    """Widen any real numeric matrix to float64, None becoming NaN."""
    if isinstance(values, pd.DataFrame):
        values = values.to_numpy()
    array = np.asarray(values)
    if array.dtype == object:
        array = np.array(
            [np.nan if v is None or v is pd.NA else v for v in array.ravel()],
            dtype=np.float64,
        ).reshape(array.shape)
    elif array.dtype != np.float64:
        if array.dtype.kind not in 'biuf':
            raise TypeError(f"values must be a real numeric matrix, got dtype {array.dtype}")
        array = array.astype(np.float64)
    return array


def _as_names(names, field: str) -> tuple[str, ...]:
    """Name vector as a tuple of str; a bare string is rejected, not split."""
    if isinstance(names, (str, bytes)):
        raise TypeError(f"{field} must be a sequence of names, got a single string {names!r}")
    return tuple(str(n) for n in names)


class ExpressionSet:
    """
    Immutable container for an expression matrix and its annotations.

    Attributes:
        values: Expression matrix (features x samples), float64, NaN = missing
        sample_names: Column identifiers
        feature_names: Row identifiers
        sample_metadata: Per-sample value tuples keyed by metadata name
        feature_metadata: Per-feature value tuples keyed by metadata name
        experiment_data: MIAME record, or None when not supplied
        annotation: Platform/array identifier

    Shape Invariants:
        - values.shape == (len(feature_names), len(sample_names))
        - every sample_metadata entry has len(sample_names) entries
        - every feature_metadata entry has len(feature_names) entries
    """

    def __init__(
        self,
        values,
        sample_names: Sequence[str],
        feature_names: Sequence[str],
        sample_metadata: Optional[Mapping[str, Sequence[Any]]] = None,
        feature_metadata: Optional[Mapping[str, Sequence[Any]]] = None,
        experiment_data: Optional[MIAME] = None,
        annotation: str = NO_ANNOTATION,
    ):
        """
        Initialize ExpressionSet with validation.

        Args:
            values: Matrix of shape (n_features, n_samples). Integer matrices
                are widened to float64; None entries become NaN.
            sample_names: One name per matrix column
            feature_names: One name per matrix row
            sample_metadata: Optional mapping key -> per-sample values
            feature_metadata: Optional mapping key -> per-feature values
            experiment_data: Optional MIAME record
            annotation: Platform tag (default: "none")

        Raises:
            DimensionMismatchError: If any vector disagrees with the matrix shape
            TypeError: If values are not numeric, a name argument is a bare
                string, or experiment_data is not MIAME
        """
        values = _as_values(values)
        if values.ndim != 2:
            raise DimensionMismatchError("values (ndim)", 2, values.ndim)
        if values.flags.writeable:
            values = values.copy()
            values.setflags(write=False)

        n_features, n_samples = values.shape
        sample_names = _as_names(sample_names, "sample_names")
        feature_names = _as_names(feature_names, "feature_names")

        if len(sample_names) != n_samples:
            raise DimensionMismatchError("sample_names", n_samples, len(sample_names))
        if len(feature_names) != n_features:
            raise DimensionMismatchError("feature_names", n_features, len(feature_names))

        sample_metadata = {str(k): tuple(v) for k, v in (sample_metadata or {}).items()}
        feature_metadata = {str(k): tuple(v) for k, v in (feature_metadata or {}).items()}

        for key, seq in sample_metadata.items():
            if len(seq) != n_samples:
                raise DimensionMismatchError(f"sample_metadata[{key!r}]", n_samples, len(seq))
        for key, seq in feature_metadata.items():
            if len(seq) != n_features:
                raise DimensionMismatchError(f"feature_metadata[{key!r}]", n_features, len(seq))

        if experiment_data is not None and not isinstance(experiment_data, MIAME):
            raise TypeError(f"experiment_data must be MIAME or None, got {type(experiment_data)}")

        # Names and metadata are tuples and the matrix is read-only
        self._values = values
        self._sample_names = sample_names
        self._feature_names = feature_names
        self._sample_metadata = sample_metadata
        self._feature_metadata = feature_metadata
        self._experiment_data = experiment_data
        self._annotation = str(annotation)

        self._sample_lookup = _build_lookup(sample_names, "sample")
        self._feature_lookup = _build_lookup(feature_names, "feature")

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def values(self) -> np.ndarray:
        """Expression matrix (features x samples), read-only."""
        return self._values

    @property
    def sample_names(self) -> tuple[str, ...]:
        """Column identifiers."""
        return self._sample_names

    @property
    def feature_names(self) -> tuple[str, ...]:
        """Row identifiers."""
        return self._feature_names

    @property
    def sample_metadata(self) -> Mapping[str, tuple]:
        """Per-sample metadata (read-only view)."""
        return MappingProxyType(self._sample_metadata)

    @property
    def feature_metadata(self) -> Mapping[str, tuple]:
        """Per-feature metadata (read-only view)."""
        return MappingProxyType(self._feature_metadata)

    @property
    def experiment_data(self) -> Optional[MIAME]:
        """MIAME record, or None when no experiment metadata was supplied."""
        return self._experiment_data

    @property
    def has_experiment_data(self) -> bool:
        """Whether a MIAME record is attached."""
        return self._experiment_data is not None

    @property
    def annotation(self) -> str:
        """Platform/array identifier."""
        return self._annotation

    @property
    def shape(self) -> tuple[int, int]:
        """Matrix dimensions (n_features, n_samples)."""
        return self._values.shape

    def size(self) -> tuple[int, int]:
        """Same as ``shape``."""
        return self.shape

    @property
    def n_features(self) -> int:
        """Number of features (rows)."""
        return self._values.shape[0]

    @property
    def n_samples(self) -> int:
        """Number of samples (columns)."""
        return self._values.shape[1]

    def expression_values(self, as_matrix: bool = False) -> pd.DataFrame | np.ndarray:
        """
        Expression values as a table or as the raw matrix.

        Args:
            as_matrix: If True, return the underlying read-only ndarray itself
                (no copy).
                This is the fast path for numerical work.

        Returns:
            DataFrame with a leading ``feature_names`` column followed by one
            column per sample, or the raw matrix.

        Examples:
            >>> eset.expression_values().columns.tolist()
            ['feature_names', 'S1', 'S2']
        """
        if as_matrix:
            return self._values
        df = pd.DataFrame(self._values, columns=list(self._sample_names), copy=True)
        df.insert(0, 'feature_names', list(self._feature_names), allow_duplicates=True)
        return df

    def feature_data(self) -> pd.DataFrame:
        """
        Feature metadata as a table.

        Builds a DataFrame with a ``feature_names`` column plus one column per
        metadata key. Cost grows with keys x features; use
        get_feature_metadata() to read a single key without building the table.
        """
        return self._metadata_frame('feature_names', self._feature_names, self._feature_metadata)

    def phenotype_data(self) -> pd.DataFrame:
        """
        Sample metadata as a table.

        Builds a DataFrame with a ``sample_names`` column plus one column per
        metadata key. Use get_sample_metadata() for single-key access.
        """
        return self._metadata_frame('sample_names', self._sample_names, self._sample_metadata)

    @staticmethod
    def _metadata_frame(id_column: str, names: Sequence[str], metadata: dict[str, tuple]) -> pd.DataFrame:
        columns: dict[str, Sequence] = {id_column: list(names)}
        for key, seq in metadata.items():
            if key == id_column:
                continue
            columns[key] = seq
        return pd.DataFrame(columns)

    def get_sample_metadata(self, key: str) -> tuple:
        """Values of one sample-metadata key, in sample order."""
        try:
            return self._sample_metadata[key]
        except KeyError:
            raise NameNotFoundError("sample metadata", [key]) from None

    def get_feature_metadata(self, key: str) -> tuple:
        """Values of one feature-metadata key, in feature order."""
        try:
            return self._feature_metadata[key]
        except KeyError:
            raise NameNotFoundError("feature metadata", [key]) from None

    # ------------------------------------------------------------------
    # Name / index resolution
    # ------------------------------------------------------------------

    def sample_index(self, key: str | int) -> int:
        """Resolve a sample name or 0-based index to a column position."""
        return self._resolve_one(key, self._sample_lookup, self.n_samples, "sample")

    def feature_index(self, key: str | int) -> int:
        """Resolve a feature name or 0-based index to a row position."""
        return self._resolve_one(key, self._feature_lookup, self.n_features, "feature")

    def get(self, feature: str | int, sample: str | int) -> float:
        """
        Scalar value for one feature and one sample.

        Either argument may be a name or a 0-based integer index.

        Raises:
            NameNotFoundError: If a name is absent
            IndexOutOfBoundsError: If an index is out of range

        Examples:
            >>> eset.get("B", "S2")
            4.0
            >>> eset.get(1, 1)
            4.0
        """
        return float(self._values[self.feature_index(feature), self.sample_index(sample)])

    @staticmethod
    def _resolve_one(key, lookup: dict[str, int], count: int, axis: str) -> int:
        if isinstance(key, str):
            if key not in lookup:
                raise NameNotFoundError(axis, [key])
            return lookup[key]
        return ExpressionSet._resolve(ByIndex([key]), lookup, count, axis)[0]

    @staticmethod
    def _resolve(selector: Selector, lookup: dict[str, int], count: int, axis: str) -> list[int]:
        """Turn a selector into positions, validating every entry first."""
        if isinstance(selector, ByName):
            missing = [name for name in selector.names if name not in lookup]
            if missing:
                raise NameNotFoundError(axis, missing)
            return [lookup[name] for name in selector.names]

        for i in selector.indices:
            if i < 0 or i >= count:
                raise IndexOutOfBoundsError(axis, i, count)
        return list(selector.indices)

    # ------------------------------------------------------------------
    # Derivations
    # ------------------------------------------------------------------

    def subset(self, samples=None, features=None) -> ExpressionSet:
        """
        Select samples and/or features by name or by 0-based index.

        Each argument is a ByName/ByIndex selector or a plain sequence of
        only names or only integers. An omitted axis is kept whole. All
        entries are validated before anything is built.

        If experiment data holds one ``samples`` entry per container sample,
        those entries are re-sliced alongside the columns.

        Args:
            samples: Samples to keep, in the order given
            features: Features to keep, in the order given

        Returns:
            New ExpressionSet

        Raises:
            NameNotFoundError: If a name is absent
            IndexOutOfBoundsError: If an index is out of range
            TypeError: If a selection mixes names and integers

        Examples:
            >>> eset.subset(samples=["S1"]).shape
            (3, 1)
            >>> eset.subset(features=[0, 2]).feature_names
            ['A', 'C']
        """
        sample_sel = as_selector(samples)
        feature_sel = as_selector(features)

        cols = (
            None if sample_sel is None
            else self._resolve(sample_sel, self._sample_lookup, self.n_samples, "sample")
        )
        rows = (
            None if feature_sel is None
            else self._resolve(feature_sel, self._feature_lookup, self.n_features, "feature")
        )

        values = self._values
        sample_names = self._sample_names
        feature_names = self._feature_names
        sample_metadata = self._sample_metadata
        feature_metadata = self._feature_metadata
        experiment_data = self._experiment_data

        if rows is not None:
            values = values[rows, :]
            feature_names = [feature_names[i] for i in rows]
            feature_metadata = {k: [v[i] for i in rows] for k, v in feature_metadata.items()}

        if cols is not None:
            values = values[:, cols]
            sample_names = [sample_names[i] for i in cols]
            sample_metadata = {k: [v[i] for i in cols] for k, v in sample_metadata.items()}
            if experiment_data is not None:
                if len(experiment_data.samples) == self.n_samples:
                    experiment_data = experiment_data.with_samples(
                        experiment_data.samples[i] for i in cols
                    )
                else:
                    logger.debug(
                        f"experiment_data.samples has {len(experiment_data.samples)} entries "
                        f"for {self.n_samples} samples; left unchanged"
                    )

        return ExpressionSet(
            values=values,
            sample_names=sample_names,
            feature_names=feature_names,
            sample_metadata=sample_metadata,
            feature_metadata=feature_metadata,
            experiment_data=experiment_data,
            annotation=self._annotation,
        )

    def copy(self, deep: bool = True) -> ExpressionSet:
        """
        Create a copy of this container.

        Args:
            deep: If True, copy the value matrix. If False, share the
                read-only matrix with this instance.
        """
        values = self._values
        if deep:
            values = values.copy()
            values.setflags(write=False)
        return ExpressionSet(
            values=values,
            sample_names=self._sample_names,
            feature_names=self._feature_names,
            sample_metadata=self._sample_metadata,
            feature_metadata=self._feature_metadata,
            experiment_data=self._experiment_data,
            annotation=self._annotation,
        )

    @classmethod
    def random(cls, n_features: int, n_samples: int, seed: Optional[int] = None) -> ExpressionSet:
        """
        Generate a random container, useful for demos and benchmarks.

        Values are uniform on [0, 1). Samples are named ``sample_1..n``,
        features ``1..n``, and a placeholder MIAME record is attached.
        """
        rng = np.random.default_rng(seed)
        sample_names = [f"sample_{i}" for i in range(1, n_samples + 1)]
        experiment_data = MIAME(
            name="Name",
            lab="Lab",
            contact="Contact",
            title="Title",
            abstract="Abstract",
            url="URL",
            pub_med_id="ID1",
            samples=sample_names,
            hybridizations=["Hybridization1", "Hybridization2"],
            norm_controls=["Control1", "Control2"],
            preprocessing=["Preprocessing1", "Preprocessing2"],
            other={"key1": "value1", "key2": "value2"},
        )
        return cls(
            values=rng.random((n_features, n_samples)),
            sample_names=sample_names,
            feature_names=[str(i) for i in range(1, n_features + 1)],
            experiment_data=experiment_data,
            annotation="random",
        )

    # ------------------------------------------------------------------
    # Dunder methods
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExpressionSet):
            return NotImplemented
        return (
            self._values.shape == other._values.shape
            and np.array_equal(self._values, other._values, equal_nan=True)
            and self._sample_names == other._sample_names
            and self._feature_names == other._feature_names
            and _metadata_equal(self._sample_metadata, other._sample_metadata)
            and _metadata_equal(self._feature_metadata, other._feature_metadata)
            and self._experiment_data == other._experiment_data
            and self._annotation == other._annotation
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """String representation for debugging."""
        features = (
            f"{self._feature_names[0]}...{self._feature_names[-1]}" if self._feature_names else "(none)"
        )
        samples = (
            f"{self._sample_names[0]}...{self._sample_names[-1]}" if self._sample_names else "(none)"
        )
        experiment = self._experiment_data.title if self._experiment_data is not None else None
        return (
            f"ExpressionSet({self.n_features} features × {self.n_samples} samples)\n"
            f"  Features: {features}\n"
            f"  Samples: {samples}\n"
            f"  Sample metadata: {list(self._sample_metadata)}\n"
            f"  Feature metadata: {list(self._feature_metadata)}\n"
            f"  Experiment data: {experiment!r}\n"
            f"  Annotation: {self._annotation}"
        )

    def __str__(self) -> str:
        return self.__repr__()


def _metadata_equal(a: Mapping[str, Sequence], b: Mapping[str, Sequence]) -> bool:
    """Compare metadata maps, treating NaN entries as equal."""
    if a.keys() != b.keys():
        return False
    for key in a:
        left, right = a[key], b[key]
        if len(left) != len(right):
            return False
        for x, y in zip(left, right):
            if x is y:
                continue
            if isinstance(x, float) and isinstance(y, float) and np.isnan(x) and np.isnan(y):
                continue
            if x != y:
                return False
    return True


def subset(eset: ExpressionSet, samples=None, features=None) -> ExpressionSet:
    """Functional form of :meth:`ExpressionSet.subset`."""
    return eset.subset(samples=samples, features=features)


def combine(esets: Sequence[ExpressionSet]) -> ExpressionSet:
    """
    Concatenate containers column-wise (sample-wise).

    All containers must have identical feature names in identical order; rows
    are not realigned by name. Sample metadata keys are unioned, and a
    container missing a key contributes None for each of its samples. Feature
    metadata and the annotation come from the first container. Experiment
    data is kept only when every container has it: the first record is copied
    with all ``samples`` concatenated and its title prefixed "Combined: ".
    Unlike MIAME.merge(), the other fields are not concatenated.

    Args:
        esets: Containers in the order their samples should appear

    Returns:
        New ExpressionSet, or the single input itself when given one container

    Raises:
        EmptyInputError: If esets is empty
        IncompatibleFeaturesError: If feature names differ

    Examples:
        >>> combined = combine([eset1, eset2])
        >>> combined.n_samples == eset1.n_samples + eset2.n_samples
        True
    """
    esets = list(esets)
    if not esets:
        raise EmptyInputError("combine() requires at least one ExpressionSet")
    if len(esets) == 1:
        return esets[0]

    first = esets[0]
    for position, eset in enumerate(esets[1:], start=1):
        if eset.feature_names != first.feature_names:
            raise IncompatibleFeaturesError(position)

    values = np.hstack([eset.values for eset in esets])
    sample_names = [name for eset in esets for name in eset.sample_names]

    keys: list[str] = []
    for eset in esets:
        for key in eset.sample_metadata:
            if key not in keys:
                keys.append(key)
    sample_metadata = {
        key: [
            value
            for eset in esets
            for value in eset.sample_metadata.get(key, [None] * eset.n_samples)
        ]
        for key in keys
    }

    experiment_data = None
    if all(eset.has_experiment_data for eset in esets):
        base = first.experiment_data
        experiment_data = MIAME(
            name=base.name,
            lab=base.lab,
            contact=base.contact,
            title=COMBINED_TITLE_PREFIX + base.title,
            abstract=base.abstract,
            url=base.url,
            pub_med_id=base.pub_med_id,
            samples=[s for eset in esets for s in eset.experiment_data.samples],
            hybridizations=base.hybridizations,
            norm_controls=base.norm_controls,
            preprocessing=base.preprocessing,
            other=base.other,
        )

    logger.debug(f"Combined {len(esets)} containers into {values.shape[0]} × {values.shape[1]}")

    return ExpressionSet(
        values=values,
        sample_names=sample_names,
        feature_names=first.feature_names,
        sample_metadata=sample_metadata,
        feature_metadata=first.feature_metadata,
        experiment_data=experiment_data,
        annotation=first.annotation,
    )
