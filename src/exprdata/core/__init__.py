"""
Core data structures for expression datasets.

This module provides the foundational types that the I/O and CLI layers build upon:

1. ExpressionSet: Expression matrix with sample/feature metadata and annotation
2. MIAME: Immutable experiment-level metadata record
3. ByName / ByIndex: Explicit axis selectors for subsetting
4. combine / subset: Functional derivations returning new containers

Design Philosophy:
    - Immutability: All operations return new instances (functional style)
    - Fail fast: Shape and name errors surface at the call that causes them
    - Domain vocabulary: features are rows, samples are columns

Examples:
    >>> from exprdata.core import ExpressionSet, combine
    >>>
    >>> eset = ExpressionSet.random(100, 8, seed=1)
    >>> half = eset.subset(samples=list(range(4)))
    >>> rest = eset.subset(samples=list(range(4, 8)))
    >>> combine([half, rest]).shape
    (100, 8)
"""

from exprdata.core.errors import (
    ExpressionDataError,
    DimensionMismatchError,
    NameNotFoundError,
    IndexOutOfBoundsError,
    IncompatibleFeaturesError,
    EmptyInputError,
    UnsupportedFormatError,
    InvalidRecordError,
)
from exprdata.core.miame import MIAME, ExperimentInfo, merge_miame
from exprdata.core.selectors import ByName, ByIndex, as_selector
from exprdata.core.expression_set import ExpressionSet, NO_ANNOTATION, subset, combine

__all__ = [
    'ExpressionSet',
    'NO_ANNOTATION',
    'subset',
    'combine',
    'MIAME',
    'ExperimentInfo',
    'merge_miame',
    'ByName',
    'ByIndex',
    'as_selector',
    'ExpressionDataError',
    'DimensionMismatchError',
    'NameNotFoundError',
    'IndexOutOfBoundsError',
    'IncompatibleFeaturesError',
    'EmptyInputError',
    'UnsupportedFormatError',
    'InvalidRecordError',
]
