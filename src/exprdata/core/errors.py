"""
Error taxonomy for expression containers and their persistence adapters.

Every error derives from ExpressionDataError and from the closest built-in
exception, so callers that already catch ValueError/LookupError/IndexError
keep working.

Examples:
    >>> from exprdata.core.errors import NameNotFoundError
    >>> try:
    ...     eset.subset(samples=["missing"])
    ... except NameNotFoundError as e:
    ...     print(e.names)
    ['missing']
"""

from __future__ import annotations

from typing import Sequence

__all__ = [
    'ExpressionDataError',
    'DimensionMismatchError',
    'NameNotFoundError',
    'IndexOutOfBoundsError',
    'IncompatibleFeaturesError',
    'EmptyInputError',
    'UnsupportedFormatError',
    'InvalidRecordError',
]


class ExpressionDataError(Exception):
    """Base class for all exprdata errors."""


class DimensionMismatchError(ExpressionDataError, ValueError):
    """A name or metadata vector disagrees with the matrix dimensions."""

    def __init__(self, field: str, expected: int, actual: int):
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{field} length ({actual}) must match matrix dimension ({expected})"
        )


class NameNotFoundError(ExpressionDataError, LookupError):
    """One or more names are absent from a container axis."""

    def __init__(self, axis: str, names: Sequence[str]):
        self.axis = axis
        self.names = list(names)
        shown = ", ".join(repr(n) for n in self.names[:5])
        more = f" (+{len(self.names) - 5} more)" if len(self.names) > 5 else ""
        super().__init__(f"{axis} name(s) not found: {shown}{more}")


class IndexOutOfBoundsError(ExpressionDataError, IndexError):
    """An integer index falls outside [0, count)."""

    def __init__(self, axis: str, index: int, count: int):
        self.axis = axis
        self.index = index
        self.count = count
        super().__init__(
            f"{axis} index {index} out of bounds for {count} {axis}s"
        )


class IncompatibleFeaturesError(ExpressionDataError, ValueError):
    """Containers passed to combine() do not share identical feature names."""

    def __init__(self, position: int):
        self.position = position
        super().__init__(
            f"Feature names of container {position} differ from container 0; "
            "combine() requires identical features in identical order"
        )


class EmptyInputError(ExpressionDataError, ValueError):
    """combine() received no containers."""


class UnsupportedFormatError(ExpressionDataError, ValueError):
    """A file suffix matches none of the recognized storage formats."""

    def __init__(self, path, message: str | None = None):
        self.path = path
        super().__init__(message or f"Unsupported file format: {path}")


class InvalidRecordError(ExpressionDataError, ValueError):
    """A persisted record is malformed or uses an unknown schema version."""
