"""
Axis selectors for subsetting expression containers.

A selector picks entries along one axis either by name or by 0-based integer
position, never a mix of both. ``ByName`` and ``ByIndex`` make the choice
explicit; ``as_selector`` coerces plain sequences so callers can simply write
``eset.subset(samples=["S1", "S3"])`` or ``eset.subset(features=[0, 2])``.

Examples:
    >>> from exprdata.core.selectors import ByIndex, ByName, as_selector
    >>> as_selector(["S1", "S2"])
    ByName(names=('S1', 'S2'))
    >>> as_selector([0, 1])
    ByIndex(indices=(0, 1))
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

__all__ = ['ByName', 'ByIndex', 'Selector', 'as_selector']


@dataclass(frozen=True)
class ByName:
    """Select entries by name."""
    names: tuple[str, ...]

    def __init__(self, names: Sequence[str]):
        if isinstance(names, str):
            names = [names]
        object.__setattr__(self, 'names', tuple(str(n) for n in names))

    def __len__(self) -> int:
        return len(self.names)


@dataclass(frozen=True)
class ByIndex:
    """Select entries by 0-based integer position."""
    indices: tuple[int, ...]

    def __init__(self, indices: Sequence[int]):
        if isinstance(indices, numbers.Integral):
            indices = [indices]
        checked = []
        for i in indices:
            if not _is_index(i):
                raise TypeError(f"Indices must be integers, got {type(i).__name__}: {i!r}")
            checked.append(int(i))
        object.__setattr__(self, 'indices', tuple(checked))

    def __len__(self) -> int:
        return len(self.indices)


Selector = Union[ByName, ByIndex]


def _is_index(value) -> bool:
    return isinstance(value, (numbers.Integral, np.integer)) and not isinstance(value, (bool, np.bool_))


def as_selector(value) -> Selector | None:
    """
    Coerce a user-supplied axis selection to a Selector.

    Args:
        value: None, a Selector, a single name, or a sequence made only of
            names or only of integers

    Returns:
        ByName, ByIndex, or None when value is None

    Raises:
        TypeError: If the sequence mixes names and integers or holds other types
    """
    if value is None or isinstance(value, (ByName, ByIndex)):
        return value
    if isinstance(value, str):
        return ByName([value])
    if isinstance(value, np.ndarray):
        value = value.tolist()

    items = list(value)
    if all(isinstance(v, str) for v in items):
        return ByName(items)
    if all(_is_index(v) for v in items):
        return ByIndex(items)
    raise TypeError(
        "Selection must contain only names (str) or only integer indices, "
        f"got {sorted({type(v).__name__ for v in items})}"
    )
