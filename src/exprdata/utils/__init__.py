"""Utility modules for expression data persistence."""

from exprdata.utils.fileio import (
    atomic_path,
    atomic_write_text,
)

__all__ = [
    # Atomic file-write utilities
    'atomic_path',
    'atomic_write_text',
]
