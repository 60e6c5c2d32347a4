"""
exprdata - Expression Set Containers with Portable Persistence

An in-memory container for expression matrices with sample/feature metadata
and MIAME experiment descriptions, plus readers and writers for common
binary and columnar formats.
"""

__version__ = "0.1.0"

from exprdata.core.expression_set import ExpressionSet, combine, subset
from exprdata.core.miame import MIAME
from exprdata.core.selectors import ByName, ByIndex
from exprdata.io.loaders import load_eset
from exprdata.io.writers import save_eset

__all__ = [
    "ExpressionSet",
    "MIAME",
    "ByName",
    "ByIndex",
    "combine",
    "subset",
    "load_eset",
    "save_eset",
]
