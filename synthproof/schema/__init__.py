"""
Schema Module

Header-based column classification with a fixed fallback schema.
"""

from .classifier import (
    ColumnClassifier,
    FALLBACK_COLUMNS,
    parse_headers,
)

__all__ = [
    "ColumnClassifier",
    "FALLBACK_COLUMNS",
    "parse_headers",
]
