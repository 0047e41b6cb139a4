"""
Data Generators Module

Provides generators for each classified column kind:
- Sensitive: pooled names/phones, synthesized emails, redaction markers
- Numeric: sequential identifiers and uniform random integers
- Categorical: pooled departments/countries and numbered categories
"""

from .base import ColumnGenerator
from .sensitive import SensitiveGenerator
from .numeric import NumericGenerator
from .categorical import CategoricalGenerator
from .synthesizer import ValueSynthesizer

__all__ = [
    "ColumnGenerator",
    "SensitiveGenerator",
    "NumericGenerator",
    "CategoricalGenerator",
    "ValueSynthesizer",
]
