"""
Numeric Value Generator

Key rules:
1. Identifier columns count up from 1 (deterministic)
2. Age, salary and other numerics are uniform random integers
3. Values are always integers so range generalization can bucket them
"""

from .base import ColumnGenerator
from ..models import Cell, ColumnKind, NumericValue


class NumericGenerator(ColumnGenerator):

    kind = ColumnKind.NUMERIC

    def generate(self, column_name: str, row_index: int) -> Cell:
        name = column_name.lower()

        if "id" in name:
            return NumericValue(row_index + 1)
        if "age" in name:
            return NumericValue(self._uniform(self.config.age_range))
        if "salary" in name:
            return NumericValue(self._uniform(self.config.salary_range))
        return NumericValue(self._uniform(self.config.numeric_range))
