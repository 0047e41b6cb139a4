"""
Categorical Value Generator

Cycles through fixed pools for known categories (department, country) and
falls back to numbered category labels.
"""

from typing import Dict, List

from .base import ColumnGenerator
from ..models import Cell, ColumnKind, TextValue


class CategoricalGenerator(ColumnGenerator):

    kind = ColumnKind.CATEGORICAL

    POOLS: Dict[str, List[str]] = {
        'department': ["Engineering", "Marketing", "Sales", "HR", "Finance", "Operations"],
        'country': ["USA", "Canada", "UK", "Germany", "France", "Japan", "Australia"],
    }

    NUM_CATEGORIES = 5

    def generate(self, column_name: str, row_index: int) -> Cell:
        name = column_name.lower()

        for token, pool in self.POOLS.items():
            if token in name:
                return TextValue(pool[row_index % len(pool)])

        return TextValue(f"Category_{(row_index % self.NUM_CATEGORIES) + 1}")
