"""
Base class for per-kind value generators
"""

from typing import List, Optional

import numpy as np

from ..config import SynthesisConfig
from ..models import Cell, ColumnKind


class ColumnGenerator:
    """
    Abstract base class for value generators

    Each generator produces values for one column kind. Values depend only on
    the column name and the row index, plus the run's random generator for
    the randomized branches.
    """

    kind: Optional[ColumnKind] = None

    def __init__(self, config: Optional[SynthesisConfig] = None,
                 rng: Optional[np.random.Generator] = None):
        self.config = config or SynthesisConfig()
        self.rng = rng if rng is not None else np.random.default_rng()

    def generate(self, column_name: str, row_index: int) -> Cell:
        """
        Generate one value

        Args:
            column_name: Lower-cased column name
            row_index: Zero-based row index

        Returns:
            A NumericValue or TextValue
        """
        raise NotImplementedError("Subclasses must implement generate()")

    def generate_column(self, column_name: str, num_rows: int) -> List[Cell]:
        return [self.generate(column_name, i) for i in range(num_rows)]

    def _uniform(self, bounds: List[int]) -> int:
        """Uniform integer in [low, high)"""
        low, high = bounds
        return int(self.rng.integers(low, high))
