"""
Value Synthesizer

Dispatches (column name, kind, row index) to the generator registered for
the kind. Unknown kinds get a positional placeholder value.
"""

import logging
from typing import Dict, List, Optional

import numpy as np

from .base import ColumnGenerator
from .categorical import CategoricalGenerator
from .numeric import NumericGenerator
from .sensitive import SensitiveGenerator
from ..config import SynthesisConfig
from ..models import Cell, Column, ColumnKind, TextValue

logger = logging.getLogger(__name__)


class ValueSynthesizer:
    """
    Produces synthetic values per column

    One instance per generation run: the random generator is not shared
    between runs.
    """

    def __init__(self, config: Optional[SynthesisConfig] = None,
                 rng: Optional[np.random.Generator] = None):
        self.config = config or SynthesisConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.generators: Dict[ColumnKind, ColumnGenerator] = {}

        for generator_cls in (SensitiveGenerator, NumericGenerator, CategoricalGenerator):
            self.register_generator(generator_cls(self.config, self.rng))

    def register_generator(self, generator: ColumnGenerator):
        """
        Register a generator for its column kind

        Args:
            generator: Generator instance with a ``kind`` set
        """
        if generator.kind is None:
            raise ValueError(f"{type(generator).__name__} does not declare a column kind")
        self.generators[generator.kind] = generator
        logger.debug(f"Registered generator: {generator.kind.value}")

    def synthesize(self, column_name: str, kind: Optional[ColumnKind], row_index: int) -> Cell:
        generator = self.generators.get(kind)
        if generator is None:
            return TextValue(f"Value_{row_index}")
        return generator.generate(column_name, row_index)

    def synthesize_column(self, column: Column, num_rows: int) -> List[Cell]:
        """Exactly ``num_rows`` values for one column"""
        return [self.synthesize(column.name, column.kind, i) for i in range(num_rows)]
