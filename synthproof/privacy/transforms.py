"""
Privacy Transforms

Two independent switches applied in order:
1. Suppression: sensitive columns are removed from the output schema
2. Generalization: numeric values are replaced by fixed-width range labels
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..config import PrivacyConfig
from ..models import Cell, Column, ColumnKind, NumericValue, SyntheticTable, TextValue

logger = logging.getLogger(__name__)


@dataclass
class FilteredTable:
    table: SyntheticTable
    columns_included: int
    sensitive_removed: int
    generalized_columns: List[str] = field(default_factory=list)


def bucket_label(value: int, width: int = 10) -> str:
    """Half-open range label: 37 -> '30-40'"""
    lower = (value // width) * width
    return f"{lower}-{lower + width}"


def generalize_cell(cell: Cell, width: int = 10) -> Cell:
    if isinstance(cell, NumericValue):
        return TextValue(bucket_label(cell.value, width))
    return cell


class PrivacyTransform:
    """Applies suppression and generalization to a synthetic table"""

    def __init__(self, config: Optional[PrivacyConfig] = None):
        self.config = config or PrivacyConfig()

    def suppress(self, columns: List[Column], table: SyntheticTable) -> Tuple[SyntheticTable, int]:
        kept = SyntheticTable()
        removed = 0
        for column in columns:
            if column.name not in table:
                continue
            if column.kind == ColumnKind.SENSITIVE:
                removed += 1
                continue
            kept.add_column(column.name, table.columns[column.name])
        return kept, removed

    def generalize(self, columns: List[Column], table: SyntheticTable) -> Tuple[SyntheticTable, List[str]]:
        width = self.config.range_width
        numeric_names = {c.name for c in columns if c.kind == ColumnKind.NUMERIC}
        result = SyntheticTable()
        generalized = []

        for name, cells in table.columns.items():
            if name in numeric_names:
                result.add_column(name, [generalize_cell(cell, width) for cell in cells])
                generalized.append(name)
            else:
                result.add_column(name, cells)

        return result, generalized

    def apply(
        self,
        columns: List[Column],
        table: SyntheticTable,
        hide_sensitive: bool,
        privacy_safe_ranges: bool
    ) -> FilteredTable:
        """
        Apply the enabled transforms

        Args:
            columns: Classified columns of the table (selection already applied)
            table: Synthetic table to filter
            hide_sensitive: Drop sensitive columns entirely
            privacy_safe_ranges: Bucket surviving numeric columns

        Returns:
            FilteredTable with the output table and counts
        """
        sensitive_removed = 0
        generalized: List[str] = []

        if hide_sensitive:
            table, sensitive_removed = self.suppress(columns, table)

        if privacy_safe_ranges:
            table, generalized = self.generalize(columns, table)

        logger.info(
            f"Privacy transform: {len(table)} columns kept, "
            f"{sensitive_removed} suppressed, {len(generalized)} generalized"
        )

        return FilteredTable(
            table=table,
            columns_included=len(table),
            sensitive_removed=sensitive_removed,
            generalized_columns=generalized,
        )
