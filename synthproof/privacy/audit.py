import re
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..config import PrivacyConfig
from ..models import Column, ColumnKind, NumericValue, SyntheticTable, TextValue

logger = logging.getLogger(__name__)

BUCKET_PATTERN = re.compile(r"^(\d+)-(\d+)$")


# =========================================================
# DATA STRUCTURES
# =========================================================

@dataclass
class PrivacyMetric:
    name: str
    passed: bool
    details: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self):
        return f"{'✓' if self.passed else '✗'} {self.name}"


@dataclass
class PrivacyReport:
    passed: bool
    metrics: List[PrivacyMetric] = field(default_factory=list)

    def add_metric(self, m: PrivacyMetric):
        self.metrics.append(m)

    def get_failures(self) -> List[PrivacyMetric]:
        return [m for m in self.metrics if not m.passed]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passed": self.passed,
            "metrics": [
                {"name": m.name, "passed": m.passed, "details": m.details}
                for m in self.metrics
            ],
        }


# =========================================================
# PRIVACY AUDIT
# =========================================================

class PrivacyAudit:
    """Re-checks a filtered table against the switches that produced it"""

    def __init__(self, config: Optional[PrivacyConfig] = None):
        self.config = config or PrivacyConfig()

    def check(
        self,
        columns: List[Column],
        table: SyntheticTable,
        expected_rows: int,
        hide_sensitive: bool,
        privacy_safe_ranges: bool
    ) -> PrivacyReport:

        report = PrivacyReport(passed=True)
        kinds = {c.name: c.kind for c in columns}

        short = [name for name, cells in table.columns.items() if len(cells) != expected_rows]
        report.add_metric(PrivacyMetric(
            "row_count", not short, {"expected": expected_rows, "mismatched_columns": short}
        ))

        if hide_sensitive:
            leaked = [name for name in table.column_names if kinds.get(name) == ColumnKind.SENSITIVE]
            report.add_metric(PrivacyMetric("suppression", not leaked, {"leaked_columns": leaked}))

        if privacy_safe_ranges:
            width = self.config.range_width
            bad = [
                name for name in table.column_names
                if kinds.get(name) == ColumnKind.NUMERIC
                and not all(self._is_bucket(cell, width) for cell in table.columns[name])
            ]
            report.add_metric(PrivacyMetric("generalization", not bad, {"ungeneralized_columns": bad}))

        report.passed = all(m.passed for m in report.metrics)

        if not report.passed:
            logger.warning(f"Privacy audit failed: {report.get_failures()}")

        return report

    @staticmethod
    def _is_bucket(cell, width: int) -> bool:
        if isinstance(cell, NumericValue):
            return False
        match = BUCKET_PATTERN.match(cell.value) if isinstance(cell, TextValue) else None
        if not match:
            return False
        lower, upper = int(match.group(1)), int(match.group(2))
        return lower % width == 0 and upper == lower + width
