"""
Privacy Module

- Suppression of sensitive columns
- Range generalization of numeric columns
- Post-transform audit of the filtered table
"""

from .transforms import (
    PrivacyTransform,
    FilteredTable,
    bucket_label,
    generalize_cell,
)

from .audit import (
    PrivacyAudit,
    PrivacyReport,
    PrivacyMetric,
)

__all__ = [
    "PrivacyTransform",
    "FilteredTable",
    "bucket_label",
    "generalize_cell",
    "PrivacyAudit",
    "PrivacyReport",
    "PrivacyMetric",
]
