"""
Sensitive Value Generator

Replaces personally identifiable columns with fictitious values:
- Names cycle through a fixed pool
- Emails are synthesized per row on a privacy domain
- Phone numbers cycle through reserved 555 numbers
- Anything else is redacted with a row marker
"""

from .base import ColumnGenerator
from ..models import Cell, ColumnKind, TextValue


class SensitiveGenerator(ColumnGenerator):
    """Deterministic in the row index for every branch"""

    kind = ColumnKind.SENSITIVE

    NAMES = [
        "James Wilson", "Sarah Chen", "Michael Brown", "Emily Davis", "David Lee",
        "Anna Martinez", "Robert Taylor", "Lisa Anderson", "John Smith", "Maria Garcia",
    ]

    PHONES = ["555-0100", "555-0101", "555-0102", "555-0103", "555-0104"]

    def generate(self, column_name: str, row_index: int) -> Cell:
        name = column_name.lower()

        if "name" in name:
            return TextValue(self.NAMES[row_index % len(self.NAMES)])
        if "email" in name:
            return TextValue(self.email(row_index))
        if "phone" in name:
            return TextValue(self.PHONES[row_index % len(self.PHONES)])
        return TextValue(f"[REDACTED-{row_index}]")

    def email(self, row_index: int) -> str:
        return f"synth_{row_index}@privacy.{self.config.email_domain}"
