"""
Column Classifier

Assigns a semantic kind to each column using header keywords only. Values
are never inspected, so classification works from the header row of an
upload without reading the data itself.
"""

import logging
from typing import List, Optional

from ..config import ClassifierConfig
from ..exceptions import EmptySchemaError
from ..models import Column, ColumnKind

logger = logging.getLogger(__name__)


# Demo schema used when an upload yields no headers
FALLBACK_COLUMNS = [
    Column("id", ColumnKind.NUMERIC, selected=False),
    Column("name", ColumnKind.SENSITIVE),
    Column("email", ColumnKind.SENSITIVE),
    Column("phone", ColumnKind.SENSITIVE),
    Column("age", ColumnKind.NUMERIC),
    Column("salary", ColumnKind.NUMERIC),
    Column("department", ColumnKind.CATEGORICAL),
    Column("country", ColumnKind.CATEGORICAL),
]


def parse_headers(content: str) -> List[str]:
    """Header names from the first line of CSV text, stripped and lower-cased"""
    first_line = content.split("\n", 1)[0] if content else ""
    headers = [h.strip().lower() for h in first_line.split(",")]
    return [h for h in headers if h]


class ColumnClassifier:
    """
    Keyword-based column classifier

    Rules are evaluated top to bottom and the first match wins:
    sensitive keywords, then numeric keywords, else categorical.
    """

    def __init__(self, config: Optional[ClassifierConfig] = None):
        self.config = config or ClassifierConfig()

    def classify_header(self, header: str) -> ColumnKind:
        normalized = header.strip().lower()

        if any(token in normalized for token in self.config.sensitive_keywords):
            return ColumnKind.SENSITIVE
        if any(token in normalized for token in self.config.numeric_keywords):
            return ColumnKind.NUMERIC
        return ColumnKind.CATEGORICAL

    def classify(self, headers: List[str]) -> List[Column]:
        """
        Classify a list of raw header strings

        Args:
            headers: Header names as read from the upload

        Returns:
            One selected Column per non-blank header

        Raises:
            EmptySchemaError: If no usable headers were given
        """
        cleaned = [h.strip().lower() for h in headers if h and h.strip()]
        if not cleaned:
            raise EmptySchemaError("No headers to classify", stage="classifying")

        columns = [Column(name=h, kind=self.classify_header(h)) for h in cleaned]
        logger.debug(f"Classified {len(columns)} columns: "
                     f"{[(c.name, c.kind.value) for c in columns]}")
        return columns

    def classify_or_fallback(self, headers: List[str]) -> List[Column]:
        """Classify headers, substituting the fixed demo schema when there are none"""
        try:
            return self.classify(headers)
        except EmptySchemaError:
            logger.warning("No headers found, using fallback schema "
                           f"({len(FALLBACK_COLUMNS)} columns)")
            return list(FALLBACK_COLUMNS)
