"""
Tests for header-based column classification
"""

import pytest

from synthproof.config import ClassifierConfig
from synthproof.exceptions import EmptySchemaError, ValidationError
from synthproof.models import ColumnKind
from synthproof.schema import ColumnClassifier, FALLBACK_COLUMNS, parse_headers


class TestColumnClassifier:
    """Test keyword classification rules"""

    @pytest.fixture
    def classifier(self):
        return ColumnClassifier()

    def test_sensitive_then_numeric(self, classifier):
        columns = classifier.classify(["user_name", "user_age"])

        assert [c.kind for c in columns] == [ColumnKind.SENSITIVE, ColumnKind.NUMERIC]

    def test_first_match_wins(self, classifier):
        # "name" and "id" both match; sensitive rules are checked first
        assert classifier.classify_header("name_id") == ColumnKind.SENSITIVE

    def test_categorical_default(self, classifier):
        assert classifier.classify_header("department") == ColumnKind.CATEGORICAL
        assert classifier.classify_header("status") == ColumnKind.CATEGORICAL

    def test_keyword_substrings(self, classifier):
        assert classifier.classify_header("email_address") == ColumnKind.SENSITIVE
        assert classifier.classify_header("total_amount") == ColumnKind.NUMERIC
        assert classifier.classify_header("account_number") == ColumnKind.NUMERIC

    def test_headers_normalized(self, classifier):
        columns = classifier.classify(["  Email ", "AGE"])

        assert [c.name for c in columns] == ["email", "age"]
        assert all(c.selected for c in columns)

    def test_blank_headers_dropped(self, classifier):
        columns = classifier.classify(["id", "", "   ", "phone"])
        assert [c.name for c in columns] == ["id", "phone"]

    def test_empty_headers_raise(self, classifier):
        with pytest.raises(EmptySchemaError) as exc_info:
            classifier.classify([])

        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.stage == "classifying"

    def test_fallback_schema(self, classifier):
        columns = classifier.classify_or_fallback(["", " "])

        assert columns == FALLBACK_COLUMNS
        assert len(columns) == 8
        id_column = columns[0]
        assert id_column.name == "id"
        assert id_column.kind == ColumnKind.NUMERIC
        assert not id_column.selected
        assert sum(1 for c in columns if c.kind == ColumnKind.SENSITIVE) == 3

    def test_fallback_not_used_when_headers_present(self, classifier):
        columns = classifier.classify_or_fallback(["salary"])
        assert [c.name for c in columns] == ["salary"]

    def test_custom_keywords(self):
        config = ClassifierConfig(sensitive_keywords=["dob"], numeric_keywords=["score"])
        classifier = ColumnClassifier(config)

        assert classifier.classify_header("patient_dob") == ColumnKind.SENSITIVE
        assert classifier.classify_header("risk_score") == ColumnKind.NUMERIC
        assert classifier.classify_header("name") == ColumnKind.CATEGORICAL


class TestParseHeaders:
    """Test header extraction from CSV text"""

    def test_first_line_only(self):
        content = "Name, Email,Age\nAlice,a@x.io,30\n"
        assert parse_headers(content) == ["name", "email", "age"]

    def test_empty_content(self):
        assert parse_headers("") == []

    def test_crlf_line_endings(self):
        assert parse_headers("id,salary\r\n1,100\r\n") == ["id", "salary"]
