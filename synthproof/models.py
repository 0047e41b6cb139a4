"""
Data Model

Records exchanged between the pipeline stages and the content store:
- Columns and their classified kinds
- Tagged cell values and the synthetic table
- Dataset, Generation, Proof and TransactionRecord rows
- Request/response shapes at the pipeline boundary
"""

import json
from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from .exceptions import ValidationError


class ColumnKind(Enum):
    """Semantic type assigned to a column at upload time"""
    SENSITIVE = "sensitive"
    NUMERIC = "numeric"
    CATEGORICAL = "categorical"


class DatasetStatus(Enum):
    REGISTERED = "registered"
    GENERATED = "generated"


class TransactionType(Enum):
    """Pipeline actions recorded in the transaction log"""
    REGISTER = "register"
    GENERATE = "generate"
    VERIFY = "verify"
    EXPORT = "export"

    @property
    def function_name(self) -> str:
        return {
            TransactionType.REGISTER: "register_dataset",
            TransactionType.GENERATE: "generate_synth",
            TransactionType.VERIFY: "verify_synth",
            TransactionType.EXPORT: "export_receipt",
        }[self]


@dataclass(frozen=True)
class Column:
    """A classified column. The kind never changes after classification."""
    name: str
    kind: ColumnKind
    selected: bool = True

    def with_selected(self, selected: bool) -> 'Column':
        return replace(self, selected=selected)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "kind": self.kind.value, "selected": self.selected}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Column':
        # browser clients send "type"
        kind = data.get("kind", data.get("type"))
        return cls(
            name=str(data["name"]),
            kind=ColumnKind(str(kind).lower()),
            selected=bool(data.get("selected", True)),
        )


# =========================================================
# CELL VALUES
# =========================================================

@dataclass(frozen=True)
class NumericValue:
    value: int

    @property
    def raw(self) -> int:
        return self.value


@dataclass(frozen=True)
class TextValue:
    value: str

    @property
    def raw(self) -> str:
        return self.value


Cell = Union[NumericValue, TextValue]


def cell_from_raw(raw: Union[int, float, str]) -> Cell:
    if isinstance(raw, bool):
        raise TypeError("Boolean cells are not supported")
    if isinstance(raw, (int, float)):
        return NumericValue(int(raw))
    return TextValue(str(raw))


@dataclass
class SyntheticTable:
    """
    Column name -> ordered cells.

    Row i across all columns is one synthetic record. Column order carries
    no meaning; canonical serialization sorts the keys.
    """
    columns: Dict[str, List[Cell]] = field(default_factory=dict)

    def add_column(self, name: str, cells: List[Cell]):
        self.columns[name] = list(cells)

    @property
    def column_names(self) -> List[str]:
        return list(self.columns.keys())

    @property
    def row_count(self) -> int:
        if not self.columns:
            return 0
        return len(next(iter(self.columns.values())))

    def value_types(self, column: str) -> set:
        """Set of cell variants present in a column"""
        return {type(cell) for cell in self.columns[column]}

    def to_plain(self) -> Dict[str, List[Union[int, str]]]:
        return {name: [cell.raw for cell in cells] for name, cells in self.columns.items()}

    @classmethod
    def from_plain(cls, data: Dict[str, List[Union[int, str]]]) -> 'SyntheticTable':
        return cls({name: [cell_from_raw(v) for v in values] for name, values in data.items()})

    def canonical_json(self) -> str:
        return json.dumps(self.to_plain(), sort_keys=True, separators=(",", ":"))

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.to_plain())

    def __contains__(self, name: str) -> bool:
        return name in self.columns

    def __len__(self) -> int:
        return len(self.columns)


# =========================================================
# STORED RECORDS
# =========================================================

@dataclass
class Dataset:
    id: str
    user_address: str
    original_commitment: str
    filename: str
    column_count: int
    row_count: int
    dataset_type: str = "custom"
    status: DatasetStatus = DatasetStatus.REGISTERED
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Dataset':
        data = dict(data)
        data["status"] = DatasetStatus(data.get("status", "registered"))
        return cls(**data)


@dataclass
class Generation:
    id: str
    dataset_id: str
    user_address: str
    synthetic_data: SyntheticTable
    quality_score: int
    rows_generated: int
    columns_included: int
    sensitive_removed: int
    output_format: str
    quality_mode: str
    synth_commitment: str
    proof_hash: str
    tx_id: str
    privacy_verified: bool = False
    synth_ready: bool = True
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["synthetic_data"] = self.synthetic_data.to_plain()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Generation':
        data = dict(data)
        data["synthetic_data"] = SyntheticTable.from_plain(data.get("synthetic_data") or {})
        return cls(**data)


@dataclass
class Proof:
    id: str
    generation_id: str
    user_address: str
    dataset_commitment: str
    synth_commitment: str
    params_hash: str
    proof_hash: str
    quality_score: int
    verified: bool = False
    receipt_data: Dict[str, Any] = field(default_factory=dict)
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Proof':
        return cls(**data)


@dataclass
class TransactionRecord:
    id: str
    tx_id: str
    tx_type: TransactionType
    user_address: str
    program_id: str
    function_name: str
    generation_id: Optional[str] = None
    inputs: Dict[str, Any] = field(default_factory=dict)
    outputs: Dict[str, Any] = field(default_factory=dict)
    inputs_digest: str = ""
    outputs_digest: str = ""
    status: str = "confirmed"
    block_height: Optional[int] = None
    confirmed_at: Optional[str] = None
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["tx_type"] = self.tx_type.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TransactionRecord':
        data = dict(data)
        data["tx_type"] = TransactionType(data["tx_type"])
        return cls(**data)


@dataclass
class GenerationJoin:
    """A generation with its dataset, proof and transaction history"""
    generation: Generation
    dataset: Optional[Dataset]
    proof: Optional[Proof]
    transactions: List[TransactionRecord] = field(default_factory=list)


# =========================================================
# PIPELINE BOUNDARY
# =========================================================

@dataclass
class GenerationRequest:
    dataset_id: str
    columns: List[Column] = field(default_factory=list)
    hide_sensitive: bool = True
    privacy_safe_ranges: bool = False
    synthetic_rows: int = 100
    output_format: str = "csv"
    quality_mode: str = "balanced"
    original_data_hash: str = ""
    user_address: Optional[str] = None
    headers: List[str] = field(default_factory=list)

    # camelCase keys accepted from browser clients
    FIELD_ALIASES = {
        "datasetId": "dataset_id",
        "hideSensitive": "hide_sensitive",
        "privacySafeRanges": "privacy_safe_ranges",
        "syntheticRows": "synthetic_rows",
        "outputFormat": "output_format",
        "qualityMode": "quality_mode",
        "originalDataHash": "original_data_hash",
        "userAddress": "user_address",
    }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> 'GenerationRequest':
        """
        Build a request from a JSON-like payload

        Raises:
            ValidationError: If the payload shape is malformed
        """
        if not isinstance(payload, dict):
            raise ValidationError("Request payload must be an object", stage="validating")

        data = {cls.FIELD_ALIASES.get(key, key): value for key, value in payload.items()}
        known = {f for f in cls.__dataclass_fields__}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValidationError(f"Unknown request fields: {unknown}", stage="validating")

        if "dataset_id" not in data:
            raise ValidationError("dataset_id is required", stage="validating")

        raw_columns = data.get("columns") or []
        if not isinstance(raw_columns, list):
            raise ValidationError("columns must be a list", stage="validating")
        try:
            data["columns"] = [
                c if isinstance(c, Column) else Column.from_dict(c) for c in raw_columns
            ]
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise ValidationError(f"Malformed column entry: {e}", stage="validating")

        return cls(**data)


@dataclass
class SecondaryWriteFailure:
    """A non-fatal write that failed after the primary record was stored"""
    operation: str
    error: str


@dataclass
class GenerationResponse:
    generation_id: str
    synthetic_data: SyntheticTable
    quality_score: int
    tx_id: str
    proof_hash: str
    synth_commitment: str
    columns_included: int
    sensitive_removed: int
    secondary_failures: List[SecondaryWriteFailure] = field(default_factory=list)

    @property
    def fully_persisted(self) -> bool:
        return not self.secondary_failures

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generation_id": self.generation_id,
            "synthetic_data": self.synthetic_data.to_plain(),
            "quality_score": self.quality_score,
            "tx_id": self.tx_id,
            "proof_hash": self.proof_hash,
            "synth_commitment": self.synth_commitment,
            "columns_included": self.columns_included,
            "sensitive_removed": self.sensitive_removed,
            "secondary_failures": [asdict(f) for f in self.secondary_failures],
        }


@dataclass
class RegistrationResult:
    dataset_id: str
    commitment: str
    tx_id: str
    signature: Optional[str] = None


@dataclass
class VerificationResult:
    verified: bool
    proof_hash: str
    quality_score: int
    verification_tx_id: Optional[str] = None
    receipt_data: Dict[str, Any] = field(default_factory=dict)
