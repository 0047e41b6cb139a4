"""
SynthProof Package

Synthetic tabular data with verifiable commitments: column classification,
per-column synthesis, privacy transforms, commitment and proof derivation,
verification and receipt export.
"""

__version__ = "1.0.0"
__author__ = "Synthetic Data Team"

from .config import Config, ConfigLoader, ConfigValidator
from .exceptions import (
    SynthProofError,
    ValidationError,
    EmptySchemaError,
    NotFoundError,
    StorageError,
    ConfigurationError,
)
from .models import ColumnKind, Column, SyntheticTable, GenerationRequest, GenerationResponse
from .commitment import CommitmentEngine
from .orchestrator import SynthesisOrchestrator, GenerationStage
from .verifier import ProofVerifier
from .receipt import ReceiptAssembler, Receipt
from .store import ContentStore, InMemoryContentStore, JsonFileContentStore
from .service import SynthesisService, build_service

__all__ = [
    "Config",
    "ConfigLoader",
    "ConfigValidator",
    "SynthProofError",
    "ValidationError",
    "EmptySchemaError",
    "NotFoundError",
    "StorageError",
    "ConfigurationError",
    "ColumnKind",
    "Column",
    "SyntheticTable",
    "GenerationRequest",
    "GenerationResponse",
    "CommitmentEngine",
    "SynthesisOrchestrator",
    "GenerationStage",
    "ProofVerifier",
    "ReceiptAssembler",
    "Receipt",
    "ContentStore",
    "InMemoryContentStore",
    "JsonFileContentStore",
    "SynthesisService",
    "build_service",
]
