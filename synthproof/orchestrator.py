"""
Generation Orchestrator Module

Main orchestration engine that turns a generation request into a stored,
committed synthetic table. Every run moves through a fixed sequence of
stages:

    CLASSIFYING -> SYNTHESIZING -> FILTERING -> COMMITTING -> PERSISTED

or to FAILED from any stage. Persisting is a two-step commit: the Generation
record is primary and fatal, the transaction, proof and dataset status
writes are secondary and reported back as partial failures.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from .commitment import CommitmentEngine
from .config import Config, get_default_config
from .exceptions import NotFoundError, StorageError, SynthProofError, ValidationError
from .generators import ValueSynthesizer
from .ledger import TransactionFactory
from .models import (
    Column,
    Dataset,
    DatasetStatus,
    Generation,
    GenerationRequest,
    GenerationResponse,
    RegistrationResult,
    SecondaryWriteFailure,
    SyntheticTable,
    TransactionType,
)
from .privacy import FilteredTable, PrivacyAudit, PrivacyTransform
from .schema import ColumnClassifier
from .signing import ClaimSigner, attest_dataset_commitment
from .store import ContentStore, InMemoryContentStore

logger = logging.getLogger(__name__)


class GenerationStage(Enum):
    """Stages of a generation run"""
    CLASSIFYING = "classifying"
    SYNTHESIZING = "synthesizing"
    FILTERING = "filtering"
    COMMITTING = "committing"
    PERSISTED = "persisted"
    FAILED = "failed"


STAGE_ORDER = [
    GenerationStage.CLASSIFYING,
    GenerationStage.SYNTHESIZING,
    GenerationStage.FILTERING,
    GenerationStage.COMMITTING,
    GenerationStage.PERSISTED,
]


@dataclass
class GenerationRun:
    """State of one generation request. Never shared between runs."""
    request: GenerationRequest
    dataset: Dataset
    rng: np.random.Generator
    stage: GenerationStage = GenerationStage.CLASSIFYING
    history: List[GenerationStage] = field(default_factory=lambda: [GenerationStage.CLASSIFYING])

    columns: List[Column] = field(default_factory=list)
    table: Optional[SyntheticTable] = None
    filtered: Optional[FilteredTable] = None
    privacy_verified: bool = False

    quality_score: int = 0
    dataset_commitment: str = ""
    synth_commitment: str = ""
    params_hash: str = ""
    proof_hash: str = ""
    timestamp_ms: int = 0
    tx_id: str = ""

    generation: Optional[Generation] = None
    secondary_failures: List[SecondaryWriteFailure] = field(default_factory=list)
    failed_stage: Optional[GenerationStage] = None

    @property
    def user_address(self) -> str:
        return self.request.user_address or self.dataset.user_address

    @property
    def is_terminal(self) -> bool:
        return self.stage in (GenerationStage.PERSISTED, GenerationStage.FAILED)

    @property
    def selected_columns(self) -> List[Column]:
        return [c for c in self.columns if c.selected]

    def advance(self, stage: GenerationStage):
        """Move to the next stage; stages cannot be skipped or revisited"""
        if self.is_terminal:
            raise RuntimeError(f"Run already finished in stage {self.stage.value}")

        expected = STAGE_ORDER[STAGE_ORDER.index(self.stage) + 1]
        if stage != expected:
            raise RuntimeError(
                f"Invalid transition {self.stage.value} -> {stage.value} "
                f"(expected {expected.value})"
            )

        self.stage = stage
        self.history.append(stage)
        logger.info(f"Generation for dataset {self.dataset.id}: {stage.value}")

    def fail(self):
        if self.is_terminal:
            return
        self.failed_stage = self.stage
        self.stage = GenerationStage.FAILED
        self.history.append(GenerationStage.FAILED)


class RequestValidator:
    """Validates generation requests before any state is touched"""

    @staticmethod
    def validate(request: GenerationRequest, config: Config) -> Tuple[bool, List[str]]:
        """
        Validate a generation request

        Args:
            request: Request to check
            config: Active configuration (row limit and output formats)

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = []

        if not isinstance(request.dataset_id, str) or not request.dataset_id.strip():
            errors.append("dataset_id must be a non-empty string")

        rows = request.synthetic_rows
        if isinstance(rows, bool) or not isinstance(rows, int):
            errors.append("synthetic_rows must be an integer")
        elif rows <= 0:
            errors.append("synthetic_rows must be positive")
        elif rows > config.generation.max_rows:
            errors.append(f"synthetic_rows must not exceed {config.generation.max_rows}")

        if request.output_format not in config.generation.output_formats:
            errors.append(f"output_format must be one of {config.generation.output_formats}")

        if not isinstance(request.quality_mode, str) or not request.quality_mode:
            errors.append("quality_mode must be a non-empty string")

        for name in ("hide_sensitive", "privacy_safe_ranges"):
            if not isinstance(getattr(request, name), bool):
                errors.append(f"{name} must be a boolean")

        if not isinstance(request.original_data_hash, str):
            errors.append("original_data_hash must be a string")

        if request.user_address is not None and not isinstance(request.user_address, str):
            errors.append("user_address must be a string")

        names = [c.name for c in request.columns]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            errors.append(f"Duplicate column names: {duplicates}")

        if not all(isinstance(h, str) for h in request.headers):
            errors.append("headers must be strings")

        return len(errors) == 0, errors


class SynthesisOrchestrator:
    """
    Main orchestrator for dataset registration and synthetic generation

    Coordinates classification, synthesis, privacy filtering, commitment
    derivation and persistence through the content store.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        store: Optional[ContentStore] = None,
        engine: Optional[CommitmentEngine] = None,
        ledger: Optional[TransactionFactory] = None
    ):
        """
        Initialize the orchestrator

        Args:
            config: Configuration object (uses default if None)
            store: Content store (in-memory if None)
            engine: Commitment engine (built from config if None)
            ledger: Transaction factory (built from config if None)
        """
        self.config = config or get_default_config()
        self.store = store if store is not None else InMemoryContentStore()
        self.engine = engine or CommitmentEngine(self.config.commitment)
        self.ledger = ledger or TransactionFactory(self.config.network, self.engine)

        self.classifier = ColumnClassifier(self.config.classifier)
        self.privacy = PrivacyTransform(self.config.privacy)
        self.audit = PrivacyAudit(self.config.privacy)

        logger.info("SynthesisOrchestrator initialized")

    # =========================================================
    # REGISTRATION
    # =========================================================

    def register_dataset(
        self,
        user_address: str,
        filename: str,
        original_hash: str,
        column_count: int,
        row_count: int,
        dataset_type: str = "custom",
        signer: Optional[ClaimSigner] = None
    ) -> RegistrationResult:
        """
        Register a dataset by its client-side content hash

        Args:
            user_address: Owner of the dataset
            filename: Name of the uploaded file
            original_hash: Fingerprint of the raw content (content never leaves the client)
            column_count: Number of columns in the upload
            row_count: Number of data rows in the upload
            dataset_type: Free-form dataset category
            signer: Optional claim signer producing the user's attestation

        Returns:
            RegistrationResult with the dataset id, commitment and tx id
        """
        errors = []
        for name, value in (("user_address", user_address), ("filename", filename),
                            ("original_hash", original_hash)):
            if not isinstance(value, str) or not value.strip():
                errors.append(f"{name} must be a non-empty string")
        for name, value in (("column_count", column_count), ("row_count", row_count)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                errors.append(f"{name} must be a non-negative integer")
        if errors:
            raise ValidationError("Invalid dataset registration", errors=errors,
                                  stage="registering", filename=filename)

        commitment = self.engine.dataset_commitment(original_hash)
        tx_id = self.ledger.new_tx_id(TransactionType.REGISTER)

        dataset = self._primary_write(
            "insert_dataset",
            lambda: self.store.insert_dataset({
                "user_address": user_address,
                "original_commitment": commitment,
                "filename": filename,
                "column_count": column_count,
                "row_count": row_count,
                "dataset_type": dataset_type,
                "status": DatasetStatus.REGISTERED,
            }),
            stage="registering",
        )

        failures: List[SecondaryWriteFailure] = []
        self._secondary_write(
            failures,
            "append_transaction",
            lambda: self.store.append_transaction(self.ledger.build(
                TransactionType.REGISTER,
                user_address,
                inputs={"commitment": commitment, "filename": filename,
                        "columns": column_count, "rows": row_count},
                outputs={"dataset_id": dataset.id, "registered": True},
                tx_id=tx_id,
            )),
        )

        signature = None
        if signer is not None:
            signature = attest_dataset_commitment(signer, commitment, self.config.network.app_name)

        logger.info(f"Registered dataset {dataset.id} ({filename}) as {commitment}")

        return RegistrationResult(
            dataset_id=dataset.id,
            commitment=commitment,
            tx_id=tx_id,
            signature=signature,
        )

    # =========================================================
    # GENERATION
    # =========================================================

    def generate(self, request: Union[GenerationRequest, Dict[str, Any]]) -> GenerationResponse:
        """
        Run one generation request end to end

        Args:
            request: GenerationRequest or its JSON-like dict form

        Returns:
            GenerationResponse; ``secondary_failures`` lists any non-fatal
            writes that did not go through

        Raises:
            ValidationError: Malformed request (nothing written)
            NotFoundError: Referenced dataset does not exist
            StorageError: The Generation record could not be stored
        """
        if not isinstance(request, GenerationRequest):
            request = GenerationRequest.from_dict(request)

        is_valid, errors = RequestValidator.validate(request, self.config)
        if not is_valid:
            raise ValidationError("Invalid generation request", errors=errors,
                                  stage="validating", dataset_id=request.dataset_id)

        dataset = self.store.get_dataset(request.dataset_id)
        if dataset is None:
            raise NotFoundError("Dataset not found", stage="validating",
                                dataset_id=request.dataset_id)

        run = GenerationRun(request=request, dataset=dataset, rng=self._new_rng())
        logger.info(
            f"Generating {request.synthetic_rows} rows for dataset {dataset.id} "
            f"(quality={request.quality_mode}, format={request.output_format})"
        )

        try:
            self._classify(run)
            self._synthesize(run)
            self._filter(run)
            self._commit(run)
            self._persist(run)
        except SynthProofError as e:
            stage = run.stage
            run.fail()
            logger.error(f"Generation failed in stage {stage.value}: {e}")
            raise
        except Exception as e:
            stage = run.stage
            run.fail()
            logger.error(f"Generation failed unexpectedly in stage {stage.value}: {e}")
            raise

        return GenerationResponse(
            generation_id=run.generation.id,
            synthetic_data=run.filtered.table,
            quality_score=run.quality_score,
            tx_id=run.tx_id,
            proof_hash=run.proof_hash,
            synth_commitment=run.synth_commitment,
            columns_included=run.filtered.columns_included,
            sensitive_removed=run.filtered.sensitive_removed,
            secondary_failures=run.secondary_failures,
        )

    def _new_rng(self) -> np.random.Generator:
        return np.random.default_rng(self.config.generation.seed)

    def _classify(self, run: GenerationRun):
        if run.request.columns:
            run.columns = list(run.request.columns)
        else:
            run.columns = self.classifier.classify_or_fallback(run.request.headers)

        if not run.selected_columns:
            logger.warning(f"No columns selected for dataset {run.dataset.id}")

        run.advance(GenerationStage.SYNTHESIZING)

    def _synthesize(self, run: GenerationRun):
        synthesizer = ValueSynthesizer(self.config.synthesis, run.rng)
        rows = run.request.synthetic_rows

        table = SyntheticTable()
        for column in run.selected_columns:
            table.add_column(column.name, synthesizer.synthesize_column(column, rows))
        run.table = table

        run.advance(GenerationStage.FILTERING)

    def _filter(self, run: GenerationRun):
        request = run.request
        selected = run.selected_columns

        run.filtered = self.privacy.apply(
            selected,
            run.table,
            hide_sensitive=request.hide_sensitive,
            privacy_safe_ranges=request.privacy_safe_ranges,
        )

        if self.config.privacy.audit:
            report = self.audit.check(
                selected,
                run.filtered.table,
                expected_rows=request.synthetic_rows,
                hide_sensitive=request.hide_sensitive,
                privacy_safe_ranges=request.privacy_safe_ranges,
            )
            if not report.passed:
                raise ValidationError(
                    "Privacy audit failed",
                    errors=[f"{m.name}: {m.details}" for m in report.get_failures()],
                    stage="filtering",
                    dataset_id=run.dataset.id,
                )
            run.privacy_verified = True

        run.advance(GenerationStage.COMMITTING)

    def _commit(self, run: GenerationRun):
        request = run.request
        run.quality_score = self._quality_score(request.quality_mode, run.rng)

        if request.original_data_hash:
            run.dataset_commitment = self.engine.dataset_commitment(request.original_data_hash)
            if run.dataset_commitment != run.dataset.original_commitment:
                logger.warning(
                    f"Content hash for dataset {run.dataset.id} does not match "
                    f"the registered commitment"
                )
        else:
            run.dataset_commitment = run.dataset.original_commitment

        run.synth_commitment = self.engine.synth_commitment(run.filtered.table)
        run.params_hash = self.engine.params_hash(
            request.synthetic_rows, request.quality_mode, request.output_format
        )
        run.timestamp_ms = self.engine.now_ms()
        run.proof_hash = self.engine.proof_hash(
            run.synth_commitment, run.params_hash, timestamp_ms=run.timestamp_ms
        )
        run.tx_id = self.ledger.new_tx_id(TransactionType.GENERATE)

    def _quality_score(self, quality_mode: str, rng: np.random.Generator) -> int:
        quality = self.config.quality
        base = quality.base_scores.get(quality_mode)
        if base is None:
            logger.warning(f"Unknown quality mode '{quality_mode}', using {quality.default_score}")
            base = quality.default_score
        return int(base + rng.integers(0, quality.jitter))

    def _persist(self, run: GenerationRun):
        request = run.request
        filtered = run.filtered
        user_address = run.user_address

        run.generation = self._primary_write(
            "insert_generation",
            lambda: self.store.insert_generation({
                "dataset_id": run.dataset.id,
                "user_address": user_address,
                "synthetic_data": filtered.table,
                "quality_score": run.quality_score,
                "rows_generated": request.synthetic_rows,
                "columns_included": filtered.columns_included,
                "sensitive_removed": filtered.sensitive_removed,
                "output_format": request.output_format,
                "quality_mode": request.quality_mode,
                "synth_commitment": run.synth_commitment,
                "proof_hash": run.proof_hash,
                "tx_id": run.tx_id,
                "privacy_verified": run.privacy_verified,
                "synth_ready": True,
            }),
            stage=GenerationStage.COMMITTING.value,
        )
        generation_id = run.generation.id

        self._secondary_write(
            run.secondary_failures,
            "append_transaction",
            lambda: self.store.append_transaction(self.ledger.build(
                TransactionType.GENERATE,
                user_address,
                inputs={"commitment": run.dataset_commitment,
                        "rows": request.synthetic_rows,
                        "quality": request.quality_mode},
                outputs={"synth_commitment": run.synth_commitment,
                         "quality_score": run.quality_score},
                generation_id=generation_id,
                tx_id=run.tx_id,
            )),
        )

        network = self.config.network
        self._secondary_write(
            run.secondary_failures,
            "insert_proof",
            lambda: self.store.insert_proof({
                "generation_id": generation_id,
                "user_address": user_address,
                "dataset_commitment": run.dataset_commitment,
                "synth_commitment": run.synth_commitment,
                "params_hash": run.params_hash,
                "proof_hash": run.proof_hash,
                "quality_score": run.quality_score,
                "verified": False,
                "receipt_data": {
                    "dataset_id": run.dataset.id,
                    "timestamp": datetime.fromtimestamp(
                        run.timestamp_ms / 1000, tz=timezone.utc
                    ).isoformat(),
                    "params": {"rows": request.synthetic_rows,
                               "format": request.output_format,
                               "quality": request.quality_mode},
                    "network": network.network,
                    "program_id": network.program_id,
                },
            }),
        )

        self._secondary_write(
            run.secondary_failures,
            "update_dataset_status",
            lambda: self.store.update_dataset_status(run.dataset.id, DatasetStatus.GENERATED),
        )

        run.advance(GenerationStage.PERSISTED)

        if run.secondary_failures:
            logger.warning(
                f"Generation {generation_id} stored with "
                f"{len(run.secondary_failures)} failed secondary writes"
            )
        else:
            logger.info(f"Generation {generation_id} persisted (tx {run.tx_id})")

    # =========================================================
    # WRITE HELPERS
    # =========================================================

    def _primary_write(self, operation: str, write: Callable[[], Any], stage: str):
        """A write the caller cannot continue without"""
        try:
            return write()
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"{operation} failed: {e}", stage=stage) from e

    def _secondary_write(
        self,
        failures: List[SecondaryWriteFailure],
        operation: str,
        write: Callable[[], Any]
    ):
        """A best-effort write; failures are logged and collected, not raised"""
        try:
            write()
        except Exception as e:
            logger.warning(f"Secondary write {operation} failed: {e}")
            failures.append(SecondaryWriteFailure(operation=operation, error=str(e)))
