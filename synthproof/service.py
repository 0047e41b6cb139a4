"""
Service facade

Wires configuration, content store, commitment engine and the pipeline
components together for the HTTP and command-line adapters.
"""

import logging
from typing import Any, Dict, Optional, Union

from .commitment import CommitmentEngine
from .config import Config, ConfigValidator, get_default_config
from .exceptions import ConfigurationError, NotFoundError
from .ledger import TransactionFactory
from .models import (
    Generation,
    GenerationRequest,
    GenerationResponse,
    RegistrationResult,
    VerificationResult,
)
from .orchestrator import SynthesisOrchestrator
from .receipt import ExportResult, ReceiptAssembler
from .signing import ClaimSigner
from .store import ContentStore, build_store
from .utils import FileHandler
from .verifier import ProofVerifier

logger = logging.getLogger(__name__)


class SynthesisService:
    """Single entry point over registration, generation, verification and export"""

    def __init__(self, config: Config, store: ContentStore):
        self.config = config
        self.store = store
        self.engine = CommitmentEngine(config.commitment)
        self.ledger = TransactionFactory(config.network, self.engine)

        self.orchestrator = SynthesisOrchestrator(config, store, self.engine, self.ledger)
        self.verifier = ProofVerifier(config, store, self.engine, self.ledger)
        self.receipts = ReceiptAssembler(config, store, self.engine, self.ledger)

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
        return self.orchestrator.register_dataset(
            user_address, filename, original_hash, column_count, row_count,
            dataset_type=dataset_type, signer=signer,
        )

    def generate(self, request: Union[GenerationRequest, Dict[str, Any]]) -> GenerationResponse:
        return self.orchestrator.generate(request)

    def verify(self, generation_id: str, claimed_commitment: str) -> VerificationResult:
        return self.verifier.verify(generation_id, claimed_commitment)

    def export(self, generation_id: str) -> ExportResult:
        return self.receipts.export(generation_id)

    def get_generation(self, generation_id: str) -> Generation:
        generation = self.store.get_generation(generation_id)
        if generation is None:
            raise NotFoundError("Generation not found", stage="loading",
                                generation_id=generation_id)
        return generation

    def download(self, generation_id: str, output_format: Optional[str] = None) -> str:
        """Render a stored synthetic table as CSV or JSON text"""
        generation = self.get_generation(generation_id)
        return FileHandler.render_table(
            generation.synthetic_data, output_format or generation.output_format
        )


def build_service(
    config: Optional[Config] = None,
    store: Optional[ContentStore] = None
) -> SynthesisService:
    """
    Validate configuration and build a service

    Args:
        config: Configuration (defaults if None)
        store: Content store (built from config.storage if None)

    Returns:
        SynthesisService

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    config = config or get_default_config()

    is_valid, errors = ConfigValidator.validate(config)
    if not is_valid:
        raise ConfigurationError(f"Invalid configuration: {'; '.join(errors)}", stage="loading")

    if store is None:
        store = build_store(config.storage)

    logger.info(f"Service ready (digest={config.commitment.digest}, "
                f"store={type(store).__name__})")
    return SynthesisService(config, store)
