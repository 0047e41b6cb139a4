"""
Proof Verifier

Checks a claimed synthetic-output commitment against the proof stored for a
generation. A match marks the proof verified and is recorded as a ``verify``
transaction; a mismatch changes nothing.
"""

import logging
from typing import Optional

from .commitment import CommitmentEngine
from .config import Config, get_default_config
from .exceptions import NotFoundError
from .ledger import TransactionFactory
from .models import TransactionType, VerificationResult
from .store import ContentStore

logger = logging.getLogger(__name__)


class ProofVerifier:
    """Verifies stored proofs by exact commitment comparison"""

    def __init__(
        self,
        config: Optional[Config] = None,
        store: Optional[ContentStore] = None,
        engine: Optional[CommitmentEngine] = None,
        ledger: Optional[TransactionFactory] = None
    ):
        self.config = config or get_default_config()
        self.store = store
        self.engine = engine or CommitmentEngine(self.config.commitment)
        self.ledger = ledger or TransactionFactory(self.config.network, self.engine)

    def verify(self, generation_id: str, claimed_commitment: str) -> VerificationResult:
        """
        Verify a claimed commitment for a generation

        Args:
            generation_id: Generation whose proof is checked
            claimed_commitment: Synthetic-output commitment presented by the caller

        Returns:
            VerificationResult; ``verification_tx_id`` is None on mismatch

        Raises:
            NotFoundError: If no proof exists for the generation
        """
        proof = self.store.get_proof_by_generation(generation_id)
        if proof is None:
            raise NotFoundError("Proof not found", stage="verifying", generation_id=generation_id)

        verified = proof.synth_commitment == claimed_commitment

        if not verified:
            logger.info(f"Commitment mismatch for generation {generation_id}")
            return VerificationResult(
                verified=False,
                proof_hash=proof.proof_hash,
                quality_score=proof.quality_score,
                verification_tx_id=None,
                receipt_data=proof.receipt_data,
            )

        self.store.mark_proof_verified(proof.id)

        tx_id = self.ledger.new_tx_id(TransactionType.VERIFY)
        try:
            self.store.append_transaction(self.ledger.build(
                TransactionType.VERIFY,
                proof.user_address,
                inputs={"proof_hash": proof.proof_hash, "commitment": claimed_commitment},
                outputs={"verified": True, "quality_score": proof.quality_score},
                generation_id=generation_id,
                tx_id=tx_id,
            ))
        except Exception as e:
            logger.warning(f"Failed to record verify transaction {tx_id}: {e}")

        logger.info(f"Generation {generation_id} verified (tx {tx_id})")

        return VerificationResult(
            verified=True,
            proof_hash=proof.proof_hash,
            quality_score=proof.quality_score,
            verification_tx_id=tx_id,
            receipt_data=proof.receipt_data,
        )
