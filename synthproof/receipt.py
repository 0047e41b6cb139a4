"""
Receipt Assembler

Projects a generation, its dataset, proof and transaction history into a
portable receipt a third party can check against the ledger. Exporting a
receipt is itself recorded as an ``export`` transaction.
"""

import json
import logging
from copy import deepcopy
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .commitment import CommitmentEngine
from .config import Config, get_default_config
from .exceptions import NotFoundError
from .ledger import TransactionFactory, now_iso
from .models import GenerationJoin, TransactionType
from .store import ContentStore

logger = logging.getLogger(__name__)

VERIFY_INSTRUCTIONS = "Use the {app_name} explorer link to verify this transaction on {network}"

SECTIONS = ("dataset", "generation", "privacy_proof", "verification")


def _freeze(section: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(deepcopy(dict(section)))


@dataclass(frozen=True)
class Receipt:
    """
    Read-only receipt; no field may be changed after assembly

    Sections are held as read-only mappings and the transaction list as a
    tuple of read-only mappings, so their contents are fixed as well.
    """
    receipt_id: str
    timestamp: str
    network: str
    program_id: str
    dataset: Mapping[str, Any] = field(default_factory=dict)
    generation: Mapping[str, Any] = field(default_factory=dict)
    privacy_proof: Mapping[str, Any] = field(default_factory=dict)
    transactions: Tuple[Mapping[str, Any], ...] = field(default_factory=tuple)
    verification: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        for name in SECTIONS:
            object.__setattr__(self, name, _freeze(getattr(self, name)))
        object.__setattr__(self, "transactions", tuple(_freeze(tx) for tx in self.transactions))

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "receipt_id": self.receipt_id,
            "timestamp": self.timestamp,
            "network": self.network,
            "program_id": self.program_id,
        }
        for name in SECTIONS:
            data[name] = deepcopy(dict(getattr(self, name)))
        data["transactions"] = [deepcopy(dict(tx)) for tx in self.transactions]
        return data

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


@dataclass
class ExportResult:
    receipt: Receipt
    export_tx_id: str


class ReceiptAssembler:
    """Builds receipts from stored generation records"""

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

    def assemble(self, joined: GenerationJoin) -> Receipt:
        """
        Build a receipt from a generation and its related records

        Args:
            joined: Generation with dataset, proof and transactions

        Returns:
            Receipt
        """
        generation = joined.generation
        dataset = joined.dataset
        proof = joined.proof
        network = self.config.network

        dataset_section = {}
        if dataset is not None:
            dataset_section = {
                "id": dataset.id,
                "filename": dataset.filename,
                "original_commitment": dataset.original_commitment,
                "column_count": dataset.column_count,
                "row_count": dataset.row_count,
                "dataset_type": dataset.dataset_type,
            }

        return Receipt(
            receipt_id=f"receipt_{generation.id[:8]}",
            timestamp=now_iso(),
            network=network.network,
            program_id=network.program_id,
            dataset=dataset_section,
            generation={
                "id": generation.id,
                "rows_generated": generation.rows_generated,
                "columns_included": generation.columns_included,
                "sensitive_removed": generation.sensitive_removed,
                "output_format": generation.output_format,
                "quality_mode": generation.quality_mode,
                "quality_score": generation.quality_score,
            },
            privacy_proof={
                "synth_commitment": generation.synth_commitment,
                "proof_hash": generation.proof_hash,
                "dataset_commitment": proof.dataset_commitment if proof else None,
                "params_hash": proof.params_hash if proof else None,
                "privacy_verified": generation.privacy_verified,
                "synth_ready": generation.synth_ready,
                "verified": proof.verified if proof else False,
            },
            transactions=[
                {
                    "tx_id": tx.tx_id,
                    "type": tx.tx_type.value,
                    "function": tx.function_name,
                    "status": tx.status,
                    "block_height": tx.block_height,
                    "confirmed_at": tx.confirmed_at,
                }
                for tx in joined.transactions
            ],
            verification={
                "can_verify": proof is not None,
                "verify_url": self.ledger.explorer_url(generation.tx_id),
                "instructions": VERIFY_INSTRUCTIONS.format(
                    app_name=network.app_name, network=network.network
                ),
            },
        )

    def export(self, generation_id: str) -> ExportResult:
        """
        Assemble the receipt for a generation and record the export

        Args:
            generation_id: Generation to export

        Returns:
            ExportResult with the receipt and the export transaction id

        Raises:
            NotFoundError: If the generation does not exist
        """
        joined = self.store.get_generation_with_joins(generation_id)
        if joined is None:
            raise NotFoundError("Generation not found", stage="exporting",
                                generation_id=generation_id)

        receipt = self.assemble(joined)

        export_tx_id = self.ledger.new_tx_id(TransactionType.EXPORT)
        try:
            self.store.append_transaction(self.ledger.build(
                TransactionType.EXPORT,
                joined.generation.user_address,
                inputs={"synth_commitment": joined.generation.synth_commitment},
                outputs={"receipt_id": receipt.receipt_id},
                generation_id=generation_id,
                tx_id=export_tx_id,
            ))
        except Exception as e:
            logger.warning(f"Failed to record export transaction {export_tx_id}: {e}")

        logger.info(f"Exported {receipt.receipt_id} for generation {generation_id}")
        return ExportResult(receipt=receipt, export_tx_id=export_tx_id)
