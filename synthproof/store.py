"""
Content Store

Durable records for datasets, generations, proofs and transactions. The
pipeline only talks to the ``ContentStore`` interface; two implementations
are provided:
- InMemoryContentStore: process-local, used by tests and the HTTP service
- JsonFileContentStore: one JSON file per table under a runtime directory,
  used by the CLI so state survives between invocations

Individual operations are serialized; there are no cross-table transactions.
"""

import json
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .config import StorageConfig
from .exceptions import NotFoundError, StorageError
from .ledger import now_iso
from .models import (
    Dataset,
    DatasetStatus,
    Generation,
    GenerationJoin,
    Proof,
    TransactionRecord,
)

logger = logging.getLogger(__name__)


class ContentStore(ABC):
    """Interface of the persistence collaborator"""

    @abstractmethod
    def insert_dataset(self, fields: Dict[str, Any]) -> Dataset:
        pass

    @abstractmethod
    def get_dataset(self, dataset_id: str) -> Optional[Dataset]:
        pass

    @abstractmethod
    def update_dataset_status(self, dataset_id: str, status: DatasetStatus) -> Dataset:
        pass

    @abstractmethod
    def insert_generation(self, fields: Dict[str, Any]) -> Generation:
        pass

    @abstractmethod
    def get_generation(self, generation_id: str) -> Optional[Generation]:
        pass

    @abstractmethod
    def insert_proof(self, fields: Dict[str, Any]) -> Proof:
        pass

    @abstractmethod
    def get_proof_by_generation(self, generation_id: str) -> Optional[Proof]:
        pass

    @abstractmethod
    def mark_proof_verified(self, proof_id: str) -> Proof:
        pass

    @abstractmethod
    def append_transaction(self, fields: Dict[str, Any]) -> TransactionRecord:
        pass

    @abstractmethod
    def list_transactions(self, generation_id: str) -> List[TransactionRecord]:
        pass

    def get_generation_with_joins(self, generation_id: str) -> Optional[GenerationJoin]:
        """Generation plus its dataset, proof and transactions (None if absent)"""
        generation = self.get_generation(generation_id)
        if generation is None:
            return None

        return GenerationJoin(
            generation=generation,
            dataset=self.get_dataset(generation.dataset_id),
            proof=self.get_proof_by_generation(generation_id),
            transactions=self.list_transactions(generation_id),
        )


class InMemoryContentStore(ContentStore):
    """Dict-backed store guarded by a single lock"""

    def __init__(self):
        self._lock = threading.Lock()
        self.datasets: Dict[str, Dataset] = {}
        self.generations: Dict[str, Generation] = {}
        self.proofs: Dict[str, Proof] = {}
        self.transactions: List[TransactionRecord] = []

    def _build(self, record_type, fields: Dict[str, Any], timestamps: List[str]):
        values = deepcopy(dict(fields))
        values["id"] = str(uuid.uuid4())
        now = now_iso()
        for name in timestamps:
            values[name] = now
        try:
            return record_type(**values)
        except TypeError as e:
            raise StorageError(
                f"Invalid {record_type.__name__} fields: {e}", stage="persisting"
            )

    def _committed(self, table: str):
        """Hook called after every successful mutation of a table"""

    def _put(self, table: str, record):
        # Caller holds the lock. A failed commit leaves no trace of the record.
        container = getattr(self, table)
        if isinstance(container, list):
            container.append(record)
        else:
            container[record.id] = record
        try:
            self._committed(table)
        except StorageError:
            if isinstance(container, list):
                container.pop()
            else:
                del container[record.id]
            raise

    # ------------------------------------------------------------------
    # Datasets
    # ------------------------------------------------------------------

    def insert_dataset(self, fields: Dict[str, Any]) -> Dataset:
        dataset = self._build(Dataset, fields, ["created_at", "updated_at"])
        with self._lock:
            self._put("datasets", dataset)
        logger.debug(f"Inserted dataset {dataset.id}")
        return deepcopy(dataset)

    def get_dataset(self, dataset_id: str) -> Optional[Dataset]:
        with self._lock:
            dataset = self.datasets.get(dataset_id)
            return deepcopy(dataset) if dataset else None

    def update_dataset_status(self, dataset_id: str, status: DatasetStatus) -> Dataset:
        with self._lock:
            dataset = self.datasets.get(dataset_id)
            if dataset is None:
                raise NotFoundError("Dataset not found", stage="persisting", dataset_id=dataset_id)
            previous = (dataset.status, dataset.updated_at)
            dataset.status = status
            dataset.updated_at = now_iso()
            try:
                self._committed("datasets")
            except StorageError:
                dataset.status, dataset.updated_at = previous
                raise
            return deepcopy(dataset)

    # ------------------------------------------------------------------
    # Generations
    # ------------------------------------------------------------------

    def insert_generation(self, fields: Dict[str, Any]) -> Generation:
        generation = self._build(Generation, fields, ["created_at"])
        with self._lock:
            self._put("generations", generation)
        logger.debug(f"Inserted generation {generation.id}")
        return deepcopy(generation)

    def get_generation(self, generation_id: str) -> Optional[Generation]:
        with self._lock:
            generation = self.generations.get(generation_id)
            return deepcopy(generation) if generation else None

    # ------------------------------------------------------------------
    # Proofs
    # ------------------------------------------------------------------

    def insert_proof(self, fields: Dict[str, Any]) -> Proof:
        proof = self._build(Proof, fields, ["created_at"])
        with self._lock:
            self._put("proofs", proof)
        return deepcopy(proof)

    def get_proof_by_generation(self, generation_id: str) -> Optional[Proof]:
        with self._lock:
            for proof in self.proofs.values():
                if proof.generation_id == generation_id:
                    return deepcopy(proof)
        return None

    def mark_proof_verified(self, proof_id: str) -> Proof:
        # Monotonic: a verified proof never reverts
        with self._lock:
            proof = self.proofs.get(proof_id)
            if proof is None:
                raise NotFoundError("Proof not found", stage="verifying", proof_id=proof_id)
            if not proof.verified:
                proof.verified = True
                try:
                    self._committed("proofs")
                except StorageError:
                    proof.verified = False
                    raise
            return deepcopy(proof)

    # ------------------------------------------------------------------
    # Transactions (append-only)
    # ------------------------------------------------------------------

    def append_transaction(self, fields: Dict[str, Any]) -> TransactionRecord:
        record = self._build(TransactionRecord, fields, ["created_at"])
        with self._lock:
            self._put("transactions", record)
        logger.debug(f"Appended {record.tx_type.value} transaction {record.tx_id}")
        return deepcopy(record)

    def list_transactions(self, generation_id: str) -> List[TransactionRecord]:
        with self._lock:
            return [
                deepcopy(tx) for tx in self.transactions
                if tx.generation_id == generation_id
            ]


class JsonFileContentStore(InMemoryContentStore):
    """
    In-memory store mirrored to ``<runtime_dir>/<table>.json``

    Each table file is rewritten in full after a mutation of that table.
    """

    TABLES = {
        "datasets": Dataset,
        "generations": Generation,
        "proofs": Proof,
        "transactions": TransactionRecord,
    }

    def __init__(self, runtime_dir: Union[str, Path]):
        super().__init__()
        self.runtime_dir = Path(runtime_dir)
        self.runtime_dir.mkdir(parents=True, exist_ok=True)
        self._load()

    def _path(self, table: str) -> Path:
        return self.runtime_dir / f"{table}.json"

    def _load(self):
        for table, record_type in self.TABLES.items():
            path = self._path(table)
            if not path.exists():
                continue
            try:
                with open(path, 'r') as f:
                    rows = json.load(f)
                records = [record_type.from_dict(row) for row in rows]
            except (OSError, ValueError, TypeError, KeyError) as e:
                raise StorageError(f"Failed to load {path}: {e}", stage="loading")

            if table == "transactions":
                self.transactions = records
            else:
                setattr(self, table, {r.id: r for r in records})

        logger.debug(
            f"Loaded store from {self.runtime_dir}: "
            f"{len(self.datasets)} datasets, {len(self.generations)} generations"
        )

    def _committed(self, table: str):
        container = getattr(self, table)
        records = container if isinstance(container, list) else list(container.values())
        path = self._path(table)
        try:
            with open(path, 'w') as f:
                json.dump([r.to_dict() for r in records], f, indent=2)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}", stage="persisting", table=table)


def build_store(config: Optional[StorageConfig] = None) -> ContentStore:
    """Create the content store selected by the storage configuration"""
    config = config or StorageConfig()

    if config.backend == "memory":
        return InMemoryContentStore()
    if config.backend == "json":
        return JsonFileContentStore(config.runtime_dir)

    raise StorageError(f"Unknown storage backend: {config.backend}", stage="loading")
