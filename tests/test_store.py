"""
Test Suite for Content Stores

Tests the in-memory store, the JSON file store and the ledger helpers
"""

import json

import pytest

from synthproof.config import NetworkConfig, StorageConfig
from synthproof.exceptions import NotFoundError, StorageError
from synthproof.ledger import TransactionFactory
from synthproof.models import DatasetStatus, NumericValue, SyntheticTable, TransactionType
from synthproof.store import (
    InMemoryContentStore,
    JsonFileContentStore,
    build_store,
)


def dataset_fields(**overrides):
    fields = {
        "user_address": "aleo1user",
        "original_commitment": "aleo1dataset" + "0" * 32,
        "filename": "people.csv",
        "column_count": 3,
        "row_count": 10,
    }
    fields.update(overrides)
    return fields


def generation_fields(dataset_id, **overrides):
    fields = {
        "dataset_id": dataset_id,
        "user_address": "aleo1user",
        "synthetic_data": SyntheticTable.from_plain({"age": ["20-30", "40-50"]}),
        "quality_score": 90,
        "rows_generated": 2,
        "columns_included": 1,
        "sensitive_removed": 1,
        "output_format": "csv",
        "quality_mode": "balanced",
        "synth_commitment": "aleo1commitmentabc",
        "proof_hash": "proof1abc",
        "tx_id": "at1abc",
    }
    fields.update(overrides)
    return fields


def proof_fields(generation_id):
    return {
        "generation_id": generation_id,
        "user_address": "aleo1user",
        "dataset_commitment": "aleo1datasetabc",
        "synth_commitment": "aleo1commitmentabc",
        "params_hash": "aleo1commitmentdef",
        "proof_hash": "proof1abc",
        "quality_score": 90,
    }


@pytest.fixture
def factory():
    return TransactionFactory(NetworkConfig())


class TestInMemoryContentStore:
    """Test record lifecycle in memory"""

    @pytest.fixture
    def store(self):
        return InMemoryContentStore()

    def test_insert_and_get_dataset(self, store):
        dataset = store.insert_dataset(dataset_fields())

        assert dataset.id
        assert dataset.created_at
        assert dataset.status == DatasetStatus.REGISTERED
        assert store.get_dataset(dataset.id) == dataset

    def test_missing_records(self, store):
        assert store.get_dataset("nope") is None
        assert store.get_generation("nope") is None
        assert store.get_proof_by_generation("nope") is None
        assert store.get_generation_with_joins("nope") is None

    def test_returned_records_are_copies(self, store):
        dataset = store.insert_dataset(dataset_fields())
        dataset.filename = "changed.csv"

        assert store.get_dataset(dataset.id).filename == "people.csv"

    def test_update_dataset_status(self, store):
        dataset = store.insert_dataset(dataset_fields())
        updated = store.update_dataset_status(dataset.id, DatasetStatus.GENERATED)

        assert updated.status == DatasetStatus.GENERATED
        assert store.get_dataset(dataset.id).status == DatasetStatus.GENERATED

    def test_update_missing_dataset(self, store):
        with pytest.raises(NotFoundError):
            store.update_dataset_status("nope", DatasetStatus.GENERATED)

    def test_invalid_fields_rejected(self, store):
        with pytest.raises(StorageError):
            store.insert_dataset({"filename": "x.csv"})
        assert store.datasets == {}

    def test_mark_proof_verified_monotonic(self, store):
        proof = store.insert_proof(proof_fields("gen-1"))
        assert not proof.verified

        assert store.mark_proof_verified(proof.id).verified
        assert store.mark_proof_verified(proof.id).verified
        assert store.get_proof_by_generation("gen-1").verified

    def test_mark_missing_proof(self, store):
        with pytest.raises(NotFoundError):
            store.mark_proof_verified("nope")

    def test_transactions_filtered_by_generation(self, store, factory):
        store.append_transaction(factory.build(TransactionType.REGISTER, "aleo1user", {}, {}))
        store.append_transaction(factory.build(TransactionType.GENERATE, "aleo1user", {}, {},
                                               generation_id="gen-1"))
        store.append_transaction(factory.build(TransactionType.VERIFY, "aleo1user", {}, {},
                                               generation_id="gen-1"))

        transactions = store.list_transactions("gen-1")
        assert [tx.tx_type for tx in transactions] == [TransactionType.GENERATE, TransactionType.VERIFY]
        assert len(store.transactions) == 3

    def test_generation_with_joins(self, store, factory):
        dataset = store.insert_dataset(dataset_fields())
        generation = store.insert_generation(generation_fields(dataset.id))
        store.insert_proof(proof_fields(generation.id))
        store.append_transaction(factory.build(TransactionType.GENERATE, "aleo1user", {}, {},
                                               generation_id=generation.id))

        joined = store.get_generation_with_joins(generation.id)

        assert joined.generation == generation
        assert joined.dataset == dataset
        assert joined.proof.generation_id == generation.id
        assert len(joined.transactions) == 1


class TestJsonFileContentStore:
    """Test persistence across store instances"""

    def test_records_survive_reload(self, tmp_path, factory):
        store = JsonFileContentStore(tmp_path)
        dataset = store.insert_dataset(dataset_fields())
        generation = store.insert_generation(generation_fields(dataset.id))
        proof = store.insert_proof(proof_fields(generation.id))
        store.mark_proof_verified(proof.id)
        store.append_transaction(factory.build(TransactionType.GENERATE, "aleo1user",
                                               {"rows": 2}, {"ok": True},
                                               generation_id=generation.id))

        reloaded = JsonFileContentStore(tmp_path)

        assert reloaded.get_dataset(dataset.id) == dataset
        assert reloaded.get_generation(generation.id).synthetic_data.to_plain() == {
            "age": ["20-30", "40-50"]
        }
        assert reloaded.get_proof_by_generation(generation.id).verified
        assert reloaded.list_transactions(generation.id)[0].tx_type == TransactionType.GENERATE

    def test_one_file_per_table(self, tmp_path):
        store = JsonFileContentStore(tmp_path)
        store.insert_dataset(dataset_fields())

        with open(tmp_path / "datasets.json") as f:
            rows = json.load(f)
        assert rows[0]["status"] == "registered"

    def test_corrupt_file(self, tmp_path):
        (tmp_path / "datasets.json").write_text("{not json")

        with pytest.raises(StorageError):
            JsonFileContentStore(tmp_path)


class TestBuildStore:
    """Test store selection"""

    def test_memory_backend(self):
        assert isinstance(build_store(StorageConfig(backend="memory")), InMemoryContentStore)

    def test_json_backend(self, tmp_path):
        store = build_store(StorageConfig(backend="json", runtime_dir=str(tmp_path / "rt")))

        assert isinstance(store, JsonFileContentStore)
        assert (tmp_path / "rt").is_dir()

    def test_unknown_backend(self):
        with pytest.raises(StorageError):
            build_store(StorageConfig(backend="postgres"))


class TestTransactionFactory:
    """Test transaction ids and record fields"""

    def test_tx_id_prefixes(self, factory):
        assert factory.new_tx_id(TransactionType.REGISTER).startswith("at1reg")
        assert factory.new_tx_id(TransactionType.VERIFY).startswith("at1verify")
        assert factory.new_tx_id(TransactionType.EXPORT).startswith("at1export")
        assert factory.new_tx_id(TransactionType.GENERATE).startswith("at1")

    def test_tx_id_layout(self):
        factory = TransactionFactory(NetworkConfig(), clock=lambda: 1700000000.0)
        tx_id = factory.new_tx_id(TransactionType.VERIFY)
        millis = format(1700000000000, "x")

        assert tx_id.startswith(f"at1verify{millis}")
        assert len(tx_id) == len(f"at1verify{millis}") + 8

    def test_tx_ids_unique(self, factory):
        ids = {factory.new_tx_id(TransactionType.GENERATE) for _ in range(50)}
        assert len(ids) == 50

    def test_build_fields(self):
        factory = TransactionFactory(NetworkConfig(), clock=lambda: 1700000000.5)
        fields = factory.build(TransactionType.EXPORT, "aleo1user",
                               {"synth_commitment": "c"}, {"receipt_id": "r"},
                               generation_id="gen-1", tx_id="at1exportx")

        assert fields["tx_id"] == "at1exportx"
        assert fields["function_name"] == "export_receipt"
        assert fields["program_id"] == "aleosynth.aleo"
        assert fields["block_height"] == 1700000000
        assert fields["status"] == "confirmed"
        assert fields["confirmed_at"].startswith("2023-11-14T22:13:20")
        assert len(fields["inputs_digest"]) == 32

    def test_explorer_url(self, factory):
        assert factory.explorer_url("at1abc") == "https://explorer.aleo.org/transaction/at1abc"


class TestRecordIsolation:
    """Test that stored records are detached from caller objects"""

    def test_inserted_table_detached(self):
        store = InMemoryContentStore()
        dataset = store.insert_dataset(dataset_fields())
        fields = generation_fields(dataset.id)
        generation = store.insert_generation(fields)

        fields["synthetic_data"].columns["age"][0] = NumericValue(999999)
        fields["synthetic_data"].add_column("extra", [NumericValue(1), NumericValue(1)])

        assert store.get_generation(generation.id).synthetic_data.to_plain() == {
            "age": ["20-30", "40-50"]
        }

    def test_inserted_payloads_detached(self, factory):
        store = InMemoryContentStore()
        inputs = {"rows": 2}
        store.append_transaction(factory.build(TransactionType.GENERATE, "aleo1user", inputs, {},
                                               generation_id="gen-1"))
        inputs["rows"] = 500

        assert store.list_transactions("gen-1")[0].inputs == {"rows": 2}


class UnwritableStore(JsonFileContentStore):
    """JSON store whose file writes start failing once ``broken`` is set"""

    broken = False

    def _committed(self, table):
        if self.broken:
            raise StorageError("disk full", stage="persisting", table=table)
        super()._committed(table)


class TestFailedUpdates:
    """Test that failed writes leave memory and disk in agreement"""

    def test_status_restored(self, tmp_path):
        store = UnwritableStore(tmp_path)
        dataset = store.insert_dataset(dataset_fields())
        store.broken = True

        with pytest.raises(StorageError):
            store.update_dataset_status(dataset.id, DatasetStatus.GENERATED)

        assert store.get_dataset(dataset.id) == dataset
        assert JsonFileContentStore(tmp_path).get_dataset(dataset.id).status == DatasetStatus.REGISTERED

    def test_verified_flag_restored(self, tmp_path):
        store = UnwritableStore(tmp_path)
        proof = store.insert_proof(proof_fields("gen-1"))
        store.broken = True

        with pytest.raises(StorageError):
            store.mark_proof_verified(proof.id)

        assert not store.get_proof_by_generation("gen-1").verified

    def test_failed_insert_not_kept(self, tmp_path):
        store = UnwritableStore(tmp_path)
        store.broken = True

        with pytest.raises(StorageError):
            store.insert_dataset(dataset_fields())

        assert store.datasets == {}
