"""
Test Suite for Proof Verification

Tests commitment matching, the verify transaction and missing proofs
"""

import pytest

from synthproof.config import get_default_config
from synthproof.exceptions import NotFoundError, StorageError
from synthproof.models import TransactionType
from synthproof.service import build_service
from synthproof.store import InMemoryContentStore


class NoAppendStore(InMemoryContentStore):
    """Store whose transaction log rejects writes after setup"""

    locked = False

    def append_transaction(self, fields):
        if self.locked:
            raise StorageError("log offline", stage="verifying")
        return super().append_transaction(fields)


def generate(service):
    registration = service.register_dataset("aleo1user", "people.csv", "5e918d2", 2, 50)
    return service.generate({
        "dataset_id": registration.dataset_id,
        "columns": [
            {"name": "email", "kind": "sensitive"},
            {"name": "age", "kind": "numeric"},
        ],
        "privacy_safe_ranges": True,
        "synthetic_rows": 5,
    })


@pytest.fixture
def service():
    return build_service(get_default_config(), InMemoryContentStore())


class TestProofVerifier:
    """Test verification outcomes"""

    def test_matching_commitment(self, service):
        response = generate(service)
        result = service.verify(response.generation_id, response.synth_commitment)

        assert result.verified
        assert result.proof_hash == response.proof_hash
        assert result.quality_score == response.quality_score
        assert result.verification_tx_id.startswith("at1verify")
        assert result.receipt_data["params"] == {"rows": 5, "format": "csv", "quality": "balanced"}

        assert service.store.get_proof_by_generation(response.generation_id).verified
        transactions = service.store.list_transactions(response.generation_id)
        assert transactions[-1].tx_type == TransactionType.VERIFY
        assert transactions[-1].tx_id == result.verification_tx_id

    def test_mismatch_changes_nothing(self, service):
        response = generate(service)
        before = len(service.store.transactions)

        result = service.verify(response.generation_id, "aleo1commitment" + "0" * 32)

        assert not result.verified
        assert result.verification_tx_id is None
        assert result.proof_hash == response.proof_hash
        assert not service.store.get_proof_by_generation(response.generation_id).verified
        assert len(service.store.transactions) == before

    def test_verify_twice_stays_verified(self, service):
        response = generate(service)
        service.verify(response.generation_id, response.synth_commitment)
        service.verify(response.generation_id, "wrong")

        assert service.store.get_proof_by_generation(response.generation_id).verified

    def test_missing_proof(self, service):
        with pytest.raises(NotFoundError) as exc_info:
            service.verify("missing", "aleo1commitmentabc")

        assert exc_info.value.stage == "verifying"

    def test_transaction_failure_still_verifies(self):
        store = NoAppendStore()
        service = build_service(get_default_config(), store)
        response = generate(service)
        store.locked = True

        result = service.verify(response.generation_id, response.synth_commitment)

        assert result.verified
        assert store.get_proof_by_generation(response.generation_id).verified
        assert [tx.tx_type for tx in store.list_transactions(response.generation_id)] == [
            TransactionType.GENERATE
        ]
