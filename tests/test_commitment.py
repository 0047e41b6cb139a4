"""
Test Suite for the Commitment Engine

Tests digesters, commitments and time-salted proof hashes
"""

import hashlib

import pytest

from synthproof.commitment import (
    CommitmentEngine,
    RollingDigester,
    Sha256Digester,
    fingerprint,
    get_digester,
    rolling_hash,
)
from synthproof.config import CommitmentConfig
from synthproof.exceptions import ConfigurationError
from synthproof.models import SyntheticTable


class FixedClock:
    """Clock returning a settable time in seconds"""

    def __init__(self, now: float = 1700000000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRollingHash:
    """Test the 31-multiplier rolling hash"""

    def test_known_values(self):
        assert rolling_hash("") == 0
        assert rolling_hash("a") == 97
        assert rolling_hash("ab") == 97 * 31 + 98
        assert rolling_hash("hello") == 99162322

    def test_signed_overflow(self):
        assert rolling_hash("polygenelubricants") == -2147483648
        assert fingerprint("polygenelubricants") == "80000000"

    def test_utf16_code_units(self):
        # Surrogate pair hashes as two code units
        assert rolling_hash("\U0001F600") == 0xD83D * 31 + 0xDE00

    def test_fingerprint_unpadded(self):
        assert fingerprint("hello") == "5e918d2"
        assert fingerprint("") == "0"


class TestDigesters:
    """Test fixed-width digests"""

    def test_rolling_pads_to_width(self):
        assert RollingDigester().digest("a", 32) == "0" * 30 + "61"

    def test_rolling_truncates(self):
        assert RollingDigester().digest("hello", 4) == "5e91"

    def test_sha256_width(self):
        expected = hashlib.sha256(b"hello").hexdigest()
        assert Sha256Digester().digest("hello", 32) == expected[:32]
        assert Sha256Digester().digest("hello", 80) == expected.rjust(80, "0")

    def test_get_digester(self):
        assert isinstance(get_digester("rolling"), RollingDigester)
        assert isinstance(get_digester("sha256"), Sha256Digester)

    def test_unknown_digester(self):
        with pytest.raises(ConfigurationError):
            get_digester("md5")


class TestCommitmentEngine:
    """Test commitments and proof hashes"""

    @pytest.fixture
    def clock(self):
        return FixedClock()

    @pytest.fixture
    def engine(self, clock):
        return CommitmentEngine(CommitmentConfig(), clock=clock)

    def test_commitment_format(self, engine):
        commitment = engine.commitment("hello")

        assert commitment.startswith("aleo1commitment")
        assert len(commitment) == len("aleo1commitment") + 32
        assert commitment.endswith("5e918d2")

    def test_commitment_pure(self, engine):
        assert engine.commitment("x") == engine.commitment("x")

    def test_dataset_label(self, engine):
        assert engine.dataset_commitment("5e918d2").startswith("aleo1dataset")

    def test_params_hash(self, engine):
        assert engine.params_hash(100, "balanced", "csv") == engine.commitment("100:balanced:csv")

    def test_synth_commitment_ignores_column_order(self, engine):
        first = SyntheticTable.from_plain({"age": ["20-30"], "department": ["HR"]})
        second = SyntheticTable.from_plain({"department": ["HR"], "age": ["20-30"]})

        assert engine.synth_commitment(first) == engine.synth_commitment(second)

    def test_synth_commitment_sensitive_to_values(self, engine):
        first = SyntheticTable.from_plain({"age": ["20-30"]})
        second = SyntheticTable.from_plain({"age": ["30-40"]})

        assert engine.synth_commitment(first) != engine.synth_commitment(second)

    def test_proof_hash_format(self, engine):
        proof = engine.proof_hash("aleo1commitmentabc", "aleo1commitmentdef", timestamp_ms=1)

        assert proof.startswith("proof1")
        assert len(proof) == len("proof1") + 48

    def test_proof_hash_pure_given_timestamp(self, engine):
        args = ("aleo1commitmentabc", "aleo1commitmentdef")
        assert engine.proof_hash(*args, timestamp_ms=42) == engine.proof_hash(*args, timestamp_ms=42)

    def test_proof_hash_time_salted(self, engine, clock):
        args = ("aleo1commitmentabc", "aleo1commitmentdef")
        first = engine.proof_hash(*args)
        clock.now += 1.5
        second = engine.proof_hash(*args)

        assert first != second

    def test_proof_hash_uses_clock(self, engine, clock):
        args = ("c", "p")
        assert engine.proof_hash(*args) == engine.proof_hash(*args, timestamp_ms=int(clock.now * 1000))

    def test_payload_digest_key_order(self, engine):
        assert engine.payload_digest({"a": 1, "b": 2}) == engine.payload_digest({"b": 2, "a": 1})

    def test_sha256_engine(self):
        engine = CommitmentEngine(CommitmentConfig(digest="sha256"))
        expected = hashlib.sha256(b"hello").hexdigest()[:32]

        assert engine.commitment("hello") == "aleo1commitment" + expected

    def test_custom_digester(self):
        class ConstantDigester(RollingDigester):
            def digest(self, data, width):
                return "f" * width

        engine = CommitmentEngine(CommitmentConfig(), digester=ConstantDigester())
        assert engine.commitment("anything") == "aleo1commitment" + "f" * 32
