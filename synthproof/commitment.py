"""
Commitment Engine

Derives short deterministic commitments from strings and a time-salted proof
hash from a commitment and a parameter hash.

The default ``RollingDigester`` is the 31-multiplier rolling hash used by the
browser client to fingerprint uploads. It is NOT collision resistant and
gives no security guarantee; it only provides a deterministic
string -> fixed-width hex mapping. ``Sha256Digester`` is a drop-in
replacement behind the same interface.
"""

import hashlib
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Type

from .config import CommitmentConfig
from .exceptions import ConfigurationError
from .models import SyntheticTable

logger = logging.getLogger(__name__)


def rolling_hash(data: str) -> int:
    """
    Signed 32-bit rolling hash over UTF-16 code units

    h = h * 31 + unit, wrapped to a signed 32-bit integer after every step,
    matching JavaScript's ``(h << 5) - h + charCodeAt(i)`` folded with ``h & h``.
    """
    encoded = data.encode("utf-16-le", errors="surrogatepass")
    h = 0
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def fingerprint(content: str) -> str:
    """Unpadded hex fingerprint of raw upload content, as computed client side"""
    return format(abs(rolling_hash(content)), "x")


def _fit(hex_digest: str, width: int) -> str:
    """Left-pad with zeros, then truncate to width"""
    return hex_digest.rjust(width, "0")[:width]


class Digester(ABC):
    """Maps a string to a fixed-width lowercase hex digest"""

    name = "abstract"

    @abstractmethod
    def digest(self, data: str, width: int) -> str:
        raise NotImplementedError


class RollingDigester(Digester):
    name = "rolling"

    def digest(self, data: str, width: int) -> str:
        return _fit(format(abs(rolling_hash(data)), "x"), width)


class Sha256Digester(Digester):
    name = "sha256"

    def digest(self, data: str, width: int) -> str:
        return _fit(hashlib.sha256(data.encode("utf-8")).hexdigest(), width)


DIGESTERS: Dict[str, Type[Digester]] = {
    RollingDigester.name: RollingDigester,
    Sha256Digester.name: Sha256Digester,
}


def get_digester(name: str) -> Digester:
    try:
        return DIGESTERS[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown digest '{name}'. Available: {sorted(DIGESTERS)}", stage="committing"
        )


class CommitmentEngine:
    """
    Commitment and proof derivation

    Commitments are pure functions of their input. Proof hashes also mix in a
    millisecond timestamp, so two proofs over the same commitment and
    parameters differ unless the same timestamp is passed explicitly. This
    models the freshness nonce of an on-chain proof.
    """

    def __init__(
        self,
        config: Optional[CommitmentConfig] = None,
        digester: Optional[Digester] = None,
        clock: Callable[[], float] = time.time
    ):
        self.config = config or CommitmentConfig()
        self.digester = digester or get_digester(self.config.digest)
        self.clock = clock

    def commitment(self, data: str, label: str = "commitment") -> str:
        """
        Namespaced commitment of a string

        Args:
            data: Input to commit to
            label: Commitment kind embedded in the prefix

        Returns:
            e.g. 'aleo1commitment0000...'
        """
        prefix = f"{self.config.namespace}1{label}"
        return prefix + self.digester.digest(data, self.config.commitment_width)

    def dataset_commitment(self, original_hash: str) -> str:
        return self.commitment(original_hash, label="dataset")

    def synth_commitment(self, table: SyntheticTable) -> str:
        return self.commitment(table.canonical_json())

    def params_hash(self, rows: int, quality_mode: str, output_format: str) -> str:
        return self.commitment(f"{rows}:{quality_mode}:{output_format}")

    def now_ms(self) -> int:
        return int(self.clock() * 1000)

    def proof_hash(self, commitment: str, params: str, timestamp_ms: Optional[int] = None) -> str:
        """
        Time-salted proof hash

        Args:
            commitment: Synthetic output commitment
            params: Parameter hash
            timestamp_ms: Salt; the engine clock is used when omitted

        Returns:
            e.g. 'proof1000...'
        """
        if timestamp_ms is None:
            timestamp_ms = self.now_ms()
        combined = f"{commitment}{params}{timestamp_ms}"
        return self.config.proof_prefix + self.digester.digest(combined, self.config.proof_width)

    def payload_digest(self, payload: Dict[str, Any]) -> str:
        """Digest of a JSON payload, independent of key order"""
        canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
        return self.digester.digest(canonical, self.config.commitment_width)
