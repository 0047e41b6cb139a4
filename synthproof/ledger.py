"""
Transaction Ledger Helpers

Builds the simulated on-chain transaction records appended to the content
store for every pipeline action.
"""

import secrets
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from .commitment import CommitmentEngine
from .config import NetworkConfig
from .models import TransactionType

# (id infix, random hex length) per transaction type
TX_ID_FORMATS = {
    TransactionType.REGISTER: ("reg", 12),
    TransactionType.GENERATE: ("", 16),
    TransactionType.VERIFY: ("verify", 8),
    TransactionType.EXPORT: ("export", 8),
}


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class TransactionFactory:
    """Mints transaction ids and record fields for the content store"""

    def __init__(
        self,
        network: Optional[NetworkConfig] = None,
        engine: Optional[CommitmentEngine] = None,
        clock: Callable[[], float] = time.time
    ):
        self.network = network or NetworkConfig()
        self.engine = engine or CommitmentEngine()
        self.clock = clock

    def new_tx_id(self, tx_type: TransactionType) -> str:
        """
        Generate a transaction id

        Format: '<prefix><infix><hex millis><random hex>', e.g. 'at1verify18f...'
        """
        infix, rand_len = TX_ID_FORMATS[tx_type]
        millis = int(self.clock() * 1000)
        return f"{self.network.tx_prefix}{infix}{millis:x}{secrets.token_hex(rand_len // 2)}"

    def build(
        self,
        tx_type: TransactionType,
        user_address: str,
        inputs: Dict[str, Any],
        outputs: Dict[str, Any],
        generation_id: Optional[str] = None,
        tx_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Build the fields of a confirmed transaction record

        Args:
            tx_type: Pipeline action being recorded
            user_address: Address of the acting user
            inputs: Public inputs of the transition
            outputs: Public outputs of the transition
            generation_id: Generation the action belongs to, if any
            tx_id: Pre-minted id; a fresh one is generated when omitted

        Returns:
            Field dict accepted by ContentStore.append_transaction
        """
        now = self.clock()
        return {
            "tx_id": tx_id or self.new_tx_id(tx_type),
            "tx_type": tx_type,
            "user_address": user_address,
            "program_id": self.network.program_id,
            "function_name": tx_type.function_name,
            "generation_id": generation_id,
            "inputs": inputs,
            "outputs": outputs,
            "inputs_digest": self.engine.payload_digest(inputs),
            "outputs_digest": self.engine.payload_digest(outputs),
            "status": "confirmed",
            "block_height": int(now),
            "confirmed_at": datetime.fromtimestamp(now, tz=timezone.utc).isoformat(),
        }

    def explorer_url(self, tx_id: str) -> str:
        return self.network.explorer_url.format(tx_id=tx_id)
