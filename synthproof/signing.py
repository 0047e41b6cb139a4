"""
Claim signing

The wallet that attests to a dataset registration lives outside this
package. It is reached through the ``ClaimSigner`` interface.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

logger = logging.getLogger(__name__)


class ClaimSigner(ABC):
    """Signs an arbitrary message on behalf of the user"""

    @abstractmethod
    def sign(self, message: bytes) -> bytes:
        raise NotImplementedError


def registration_message(commitment: str, app_name: str = "AleoSynth") -> str:
    return f"{app_name} Dataset Registration: {commitment}"


def attest_dataset_commitment(
    signer: ClaimSigner,
    commitment: str,
    app_name: str = "AleoSynth"
) -> Optional[str]:
    """
    Ask the signer to attest to a dataset commitment

    Args:
        signer: Claim signing collaborator
        commitment: Dataset commitment being registered
        app_name: Application name embedded in the signed message

    Returns:
        Hex-encoded signature, or None if signing failed
    """
    message = registration_message(commitment, app_name).encode("utf-8")
    try:
        signature = signer.sign(message)
    except Exception as e:
        logger.error(f"Signing error for {commitment}: {e}")
        return None

    return signature.hex()
