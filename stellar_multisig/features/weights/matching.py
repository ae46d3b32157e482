"""Match envelope signatures to configured signer identities.

Without the transaction hash the match compares the 4-byte signature hint
(the tail of the signer's raw Ed25519 key) and is only a UI heuristic: hints
collide and anyone can forge one. Pass ``transaction_hash`` to upgrade the
match to full Ed25519 verification.
"""

from __future__ import annotations

from stellar_sdk import Keypair, StrKey
from stellar_sdk.exceptions import BadSignatureError

from stellar_multisig.shared.logging import get_logger

logger = get_logger(__name__)


def _keypair_for(identity: str) -> Keypair | None:
    if not identity or not StrKey.is_valid_ed25519_public_key(identity):
        return None
    return Keypair.from_public_key(identity)


def signature_hint_for(identity: str) -> bytes | None:
    """Hint an Ed25519 signer stamps on its signatures, ``None`` for other key types."""
    keypair = _keypair_for(identity)
    if keypair is None:
        return None
    return keypair.signature_hint()


def signature_matches_signer(
    signature,
    identity: str,
    transaction_hash: bytes | None = None,
) -> bool:
    """Whether ``signature`` was plausibly produced by ``identity``.

    ``signature`` is anything with ``hint`` and ``signature`` bytes.
    """
    keypair = _keypair_for(identity)
    if keypair is None:
        return False

    if bytes(signature.hint) != keypair.signature_hint():
        return False

    if transaction_hash is None:
        return True

    try:
        keypair.verify(transaction_hash, bytes(signature.signature))
    except BadSignatureError:
        logger.warning(
            "Signature hint matches %s but verification failed", identity
        )
        return False
    return True
