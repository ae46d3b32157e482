"""Tests for matching envelope signatures to signer identities."""

import pytest
from stellar_sdk import Keypair

from stellar_multisig.features.weights.ledger import EmbeddedSignature
from stellar_multisig.features.weights.matching import (
    signature_hint_for,
    signature_matches_signer,
)

TX_HASH = bytes(range(32))


@pytest.mark.unit
class TestSignatureHint:
    def test_hint_is_key_tail(self, signer_a):
        hint = signature_hint_for(signer_a.public_key)

        assert hint == signer_a.raw_public_key()[-4:]
        assert len(hint) == 4

    @pytest.mark.parametrize("identity", ["", "not-a-key", "G" + "A" * 55])
    def test_non_ed25519_identity(self, identity):
        assert signature_hint_for(identity) is None


@pytest.mark.unit
class TestSignatureMatchesSigner:
    def test_hint_match_without_hash(self, signer_a):
        signature = EmbeddedSignature(
            hint=signer_a.signature_hint(), signature=b"anything"
        )
        assert signature_matches_signer(signature, signer_a.public_key) is True

    def test_hint_mismatch(self, signer_a, signer_b):
        signature = EmbeddedSignature(
            hint=signer_b.signature_hint(), signature=signer_b.sign(TX_HASH)
        )
        assert signature_matches_signer(signature, signer_a.public_key, TX_HASH) is False

    def test_verified_signature(self, signer_a):
        signature = EmbeddedSignature(
            hint=signer_a.signature_hint(), signature=signer_a.sign(TX_HASH)
        )
        assert signature_matches_signer(signature, signer_a.public_key, TX_HASH) is True

    def test_forged_hint_fails_verification(self, signer_a):
        impostor = Keypair.random()
        forged = EmbeddedSignature(
            hint=signer_a.signature_hint(), signature=impostor.sign(TX_HASH)
        )

        assert signature_matches_signer(forged, signer_a.public_key) is True
        assert signature_matches_signer(forged, signer_a.public_key, TX_HASH) is False

    def test_signature_over_other_transaction(self, signer_a):
        signature = EmbeddedSignature(
            hint=signer_a.signature_hint(), signature=signer_a.sign(b"\xff" * 32)
        )
        assert signature_matches_signer(signature, signer_a.public_key, TX_HASH) is False

    def test_invalid_identity_never_matches(self, signer_a):
        signature = EmbeddedSignature(
            hint=signer_a.signature_hint(), signature=signer_a.sign(TX_HASH)
        )
        assert signature_matches_signer(signature, "GNOTAKEY") is False
