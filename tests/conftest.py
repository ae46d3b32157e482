from typing import Callable

import pytest
from stellar_sdk import (
    Account,
    Asset,
    Keypair,
    Network,
    TransactionBuilder,
    TransactionEnvelope,
)
from stellar_sdk import Signer as SdkSigner

from stellar_multisig.features.weights.ledger import (
    AccountConfiguration,
    Signer,
    SignerKind,
    ThresholdPolicy,
)

TESTNET = Network.TESTNET_NETWORK_PASSPHRASE


@pytest.fixture
def passphrase():
    """Fixture providing the testnet network passphrase"""
    return TESTNET


@pytest.fixture
def source_keypair():
    """Fixture providing the multisig account's own keypair"""
    return Keypair.random()


@pytest.fixture
def signer_a():
    return Keypair.random()


@pytest.fixture
def signer_b():
    return Keypair.random()


@pytest.fixture
def signer_c():
    return Keypair.random()


@pytest.fixture
def destination():
    return Keypair.random().public_key


@pytest.fixture
def build_envelope(source_keypair, destination) -> Callable[..., TransactionEnvelope]:
    """Factory building an unsigned payment envelope from the source account."""

    def _build(operations: int = 1, sequence: int = 1) -> TransactionEnvelope:
        builder = TransactionBuilder(
            source_account=Account(source_keypair.public_key, sequence),
            network_passphrase=TESTNET,
            base_fee=100,
        )
        for _ in range(operations):
            builder.append_payment_op(
                destination=destination, asset=Asset.native(), amount="10"
            )
        return builder.set_timeout(300).build()

    return _build


@pytest.fixture
def payment_xdr(build_envelope):
    return build_envelope().to_xdr()


@pytest.fixture
def set_options_xdr(source_keypair, signer_c):
    """Envelope adding a signer, which needs the high threshold."""
    builder = TransactionBuilder(
        source_account=Account(source_keypair.public_key, 1),
        network_passphrase=TESTNET,
        base_fee=100,
    )
    builder.append_set_options_op(
        signer=SdkSigner.ed25519_public_key(signer_c.public_key, 1)
    )
    return builder.set_timeout(300).build().to_xdr()


@pytest.fixture
def sign_xdr() -> Callable[[str, Keypair], str]:
    """Sign an envelope copy the way an independent device would."""

    def _sign(xdr: str, keypair: Keypair) -> str:
        envelope = TransactionEnvelope.from_xdr(xdr, TESTNET)
        envelope.sign(keypair)
        return envelope.to_xdr()

    return _sign


@pytest.fixture
def device_for(sign_xdr):
    """Factory of signing-device callables returning ``(signed_xdr, identity)``."""

    def _device(keypair: Keypair, answer_as: str | None = None):
        def _sign(xdr: str) -> tuple[str, str]:
            return sign_xdr(xdr, keypair), answer_as or keypair.public_key

        return _sign

    return _device


@pytest.fixture
def weighted_signers(signer_a, signer_b, signer_c):
    """A weight 2, B weight 1, C weight 1."""
    return (
        Signer(identity=signer_a.public_key, weight=2),
        Signer(identity=signer_b.public_key, weight=1),
        Signer(identity=signer_c.public_key, weight=1),
    )


@pytest.fixture
def account_configuration(source_keypair, weighted_signers):
    return AccountConfiguration(
        account_id=source_keypair.public_key,
        policy=ThresholdPolicy(low=1, medium=2, high=3),
        signers=(
            Signer(
                identity=source_keypair.public_key,
                weight=0,
                kind=SignerKind.CURRENT_ACCOUNT,
            ),
            *weighted_signers,
        ),
    )
