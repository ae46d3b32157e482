"""Tests for loading account configuration from Horizon."""

from unittest.mock import MagicMock

import pytest
from stellar_sdk import Keypair

from stellar_multisig.config import CoordinatorConfig
from stellar_multisig.errors import PolicyViolationError
from stellar_multisig.features.account.service import AccountService
from stellar_multisig.features.weights.ledger import SignerKind
from stellar_multisig.shared.network import NetworkError, NetworkErrorType


def _horizon_account(account_id, signers, low=1, med=2, high=3):
    return {
        "id": account_id,
        "account_id": account_id,
        "sequence": "123",
        "thresholds": {
            "low_threshold": low,
            "med_threshold": med,
            "high_threshold": high,
        },
        "signers": [
            {"key": key, "weight": weight, "type": "ed25519_public_key"}
            for key, weight in signers
        ],
    }


@pytest.fixture
def mock_client():
    return MagicMock()


@pytest.fixture
def account_service(mock_client):
    return AccountService(CoordinatorConfig(network="testnet"), network_client=mock_client)


class TestConfigurationFromHorizon:
    def test_parses_thresholds_and_signers(self, source_keypair, signer_a):
        data = _horizon_account(
            source_keypair.public_key,
            [(signer_a.public_key, 2), (source_keypair.public_key, 1)],
        )

        configuration = AccountService.configuration_from_horizon(data)

        assert configuration.account_id == source_keypair.public_key
        assert (configuration.policy.low, configuration.policy.medium) == (1, 2)
        assert configuration.policy.high == 3
        assert [s.weight for s in configuration.signers] == [2, 1]
        assert configuration.signers[0].kind == SignerKind.NORMAL
        assert configuration.signers[1].kind == SignerKind.CURRENT_ACCOUNT

    def test_missing_fields_default_to_zero(self, source_keypair):
        configuration = AccountService.configuration_from_horizon(
            {"id": source_keypair.public_key}
        )

        assert configuration.signers == ()
        assert configuration.policy.medium == 0


class TestFetchConfiguration:
    def test_fetches_account(
        self, account_service, mock_client, source_keypair, signer_a, signer_b
    ):
        mock_client.get_optional.return_value = _horizon_account(
            source_keypair.public_key,
            [
                (signer_a.public_key, 2),
                (signer_b.public_key, 1),
                (source_keypair.public_key, 0),
            ],
        )

        configuration = account_service.fetch_configuration(source_keypair.public_key)

        mock_client.get_optional.assert_called_once()
        endpoint = mock_client.get_optional.call_args[0][0]
        assert endpoint == f"/accounts/{source_keypair.public_key}"
        assert configuration.total_weight == 3
        assert configuration.signer_for(signer_a.public_key).weight == 2

    def test_missing_account_returns_none(
        self, account_service, mock_client, source_keypair
    ):
        mock_client.get_optional.return_value = None

        assert account_service.fetch_configuration(source_keypair.public_key) is None

    def test_unsatisfiable_configuration(
        self, account_service, mock_client, source_keypair
    ):
        mock_client.get_optional.return_value = _horizon_account(
            source_keypair.public_key, [(source_keypair.public_key, 1)], high=5, med=2
        )

        with pytest.raises(PolicyViolationError):
            account_service.fetch_configuration(source_keypair.public_key)

    @pytest.mark.parametrize("account_id", ["", "SABC", "G123"])
    def test_invalid_account_id(self, account_service, mock_client, account_id):
        with pytest.raises(ValueError):
            account_service.fetch_configuration(account_id)

        mock_client.get_optional.assert_not_called()

    def test_network_error_propagates(self, account_service, mock_client):
        mock_client.get_optional.side_effect = NetworkError(
            error_type=NetworkErrorType.TIMEOUT, message="Connection timeout"
        )

        with pytest.raises(NetworkError):
            account_service.fetch_configuration(Keypair.random().public_key)

    def test_default_client_uses_network_horizon(self):
        service = AccountService(CoordinatorConfig(network="mainnet"))

        assert service._network_client.base_url == "https://horizon.stellar.org"
