"""Load an account's signer set and thresholds from Horizon."""

from __future__ import annotations

from typing import Any

from stellar_multisig.config import CoordinatorConfig
from stellar_multisig.features.weights.ledger import (
    AccountConfiguration,
    Signer,
    SignerKind,
    ThresholdPolicy,
)
from stellar_multisig.shared.logging import get_logger
from stellar_multisig.shared.network import NetworkClient, NetworkError
from stellar_multisig.shared.validation import PublicKeyValidator

logger = get_logger(__name__)


class AccountService:
    """Read-only access to account configuration; never mutates it."""

    def __init__(
        self,
        config: CoordinatorConfig | None = None,
        network_client: NetworkClient | None = None,
    ):
        self.config = config or CoordinatorConfig()
        self._network_client = network_client or NetworkClient(
            self.config.resolved_horizon_url,
            timeout_config=self.config.timeout_config,
            retry_config=self.config.retry_config,
        )

    @staticmethod
    def configuration_from_horizon(data: dict[str, Any]) -> AccountConfiguration:
        account_id = data.get("account_id") or data.get("id", "")
        thresholds = data.get("thresholds", {})
        policy = ThresholdPolicy(
            low=int(thresholds.get("low_threshold", 0)),
            medium=int(thresholds.get("med_threshold", 0)),
            high=int(thresholds.get("high_threshold", 0)),
        )
        signers = tuple(
            Signer(
                identity=entry["key"],
                weight=int(entry.get("weight", 0)),
                kind=SignerKind.CURRENT_ACCOUNT
                if entry["key"] == account_id
                else SignerKind.NORMAL,
            )
            for entry in data.get("signers", [])
            if entry.get("key")
        )
        return AccountConfiguration(account_id=account_id, policy=policy, signers=signers)

    def fetch_configuration(self, account_id: str) -> AccountConfiguration | None:
        """Fetch and validate the configuration; ``None`` if the account does not exist.

        Raises:
            ValueError: ``account_id`` is not a valid public key.
            PolicyViolationError: the on-ledger configuration can never be satisfied.
            NetworkError: Horizon could not be reached.
        """
        validation = PublicKeyValidator.validate(account_id)
        if not validation.is_valid:
            raise ValueError(validation.error_message)

        normalized = validation.normalized_value
        try:
            result = self._network_client.get_optional(
                f"/accounts/{normalized}",
                context="Fetch account configuration",
            )
        except NetworkError as e:
            logger.error("Failed to fetch account %s: %s", normalized, e.message)
            raise

        if result is None:
            logger.info("Account %s not found", normalized)
            return None

        parsed = self.configuration_from_horizon(result)
        return AccountConfiguration.build(
            account_id=parsed.account_id or normalized,
            policy=parsed.policy,
            signers=parsed.signers,
        )
