"""Submission of fully signed envelopes."""

from __future__ import annotations

import json
from typing import Protocol

from stellar_multisig.config import get_network
from stellar_multisig.errors import SubmissionError
from stellar_multisig.shared.logging import get_logger
from stellar_multisig.shared.network import (
    NetworkClient,
    NetworkError,
    RetryConfig,
    TimeoutConfig,
)

logger = get_logger(__name__)


class Submitter(Protocol):
    def submit(self, envelope_xdr: str, network: str) -> str: ...


def _extract_result_codes(response_text: str | None) -> dict | None:
    if not response_text:
        return None
    try:
        body = json.loads(response_text)
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    extras = body.get("extras") or {}
    codes = extras.get("result_codes") if isinstance(extras, dict) else None
    return codes if isinstance(codes, dict) else None


class HorizonSubmitter:
    """Posts envelopes to Horizon's ``/transactions`` endpoint."""

    def __init__(
        self,
        horizon_url: str | None = None,
        timeout_config: TimeoutConfig | None = None,
        retry_config: RetryConfig | None = None,
    ):
        self.horizon_url = horizon_url
        self.timeout_config = timeout_config
        # No automatic resubmission unless a retry config is passed in.
        self.retry_config = retry_config or RetryConfig(max_retries=0)

    def _client_for(self, network: str) -> NetworkClient:
        base_url = self.horizon_url or get_network(network).horizon_url
        return NetworkClient(
            base_url,
            timeout_config=self.timeout_config,
            retry_config=self.retry_config,
        )

    def submit(self, envelope_xdr: str, network: str) -> str:
        client = self._client_for(network)
        try:
            result = client.post(
                "/transactions",
                context="Submit transaction",
                data={"tx": envelope_xdr},
            )
        except NetworkError as e:
            result_codes = _extract_result_codes(e.response_text)
            logger.error(
                "Transaction submission failed: %s", result_codes or e.message
            )
            raise SubmissionError(
                message=e.message,
                result_codes=result_codes,
                status_code=e.status_code,
            ) from e

        tx_hash = result.get("hash") if isinstance(result, dict) else None
        if not tx_hash:
            raise SubmissionError(message="Horizon response did not include a hash")

        logger.info("Transaction submitted: %s", tx_hash)
        return tx_hash
