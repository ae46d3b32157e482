"""Runtime configuration for the coordinator.

Values come from explicit arguments or from ``STELLAR_MULTISIG_*``
environment variables. Nothing here is cached at module level; callers own
the config object they build.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from stellar_sdk import Network

from stellar_multisig.shared.logging import get_logger
from stellar_multisig.shared.network import RetryConfig, TimeoutConfig

logger = get_logger(__name__)

DEFAULT_MAX_CHUNK_SIZE = 800
DEFAULT_NETWORK = "testnet"


@dataclass(frozen=True)
class NetworkSettings:
    name: str
    passphrase: str
    horizon_url: str


NETWORKS: dict[str, NetworkSettings] = {
    "mainnet": NetworkSettings(
        name="mainnet",
        passphrase=Network.PUBLIC_NETWORK_PASSPHRASE,
        horizon_url="https://horizon.stellar.org",
    ),
    "testnet": NetworkSettings(
        name="testnet",
        passphrase=Network.TESTNET_NETWORK_PASSPHRASE,
        horizon_url="https://horizon-testnet.stellar.org",
    ),
}


def get_network(name: str) -> NetworkSettings:
    try:
        return NETWORKS[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown network '{name}'. Expected one of: {', '.join(NETWORKS)}"
        ) from None


@dataclass
class CoordinatorConfig:
    network: str = DEFAULT_NETWORK
    horizon_url: str | None = None
    max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE
    timeout_config: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry_config: RetryConfig = field(default_factory=RetryConfig)

    def __post_init__(self):
        get_network(self.network)
        if self.max_chunk_size < 1:
            raise ValueError("max_chunk_size must be at least 1")

    @property
    def network_settings(self) -> NetworkSettings:
        return get_network(self.network)

    @property
    def network_passphrase(self) -> str:
        return self.network_settings.passphrase

    @property
    def resolved_horizon_url(self) -> str:
        return self.horizon_url or self.network_settings.horizon_url

    @classmethod
    def from_environment(cls) -> "CoordinatorConfig":
        network = os.getenv("STELLAR_MULTISIG_NETWORK", DEFAULT_NETWORK).lower()
        if network not in NETWORKS:
            logger.warning(
                "Unknown network %s in environment, using %s", network, DEFAULT_NETWORK
            )
            network = DEFAULT_NETWORK

        raw_chunk_size = os.getenv("STELLAR_MULTISIG_MAX_CHUNK_SIZE", "")
        max_chunk_size = DEFAULT_MAX_CHUNK_SIZE
        if raw_chunk_size:
            try:
                max_chunk_size = int(raw_chunk_size)
            except ValueError:
                max_chunk_size = 0
            if max_chunk_size < 1:
                logger.warning(
                    "Invalid STELLAR_MULTISIG_MAX_CHUNK_SIZE=%s, using %d",
                    raw_chunk_size,
                    DEFAULT_MAX_CHUNK_SIZE,
                )
                max_chunk_size = DEFAULT_MAX_CHUNK_SIZE

        return cls(
            network=network,
            horizon_url=os.getenv("STELLAR_MULTISIG_HORIZON_URL") or None,
            max_chunk_size=max_chunk_size,
        )
