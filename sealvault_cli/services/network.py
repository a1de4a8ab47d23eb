"""Sui / Walrus / Seal network presets.

One setting, ``sui.network_mode``, selects the full node, the Walrus
publisher and aggregators, the Seal key servers and the explorer used
for links. Individual values can be overridden in the configuration.

Usage:
    from sealvault_cli.config import load_config
    from sealvault_cli.services.network import resolve_network

    network = resolve_network(load_config())
    network.fullnode_url
    network.tx_url(digest)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from sealvault_cli.config import SealVaultConfig


class NetworkMode(str, Enum):
    """Sui network the tool talks to."""

    MAINNET = "mainnet"
    TESTNET = "testnet"

    @classmethod
    def from_string(cls, value: str) -> NetworkMode:
        """Parse network mode from string (case-insensitive)."""
        normalized = value.lower().strip()
        if normalized in ("mainnet", "main", "production", "prod"):
            return cls.MAINNET
        elif normalized in ("testnet", "test", "dev", "development"):
            return cls.TESTNET
        else:
            raise ValueError(f"Unknown network mode: {value}. Use 'mainnet' or 'testnet'.")


@dataclass(frozen=True)
class NetworkConfig:
    """Endpoints and key servers for one network.

    Attributes:
        mode: The network mode
        fullnode_url: Sui JSON-RPC endpoint
        walrus_publisher_url: Walrus publisher (None when there is no public one)
        walrus_aggregator_urls: Aggregators tried in order on read
        key_server_ids: Seal key server object ids
        explorer_url: SuiScan base URL for links
    """

    mode: NetworkMode
    fullnode_url: str
    walrus_publisher_url: Optional[str]
    walrus_aggregator_urls: tuple[str, ...]
    key_server_ids: tuple[str, ...]
    explorer_url: str

    @property
    def is_mainnet(self) -> bool:
        return self.mode == NetworkMode.MAINNET

    @property
    def is_testnet(self) -> bool:
        return self.mode == NetworkMode.TESTNET

    def tx_url(self, digest: str) -> str:
        """Explorer link for a transaction digest."""
        return f"{self.explorer_url}/txblock/{digest}"

    def object_url(self, object_id: str) -> str:
        """Explorer link for an object."""
        return f"{self.explorer_url}/object/{object_id}"

    def blob_url(self, blob_id: str) -> str:
        """Aggregator link for a blob, using the first aggregator."""
        return f"{self.walrus_aggregator_urls[0]}/v1/blobs/{blob_id}"


_NETWORK_PRESETS: dict[NetworkMode, NetworkConfig] = {
    NetworkMode.MAINNET: NetworkConfig(
        mode=NetworkMode.MAINNET,
        fullnode_url="https://fullnode.mainnet.sui.io:443",
        # Mainnet has no public publisher; run one and configure it
        walrus_publisher_url=None,
        walrus_aggregator_urls=("https://aggregator.walrus-mainnet.walrus.space",),
        # Mainnet key servers are permissioned; configure seal.key_server_ids
        key_server_ids=(),
        explorer_url="https://suiscan.xyz/mainnet",
    ),
    NetworkMode.TESTNET: NetworkConfig(
        mode=NetworkMode.TESTNET,
        fullnode_url="https://fullnode.testnet.sui.io:443",
        walrus_publisher_url="https://publisher.walrus-testnet.walrus.space",
        walrus_aggregator_urls=("https://aggregator.walrus-testnet.walrus.space",),
        key_server_ids=(
            "0x73d05d62c18d9374e3ea529e8e0ed6161da1a141a94d3f76ae3fe4e99356db75",
            "0xf5d14a81a982144ae441cd7d64b09027f116a468bd36e7eca494f750591623c8",
        ),
        explorer_url="https://suiscan.xyz/testnet",
    ),
}


def get_network_config(mode: str | NetworkMode) -> NetworkConfig:
    """Get the preset for a network mode.

    Raises:
        ValueError: If mode is not recognized
    """
    if isinstance(mode, str):
        mode = NetworkMode.from_string(mode)
    return _NETWORK_PRESETS[mode]


def resolve_network(config: SealVaultConfig) -> NetworkConfig:
    """Apply configuration overrides on top of the selected preset."""
    preset = get_network_config(config.sui.network_mode)
    overrides: dict = {}
    if config.sui.fullnode_url_override:
        overrides["fullnode_url"] = config.sui.fullnode_url_override.rstrip("/")
    if config.sui.explorer_url_override:
        overrides["explorer_url"] = config.sui.explorer_url_override.rstrip("/")
    if config.walrus.publisher_url:
        overrides["walrus_publisher_url"] = config.walrus.publisher_url.rstrip("/")
    if config.walrus.aggregator_urls:
        overrides["walrus_aggregator_urls"] = tuple(u.rstrip("/") for u in config.walrus.aggregator_urls)
    if config.seal.key_server_ids:
        overrides["key_server_ids"] = tuple(config.seal.key_server_ids)
    return replace(preset, **overrides) if overrides else preset


def get_available_networks() -> list[str]:
    """Get list of available network modes."""
    return [mode.value for mode in NetworkMode]
