"""
Per-invocation context.

Every workflow receives a ``VaultContext`` holding the configuration,
the resolved network, the wallet and the service clients. It is built
once per command and closed when the command ends, so no client lives
in module state.

Usage:
    async with open_context(config) as ctx:
        await upload_address_bound(ctx, secret_path)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import cached_property
from typing import AsyncIterator, Optional

from sealvault_cli.cli.error_handler import ConfigurationError
from sealvault_cli.config import SealVaultConfig
from sealvault_cli.identity.binder import is_valid_sui_address
from sealvault_cli.js_runtime.manager import JSBridgeManager
from sealvault_cli.services.allowlist import AllowlistService
from sealvault_cli.services.network import NetworkConfig, resolve_network
from sealvault_cli.services.seal import SealService
from sealvault_cli.services.sui_client import SuiClient
from sealvault_cli.services.walrus import WalrusClient
from sealvault_cli.services.wallet import Wallet, load_wallet

logger = logging.getLogger(__name__)


class VaultContext:
    """Clients and settings shared by the steps of one workflow.

    The Seal and allowlist services are created on first use because they
    need ``PACKAGE_ID``, which a plain download does not.
    """

    def __init__(
        self,
        config: SealVaultConfig,
        network: NetworkConfig,
        wallet: Wallet,
        sui: SuiClient,
        walrus: WalrusClient,
        bridge: JSBridgeManager,
    ):
        self.config = config
        self.network = network
        self.wallet = wallet
        self.sui = sui
        self.walrus = walrus
        self.bridge = bridge

    @classmethod
    def create(
        cls,
        config: SealVaultConfig,
        bridge: Optional[JSBridgeManager] = None,
    ) -> VaultContext:
        """Build every client from configuration.

        Raises:
            ConfigurationError: If the private key is missing or invalid,
                or the network mode is unknown
        """
        try:
            network = resolve_network(config)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        wallet = load_wallet(config.wallet.private_key or "")
        logger.info(f"User Address: {wallet.address}")
        logger.info(f"Network: {network.mode.value}")

        if bridge is None:
            bridge = JSBridgeManager.from_settings(
                services_path=config.js_runtime.services_path,
                runtime_executable=config.js_runtime.runtime,
                startup_timeout=config.js_runtime.startup_timeout,
                request_timeout=config.js_runtime.request_timeout,
                max_retries=config.js_runtime.max_retries,
                debug=config.js_runtime.debug,
                env_vars={
                    "SEALVAULT_PRIVATE_KEY": wallet.encoded_private_key,
                    "SEALVAULT_FULLNODE_URL": network.fullnode_url,
                },
            )

        return cls(
            config=config,
            network=network,
            wallet=wallet,
            sui=SuiClient(network.fullnode_url),
            walrus=WalrusClient(
                network.walrus_publisher_url,
                network.walrus_aggregator_urls,
                read_timeout=config.walrus.request_timeout,
            ),
            bridge=bridge,
        )

    @property
    def package_id(self) -> str:
        """The Move package holding the access policies.

        Raises:
            ConfigurationError: If PACKAGE_ID is unset or malformed
        """
        package_id = self.config.seal.package_id
        if not package_id:
            raise ConfigurationError("PACKAGE_ID environment variable missing")
        if not is_valid_sui_address(package_id):
            raise ConfigurationError(f"PACKAGE_ID is not a Sui object id: {package_id}")
        return package_id

    @cached_property
    def seal(self) -> SealService:
        seal_config = self.config.seal
        if not self.network.key_server_ids:
            raise ConfigurationError(
                f"No Seal key servers configured for {self.network.mode.value}"
            )
        return SealService(
            manager=self.bridge,
            package_id=self.package_id,
            key_server_ids=self.network.key_server_ids,
            threshold=seal_config.threshold,
            fullnode_url=self.network.fullnode_url,
            network=self.network.mode.value,
            verify_key_servers=seal_config.verify_key_servers,
            session_ttl_min=seal_config.session_ttl_min,
            gas_budget=self.config.sui.gas_budget,
        )

    @cached_property
    def allowlists(self) -> AllowlistService:
        return AllowlistService(
            sui=self.sui,
            seal=self.seal,
            package_id=self.package_id,
            owner=self.wallet.address,
            module=self.config.seal.allowlist_module,
        )

    async def aclose(self) -> None:
        """Close HTTP clients and stop the JS runtime."""
        try:
            await self.walrus.close()
        finally:
            try:
                await self.sui.close()
            finally:
                await self.bridge.shutdown()


@asynccontextmanager
async def open_context(
    config: SealVaultConfig,
    bridge: Optional[JSBridgeManager] = None,
) -> AsyncIterator[VaultContext]:
    """Create a context and close it when the block exits."""
    ctx = VaultContext.create(config, bridge=bridge)
    try:
        yield ctx
    finally:
        await ctx.aclose()
