"""Tests for the per-invocation VaultContext."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from sealvault_cli.cli.error_handler import ConfigurationError
from sealvault_cli.config import SealVaultConfig
from sealvault_cli.context import VaultContext, open_context
from sealvault_cli.services.network import NetworkMode
from sealvault_cli.services.seal import SealService
from sealvault_cli.services.wallet import encode_sui_private_key, load_wallet

TEST_PRIVATE_KEY = encode_sui_private_key(bytes(range(32)))
TEST_PACKAGE_ID = "0x" + "cd" * 32


def make_config(**seal_overrides) -> SealVaultConfig:
    config = SealVaultConfig()
    config.wallet.private_key = TEST_PRIVATE_KEY
    config.seal.package_id = TEST_PACKAGE_ID
    for key, value in seal_overrides.items():
        setattr(config.seal, key, value)
    return config


class TestCreate:
    """Test VaultContext.create."""

    def test_builds_clients_from_config(self) -> None:
        bridge = MagicMock()
        ctx = VaultContext.create(make_config(), bridge=bridge)

        assert ctx.bridge is bridge
        assert ctx.network.mode == NetworkMode.TESTNET
        assert ctx.wallet.address == load_wallet(TEST_PRIVATE_KEY).address
        assert ctx.package_id == TEST_PACKAGE_ID

    def test_missing_private_key(self) -> None:
        config = make_config()
        config.wallet.private_key = None
        with pytest.raises(ConfigurationError, match="PRIVATE_KEY"):
            VaultContext.create(config, bridge=MagicMock())

    def test_unknown_network_mode(self) -> None:
        config = make_config()
        config.sui.network_mode = "localnet-9"
        with pytest.raises(ConfigurationError):
            VaultContext.create(config, bridge=MagicMock())


class TestPackageId:
    """Test the package_id property."""

    def test_missing(self) -> None:
        ctx = VaultContext.create(make_config(package_id=None), bridge=MagicMock())
        with pytest.raises(ConfigurationError, match="PACKAGE_ID environment variable missing"):
            _ = ctx.package_id

    def test_malformed(self) -> None:
        ctx = VaultContext.create(make_config(package_id="0x1234"), bridge=MagicMock())
        with pytest.raises(ConfigurationError, match="not a Sui object id"):
            _ = ctx.package_id


class TestLazyServices:
    """Seal and allowlist services are built on first use."""

    def test_seal_is_built_once(self) -> None:
        ctx = VaultContext.create(make_config(threshold=1), bridge=MagicMock())
        seal = ctx.seal
        assert isinstance(seal, SealService)
        assert ctx.seal is seal
        assert seal.threshold == 1
        assert seal.package_id == TEST_PACKAGE_ID

    def test_seal_without_key_servers(self) -> None:
        config = make_config()
        config.sui.network_mode = "mainnet"
        ctx = VaultContext.create(config, bridge=MagicMock())
        with pytest.raises(ConfigurationError, match="No Seal key servers"):
            _ = ctx.seal

    def test_allowlists_cap_type(self) -> None:
        ctx = VaultContext.create(make_config(), bridge=MagicMock())
        assert ctx.allowlists.cap_type == f"{TEST_PACKAGE_ID}::allowlist::Cap"


class TestOpenContext:
    """Test open_context cleanup."""

    @pytest.mark.asyncio
    async def test_closes_clients(self) -> None:
        bridge = MagicMock()
        bridge.shutdown = AsyncMock()
        async with open_context(make_config(), bridge=bridge) as ctx:
            ctx.walrus.close = AsyncMock()
            ctx.sui.close = AsyncMock()
        ctx.walrus.close.assert_awaited_once()
        ctx.sui.close.assert_awaited_once()
        bridge.shutdown.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_close_still_closes_the_rest(self) -> None:
        bridge = MagicMock()
        bridge.shutdown = AsyncMock()
        with pytest.raises(OSError, match="socket already closed"):
            async with open_context(make_config(), bridge=bridge) as ctx:
                ctx.walrus.close = AsyncMock(side_effect=OSError("socket already closed"))
                ctx.sui.close = AsyncMock()
        ctx.sui.close.assert_awaited_once()
        bridge.shutdown.assert_awaited_once()
