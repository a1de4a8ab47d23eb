"""Clients for the external systems: Sui, Walrus, Seal and allowlists."""

from sealvault_cli.services.allowlist import (
    Allowlist,
    AllowlistService,
    Cap,
    CapSummary,
)
from sealvault_cli.services.network import (
    NetworkConfig,
    NetworkMode,
    get_available_networks,
    get_network_config,
    resolve_network,
)
from sealvault_cli.services.seal import (
    MoveArg,
    SealService,
    SessionCredential,
    TransactionResult,
)
from sealvault_cli.services.sui_client import SuiClient, SuiObject
from sealvault_cli.services.walrus import BlobInfo, WalrusClient
from sealvault_cli.services.wallet import Wallet, load_wallet

__all__ = [
    # Network
    "NetworkConfig",
    "NetworkMode",
    "get_available_networks",
    "get_network_config",
    "resolve_network",
    # Ledger
    "SuiClient",
    "SuiObject",
    # Storage
    "BlobInfo",
    "WalrusClient",
    # Wallet
    "Wallet",
    "load_wallet",
    # Seal
    "MoveArg",
    "SealService",
    "SessionCredential",
    "TransactionResult",
    # Allowlist
    "Allowlist",
    "AllowlistService",
    "Cap",
    "CapSummary",
]
