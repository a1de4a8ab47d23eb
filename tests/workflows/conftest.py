"""Shared fixtures for workflow tests: a VaultContext with mocked clients."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from sealvault_cli.config import SealVaultConfig
from sealvault_cli.context import VaultContext
from sealvault_cli.services.network import get_network_config
from sealvault_cli.services.seal import SessionCredential, TransactionResult
from sealvault_cli.services.wallet import encode_sui_private_key, load_wallet

PACKAGE_ID = "0x" + "11" * 32


@pytest.fixture
def wallet():
    return load_wallet(encode_sui_private_key(bytes(range(32))))


@pytest.fixture
def ctx(tmp_path, wallet):
    """A context whose Sui, Walrus, Seal and allowlist clients are mocks."""
    config = SealVaultConfig(output_dir=tmp_path / "walrus", secret_key_path=tmp_path / "secret-key.txt")
    config.seal.package_id = PACKAGE_ID
    network = get_network_config("testnet")

    walrus = MagicMock()
    walrus.store = AsyncMock()
    walrus.read = AsyncMock()
    walrus.blob_url = lambda blob_id: f"https://agg.example/v1/blobs/{blob_id}"

    sui = MagicMock()
    sui.get_object = AsyncMock()

    context = VaultContext(
        config=config,
        network=network,
        wallet=wallet,
        sui=sui,
        walrus=walrus,
        bridge=MagicMock(),
    )

    seal = MagicMock()
    seal.encrypt = AsyncMock(return_value=b"\x00" * 100)
    seal.create_session = AsyncMock(
        return_value=SessionCredential("session-1", wallet.address, PACKAGE_ID, 10)
    )
    seal.build_approval = AsyncMock(return_value=b"approve-tx")
    seal.decrypt = AsyncMock(return_value=b"plaintext")

    allowlists = MagicMock()
    allowlists.list_caps = AsyncMock(return_value=[])
    allowlists.find_cap = AsyncMock()
    allowlists.summarize_caps = AsyncMock(return_value=[])
    allowlists.publish_blob = AsyncMock(return_value=TransactionResult("PublishDigest", "success"))

    # cached_property values live in the instance dict
    context.seal = seal
    context.allowlists = allowlists
    return context


def uleb(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


@pytest.fixture
def encrypted_object():
    """Factory for a minimal BCS encrypted object around an identifier."""
    def build(identifier: bytes) -> bytes:
        out = bytearray([0])
        out += bytes.fromhex(PACKAGE_ID[2:])
        out += uleb(len(identifier)) + identifier
        out += uleb(2)
        out += bytes([0x73] * 32) + bytes([1])
        out += bytes([0xF5] * 32) + bytes([2])
        out.append(2)
        out += uleb(0) + bytes(96)
        out += uleb(2) + bytes(64)
        out += bytes(32)
        blob = b"\x42" * 48
        out += uleb(0) + uleb(len(blob)) + blob + b"\x00"
        return bytes(out)

    return build
