"""Decrypt a ``PrivateData`` object stored on Sui.

The object keeps the creator's address, the nonce and the encrypted
bytes, so the identifier can be recomputed without a results file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sealvault_cli.cli.error_handler import InvalidObjectError
from sealvault_cli.context import VaultContext
from sealvault_cli.identity.binder import EncryptionId

logger = logging.getLogger(__name__)


@dataclass
class PrivateDataRecord:
    object_id: str
    creator: str
    nonce: bytes
    data: bytes


@dataclass
class PrivateDataOutcome:
    record: PrivateDataRecord
    encryption_id: EncryptionId
    plaintext: bytes

    @property
    def text(self) -> str:
        return self.plaintext.decode("utf-8", errors="replace")


def _as_bytes(value: Any, name: str, object_id: str) -> bytes:
    if isinstance(value, list) and all(isinstance(b, int) and 0 <= b < 256 for b in value):
        return bytes(value)
    raise InvalidObjectError(
        f"PrivateData field '{name}' is not a byte vector",
        details={"object_id": object_id},
    )


async def load_private_data(ctx: VaultContext, object_id: str) -> PrivateDataRecord:
    """Read and validate a PrivateData object."""
    obj = await ctx.sui.get_object(object_id)
    creator = obj.fields.get("creator")
    if not isinstance(creator, str):
        raise InvalidObjectError(
            "Failed to get object details or invalid object type",
            details={"object_id": object_id},
        )
    return PrivateDataRecord(
        object_id=object_id,
        creator=creator,
        nonce=_as_bytes(obj.fields.get("nonce"), "nonce", object_id),
        data=_as_bytes(obj.fields.get("data"), "data", object_id),
    )


async def decrypt_private_data(ctx: VaultContext, object_id: str) -> PrivateDataOutcome:
    """Recompute the identifier from creator and nonce, then decrypt."""
    record = await load_private_data(ctx, object_id)
    logger.info(f"creator: {record.creator}, nonce (hex): {record.nonce.hex()}")
    logger.info(f"Encrypted data length: {len(record.data)} bytes")

    encryption_id = EncryptionId.address_bound(record.creator, nonce=record.nonce)
    logger.info(f"Computed Key ID (hex): {encryption_id.hex}")

    session = await ctx.seal.create_session()
    tx_bytes = await ctx.seal.build_approval(
        ctx.config.seal.private_data_module,
        encryption_id.value,
        policy_object=object_id,
    )
    plaintext = await ctx.seal.decrypt(record.data, tx_bytes, session)
    logger.info(f"Decryption successful: {len(plaintext)} bytes")
    return PrivateDataOutcome(record=record, encryption_id=encryption_id, plaintext=plaintext)
