"""Fetch blobs from Walrus and decrypt them with Seal."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sealvault_cli.cli.error_handler import ValidationError
from sealvault_cli.context import VaultContext
from sealvault_cli.identity.binder import (
    ADDRESS_LENGTH,
    BindingVariant,
    decode_hex,
    is_valid_sui_address,
)
from sealvault_cli.identity.envelope import EncryptedObjectHeader, parse_encrypted_object
from sealvault_cli.records import save_decrypted_hex, save_encrypted

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Approval:
    """Which ``seal_approve`` to call for an identifier.

    ``policy_object`` is None for address-bound identifiers.
    """

    variant: BindingVariant
    policy_object: Optional[str] = None


@dataclass
class FetchOutcome:
    blob_id: str
    data: bytes
    path: Path


@dataclass
class DecryptOutcome:
    blob_id: str
    header: EncryptedObjectHeader
    approval: Approval
    plaintext: bytes
    path: Path


def choose_approval(
    identifier: bytes,
    wallet_address: str,
    policy_id: Optional[str] = None,
) -> Approval:
    """Decide how an identifier is bound.

    An explicit ``policy_id`` always means policy-bound. Otherwise the
    identifier is address-bound when its prefix is the wallet address, and
    policy-bound with the prefix as the allowlist id when it is not.

    Raises:
        ValidationError: If there is no explicit policy and the identifier
            is too short to carry a principal
    """
    if policy_id:
        if not is_valid_sui_address(policy_id):
            raise ValidationError(f"Invalid allowlist ID: {policy_id}")
        return Approval(BindingVariant.POLICY, policy_id)

    if len(identifier) < ADDRESS_LENGTH:
        raise ValidationError(
            f"Identifier is {len(identifier)} bytes, too short to name a principal",
            details={"identifier": identifier.hex()},
        )

    prefix = identifier[:ADDRESS_LENGTH]
    if prefix == decode_hex(wallet_address, "wallet_address"):
        return Approval(BindingVariant.ADDRESS)
    return Approval(BindingVariant.POLICY, "0x" + prefix.hex())


async def fetch_encrypted(
    ctx: VaultContext,
    blob_id: str,
    output_dir: Optional[Path] = None,
) -> FetchOutcome:
    """Download a blob without decrypting it."""
    data = await ctx.walrus.read(blob_id)
    path = save_encrypted(Path(output_dir or ctx.config.output_dir), blob_id, data)
    logger.info(f"Encrypted blob saved to: {path}")
    return FetchOutcome(blob_id=blob_id, data=data, path=path)


async def download_and_decrypt(
    ctx: VaultContext,
    blob_id: str,
    policy_id: Optional[str] = None,
    output_dir: Optional[Path] = None,
) -> DecryptOutcome:
    """Download a blob, recover its identifier and decrypt it.

    Raises:
        BlobNotFoundError: If no aggregator has the blob
        InvalidEncryptedObjectFormat: If the blob is not a Seal object
        AccessDeniedError: If the policy refuses the wallet
        EncryptionError: For other decryption failures
    """
    encrypted = await ctx.walrus.read(blob_id)
    header = parse_encrypted_object(encrypted)
    logger.info(f"Extracted encryption ID: {header.id_hex}")

    approval = choose_approval(header.id, ctx.wallet.address, policy_id)
    seal_config = ctx.config.seal
    if approval.variant is BindingVariant.ADDRESS:
        module = seal_config.private_data_module
    else:
        module = seal_config.allowlist_module
    logger.info(f"Approving as {approval.variant.value}-bound via {module}::seal_approve")

    session = await ctx.seal.create_session()
    tx_bytes = await ctx.seal.build_approval(module, header.id, approval.policy_object)
    plaintext = await ctx.seal.decrypt(encrypted, tx_bytes, session)
    logger.info(f"Decrypted successfully: {len(plaintext)} bytes")

    path = save_decrypted_hex(Path(output_dir or ctx.config.output_dir), blob_id, plaintext)
    return DecryptOutcome(
        blob_id=blob_id,
        header=header,
        approval=approval,
        plaintext=plaintext,
        path=path,
    )
