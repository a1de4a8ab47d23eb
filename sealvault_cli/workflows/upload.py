"""Encrypt a secret and store it on Walrus.

Two variants, matching the two ways an identifier can be bound:

- address-bound: only the uploading wallet can decrypt
- policy-bound: every address on an allowlist can decrypt; the blob id
  is published to the allowlist after the store succeeds

Both write an ``UploadRecord`` into the output directory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from sealvault_cli.cli.error_handler import (
    LedgerError,
    NotFoundError,
    SealVaultError,
    ValidationError,
)
from sealvault_cli.context import VaultContext
from sealvault_cli.identity.binder import EncryptionId
from sealvault_cli.records import UploadRecord, read_or_create_secret, save_upload_record
from sealvault_cli.services.allowlist import Cap, CapSummary
from sealvault_cli.services.seal import TransactionResult
from sealvault_cli.services.walrus import BlobInfo

logger = logging.getLogger(__name__)

CapSelector = Callable[[Sequence[CapSummary]], Cap]


@dataclass
class UploadOutcome:
    """Everything an upload produced."""

    record: UploadRecord
    record_path: Path
    encryption_id: EncryptionId
    blob: BlobInfo
    encrypted_size: int
    cap: Optional[Cap] = None
    publish_tx: Optional[TransactionResult] = None


async def _encrypt_and_store(
    ctx: VaultContext,
    encryption_id: EncryptionId,
    secret: bytes,
    epochs: Optional[int],
) -> tuple[BlobInfo, int]:
    logger.info(f"Encryption ID (hex): {encryption_id.hex}")
    logger.info(f"Nonce (hex): {encryption_id.nonce.hex()}")

    encrypted = await ctx.seal.encrypt(encryption_id.value, secret)
    blob = await ctx.walrus.store(encrypted, epochs=epochs or ctx.config.walrus.epochs)
    return blob, len(encrypted)


def _build_record(
    ctx: VaultContext,
    secret_path: Path,
    encryption_id: EncryptionId,
    blob: BlobInfo,
    cap: Optional[Cap] = None,
) -> UploadRecord:
    return UploadRecord(
        secret_key_path=str(secret_path),
        blob_id=blob.blob_id,
        encryption_id=encryption_id.hex,
        end_epoch=blob.end_epoch,
        status=blob.status,
        sui_ref_type=blob.sui_ref_type,
        sui_ref=blob.sui_ref,
        walrus_aggregator_url=ctx.walrus.blob_url(blob.blob_id),
        sui_scan_url=ctx.network.object_url(blob.sui_ref),
        allowlist_id=cap.allowlist_id if cap else None,
        cap_id=cap.id if cap else None,
    )


async def upload_address_bound(
    ctx: VaultContext,
    secret_path: Optional[Path] = None,
    epochs: Optional[int] = None,
) -> UploadOutcome:
    """Encrypt the secret file for the wallet's own address and store it.

    The secret file holds hex; a fresh 32-byte key is generated when the
    file does not exist.
    """
    secret_path = Path(secret_path or ctx.config.secret_key_path)
    secret = read_or_create_secret(secret_path)

    encryption_id = EncryptionId.address_bound(ctx.wallet.address)
    blob, encrypted_size = await _encrypt_and_store(ctx, encryption_id, secret, epochs)

    record = _build_record(ctx, secret_path, encryption_id, blob)
    record_path = save_upload_record(ctx.config.output_dir, record)
    return UploadOutcome(
        record=record,
        record_path=record_path,
        encryption_id=encryption_id,
        blob=blob,
        encrypted_size=encrypted_size,
    )


async def choose_cap(
    ctx: VaultContext,
    allowlist_id: Optional[str] = None,
    selector: Optional[CapSelector] = None,
) -> Cap:
    """Pick the allowlist Cap to act with.

    An explicit ``allowlist_id`` selects its Cap. Otherwise a single Cap
    is used as is, and several are summarized concurrently and handed to
    ``selector``.

    Raises:
        NotFoundError: If the wallet owns no Cap, or none for ``allowlist_id``
        ValidationError: If several Caps exist and there is no selector
    """
    service = ctx.allowlists
    caps = await service.list_caps()
    if not caps:
        raise NotFoundError(
            f"No Cap objects found for address: {ctx.wallet.address}",
            details={"hint": "create an allowlist first"},
        )

    if allowlist_id:
        return await service.find_cap(allowlist_id, caps)

    if len(caps) == 1:
        logger.info(f"Using the only available Cap: {caps[0].id}")
        return caps[0]

    if selector is None:
        raise ValidationError(
            f"Found {len(caps)} Cap objects; specify an allowlist ID",
            details={"allowlists": ", ".join(c.allowlist_id for c in caps)},
        )
    summaries = await service.summarize_caps(caps)
    cap = selector(summaries)
    logger.info(f"Selected Cap {cap.id} for allowlist {cap.allowlist_id}")
    return cap


async def upload_policy_bound(
    ctx: VaultContext,
    secret_path: Optional[Path] = None,
    allowlist_id: Optional[str] = None,
    selector: Optional[CapSelector] = None,
    epochs: Optional[int] = None,
) -> UploadOutcome:
    """Encrypt the secret file for an allowlist, store it, and publish it."""
    secret_path = Path(secret_path or ctx.config.secret_key_path)
    secret = read_or_create_secret(secret_path)

    cap = await choose_cap(ctx, allowlist_id=allowlist_id, selector=selector)
    encryption_id = EncryptionId.policy_bound(cap.allowlist_id)
    blob, encrypted_size = await _encrypt_and_store(ctx, encryption_id, secret, epochs)

    # The blob is paid for now; keep its id even if publishing fails
    record = _build_record(ctx, secret_path, encryption_id, blob, cap=cap)
    record_path = save_upload_record(ctx.config.output_dir, record)

    try:
        publish_tx = await ctx.allowlists.publish_blob(cap.allowlist_id, cap.id, blob.blob_id)
    except SealVaultError as e:
        raise LedgerError(
            f"Blob stored but not published to allowlist {cap.allowlist_id}: {e.message}",
            exit_code=e.exit_code,
            details={
                "blob_id": blob.blob_id,
                "encryption_id": encryption_id.hex,
                "results_file": str(record_path),
            },
        ) from e

    return UploadOutcome(
        record=record,
        record_path=record_path,
        encryption_id=encryption_id,
        blob=blob,
        encrypted_size=encrypted_size,
        cap=cap,
        publish_tx=publish_tx,
    )
