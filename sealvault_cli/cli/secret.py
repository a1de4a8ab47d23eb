"""SealVault secret commands - encrypt, store, fetch and decrypt secrets."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from sealvault_cli.cli.common import interactive, json_mode, load_cli_config, run_in_context
from sealvault_cli.cli.error_handler import ValidationError, handle_errors
from sealvault_cli.cli.output import (
    format_file_size,
    format_hex_preview,
    print_json,
    print_key_value,
)
from sealvault_cli.cli.progress import spinner, status_message
from sealvault_cli.cli.prompts import select_cap
from sealvault_cli.identity.binder import BindingVariant
from sealvault_cli.records import POLICY_UPLOAD_RESULTS, UPLOAD_RESULTS
from sealvault_cli.resolvers import NamedResolver, resolve
from sealvault_cli.workflows import (
    download_and_decrypt,
    fetch_encrypted,
    upload_address_bound,
    upload_policy_bound,
)

app = typer.Typer(
    help="Encrypt secrets to Walrus and decrypt them back.",
    no_args_is_help=True,
)
console = Console()

BLOB_ID_ENV = "BLOB_ID"


def _blob_id_resolvers(blob_id: Optional[str], output_dir: Path) -> list[NamedResolver]:
    resolvers = [
        NamedResolver.from_value("argument", blob_id),
        NamedResolver.from_env(BLOB_ID_ENV),
        NamedResolver.from_results_file(output_dir / UPLOAD_RESULTS, "blobId"),
        NamedResolver.from_results_file(output_dir / POLICY_UPLOAD_RESULTS, "blobId"),
    ]
    if interactive():
        resolvers.append(NamedResolver.from_prompt("Blob ID to download"))
    return resolvers


@app.command("upload")
@handle_errors
def upload(
    secret_file: Optional[Path] = typer.Option(
        None,
        "--secret-file",
        "-s",
        help="Hex file holding the secret (default: secret-key.txt; generated if missing).",
        dir_okay=False,
    ),
    bind: str = typer.Option(
        "address",
        "--bind",
        "-b",
        help="Who can decrypt: 'address' (this wallet) or 'policy' (an allowlist).",
    ),
    allowlist: Optional[str] = typer.Option(
        None,
        "--allowlist",
        "-a",
        help="Allowlist ID for policy binding (default: the only Cap, or ask).",
    ),
    epochs: Optional[int] = typer.Option(
        None,
        "--epochs",
        "-e",
        help="Walrus storage epochs (default from config).",
        min=1,
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file.",
    ),
) -> None:
    """Encrypt a secret with Seal and store it on Walrus.

    Address binding lets only this wallet decrypt. Policy binding lets every
    address on an allowlist decrypt, and publishes the blob to that allowlist.

    Example:
        sealvault secret upload
        sealvault secret upload --bind policy --allowlist 0x7a...
    """
    try:
        variant = BindingVariant.from_string(bind)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    config = load_cli_config(config_file)
    # Cap selection may prompt, so no spinner around it
    show_progress = not json_mode() and (variant is BindingVariant.ADDRESS or allowlist is not None)

    async def operation(ctx):
        with spinner(f"Encrypting and uploading ({variant.value}-bound)...", enabled=show_progress):
            if variant is BindingVariant.POLICY:
                return await upload_policy_bound(
                    ctx,
                    secret_path=secret_file,
                    allowlist_id=allowlist,
                    selector=select_cap if interactive() else None,
                    epochs=epochs,
                )
            return await upload_address_bound(ctx, secret_path=secret_file, epochs=epochs)

    outcome = run_in_context(config, operation)

    if json_mode():
        data = outcome.record.to_dict()
        data["resultsPath"] = str(outcome.record_path)
        if outcome.publish_tx is not None:
            data["publishDigest"] = outcome.publish_tx.digest
        print_json(data)
        return

    record = outcome.record
    status_message(f"Stored blob {record.blob_id}", "success")
    details = {
        "Blob ID": record.blob_id,
        "Encryption ID": record.encryption_id,
        "Binding": outcome.encryption_id.variant.value,
        "Encrypted size": format_file_size(outcome.encrypted_size),
        "Status": record.status,
        "End epoch": record.end_epoch,
        record.sui_ref_type: record.sui_ref,
        "Aggregator URL": record.walrus_aggregator_url,
        "SuiScan URL": record.sui_scan_url,
    }
    if outcome.cap is not None:
        details["Allowlist ID"] = outcome.cap.allowlist_id
        details["Cap ID"] = outcome.cap.id
    if outcome.publish_tx is not None:
        details["Publish tx"] = outcome.publish_tx.digest
    print_key_value(details, title="Upload")
    console.print()
    console.print(f"[dim]Saved to {outcome.record_path}[/dim]")
    console.print(f"[dim]Decrypt with: sealvault secret download {record.blob_id}[/dim]")


@app.command("download")
@handle_errors
def download(
    blob_id: Optional[str] = typer.Argument(
        None,
        help="Walrus blob ID (default: BLOB_ID, then the last upload results, then ask).",
    ),
    policy: Optional[str] = typer.Option(
        None,
        "--policy",
        "-p",
        help="Allowlist ID to approve with, overriding the one in the identifier.",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for decrypted output (default from config).",
        file_okay=False,
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file.",
    ),
) -> None:
    """Download a blob from Walrus and decrypt it with Seal.

    The identifier inside the blob decides the approval: if its prefix is
    this wallet's address the secret is address-bound, otherwise the
    prefix is taken as the allowlist ID.

    Example:
        sealvault secret download
        sealvault secret download Xq3... --policy 0x7a...
    """
    config = load_cli_config(config_file, output_dir)
    resolved = resolve("blob ID", _blob_id_resolvers(blob_id, config.output_dir))
    if not json_mode():
        console.print(f"[bold]Blob ID:[/bold] {resolved.value} [dim]({resolved.source})[/dim]")

    async def operation(ctx):
        with spinner("Downloading and decrypting...", enabled=not json_mode()):
            return await download_and_decrypt(ctx, resolved.value, policy_id=policy)

    outcome = run_in_context(config, operation)
    plaintext_hex = outcome.plaintext.hex()

    if json_mode():
        print_json({
            "blobId": outcome.blob_id,
            "encryptionId": outcome.header.id_hex,
            "binding": outcome.approval.variant.value,
            "policyObject": outcome.approval.policy_object,
            "size": len(outcome.plaintext),
            "path": str(outcome.path),
        })
        return

    status_message("Decrypted successfully", "success")
    details = {
        "Encryption ID": outcome.header.id_hex,
        "Binding": outcome.approval.variant.value,
    }
    if outcome.approval.policy_object:
        details["Allowlist ID"] = outcome.approval.policy_object
    details["Hex"] = format_hex_preview(plaintext_hex, edge=32)
    details["Size"] = f"{len(outcome.plaintext)} bytes"
    details["Saved to"] = str(outcome.path)
    print_key_value(details, title="Decrypted secret")


@app.command("fetch")
@handle_errors
def fetch(
    blob_id: Optional[str] = typer.Argument(
        None,
        help="Walrus blob ID (default: BLOB_ID, then the last upload results, then ask).",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for the encrypted blob (default from config).",
        file_okay=False,
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file.",
    ),
) -> None:
    """Download a blob without decrypting it.

    Example:
        sealvault secret fetch Xq3...
    """
    config = load_cli_config(config_file, output_dir)
    resolved = resolve("blob ID", _blob_id_resolvers(blob_id, config.output_dir))

    async def operation(ctx):
        with spinner("Downloading encrypted blob...", enabled=not json_mode()):
            return await fetch_encrypted(ctx, resolved.value)

    outcome = run_in_context(config, operation)

    if json_mode():
        print_json({
            "blobId": outcome.blob_id,
            "size": len(outcome.data),
            "path": str(outcome.path),
        })
        return

    status_message(f"Downloaded blob: {format_file_size(len(outcome.data))}", "success")
    console.print(f"[dim]Saved to {outcome.path}[/dim]")
