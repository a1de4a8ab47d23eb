"""SealVault record commands - decrypt PrivateData objects stored on Sui."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from sealvault_cli.cli.common import interactive, json_mode, load_cli_config, run_in_context
from sealvault_cli.cli.error_handler import handle_errors
from sealvault_cli.cli.output import print_json, print_key_value
from sealvault_cli.cli.progress import spinner, status_message
from sealvault_cli.resolvers import NamedResolver, require_object_id, resolve
from sealvault_cli.workflows import decrypt_private_data

app = typer.Typer(
    help="Work with PrivateData objects stored on Sui.",
    no_args_is_help=True,
)
console = Console()

OBJECT_ID_ENV = "OBJECT_ID"


@app.command("decrypt")
@handle_errors
def decrypt(
    object_id: Optional[str] = typer.Argument(
        None,
        help="PrivateData object ID (default: OBJECT_ID, then ask).",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file.",
    ),
) -> None:
    """Decrypt the data held in a PrivateData object.

    The identifier is recomputed from the object's creator and nonce.

    Example:
        sealvault record decrypt 0x9c...
        OBJECT_ID=0x9c... sealvault record decrypt
    """
    resolvers = [
        NamedResolver.from_value("argument", object_id),
        NamedResolver.from_env(OBJECT_ID_ENV),
    ]
    if interactive():
        resolvers.append(NamedResolver.from_prompt("PrivateData object ID to decrypt"))
    resolved = resolve("object ID", resolvers, validate=require_object_id)
    config = load_cli_config(config_file)

    async def operation(ctx):
        with spinner("Decrypting PrivateData object...", enabled=not json_mode()):
            return await decrypt_private_data(ctx, resolved.value)

    outcome = run_in_context(config, operation)

    if json_mode():
        print_json({
            "objectId": outcome.record.object_id,
            "creator": outcome.record.creator,
            "nonce": outcome.record.nonce.hex(),
            "encryptionId": outcome.encryption_id.hex,
            "data": outcome.text,
            "size": len(outcome.plaintext),
        })
        return

    status_message("Decryption successful", "success")
    print_key_value({
        "Object ID": outcome.record.object_id,
        "Creator": outcome.record.creator,
        "Nonce": outcome.record.nonce.hex(),
        "Encryption ID": outcome.encryption_id.hex,
        "Decrypted data": f'"{outcome.text}"',
        "Length": f"{len(outcome.plaintext)} bytes",
    })
