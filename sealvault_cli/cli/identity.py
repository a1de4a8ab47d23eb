"""SealVault id commands - derive identifiers and read them back from ciphertexts.

Both commands work offline.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from sealvault_cli.cli.common import json_mode
from sealvault_cli.cli.error_handler import StorageError, ValidationError, handle_errors
from sealvault_cli.cli.output import format_file_size, print_json, print_key_value, print_table
from sealvault_cli.identity.binder import (
    NONCE_LENGTH,
    decode_hex,
    derive_from_hex,
    generate_nonce,
)
from sealvault_cli.identity.envelope import parse_encrypted_object

app = typer.Typer(
    help="Derive and inspect Seal encryption identifiers.",
    no_args_is_help=True,
)
console = Console()


@app.command("derive")
@handle_errors
def derive(
    prefix: str = typer.Argument(
        ...,
        help="Principal: a Sui address or policy object ID, as hex.",
    ),
    nonce: Optional[str] = typer.Option(
        None,
        "--nonce",
        "-n",
        help="Nonce as hex (default: random).",
    ),
    nonce_length: Optional[int] = typer.Option(
        None,
        "--nonce-length",
        "-l",
        help=f"Length of a random nonce in bytes (default: {NONCE_LENGTH}).",
    ),
) -> None:
    """Compute an identifier as prefix followed by nonce.

    Example:
        sealvault id derive 0x5b... --nonce 0102030405
        sealvault id derive 0x7a... --nonce-length 8
    """
    if nonce is not None and nonce_length is not None:
        raise ValidationError("--nonce and --nonce-length are mutually exclusive")

    if nonce is not None:
        nonce_bytes = decode_hex(nonce, "nonce")
    else:
        try:
            nonce_bytes = generate_nonce(nonce_length if nonce_length is not None else NONCE_LENGTH)
        except ValueError as e:
            raise ValidationError(str(e)) from e

    identifier = derive_from_hex(prefix, nonce_bytes)
    prefix_hex = decode_hex(prefix, "prefix").hex()

    if json_mode():
        print_json({
            "id": identifier.hex(),
            "prefix": prefix_hex,
            "nonce": nonce_bytes.hex(),
            "length": len(identifier),
        })
        return

    print_key_value({
        "Identifier": identifier.hex(),
        "Prefix": prefix_hex,
        "Nonce": nonce_bytes.hex(),
        "Length": f"{len(identifier)} bytes",
    })


@app.command("inspect")
@handle_errors
def inspect(
    file: Path = typer.Argument(
        ...,
        help="Encrypted object, e.g. a blob saved by 'secret fetch'.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Show the header of a Seal encrypted object.

    Example:
        sealvault id inspect tmp/walrus/encrypted/encrypted_Xq3abcde.bin
    """
    try:
        data = file.read_bytes()
    except OSError as e:
        raise StorageError(f"Cannot read {file}: {e}") from e

    header = parse_encrypted_object(data)

    if json_mode():
        print_json({
            "version": header.version,
            "packageId": header.package_id,
            "id": header.id_hex,
            "prefix": header.prefix.hex(),
            "nonce": header.nonce.hex(),
            "threshold": header.threshold,
            "services": [{"objectId": s.object_id, "index": s.index} for s in header.services],
            "ciphertext": header.ciphertext_kind.name,
            "ciphertextLength": header.ciphertext_length,
        })
        return

    print_key_value({
        "File size": format_file_size(len(data)),
        "Version": header.version,
        "Package ID": header.package_id,
        "Identifier": header.id_hex,
        "Prefix": "0x" + header.prefix.hex(),
        "Nonce": header.nonce.hex() or "(none)",
        "Threshold": f"{header.threshold} of {header.share_count}",
        "Ciphertext": f"{header.ciphertext_kind.name} ({header.ciphertext_length} bytes)",
    }, title="Encrypted object")
    console.print()
    print_table(
        [{"index": s.index, "key_server": s.object_id} for s in header.services],
        ["index", "key_server"],
        title="Key servers",
    )
