"""SealVault allowlist commands - inspect and extend allowlists."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from sealvault_cli.cli.common import interactive, json_mode, load_cli_config, run_in_context
from sealvault_cli.cli.error_handler import ValidationError, handle_errors
from sealvault_cli.cli.output import print_json, print_key_value, print_table
from sealvault_cli.cli.progress import status_message
from sealvault_cli.cli.prompts import AbortOperation, abort_if_not_confirmed, select_cap
from sealvault_cli.identity.binder import is_valid_sui_address
from sealvault_cli.resolvers import NamedResolver, resolve
from sealvault_cli.workflows import choose_cap

app = typer.Typer(
    help="Inspect allowlists and manage their members.",
    no_args_is_help=True,
)
console = Console()


@app.command("check")
@handle_errors
def check(
    allowlist_id: Optional[str] = typer.Argument(
        None,
        help="Allowlist to show in detail (default: list the wallet's Caps only).",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file.",
    ),
) -> None:
    """List the wallet's allowlist Caps and show one allowlist's members.

    Example:
        sealvault allowlist check
        sealvault allowlist check 0x7a...
    """
    config = load_cli_config(config_file)

    async def operation(ctx):
        service = ctx.allowlists
        caps = await service.list_caps()
        if not allowlist_id or not caps:
            return caps, None, None
        cap = await service.find_cap(allowlist_id, caps)
        return caps, cap, await service.get_allowlist(allowlist_id)

    caps, cap, allowlist = run_in_context(config, operation)

    if json_mode():
        data = {"caps": [{"capId": c.id, "allowlistId": c.allowlist_id} for c in caps]}
        if allowlist is not None:
            data["allowlist"] = {
                "id": allowlist.id,
                "name": allowlist.name,
                "capId": cap.id,
                "members": allowlist.members,
            }
        print_json(data)
        return

    if not caps:
        status_message("No Cap objects found for this wallet", "warning")
        console.print("[dim]You may need to create an allowlist first.[/dim]")
        return

    print_table(
        [{"cap_id": c.id, "allowlist_id": c.allowlist_id} for c in caps],
        ["cap_id", "allowlist_id"],
        title="Cap Objects",
        column_styles={"cap_id": "cyan", "allowlist_id": "green"},
    )

    if allowlist is None:
        console.print()
        console.print("[dim]Run with an allowlist ID to see its members.[/dim]")
        return

    console.print()
    print_key_value({
        "ID": allowlist.id,
        "Name": allowlist.name,
        "Cap ID": cap.id,
        "Members": len(allowlist.members),
    }, title="Allowlist")
    console.print()
    if allowlist.members:
        for index, member in enumerate(allowlist.members, 1):
            console.print(f"  [dim]{index}.[/dim] {member}")
    else:
        status_message("No addresses in allowlist", "warning")


@app.command("add")
@handle_errors
def add(
    address: Optional[str] = typer.Argument(
        None,
        help="Sui address to allow (asked for when omitted).",
    ),
    allowlist_id: Optional[str] = typer.Option(
        None,
        "--allowlist",
        "-a",
        help="Allowlist to extend (default: the only Cap, or ask).",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file.",
    ),
) -> None:
    """Add an address to an allowlist the wallet administers.

    Example:
        sealvault allowlist add 0x5b...
        sealvault allowlist add 0x5b... --allowlist 0x7a...
    """
    resolvers = [NamedResolver.from_value("argument", address)]
    if interactive():
        resolvers.append(NamedResolver.from_prompt("Address to add"))
    resolved = resolve(
        "address",
        resolvers,
        validate=lambda v: None if is_valid_sui_address(v) else f"Invalid Sui address: {v}",
    )
    new_member = resolved.value
    config = load_cli_config(config_file)

    async def operation(ctx):
        service = ctx.allowlists
        cap = await choose_cap(
            ctx,
            allowlist_id=allowlist_id,
            selector=select_cap if interactive() else None,
        )
        before = await service.get_allowlist(cap.allowlist_id)
        if before.contains(new_member):
            if not interactive():
                raise ValidationError(
                    f"Address {new_member} is already in the allowlist",
                    details={"allowlist_id": cap.allowlist_id},
                )
            abort_if_not_confirmed(f"Address {new_member} is already in the allowlist. Continue anyway?")
        tx = await service.add_member(cap.allowlist_id, cap.id, new_member)
        after = await service.get_allowlist(cap.allowlist_id)
        return cap, tx, ctx.network.tx_url(tx.digest), after

    try:
        cap, tx, tx_url, after = run_in_context(config, operation)
    except AbortOperation:
        console.print("Cancelled.")
        return

    if json_mode():
        print_json({
            "allowlistId": cap.allowlist_id,
            "capId": cap.id,
            "address": new_member,
            "digest": tx.digest,
            "members": after.members,
        })
        return

    status_message(f"Added {new_member}", "success")
    print_key_value({
        "Allowlist ID": cap.allowlist_id,
        "Cap ID": cap.id,
        "Transaction": tx.digest,
        "SuiScan URL": tx_url,
        "Members": len(after.members),
    })
