"""SealVault config command - Configuration management."""

import asyncio
import os
import shutil
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from sealvault_cli.cli.error_handler import ValidationError, handle_errors
from sealvault_cli.cli.exit_codes import ExitCode
from sealvault_cli.cli.output import print_yaml
from sealvault_cli.config import (
    DEFAULT_CONFIG_DIR,
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    _config_to_dict,
    export_config_json,
    load_config,
    set_config_value,
    validate_config as do_validate,
)
from sealvault_cli.js_runtime.discovery import discover_all_runtimes
from sealvault_cli.services.network import get_available_networks, resolve_network

app = typer.Typer(help="Manage SealVault configuration.")
console = Console()


def _config_path() -> Path:
    config_dir = Path(os.environ.get(f"{ENV_PREFIX}CONFIG_DIR", DEFAULT_CONFIG_DIR))
    return config_dir / DEFAULT_CONFIG_FILE


def _js_runtime_status(config) -> tuple[bool, str]:
    """Whether the sidecar can be started, and a line describing why."""
    configured = config.js_runtime.runtime
    if configured:
        if shutil.which(configured) or Path(configured).is_file():
            return True, f"JS runtime: {configured} (configured)"
        return False, f"js_runtime.runtime: {configured} not found"

    runtimes = asyncio.run(discover_all_runtimes())
    if not runtimes:
        return False, "js_runtime: No JavaScript runtime found. Install Deno, Bun, or Node.js with tsx"
    return True, "JS runtime: " + ", ".join(r.display_name for r in runtimes)


@app.command("show")
@handle_errors
def show_config(
    format: str = typer.Option(
        "table",
        "--format",
        "-f",
        help="Output format (table, yaml, json).",
    ),
    show_secrets: bool = typer.Option(
        False,
        "--show-secrets",
        help="Show the private key unmasked (use with caution).",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file.",
    ),
) -> None:
    """Show current configuration.

    Example:
        sealvault config show
        sealvault config show --format yaml
    """
    config = load_config(config_file)

    if format == "yaml":
        print_yaml(_config_to_dict(config, mask_secrets=not show_secrets), title="SealVault Configuration")
        return
    elif format == "json":
        # Plain print so the output can be piped
        print(export_config_json(config, mask_secrets=not show_secrets))
        return
    elif format != "table":
        raise ValidationError(f"Unknown format: {format}. Use table, yaml or json.")

    data = _config_to_dict(config, mask_secrets=not show_secrets)
    console.print("[bold]SealVault Configuration[/bold]")
    console.print()

    paths = Table(title="Paths")
    paths.add_column("Key", style="cyan")
    paths.add_column("Value", style="green")
    for key in ("config_dir", "output_dir", "secret_key_path"):
        paths.add_row(key, data.pop(key))
    console.print(paths)
    console.print()

    for section, values in data.items():
        table = Table(title=section.capitalize())
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")
        for key, value in values.items():
            if isinstance(value, list):
                value = ", ".join(str(v) for v in value) or "(preset)"
            table.add_row(key, "" if value is None else str(value))
        console.print(table)
        console.print()

    network = resolve_network(config)
    console.print(f"[dim]Effective full node: {network.fullnode_url}[/dim]")
    console.print(f"[dim]Effective key servers: {len(network.key_server_ids)}[/dim]")


@app.command("set")
@handle_errors
def set_config(
    key: str = typer.Argument(
        ...,
        help="Configuration key (format: section.key, e.g., walrus.epochs).",
    ),
    value: str = typer.Argument(
        ...,
        help="Value to set.",
    ),
) -> None:
    """Set a configuration value.

    Example:
        sealvault config set walrus.epochs 5
        sealvault config set sui.network_mode mainnet
        sealvault config set seal.key_server_ids 0x73d0...,0xf5d1...
    """
    if "." not in key:
        raise ValidationError("Key must be in format: section.key")

    section, config_key = key.split(".", 1)

    try:
        set_config_value(section, config_key, value, _config_path())
    except ValueError as e:
        raise ValidationError(str(e)) from e
    console.print(f"[green]✓[/green] Set {section}.{config_key} = {value}")


@app.command("validate")
@handle_errors
def validate_config(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file.",
    ),
) -> None:
    """Validate current configuration.

    Example:
        sealvault config validate
    """
    config = load_config(config_file)
    config_path = config_file or _config_path()

    console.print("[bold]Validating configuration...[/bold]")
    console.print()

    exists = config_path.exists()
    marker = "[green]✓[/green]" if exists else "[yellow]![/yellow]"
    note = "" if exists else " [dim](using defaults and environment)[/dim]"
    console.print(f"  {marker} Config file {config_path}{note}")

    issues = do_validate(config)
    has_errors = False
    for issue in issues:
        if issue.severity == "error":
            status = "[red]✗[/red]"
            has_errors = True
        else:
            status = "[yellow]![/yellow]"
        console.print(f"  {status} \\[{issue.severity.upper()}] {issue.field}: {issue.message}")

    runtime_ok, runtime_note = _js_runtime_status(config)
    if runtime_ok:
        console.print(f"  [green]✓[/green] {runtime_note}")
    else:
        console.print(f"  [red]✗[/red] \\[ERROR] {runtime_note}")
        has_errors = True

    console.print()
    if not has_errors:
        console.print("[green]Configuration is valid[/green]")
    else:
        console.print("[red]Configuration has errors[/red]")
        raise typer.Exit(code=ExitCode.CONFIGURATION_ERROR)


@app.command("networks")
def list_networks() -> None:
    """List the network presets that sui.network_mode accepts."""
    for name in get_available_networks():
        console.print(f"  • {name}")
