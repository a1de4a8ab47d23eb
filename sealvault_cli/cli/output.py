"""Output formatting utilities for SealVault CLI.

Commands print either rich, human-readable output or, with the global
``--json`` flag, a single JSON document.
"""

import json
from datetime import datetime
from typing import Any, Dict, List

import yaml
from rich.console import Console
from rich.json import JSON as RichJSON
from rich.syntax import Syntax
from rich.table import Table

# Default console for output
console = Console()


def print_json(data: Any, console_instance: Console | None = None) -> None:
    """Print data as formatted JSON.

    Args:
        data: Data to print (must be JSON-serializable)
        console_instance: Optional custom console instance
    """
    prog_console = console_instance or console

    json_str = json.dumps(data, indent=2, default=str)
    # No wrapping, so long hex values stay parseable when piped
    prog_console.print(RichJSON(json_str), soft_wrap=True)


def print_yaml(
    data: Any,
    title: str | None = None,
    console_instance: Console | None = None,
) -> None:
    """Print data as YAML-formatted output."""
    prog_console = console_instance or console

    yaml_str = yaml.dump(data, default_flow_style=False, sort_keys=False)
    if title:
        prog_console.print(f"[bold]{title}[/bold]")
    prog_console.print(Syntax(yaml_str, "yaml", theme="monokai"))


def print_table(
    data: List[Dict[str, Any]],
    columns: List[str],
    title: str | None = None,
    column_styles: Dict[str, str] | None = None,
    console_instance: Console | None = None,
) -> None:
    """Print data as a formatted table.

    Args:
        data: List of dictionaries containing row data
        columns: List of column keys to display
        title: Optional table title
        column_styles: Optional dict mapping column names to Rich styles
        console_instance: Optional custom console instance

    Example:
        print_table(
            [{"cap_id": "0x1...", "allowlist_id": "0x2..."}],
            ["cap_id", "allowlist_id"],
            title="Cap Objects",
        )
    """
    prog_console = console_instance or console
    column_styles = column_styles or {}

    table = Table(title=title)

    for col in columns:
        style = column_styles.get(col)
        header = col.replace("_", " ").title()
        table.add_column(header, style=style)

    for row in data:
        values = []
        for col in columns:
            value = row.get(col, "")
            if value is None:
                value = ""
            elif isinstance(value, bool):
                value = "[green]Yes[/green]" if value else "[red]No[/red]"
            values.append(str(value))

        table.add_row(*values)

    prog_console.print(table)


def print_key_value(
    data: Dict[str, Any],
    title: str | None = None,
    key_style: str = "cyan",
    console_instance: Console | None = None,
) -> None:
    """Print data as aligned key-value pairs."""
    prog_console = console_instance or console

    if title:
        prog_console.print(f"[bold]{title}[/bold]")
        prog_console.print()

    max_key_len = max(len(str(k)) for k in data.keys()) if data else 0

    for key, value in data.items():
        if isinstance(value, bool):
            formatted = "[green]Yes[/green]" if value else "[red]No[/red]"
        elif isinstance(value, (int, float)):
            formatted = f"[yellow]{value}[/yellow]"
        elif isinstance(value, datetime):
            formatted = value.strftime("%Y-%m-%d %H:%M:%S")
        else:
            formatted = str(value) if value is not None else "[dim]N/A[/dim]"

        padded_key = str(key).ljust(max_key_len)
        prog_console.print(f"  [{key_style}]{padded_key}[/{key_style}] : {formatted}")


def format_file_size(size_bytes: int) -> str:
    """Format a byte count in human-readable form.

    Example:
        format_file_size(1024)  # Returns "1.00 KB"
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.2f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.2f} MB"


def format_hex_preview(value: str, edge: int = 16) -> str:
    """Shorten a long hex string to its first and last ``edge`` characters.

    Secrets are never printed in full.

    Example:
        format_hex_preview("ab" * 32)  # Returns "abababababababab...abababababababab"
    """
    if len(value) <= edge * 2:
        return value
    return f"{value[:edge]}...{value[-edge:]}"
