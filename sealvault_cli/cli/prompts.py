"""Interactive prompts for SealVault CLI."""

from typing import Sequence, TypeVar

import typer
from rich.console import Console

from sealvault_cli.cli.error_handler import SealVaultError
from sealvault_cli.cli.exit_codes import ExitCode
from sealvault_cli.services.allowlist import Cap, CapSummary

# Console for prompt output
console = Console()

T = TypeVar("T")


class AbortOperation(SealVaultError):
    """Exception raised when user aborts an operation."""

    exit_code = ExitCode.CANCELLED

    def __init__(self, message: str = "Operation cancelled by user") -> None:
        super().__init__(message)


def confirm_action(message: str, default: bool = False) -> bool:
    """Ask a yes/no question with a warning marker."""
    return typer.confirm(f"⚠ {message}", default=default)


def abort_if_not_confirmed(message: str, default: bool = False) -> None:
    """Raise AbortOperation unless the user confirms.

    Raises:
        AbortOperation: If user doesn't confirm
    """
    if not confirm_action(message, default=default):
        raise AbortOperation()


def select_from_list(
    message: str,
    options: list[tuple[str, T]],
    default: int = 0,
) -> T:
    """Let user select an option from a list.

    Args:
        message: The prompt message
        options: List of (display_name, value) tuples
        default: Default selection index (0-based)

    Returns:
        The selected value

    Raises:
        AbortOperation: If user cancels
    """
    console.print(f"[bold]{message}[/bold]")

    for i, (name, _) in enumerate(options):
        marker = "[green]›[/green]" if i == default else " "
        console.print(f"  {marker} {i + 1}. {name}")

    console.print("[dim]Enter number or 'q' to cancel[/dim]")

    while True:
        response = typer.prompt("Choice", default=str(default + 1))

        if response.lower() in ("q", "quit", "cancel"):
            raise AbortOperation()

        try:
            index = int(response) - 1
            if 0 <= index < len(options):
                return options[index][1]
            else:
                console.print(f"[red]Please enter a number between 1 and {len(options)}[/red]")
        except ValueError:
            console.print("[red]Please enter a valid number[/red]")


def select_cap(summaries: Sequence[CapSummary]) -> Cap:
    """Ask which allowlist to use when the wallet administers several."""
    options = [
        (
            f"{s.name}  [dim]{s.cap.allowlist_id}  "
            f"({s.member_count} member{'s' if s.member_count != 1 else ''})[/dim]",
            s.cap,
        )
        for s in summaries
    ]
    return select_from_list(f"Found {len(options)} Cap object(s). Select one:", options)
