"""Progress indicators and status utilities for SealVault CLI.

Spinners cover the slow network steps (Walrus store/read, Seal key-server
round trips, transaction execution).
"""

from collections.abc import Generator
from contextlib import contextmanager

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

# Default console for progress output
console = Console()


@contextmanager
def spinner(
    message: str,
    transient: bool = True,
    enabled: bool = True,
    console_instance: Console | None = None,
) -> Generator[None, None, None]:
    """Show a spinner while a step with unknown duration runs.

    Args:
        message: The message to display next to the spinner
        transient: If True, remove the spinner after completion
        enabled: If False, show nothing (JSON and quiet modes)
        console_instance: Optional custom console instance

    Example:
        with spinner("Encrypting with Seal..."):
            encrypted = await seal.encrypt(identifier, secret)
    """
    if not enabled:
        yield
        return

    prog_console = console_instance or console

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=transient,
        console=prog_console,
    ) as progress:
        progress.add_task(description=message, total=None)
        yield


def status_message(message: str, status: str = "info") -> None:
    """Print a status message with an appropriate icon.

    Args:
        message: The message to display
        status: Status type - one of: info, success, warning, error
    """
    icons = {
        "info": "[blue]ℹ[/blue]",
        "success": "[green]✓[/green]",
        "warning": "[yellow]⚠[/yellow]",
        "error": "[red]✗[/red]",
    }

    icon = icons.get(status, "[blue]ℹ[/blue]")
    console.print(f"{icon} {message}")

