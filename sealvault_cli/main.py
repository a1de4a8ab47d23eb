"""Main CLI entry point for SealVault."""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from sealvault_cli import __app_name__, __version__
from sealvault_cli.cli import allowlist, config, identity, record, secret
from sealvault_cli.cli.exit_codes import ExitCode

# Create the main Typer app
app = typer.Typer(
    name=__app_name__,
    help="SealVault - encrypt secrets with Seal and keep them on Walrus.",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Console for CLI output
console = Console()

# Register command groups
app.add_typer(secret.app, name="secret")
app.add_typer(allowlist.app, name="allowlist")
app.add_typer(record.app, name="record")
app.add_typer(identity.app, name="id")
app.add_typer(config.app, name="config")

# Global state for CLI options
_global_state: dict[str, bool] = {
    "verbose": False,
    "debug": False,
    "json": False,
    "quiet": False,
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"{__app_name__} v{__version__}")
        raise typer.Exit(code=ExitCode.SUCCESS)


def _setup_logging(
    verbose: bool = False,
    debug: bool = False,
    quiet: bool = False,
    log_file: Optional[Path] = None,
) -> None:
    """Set up logging configuration based on CLI options.

    Args:
        verbose: Enable INFO level logging
        debug: Enable DEBUG level logging
        quiet: Suppress non-error output (ERROR and above)
        log_file: Optional log file path
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    if debug:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handlers: list[logging.Handler] = []

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)  # Always log debug to file
        handlers.append(file_handler)

    if not quiet:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        handlers.append(console_handler)
    elif not log_file:
        # Quiet without a log file: keep logging from complaining about no handlers
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=logging.DEBUG if log_file else level,
        format=format_str,
        handlers=handlers,
        force=True,
    )

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging configured: level={logging.getLevelName(level)}, debug={debug}")


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose output (INFO level logging).",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode (DEBUG level logging with full tracebacks).",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in JSON format and never prompt.",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress non-error output.",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log to file (logs DEBUG level regardless of console settings).",
    ),
) -> None:
    """SealVault - encrypt secrets with Seal and keep them on Walrus.

    [bold]Core Commands:[/bold]

    • [cyan]secret[/cyan] - Encrypt and upload, download and decrypt
    • [cyan]allowlist[/cyan] - Inspect allowlists and add members
    • [cyan]record[/cyan] - Decrypt PrivateData objects on Sui
    • [cyan]id[/cyan] - Derive and inspect encryption identifiers
    • [cyan]config[/cyan] - Manage configuration

    [bold]Configuration:[/bold]

    PRIVATE_KEY and PACKAGE_ID are read from the environment, or from
    [cyan].env.public[/cyan] and [cyan].env[/cyan] in the working directory.

    [bold]Examples:[/bold]

        sealvault secret upload
        sealvault secret upload --bind policy
        sealvault secret download
        sealvault allowlist add 0x5b...

    For more help on a specific command, use: [cyan]sealvault <command> --help[/cyan]
    """
    _global_state["verbose"] = verbose
    _global_state["debug"] = debug
    _global_state["json"] = json_output
    _global_state["quiet"] = quiet

    if quiet and verbose:
        console.print("[red]Error:[/red] --quiet and --verbose are mutually exclusive")
        raise typer.Exit(code=ExitCode.INVALID_ARGUMENT)

    if quiet and debug:
        console.print("[red]Error:[/red] --quiet and --debug are mutually exclusive")
        raise typer.Exit(code=ExitCode.INVALID_ARGUMENT)

    _setup_logging(verbose=verbose, debug=debug, quiet=quiet, log_file=log_file)

    logger = logging.getLogger(__name__)
    logger.debug(f"SealVault CLI v{__version__} starting")
    logger.debug(f"Options: verbose={verbose}, debug={debug}, json={json_output}, quiet={quiet}")


def get_global_option(name: str) -> bool:
    """Get the value of a global CLI option (verbose, debug, json, quiet)."""
    return _global_state.get(name, False)


def is_verbose() -> bool:
    """True if verbose or debug mode is enabled."""
    return _global_state.get("verbose", False) or _global_state.get("debug", False)


def is_debug() -> bool:
    return _global_state.get("debug", False)


def is_json() -> bool:
    return _global_state.get("json", False)


def is_quiet() -> bool:
    return _global_state.get("quiet", False)


__all__ = [
    "app",
    "console",
    "get_global_option",
    "is_verbose",
    "is_debug",
    "is_json",
    "is_quiet",
]


if __name__ == "__main__":
    app()
