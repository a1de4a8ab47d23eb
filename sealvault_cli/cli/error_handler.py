"""Global exception handling for SealVault CLI.

Every failure the tool can anticipate is a ``SealVaultError`` subclass
carrying its exit code. The ``handle_errors`` decorators turn those into
a one-line message on stderr and the matching exit status.
"""

from functools import wraps
from typing import Callable, TypeVar, Any
import logging

import typer
from rich.console import Console

from sealvault_cli.cli.exit_codes import ExitCode
from sealvault_cli.identity.exceptions import IdentityError

# Console for error output (stderr)
console = Console(stderr=True)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class SealVaultError(Exception):
    """Base exception for SealVault CLI.

    Attributes:
        message: Error message
        exit_code: Exit code to use when exiting
        details: Optional dictionary of additional error details
    """

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigurationError(SealVaultError):
    """Missing or invalid configuration.

    Examples:
        - PRIVATE_KEY or PACKAGE_ID not set
        - Unparseable private key
        - No Walrus publisher for the selected network
    """

    exit_code = ExitCode.CONFIGURATION_ERROR


class LedgerError(SealVaultError):
    """The Sui full node returned a JSON-RPC error or a transaction failed."""

    exit_code = ExitCode.LEDGER_ERROR


class InvalidObjectError(LedgerError):
    """An on-chain object exists but does not have the expected shape."""


class EncryptionError(SealVaultError):
    """Seal could not encrypt or decrypt.

    Raised for failures other than a policy denial, which is
    ``AccessDeniedError``.
    """

    exit_code = ExitCode.ENCRYPTION_ERROR


class NetworkError(SealVaultError):
    """Network/connectivity error.

    Examples:
        - Connection timeout
        - Full node or aggregator unreachable
    """

    exit_code = ExitCode.NETWORK_ERROR


class StorageError(SealVaultError):
    """Walrus publisher rejected a store or returned an unknown response."""

    exit_code = ExitCode.STORAGE_ERROR


class ValidationError(SealVaultError):
    """Validation error for user input.

    Examples:
        - Object id without 0x prefix
        - Invalid Sui address
        - Out-of-range selection
    """

    exit_code = ExitCode.INVALID_ARGUMENT


class NotFoundError(SealVaultError):
    """Resource not found error."""

    exit_code = ExitCode.NOT_FOUND


class BlobNotFoundError(NotFoundError):
    """No aggregator could serve the blob.

    Walrus only keeps blobs for the epochs that were paid for, so this is
    an expected outcome for old uploads.
    """


class AccessDeniedError(SealVaultError):
    """The on-chain policy refused to release decryption keys."""

    exit_code = ExitCode.ACCESS_DENIED


def _report(message: str, exit_code: int, details: dict[str, Any]) -> None:
    logger.error(
        f"SealVaultError: {message}",
        extra={"exit_code": exit_code, "details": details},
    )
    console.print(f"[red]Error:[/red] {message}")
    for key, value in details.items():
        console.print(f"  [dim]{key}:[/dim] {value}")


def handle_errors(func: F) -> F:
    """Decorator for consistent error handling across CLI commands.

    - SealVaultError subclasses: message and their own exit code
    - IdentityError (malformed hex, bad ciphertext): exit code 7
    - KeyboardInterrupt: exit code 130
    - Anything else: generic message and exit code 1

    Example:
        @app.command()
        @handle_errors
        def my_command():
            raise ConfigurationError("PACKAGE_ID is not set")
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except SealVaultError as e:
            _report(e.message, e.exit_code, e.details)
            raise typer.Exit(code=e.exit_code)

        except IdentityError as e:
            _report(e.message, ExitCode.INVALID_ARGUMENT, e.details)
            raise typer.Exit(code=ExitCode.INVALID_ARGUMENT)

        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user.[/yellow]")
            logger.info("Operation cancelled by user (KeyboardInterrupt)")
            raise typer.Exit(code=ExitCode.CANCELLED)

        except typer.Exit:
            raise

        except Exception as e:
            logger.exception("Unexpected error occurred")
            console.print(f"[red]Unexpected error:[/red] {e}")
            console.print("[dim]Run with --verbose for more details[/dim]")
            raise typer.Exit(code=ExitCode.GENERAL_ERROR)

    return wrapper  # type: ignore[return-value]
