"""CLI command modules and supporting utilities for SealVault.

Command modules (``secret``, ``allowlist``, ``record``, ``identity``,
``config``) are imported by ``sealvault_cli.main``; this package only
exports the error, output and progress helpers, which the service layer
also imports.
"""

from sealvault_cli.cli.exit_codes import ExitCode
from sealvault_cli.cli.error_handler import (
    SealVaultError,
    ConfigurationError,
    LedgerError,
    InvalidObjectError,
    EncryptionError,
    NetworkError,
    StorageError,
    ValidationError,
    NotFoundError,
    BlobNotFoundError,
    AccessDeniedError,
    handle_errors,
)
from sealvault_cli.cli.progress import (
    spinner,
    status_message,
)
from sealvault_cli.cli.output import (
    print_json,
    print_yaml,
    print_table,
    print_key_value,
    format_file_size,
    format_hex_preview,
)

__all__ = [
    # Exit codes
    "ExitCode",
    # Error handling
    "SealVaultError",
    "ConfigurationError",
    "LedgerError",
    "InvalidObjectError",
    "EncryptionError",
    "NetworkError",
    "StorageError",
    "ValidationError",
    "NotFoundError",
    "BlobNotFoundError",
    "AccessDeniedError",
    "handle_errors",
    # Progress
    "spinner",
    "status_message",
    # Output
    "print_json",
    "print_yaml",
    "print_table",
    "print_key_value",
    "format_file_size",
    "format_hex_preview",
]
