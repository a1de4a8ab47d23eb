"""Standard exit codes for SealVault CLI.

These codes are shared by every command so scripts can branch on the
failure class without parsing output.
"""


class ExitCode:
    """Standard exit codes for SealVault CLI.

    Unix conventions where they apply:
    - 0: Success
    - 1: General error
    - 130: Terminated by Ctrl+C (SIGINT)

    SealVault-specific codes:
    - 2: Configuration error
    - 3: Ledger (Sui) error
    - 4: Encryption (Seal) error
    - 5: Network error
    - 6: Storage (Walrus) error
    - 7: Invalid argument
    - 8: Not found
    - 9: Access denied
    """

    SUCCESS = 0

    GENERAL_ERROR = 1

    CONFIGURATION_ERROR = 2
    LEDGER_ERROR = 3
    ENCRYPTION_ERROR = 4
    NETWORK_ERROR = 5
    STORAGE_ERROR = 6
    INVALID_ARGUMENT = 7
    NOT_FOUND = 8
    ACCESS_DENIED = 9

    CANCELLED = 130  # Ctrl+C (SIGINT = 2)
