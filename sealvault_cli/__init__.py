"""SealVault CLI - threshold-encrypted secrets stored on Walrus."""

__app_name__ = "sealvault"
__version__ = "0.1.0"
