"""Helpers shared by the command modules."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

from sealvault_cli.config import SealVaultConfig, load_config
from sealvault_cli.context import VaultContext, open_context

T = TypeVar("T")


def load_cli_config(config_file: Optional[Path] = None, output_dir: Optional[Path] = None) -> SealVaultConfig:
    """Load configuration and apply command-line path overrides."""
    config = load_config(config_file)
    if output_dir is not None:
        config.output_dir = output_dir
    return config


def run_in_context(
    config: SealVaultConfig,
    operation: Callable[[VaultContext], Awaitable[T]],
) -> T:
    """Run ``operation`` with a fresh context and close it afterwards."""
    async def runner() -> T:
        async with open_context(config) as ctx:
            return await operation(ctx)

    return asyncio.run(runner())


def json_mode() -> bool:
    """Whether the global ``--json`` flag is set."""
    from sealvault_cli.main import is_json

    return is_json()


def interactive() -> bool:
    """Prompts are skipped in JSON mode so output stays machine-readable."""
    return not json_mode()
