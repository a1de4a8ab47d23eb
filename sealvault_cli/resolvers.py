"""
Input resolution.

Commands that need an identifier (a blob id, an object id, an allowlist
id) look for it in several places. Each place is a named resolver and
the first one that yields a non-empty value wins:

    value = resolve("blob ID", [
        NamedResolver.from_value("argument", blob_id),
        NamedResolver.from_results_file(results_path, "blobId"),
        NamedResolver.from_prompt("Enter blob ID"),
    ])

The order of the list is the priority order.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

import typer

from sealvault_cli.cli.error_handler import ValidationError

logger = logging.getLogger(__name__)

Fetch = Callable[[], Optional[str]]
Validator = Callable[[str], Optional[str]]


@dataclass(frozen=True)
class Resolution:
    """A resolved value and the name of the resolver that produced it."""

    value: str
    source: str


@dataclass(frozen=True)
class NamedResolver:
    """One source of a value.

    Attributes:
        name: Shown in logs and error messages
        fetch: Returns the value, or None/empty when this source has none
    """

    name: str
    fetch: Fetch

    @classmethod
    def from_value(cls, name: str, value: Optional[str]) -> NamedResolver:
        """A value already in hand, typically a CLI argument."""
        return cls(name, lambda: value)

    @classmethod
    def from_env(cls, variable: str) -> NamedResolver:
        """An environment variable, read when the resolver runs."""
        return cls(f"env {variable}", lambda: os.environ.get(variable))

    @classmethod
    def from_results_file(cls, path: Path, key: str) -> NamedResolver:
        """A key of a JSON results file written by an earlier command.

        A missing or unreadable file resolves to nothing.
        """
        def fetch() -> Optional[str]:
            if not path.exists():
                return None
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning(f"Could not read {path}: {e}")
                return None
            if not isinstance(data, dict):
                return None
            value = data.get(key)
            return str(value) if value else None

        return cls(f"{path.name}:{key}", fetch)

    @classmethod
    def from_prompt(cls, message: str) -> NamedResolver:
        """Ask the operator. An empty answer resolves to nothing."""
        return cls("prompt", lambda: typer.prompt(message, default="", show_default=False))


def resolve(
    field: str,
    resolvers: Sequence[NamedResolver],
    validate: Optional[Validator] = None,
) -> Resolution:
    """Return the first non-empty value from ``resolvers``.

    Args:
        field: Human name of the value, used in messages
        resolvers: Sources in priority order
        validate: Called on the winning value; returns an error message
            or None

    Raises:
        ValidationError: If no resolver yields a value, or the value fails
            validation
    """
    for resolver in resolvers:
        value = resolver.fetch()
        if value is None:
            continue
        value = value.strip()
        if not value:
            continue

        logger.debug(f"Resolved {field} from {resolver.name}")
        if validate is not None:
            error = validate(value)
            if error:
                raise ValidationError(error, details={field: value, "source": resolver.name})
        return Resolution(value=value, source=resolver.name)

    tried = ", ".join(r.name for r in resolvers) or "none"
    raise ValidationError(f"No {field} provided", details={"tried": tried})


def require_object_id(value: str) -> Optional[str]:
    """Validator for Sui object ids."""
    if not value.startswith("0x"):
        return "Invalid object ID format. It must start with 0x."
    return None
