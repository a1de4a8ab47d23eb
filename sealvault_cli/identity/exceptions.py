"""Exceptions raised while deriving or extracting encryption identifiers."""

from __future__ import annotations

from typing import Any, Optional


class IdentityError(ValueError):
    """Base class for identifier errors.

    These are input errors: the calling workflow step stops and the
    operation is not retried.
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class MalformedHexInput(IdentityError):
    """Textual hex input has an odd length or non-hex characters."""

    def __init__(self, field: str, value: str, reason: str):
        super().__init__(
            f"Malformed hex for {field}: {reason}",
            details={"field": field, "value": value},
        )
        self.field = field
        self.value = value
        self.reason = reason


class InvalidEncryptedObjectFormat(IdentityError):
    """Bytes do not decode as a Seal encrypted object."""

    def __init__(self, reason: str, offset: Optional[int] = None):
        details = {"offset": offset} if offset is not None else None
        super().__init__(f"Invalid encrypted object: {reason}", details=details)
        self.reason = reason
        self.offset = offset
