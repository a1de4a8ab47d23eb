"""
Encryption identifier derivation.

A Seal identifier binds a ciphertext to the principal allowed to decrypt
it. It is the principal's 32-byte prefix followed by a random nonce:

    identifier = prefix || nonce

There is no separator, length prefix or padding, so the identifier
computed at decryption time matches the one used at encryption time as
long as both sides use the same prefix and nonce bytes. Two prefixes are
supported and kept distinct:

- ``BindingVariant.ADDRESS``: the requester's own Sui address
- ``BindingVariant.POLICY``: the address of an on-chain policy object
  (an allowlist)
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from .exceptions import MalformedHexInput

# Bytes of randomness appended to the prefix on every encryption
NONCE_LENGTH = 5

# Sui addresses and object ids are 32 bytes
ADDRESS_LENGTH = 32

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")

BytesLike = Union[bytes, bytearray, memoryview]


class BindingVariant(str, Enum):
    """Which principal an identifier is bound to."""

    ADDRESS = "address"
    POLICY = "policy"

    @classmethod
    def from_string(cls, value: str) -> BindingVariant:
        """Parse a variant name (case-insensitive)."""
        normalized = value.lower().strip()
        if normalized in ("address", "addr", "self", "owner"):
            return cls.ADDRESS
        if normalized in ("policy", "allowlist", "whitelist"):
            return cls.POLICY
        raise ValueError(f"Unknown binding variant: {value}. Use 'address' or 'policy'.")


def strip_hex_prefix(text: str) -> str:
    """Remove a leading ``0x``/``0X`` from hex text."""
    if text[:2] in ("0x", "0X"):
        return text[2:]
    return text


def decode_hex(text: str, field: str = "value") -> bytes:
    """Decode hex text, accepting an optional ``0x`` prefix.

    Raises:
        MalformedHexInput: If the text has an odd length or a non-hex
            character.
    """
    body = strip_hex_prefix(text.strip())
    if len(body) % 2:
        raise MalformedHexInput(field, text, "odd number of hex digits")
    if not _HEX_RE.match(body):
        raise MalformedHexInput(field, text, "contains non-hex characters")
    return bytes.fromhex(body)


def derive(prefix: BytesLike, nonce: BytesLike) -> bytes:
    """Concatenate a principal prefix and a nonce into an identifier.

    Pure and deterministic. Either argument may be empty.
    """
    return bytes(prefix) + bytes(nonce)


def derive_from_hex(prefix: str, nonce: Union[str, BytesLike]) -> bytes:
    """Derive an identifier from a textual prefix.

    The prefix (and the nonce when given as text) is decoded before
    anything is concatenated, so malformed input never produces a
    partial identifier.
    """
    prefix_bytes = decode_hex(prefix, "prefix")
    if isinstance(nonce, str):
        nonce_bytes = decode_hex(nonce, "nonce")
    else:
        nonce_bytes = bytes(nonce)
    return derive(prefix_bytes, nonce_bytes)


def generate_nonce(length: int = NONCE_LENGTH) -> bytes:
    """Return ``length`` cryptographically random bytes."""
    if length <= 0:
        raise ValueError(f"Nonce length must be positive, got {length}")
    return secrets.token_bytes(length)


def is_valid_sui_address(text: str) -> bool:
    """Check for an optional ``0x`` followed by exactly 64 hex digits."""
    if not isinstance(text, str):
        return False
    body = strip_hex_prefix(text.strip())
    return len(body) == ADDRESS_LENGTH * 2 and bool(_HEX_RE.match(body))


def normalize_address(text: str) -> str:
    """Return the canonical lowercase ``0x`` form of a 32-byte address."""
    return "0x" + decode_hex(text, "address").hex()


@dataclass(frozen=True)
class EncryptionId:
    """An identifier together with the parts it was built from.

    Attributes:
        variant: Which principal the prefix names
        prefix: Principal bytes (address or policy object id)
        nonce: Random suffix
    """

    variant: BindingVariant
    prefix: bytes
    nonce: bytes = field(default=b"")

    @classmethod
    def address_bound(
        cls,
        address: str,
        nonce: Optional[BytesLike] = None,
    ) -> EncryptionId:
        """Bind to the requester's own address."""
        prefix = decode_hex(address, "address")
        return cls(
            variant=BindingVariant.ADDRESS,
            prefix=prefix,
            nonce=bytes(nonce) if nonce is not None else generate_nonce(),
        )

    @classmethod
    def policy_bound(
        cls,
        policy_id: str,
        nonce: Optional[BytesLike] = None,
    ) -> EncryptionId:
        """Bind to an on-chain policy object."""
        prefix = decode_hex(policy_id, "policy_id")
        return cls(
            variant=BindingVariant.POLICY,
            prefix=prefix,
            nonce=bytes(nonce) if nonce is not None else generate_nonce(),
        )

    @property
    def value(self) -> bytes:
        """The identifier bytes."""
        return derive(self.prefix, self.nonce)

    @property
    def hex(self) -> str:
        """Lowercase hex of the identifier, no ``0x`` prefix."""
        return self.value.hex()

    @property
    def principal(self) -> str:
        """The prefix rendered as a ``0x`` address."""
        return "0x" + self.prefix.hex()

    def __len__(self) -> int:
        return len(self.prefix) + len(self.nonce)
