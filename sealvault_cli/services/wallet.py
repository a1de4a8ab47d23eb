"""Sui wallet key handling.

Parses ``suiprivkey1...`` Bech32 private keys (or raw 32-byte hex seeds)
and derives the Ed25519 public key and Sui address. Signing itself
happens in the JS sidecar, which receives the same key.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field

import bech32
from nacl.signing import SigningKey

from sealvault_cli.cli.error_handler import ConfigurationError
from sealvault_cli.identity.binder import decode_hex
from sealvault_cli.identity.exceptions import MalformedHexInput

SUI_PRIVATE_KEY_PREFIX = "suiprivkey"

# Signature scheme flags used by Sui
ED25519_FLAG = 0x00
SECP256K1_FLAG = 0x01
SECP256R1_FLAG = 0x02

_SCHEME_NAMES = {
    ED25519_FLAG: "ED25519",
    SECP256K1_FLAG: "Secp256k1",
    SECP256R1_FLAG: "Secp256r1",
}


@dataclass(frozen=True)
class Wallet:
    """An Ed25519 Sui keypair."""

    address: str
    public_key: bytes
    secret_key: bytes = field(repr=False)
    encoded_private_key: str = field(repr=False)

    @property
    def public_key_hex(self) -> str:
        return self.public_key.hex()


def decode_sui_private_key(value: str) -> tuple[int, bytes]:
    """Decode a ``suiprivkey`` string into (scheme flag, 32-byte secret).

    Raises:
        ConfigurationError: If the string is not valid Bech32 or has the
            wrong prefix or length.
    """
    hrp, data = bech32.bech32_decode(value.strip())
    if hrp is None or data is None:
        raise ConfigurationError("PRIVATE_KEY is not a valid Bech32 string")
    if hrp != SUI_PRIVATE_KEY_PREFIX:
        raise ConfigurationError(
            f"PRIVATE_KEY has prefix '{hrp}', expected '{SUI_PRIVATE_KEY_PREFIX}'"
        )
    decoded = bech32.convertbits(data, 5, 8, False)
    if decoded is None or len(decoded) != 33:
        raise ConfigurationError("PRIVATE_KEY must encode a flag byte and a 32-byte secret")
    return decoded[0], bytes(decoded[1:])


def encode_sui_private_key(secret: bytes, flag: int = ED25519_FLAG) -> str:
    """Encode a 32-byte secret as a ``suiprivkey`` string."""
    if len(secret) != 32:
        raise ValueError("Secret key must be 32 bytes")
    data = bech32.convertbits(bytes([flag]) + secret, 8, 5, True)
    return bech32.bech32_encode(SUI_PRIVATE_KEY_PREFIX, data)


def public_key_to_address(public_key: bytes, flag: int = ED25519_FLAG) -> str:
    """Sui address: BLAKE2b-256 of the scheme flag followed by the public key."""
    digest = hashlib.blake2b(bytes([flag]) + public_key, digest_size=32).hexdigest()
    return "0x" + digest


def load_wallet(private_key: str) -> Wallet:
    """Build a wallet from a ``suiprivkey`` string or a 32-byte hex seed.

    Raises:
        ConfigurationError: If the key is malformed or not Ed25519.
    """
    if not private_key:
        raise ConfigurationError("PRIVATE_KEY environment variable missing")

    private_key = private_key.strip()
    if private_key.startswith(SUI_PRIVATE_KEY_PREFIX):
        flag, secret = decode_sui_private_key(private_key)
        if flag != ED25519_FLAG:
            scheme = _SCHEME_NAMES.get(flag, f"unknown scheme {flag}")
            raise ConfigurationError(f"Only ED25519 keys are supported, got {scheme}")
        encoded = private_key
    else:
        try:
            secret = decode_hex(private_key, "private_key")
        except MalformedHexInput as e:
            raise ConfigurationError(
                "PRIVATE_KEY must be a suiprivkey string or 32-byte hex"
            ) from e
        if len(secret) != 32:
            raise ConfigurationError(f"PRIVATE_KEY hex must be 32 bytes, got {len(secret)}")
        encoded = encode_sui_private_key(secret)

    signing_key = SigningKey(secret)
    public_key = bytes(signing_key.verify_key)
    return Wallet(
        address=public_key_to_address(public_key),
        public_key=public_key,
        secret_key=secret,
        encoded_private_key=encoded,
    )
