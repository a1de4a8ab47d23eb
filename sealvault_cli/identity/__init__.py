"""Encryption identifiers: derivation and extraction from ciphertexts."""

from sealvault_cli.identity.binder import (
    ADDRESS_LENGTH,
    NONCE_LENGTH,
    BindingVariant,
    EncryptionId,
    decode_hex,
    derive,
    derive_from_hex,
    generate_nonce,
    is_valid_sui_address,
    normalize_address,
    strip_hex_prefix,
)
from sealvault_cli.identity.envelope import (
    CiphertextKind,
    EncryptedObjectHeader,
    KeyServerRef,
    extract_identifier,
    parse_encrypted_object,
)
from sealvault_cli.identity.exceptions import (
    IdentityError,
    InvalidEncryptedObjectFormat,
    MalformedHexInput,
)

__all__ = [
    # Binder
    "ADDRESS_LENGTH",
    "NONCE_LENGTH",
    "BindingVariant",
    "EncryptionId",
    "decode_hex",
    "derive",
    "derive_from_hex",
    "generate_nonce",
    "is_valid_sui_address",
    "normalize_address",
    "strip_hex_prefix",
    # Envelope
    "CiphertextKind",
    "EncryptedObjectHeader",
    "KeyServerRef",
    "extract_identifier",
    "parse_encrypted_object",
    # Errors
    "IdentityError",
    "InvalidEncryptedObjectFormat",
    "MalformedHexInput",
]
