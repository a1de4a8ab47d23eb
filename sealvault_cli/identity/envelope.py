"""
Seal encrypted-object framing.

Seal ciphertexts are BCS-encoded ``EncryptedObject`` structs. Only the
header is interpreted here, which is enough to recover the identifier a
blob was encrypted under without contacting any key server:

    version            u8 (always 0)
    package_id         address (32 bytes)
    id                 vector<u8>
    services           vector<(address, u8)>
    threshold          u8
    encrypted_shares   enum { 0: BonehFranklinBLS12381 {
                           nonce [u8; 96],
                           encrypted_shares vector<[u8; 32]>,
                           encrypted_randomness [u8; 32] } }
    ciphertext         enum { 0: Aes256Gcm { blob vector<u8>, aad option<vector<u8>> },
                              1: Hmac256Ctr { blob, aad, mac [u8; 32] },
                              2: Plain {} }

Vector lengths and enum tags are ULEB128 encoded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Union

from .binder import ADDRESS_LENGTH
from .exceptions import InvalidEncryptedObjectFormat

SUPPORTED_VERSION = 0

IBE_NONCE_LENGTH = 96
SHARE_LENGTH = 32
MAC_LENGTH = 32


class CiphertextKind(IntEnum):
    """Symmetric scheme used for the payload."""

    AES_256_GCM = 0
    HMAC_256_CTR = 1
    PLAIN = 2


@dataclass(frozen=True)
class KeyServerRef:
    """A key server and the share index it holds."""

    object_id: str
    index: int


@dataclass(frozen=True)
class EncryptedObjectHeader:
    """Decoded header fields of a Seal encrypted object."""

    version: int
    package_id: str
    id: bytes
    services: tuple[KeyServerRef, ...]
    threshold: int
    share_count: int
    ciphertext_kind: CiphertextKind
    ciphertext_length: int = 0
    aad: Optional[bytes] = field(default=None, repr=False)

    @property
    def id_hex(self) -> str:
        return self.id.hex()

    @property
    def prefix(self) -> bytes:
        """The principal part of the identifier."""
        return self.id[:ADDRESS_LENGTH]

    @property
    def nonce(self) -> bytes:
        """The random suffix of the identifier."""
        return self.id[ADDRESS_LENGTH:]


class BcsReader:
    """Cursor over a BCS byte string."""

    def __init__(self, data: bytes):
        self._data = data
        self._pos = 0

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def read_bytes(self, length: int, what: str) -> bytes:
        if length < 0 or self.remaining < length:
            raise InvalidEncryptedObjectFormat(
                f"truncated while reading {what} ({length} bytes needed, {self.remaining} left)",
                offset=self._pos,
            )
        chunk = self._data[self._pos:self._pos + length]
        self._pos += length
        return chunk

    def read_u8(self, what: str) -> int:
        return self.read_bytes(1, what)[0]

    def read_uleb128(self, what: str) -> int:
        """Read a canonical ULEB128 value in the u32 range."""
        start = self._pos
        result = 0
        shift = 0
        while True:
            byte = self.read_u8(what)
            # Fifth byte may only carry the top four bits of a u32
            if shift == 28 and byte > 0x0F:
                raise InvalidEncryptedObjectFormat(f"ULEB128 overflow in {what}", offset=start)
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                if byte == 0 and shift:
                    raise InvalidEncryptedObjectFormat(f"non-canonical ULEB128 in {what}", offset=start)
                return result
            shift += 7

    def read_vector(self, what: str) -> bytes:
        length = self.read_uleb128(f"{what} length")
        return self.read_bytes(length, what)

    def read_address(self, what: str) -> str:
        return "0x" + self.read_bytes(ADDRESS_LENGTH, what).hex()

    def read_option_vector(self, what: str) -> Optional[bytes]:
        tag = self.read_u8(f"{what} option tag")
        if tag == 0:
            return None
        if tag == 1:
            return self.read_vector(what)
        raise InvalidEncryptedObjectFormat(f"invalid option tag {tag} for {what}", offset=self._pos - 1)


def parse_encrypted_object(data: Union[bytes, bytearray, memoryview]) -> EncryptedObjectHeader:
    """Decode and validate a Seal encrypted object.

    Raises:
        InvalidEncryptedObjectFormat: If the bytes are truncated, carry
            trailing data, use an unknown version or enum variant, or
            have an inconsistent threshold or share count.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise InvalidEncryptedObjectFormat(f"expected bytes, got {type(data).__name__}")
    raw = bytes(data)
    if not raw:
        raise InvalidEncryptedObjectFormat("empty input", offset=0)

    reader = BcsReader(raw)

    version = reader.read_u8("version")
    if version != SUPPORTED_VERSION:
        raise InvalidEncryptedObjectFormat(f"unsupported version {version}", offset=0)

    package_id = reader.read_address("package id")
    identifier = reader.read_vector("id")

    service_count = reader.read_uleb128("services length")
    services = []
    for index in range(service_count):
        object_id = reader.read_address(f"service {index} object id")
        share_index = reader.read_u8(f"service {index} share index")
        services.append(KeyServerRef(object_id=object_id, index=share_index))

    threshold = reader.read_u8("threshold")
    if threshold == 0 or threshold > service_count:
        raise InvalidEncryptedObjectFormat(
            f"threshold {threshold} is invalid for {service_count} key server(s)",
            offset=reader.position - 1,
        )

    shares_tag = reader.read_uleb128("encrypted shares variant")
    if shares_tag != 0:
        raise InvalidEncryptedObjectFormat(
            f"unknown encrypted shares variant {shares_tag}", offset=reader.position - 1
        )
    reader.read_bytes(IBE_NONCE_LENGTH, "IBE nonce")
    share_count = reader.read_uleb128("encrypted shares length")
    if share_count != service_count:
        raise InvalidEncryptedObjectFormat(
            f"{share_count} encrypted share(s) for {service_count} key server(s)",
            offset=reader.position,
        )
    for index in range(share_count):
        reader.read_bytes(SHARE_LENGTH, f"encrypted share {index}")
    reader.read_bytes(SHARE_LENGTH, "encrypted randomness")

    ciphertext_tag = reader.read_uleb128("ciphertext variant")
    try:
        kind = CiphertextKind(ciphertext_tag)
    except ValueError:
        raise InvalidEncryptedObjectFormat(
            f"unknown ciphertext variant {ciphertext_tag}", offset=reader.position - 1
        ) from None

    ciphertext_length = 0
    aad: Optional[bytes] = None
    if kind in (CiphertextKind.AES_256_GCM, CiphertextKind.HMAC_256_CTR):
        ciphertext_length = len(reader.read_vector("ciphertext blob"))
        aad = reader.read_option_vector("aad")
        if kind == CiphertextKind.HMAC_256_CTR:
            reader.read_bytes(MAC_LENGTH, "mac")

    if reader.remaining:
        raise InvalidEncryptedObjectFormat(
            f"{reader.remaining} trailing byte(s)", offset=reader.position
        )

    return EncryptedObjectHeader(
        version=version,
        package_id=package_id,
        id=identifier,
        services=tuple(services),
        threshold=threshold,
        share_count=share_count,
        ciphertext_kind=kind,
        ciphertext_length=ciphertext_length,
        aad=aad,
    )


def extract_identifier(data: Union[bytes, bytearray, memoryview]) -> bytes:
    """Return the identifier embedded in an encrypted object."""
    return parse_encrypted_object(data).id
