"""Tests for Seal encrypted-object header parsing."""

import pytest

from sealvault_cli.identity.envelope import (
    BcsReader,
    CiphertextKind,
    extract_identifier,
    parse_encrypted_object,
)
from sealvault_cli.identity.exceptions import InvalidEncryptedObjectFormat


PACKAGE = bytes([0x11] * 32)
SERVER_A = bytes([0x73] * 32)
SERVER_B = bytes([0xF5] * 32)
IDENTIFIER = bytes([0xAA] * 32) + bytes([1, 2, 3, 4, 5])

# Written out field by field, independent of build_object()
GOLDEN_OBJECT = bytes.fromhex(
    "00"                                                                    # version
    + "11" * 32                                                             # package id
    + "25" + "ab" * 32 + "0102030405"                                       # id, 37 bytes
    + "02"                                                                  # two key servers
    + "73d05d62c18d9374e3ea529e8e0ed6161da1a141a94d3f76ae3fe4e99356db75" + "01"
    + "f5d14a81a982144ae441cd7d64b09027f116a468bd36e7eca494f750591623c8" + "02"
    + "02"                                                                  # threshold
    + "00"                                                                  # BonehFranklinBLS12381
    + "a5" * 96                                                             # nonce
    + "02" + "c1" * 32 + "c2" * 32                                          # encrypted shares
    + "d3" * 32                                                             # encrypted randomness
    + "00" + "10" + "5e" * 16 + "00"                                        # Aes256Gcm, no aad
)


def uleb(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def build_object(
    identifier: bytes = IDENTIFIER,
    services: tuple = ((SERVER_A, 1), (SERVER_B, 2)),
    threshold: int = 2,
    share_count: int = None,
    ciphertext: bytes = None,
    version: int = 0,
) -> bytes:
    """Build a BCS EncryptedObject with an AES-256-GCM payload."""
    if share_count is None:
        share_count = len(services)
    out = bytearray([version])
    out += PACKAGE
    out += uleb(len(identifier)) + identifier
    out += uleb(len(services))
    for object_id, index in services:
        out += object_id + bytes([index])
    out.append(threshold)
    out += uleb(0)
    out += bytes(96)
    out += uleb(share_count)
    for _ in range(share_count):
        out += bytes(32)
    out += bytes(32)
    if ciphertext is None:
        blob = b"\x42" * 48
        ciphertext = uleb(0) + uleb(len(blob)) + blob + b"\x00"
    out += ciphertext
    return bytes(out)


class TestParseEncryptedObject:
    """Tests for parse_encrypted_object()."""

    def test_parses_header(self):
        """Test all header fields decode."""
        header = parse_encrypted_object(build_object())

        assert header.version == 0
        assert header.package_id == "0x" + "11" * 32
        assert header.id == IDENTIFIER
        assert header.threshold == 2
        assert header.share_count == 2
        assert [s.index for s in header.services] == [1, 2]
        assert header.services[0].object_id == "0x" + "73" * 32
        assert header.ciphertext_kind == CiphertextKind.AES_256_GCM
        assert header.ciphertext_length == 48
        assert header.aad is None

    def test_prefix_and_nonce(self):
        """Test identifier is split into 32-byte prefix and nonce."""
        header = parse_encrypted_object(build_object())
        assert header.prefix == bytes([0xAA] * 32)
        assert header.nonce == bytes([1, 2, 3, 4, 5])
        assert header.id_hex == IDENTIFIER.hex()

    def test_hmac_ctr_with_aad(self):
        """Test HMAC-256-CTR variant with associated data."""
        blob = b"\x01" * 10
        aad = b"\x02" * 4
        ciphertext = uleb(1) + uleb(len(blob)) + blob + b"\x01" + uleb(len(aad)) + aad + bytes(32)
        header = parse_encrypted_object(build_object(ciphertext=ciphertext))

        assert header.ciphertext_kind == CiphertextKind.HMAC_256_CTR
        assert header.aad == aad

    def test_plain_variant(self):
        """Test Plain ciphertext has no payload."""
        header = parse_encrypted_object(build_object(ciphertext=uleb(2)))
        assert header.ciphertext_kind == CiphertextKind.PLAIN
        assert header.ciphertext_length == 0

    def test_long_identifier_uses_multibyte_length(self):
        """Test identifiers longer than 127 bytes."""
        identifier = bytes(range(200))
        header = parse_encrypted_object(build_object(identifier=identifier))
        assert header.id == identifier

    def test_accepts_bytearray(self):
        """Test bytearray input."""
        header = parse_encrypted_object(bytearray(build_object()))
        assert header.id == IDENTIFIER


class TestInvalidEncryptedObjects:
    """Tests for malformed encrypted objects."""

    def test_empty(self):
        """Test empty input."""
        with pytest.raises(InvalidEncryptedObjectFormat, match="empty"):
            parse_encrypted_object(b"")

    def test_not_bytes(self):
        """Test non-bytes input."""
        with pytest.raises(InvalidEncryptedObjectFormat, match="expected bytes"):
            parse_encrypted_object("not bytes")  # type: ignore[arg-type]

    def test_unknown_version(self):
        """Test non-zero version."""
        with pytest.raises(InvalidEncryptedObjectFormat, match="version"):
            parse_encrypted_object(build_object(version=1))

    def test_truncated(self):
        """Test every strict prefix of a valid object is rejected."""
        data = build_object()
        for cut in (1, 10, 33, 40, 80, len(data) - 1):
            with pytest.raises(InvalidEncryptedObjectFormat):
                parse_encrypted_object(data[:cut])

    def test_trailing_bytes(self):
        """Test extra bytes after the object."""
        with pytest.raises(InvalidEncryptedObjectFormat, match="trailing"):
            parse_encrypted_object(build_object() + b"\x00")

    def test_threshold_zero(self):
        """Test zero threshold."""
        with pytest.raises(InvalidEncryptedObjectFormat, match="threshold"):
            parse_encrypted_object(build_object(threshold=0))

    def test_threshold_above_services(self):
        """Test threshold greater than server count."""
        with pytest.raises(InvalidEncryptedObjectFormat, match="threshold"):
            parse_encrypted_object(build_object(threshold=3))

    def test_share_count_mismatch(self):
        """Test share count different from server count."""
        with pytest.raises(InvalidEncryptedObjectFormat, match="share"):
            parse_encrypted_object(build_object(share_count=1))

    def test_unknown_ciphertext_variant(self):
        """Test unknown ciphertext enum tag."""
        with pytest.raises(InvalidEncryptedObjectFormat, match="ciphertext variant"):
            parse_encrypted_object(build_object(ciphertext=uleb(7)))

    def test_random_text_is_rejected(self):
        """Test arbitrary plaintext bytes."""
        with pytest.raises(InvalidEncryptedObjectFormat):
            parse_encrypted_object(b"hello world, this is not a seal object")


class TestExtractIdentifier:
    """Tests for extract_identifier()."""

    def test_returns_embedded_id(self):
        """Test identifier bytes are returned unchanged."""
        assert extract_identifier(build_object()) == IDENTIFIER

    def test_empty_identifier(self):
        """Test an empty identifier is allowed."""
        assert extract_identifier(build_object(identifier=b"")) == b""

    def test_invalid(self):
        """Test invalid input raises."""
        with pytest.raises(InvalidEncryptedObjectFormat):
            extract_identifier(b"\x00\x01")


class TestGoldenObject:
    """Tests against a fixed two-server AES-256-GCM object."""

    def test_parses_all_fields(self):
        """Test every header field of the fixed object."""
        assert len(GOLDEN_OBJECT) == 352
        header = parse_encrypted_object(GOLDEN_OBJECT)

        assert header.version == 0
        assert header.package_id == "0x" + "11" * 32
        assert header.id_hex == "ab" * 32 + "0102030405"
        assert header.prefix == bytes([0xAB] * 32)
        assert header.nonce == bytes([1, 2, 3, 4, 5])
        assert [(s.object_id, s.index) for s in header.services] == [
            ("0x73d05d62c18d9374e3ea529e8e0ed6161da1a141a94d3f76ae3fe4e99356db75", 1),
            ("0xf5d14a81a982144ae441cd7d64b09027f116a468bd36e7eca494f750591623c8", 2),
        ]
        assert header.threshold == 2
        assert header.share_count == 2
        assert header.ciphertext_kind == CiphertextKind.AES_256_GCM
        assert header.ciphertext_length == 16
        assert header.aad is None

    @pytest.mark.parametrize("offset, value", [
        (33, 0x26),   # id length
        (71, 0x03),   # key server count
        (236, 0x01),  # encrypted share count
        (334, 0x0F),  # blob length
        (334, 0x11),
    ])
    def test_length_fields_are_checked(self, offset, value):
        """Test a wrong length anywhere in the object is rejected."""
        data = bytearray(GOLDEN_OBJECT)
        data[offset] = value
        with pytest.raises(InvalidEncryptedObjectFormat):
            parse_encrypted_object(bytes(data))


class TestUleb128:
    """Tests for BcsReader.read_uleb128()."""

    @pytest.mark.parametrize("data, value", [
        (b"\x00", 0),
        (b"\x7f", 127),
        (b"\x80\x01", 128),
        (b"\xff\xff\xff\xff\x0f", 0xFFFFFFFF),
    ])
    def test_canonical_values(self, data, value):
        reader = BcsReader(data)
        assert reader.read_uleb128("value") == value
        assert reader.remaining == 0

    @pytest.mark.parametrize("data", [b"\x80\x00", b"\xa5\x80\x00"])
    def test_rejects_trailing_zero_byte(self, data):
        with pytest.raises(InvalidEncryptedObjectFormat, match="non-canonical"):
            BcsReader(data).read_uleb128("value")

    @pytest.mark.parametrize("data", [b"\xff\xff\xff\xff\x10", b"\x80\x80\x80\x80\x80\x01"])
    def test_rejects_values_above_u32(self, data):
        with pytest.raises(InvalidEncryptedObjectFormat, match="overflow"):
            BcsReader(data).read_uleb128("value")

    def test_non_canonical_length_in_object(self):
        """Test a padded ciphertext variant tag is rejected."""
        with pytest.raises(InvalidEncryptedObjectFormat, match="non-canonical"):
            parse_encrypted_object(build_object(ciphertext=b"\x80\x00"))
