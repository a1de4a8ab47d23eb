"""Local records written by the upload and download commands.

Upload results are JSON files in the output directory with camelCase
keys so that files written by earlier tooling can still be read:

    tmp/walrus/upload_results.json             address-bound uploads
    tmp/walrus/upload_secret_key_results.json  policy-bound uploads
    tmp/walrus/encrypted/encrypted_<id8>.bin   raw fetched blobs
    tmp/walrus/decrypted/decrypted_<id8>.hex   decrypted secrets (hex)
"""

from __future__ import annotations

import json
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from sealvault_cli.cli.error_handler import StorageError
from sealvault_cli.identity.binder import decode_hex

logger = logging.getLogger(__name__)

UPLOAD_RESULTS = "upload_results.json"
POLICY_UPLOAD_RESULTS = "upload_secret_key_results.json"

ENCRYPTED_DIR = "encrypted"
DECRYPTED_DIR = "decrypted"

# Size of a generated secret key
SECRET_KEY_BYTES = 32

_FIELDS = {
    "timestamp": "timestamp",
    "secret_key_path": "secretKeyPath",
    "blob_id": "blobId",
    "encryption_id": "encryptionId",
    "end_epoch": "endEpoch",
    "status": "status",
    "sui_ref_type": "suiRefType",
    "sui_ref": "suiRef",
    "walrus_aggregator_url": "walrusAggregatorUrl",
    "sui_scan_url": "suiScanUrl",
    "allowlist_id": "allowlistId",
    "cap_id": "capId",
}


@dataclass
class UploadRecord:
    """What an upload produced, enough to find and decrypt the blob later."""

    blob_id: str
    encryption_id: str
    end_epoch: int
    status: str
    sui_ref_type: str
    sui_ref: str
    walrus_aggregator_url: str
    sui_scan_url: str
    secret_key_path: str = ""
    timestamp: str = ""
    allowlist_id: Optional[str] = None
    cap_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    @property
    def is_policy_bound(self) -> bool:
        return self.allowlist_id is not None

    def to_dict(self) -> dict[str, Any]:
        data = {}
        for attr, key in _FIELDS.items():
            value = getattr(self, attr)
            if value is None and attr in ("allowlist_id", "cap_id"):
                continue
            data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UploadRecord:
        """Build from a results file body.

        Raises:
            KeyError: If ``blobId`` is missing
        """
        values = {attr: data.get(key) for attr, key in _FIELDS.items() if key in data}
        if "blob_id" not in values:
            raise KeyError("blobId")
        values.setdefault("encryption_id", "")
        values.setdefault("end_epoch", 0)
        values.setdefault("status", "")
        values.setdefault("sui_ref_type", "")
        values.setdefault("sui_ref", "")
        values.setdefault("walrus_aggregator_url", "")
        values.setdefault("sui_scan_url", "")
        values["end_epoch"] = int(values["end_epoch"] or 0)
        return cls(**values)


def results_filename(policy_bound: bool) -> str:
    return POLICY_UPLOAD_RESULTS if policy_bound else UPLOAD_RESULTS


def save_upload_record(output_dir: Path, record: UploadRecord) -> Path:
    """Write ``record`` to the results file for its binding variant.

    Returns:
        Path of the written file
    """
    path = Path(output_dir) / results_filename(record.is_policy_bound)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(record.to_dict(), indent=2), encoding="utf-8")
    except OSError as e:
        raise StorageError(f"Could not write upload results: {e}", details={"path": str(path)}) from e
    logger.info(f"Upload information saved to: {path}")
    return path


def load_upload_record(path: Path) -> Optional[UploadRecord]:
    """Read a results file; None when it is missing or unreadable."""
    path = Path(path)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            return None
        return UploadRecord.from_dict(data)
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.warning(f"Ignoring unreadable results file {path}: {e}")
        return None


def read_or_create_secret(path: Path) -> bytes:
    """Read a hex secret from ``path``.

    When the file does not exist a random 32-byte key is generated and
    written there first.

    Raises:
        MalformedHexInput: If the file does not hold valid hex
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"Secret key file not found: {path}; generating one")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(secrets.token_hex(SECRET_KEY_BYTES) + "\n", encoding="utf-8")

    text = path.read_text(encoding="utf-8").strip()
    secret = decode_hex(text, field=str(path))
    logger.info(f"Secret key loaded from {path} ({len(secret)} bytes)")
    return secret


def _write_bytes(path: Path, data: bytes) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        raise StorageError(f"Could not write {path}: {e}") from e
    return path


def save_encrypted(output_dir: Path, blob_id: str, data: bytes) -> Path:
    """Store a fetched blob as ``encrypted/encrypted_<id8>.bin``."""
    path = Path(output_dir) / ENCRYPTED_DIR / f"encrypted_{blob_id[:8]}.bin"
    return _write_bytes(path, data)


def save_decrypted_hex(output_dir: Path, blob_id: str, data: bytes) -> Path:
    """Store a decrypted secret as hex in ``decrypted/decrypted_<id8>.hex``."""
    path = Path(output_dir) / DECRYPTED_DIR / f"decrypted_{blob_id[:8]}.hex"
    return _write_bytes(path, data.hex().encode("ascii"))
