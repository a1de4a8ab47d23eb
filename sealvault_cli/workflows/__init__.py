"""End-to-end operations built on a ``VaultContext``."""

from sealvault_cli.workflows.download import (
    Approval,
    DecryptOutcome,
    FetchOutcome,
    choose_approval,
    download_and_decrypt,
    fetch_encrypted,
)
from sealvault_cli.workflows.private_data import (
    PrivateDataOutcome,
    PrivateDataRecord,
    decrypt_private_data,
    load_private_data,
)
from sealvault_cli.workflows.upload import (
    CapSelector,
    UploadOutcome,
    choose_cap,
    upload_address_bound,
    upload_policy_bound,
)

__all__ = [
    # Upload
    "CapSelector",
    "UploadOutcome",
    "choose_cap",
    "upload_address_bound",
    "upload_policy_bound",
    # Download
    "Approval",
    "DecryptOutcome",
    "FetchOutcome",
    "choose_approval",
    "download_and_decrypt",
    "fetch_encrypted",
    # PrivateData
    "PrivateDataOutcome",
    "PrivateDataRecord",
    "decrypt_private_data",
    "load_private_data",
]
