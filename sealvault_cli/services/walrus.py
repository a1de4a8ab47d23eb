"""Walrus blob storage over the publisher and aggregator HTTP APIs.

Store:  PUT  {publisher}/v1/blobs?epochs=N     (body: raw bytes)
Read:   GET  {aggregator}/v1/blobs/{blob_id}

The publisher answers with either ``newlyCreated`` or
``alreadyCertified``; both are normalized into ``BlobInfo``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import httpx

from sealvault_cli.cli.error_handler import (
    BlobNotFoundError,
    ConfigurationError,
    NetworkError,
    StorageError,
)

logger = logging.getLogger(__name__)

DEFAULT_READ_TIMEOUT = 10.0
DEFAULT_STORE_TIMEOUT = 60.0

STATUS_NEWLY_CREATED = "Newly created"
STATUS_ALREADY_CERTIFIED = "Already certified"

REF_SUI_OBJECT = "Associated Sui Object"
REF_CERTIFIED_EVENT = "Previous Sui Certified Event"


@dataclass(frozen=True)
class BlobInfo:
    """Outcome of a store request.

    Attributes:
        blob_id: Walrus blob id
        end_epoch: Last epoch the blob is stored for
        status: "Newly created" or "Already certified"
        sui_ref_type: What ``sui_ref`` points at
        sui_ref: Blob object id, or the digest of the certifying transaction
    """

    blob_id: str
    end_epoch: int
    status: str
    sui_ref_type: str
    sui_ref: str

    @property
    def is_newly_created(self) -> bool:
        return self.status == STATUS_NEWLY_CREATED


def parse_store_response(info: Any) -> BlobInfo:
    """Normalize a publisher response body.

    Raises:
        StorageError: If the body matches neither known shape.
    """
    if not isinstance(info, dict):
        raise StorageError("Unhandled successful response!")
    try:
        if "alreadyCertified" in info:
            certified = info["alreadyCertified"]
            return BlobInfo(
                blob_id=certified["blobId"],
                end_epoch=int(certified["endEpoch"]),
                status=STATUS_ALREADY_CERTIFIED,
                sui_ref_type=REF_CERTIFIED_EVENT,
                sui_ref=certified["event"]["txDigest"],
            )
        if "newlyCreated" in info:
            blob_object = info["newlyCreated"]["blobObject"]
            return BlobInfo(
                blob_id=blob_object["blobId"],
                end_epoch=int(blob_object["storage"]["endEpoch"]),
                status=STATUS_NEWLY_CREATED,
                sui_ref_type=REF_SUI_OBJECT,
                sui_ref=blob_object["id"],
            )
    except (KeyError, TypeError, ValueError) as e:
        raise StorageError(f"Malformed publisher response: missing {e}") from e
    raise StorageError("Unhandled successful response!")


class WalrusClient:
    """Async client for a Walrus publisher and a list of aggregators.

    Example:
        async with WalrusClient(publisher, [aggregator]) as walrus:
            info = await walrus.store(data, epochs=1)
            data = await walrus.read(info.blob_id)
    """

    def __init__(
        self,
        publisher_url: Optional[str],
        aggregator_urls: Sequence[str],
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        store_timeout: float = DEFAULT_STORE_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._publisher_url = publisher_url.rstrip("/") if publisher_url else None
        self._aggregator_urls = [u.rstrip("/") for u in aggregator_urls]
        self._read_timeout = read_timeout
        self._store_timeout = store_timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    @property
    def publisher_url(self) -> Optional[str]:
        return self._publisher_url

    @property
    def aggregator_urls(self) -> list[str]:
        return list(self._aggregator_urls)

    def blob_url(self, blob_id: str) -> str:
        """Public read URL on the first aggregator."""
        if not self._aggregator_urls:
            raise ConfigurationError("No Walrus aggregator configured")
        return f"{self._aggregator_urls[0]}/v1/blobs/{blob_id}"

    async def store(self, data: bytes, epochs: int = 1) -> BlobInfo:
        """Store bytes for ``epochs`` epochs.

        Raises:
            ConfigurationError: If no publisher is configured
            StorageError: On any status other than 200 or an unknown body
            NetworkError: If the publisher cannot be reached
        """
        if not self._publisher_url:
            raise ConfigurationError("No Walrus publisher configured for this network")
        if epochs < 1:
            raise StorageError(f"epochs must be at least 1, got {epochs}")

        url = f"{self._publisher_url}/v1/blobs"
        logger.info(f"Uploading {len(data)} bytes to Walrus publisher: {url}?epochs={epochs}")
        try:
            response = await self._client.put(
                url,
                params={"epochs": epochs},
                content=data,
                timeout=self._store_timeout,
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"Cannot reach Walrus publisher: {e}", details={"url": url}) from e

        if response.status_code != 200:
            raise StorageError(
                f"Failed to upload blob: HTTP {response.status_code}",
                details={"url": url},
            )

        try:
            body = response.json()
        except ValueError as e:
            raise StorageError("Publisher returned a non-JSON response") from e

        info = parse_store_response(body)
        logger.info(f"Stored blob {info.blob_id} ({info.status}, end epoch {info.end_epoch})")
        return info

    async def read(self, blob_id: str) -> bytes:
        """Fetch a blob, trying each aggregator in order.

        Raises:
            BlobNotFoundError: If no aggregator returns the blob.
        """
        if not self._aggregator_urls:
            raise ConfigurationError("No Walrus aggregator configured")

        failures: list[str] = []
        for aggregator in self._aggregator_urls:
            url = f"{aggregator}/v1/blobs/{blob_id}"
            logger.info(f"Trying to download from: {aggregator}")
            try:
                response = await self._client.get(url, timeout=self._read_timeout)
            except httpx.HTTPError as e:
                logger.warning(f"Error downloading from {aggregator}: {e}")
                failures.append(f"{aggregator}: {type(e).__name__}")
                continue

            if response.is_success:
                logger.info(f"Successfully downloaded {len(response.content)} bytes from: {aggregator}")
                return response.content

            logger.warning(f"Failed to download from {aggregator}: HTTP {response.status_code}")
            failures.append(f"{aggregator}: HTTP {response.status_code}")

        raise BlobNotFoundError(
            "Cannot retrieve file from Walrus aggregators. "
            "File uploaded more than 1 epoch ago may have been deleted.",
            details={"blob_id": blob_id, "tried": "; ".join(failures)},
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> WalrusClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
