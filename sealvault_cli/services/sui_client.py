"""Sui full node JSON-RPC client.

Reads objects over HTTPS with httpx. Transactions are built and signed
in the JS sidecar; this client only queries state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from sealvault_cli.cli.error_handler import (
    InvalidObjectError,
    LedgerError,
    NetworkError,
    NotFoundError,
)
from sealvault_cli.js_runtime.protocol import JSONRPCError, JSONRPCRequest, JSONRPCResponse

logger = logging.getLogger(__name__)

# Upper bound the full node accepts for suix_getOwnedObjects
MAX_PAGE_SIZE = 50


@dataclass
class SuiObject:
    """An object read with ``showContent``."""

    object_id: str
    type: Optional[str]
    fields: dict[str, Any]
    version: Optional[str] = None
    owner: Any = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> SuiObject:
        """Build from the ``data`` member of an object response.

        Raises:
            InvalidObjectError: If the object has no Move struct content.
        """
        content = data.get("content")
        object_id = data.get("objectId", "")
        if not isinstance(content, dict) or not isinstance(content.get("fields"), dict):
            raise InvalidObjectError(
                "Failed to get object details or invalid object type",
                details={"object_id": object_id},
            )
        return cls(
            object_id=object_id,
            type=content.get("type") or data.get("type"),
            fields=content["fields"],
            version=data.get("version"),
            owner=data.get("owner"),
            raw=data,
        )


class SuiClient:
    """Async JSON-RPC client for a Sui full node.

    Example:
        async with SuiClient("https://fullnode.testnet.sui.io:443") as sui:
            obj = await sui.get_object("0x...")
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def url(self) -> str:
        return self._url

    async def call(self, method: str, params: list[Any]) -> Any:
        """Send one JSON-RPC request and return its result.

        Raises:
            NetworkError: On transport failures or non-JSON replies
            LedgerError: When the node returns a JSON-RPC error
        """
        request = JSONRPCRequest(method=method, params=params)
        logger.debug(f"Sui RPC {method} {params!r}")
        try:
            response = await self._client.post(self._url, json=request.to_dict())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                f"Sui full node returned HTTP {e.response.status_code}",
                details={"method": method, "url": self._url},
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(
                f"Cannot reach Sui full node: {e}",
                details={"url": self._url},
            ) from e

        try:
            rpc_response = JSONRPCResponse.from_json(response.text)
        except JSONRPCError as e:
            raise NetworkError(f"Invalid response from Sui full node: {e.message}") from e

        if rpc_response.error is not None:
            raise LedgerError(
                f"{method} failed: {rpc_response.error.message}",
                details={"code": rpc_response.error.code},
            )
        return rpc_response.result

    async def get_object(self, object_id: str) -> SuiObject:
        """Read an object with its content.

        Raises:
            NotFoundError: If the node reports the object as missing or deleted
            InvalidObjectError: If the object has no struct fields
        """
        result = await self.call("sui_getObject", [object_id, {"showContent": True, "showType": True}])
        result = result or {}
        if result.get("error"):
            error = result["error"]
            code = error.get("code", "unknown") if isinstance(error, dict) else error
            raise NotFoundError(
                f"Object not found: {object_id}",
                details={"reason": code},
            )
        data = result.get("data")
        if not data:
            raise NotFoundError(f"Object not found: {object_id}")
        return SuiObject.from_response(data)

    async def get_owned_objects(
        self,
        owner: str,
        struct_type: Optional[str] = None,
        page_size: int = MAX_PAGE_SIZE,
    ) -> list[SuiObject]:
        """List objects owned by an address, following pagination.

        Entries without struct content are skipped.
        """
        query: dict[str, Any] = {"options": {"showContent": True, "showType": True}}
        if struct_type:
            query["filter"] = {"StructType": struct_type}

        objects: list[SuiObject] = []
        cursor: Optional[str] = None
        while True:
            page = await self.call(
                "suix_getOwnedObjects",
                [owner, query, cursor, min(page_size, MAX_PAGE_SIZE)],
            )
            page = page or {}
            for entry in page.get("data", []):
                data = entry.get("data")
                if not data:
                    continue
                try:
                    objects.append(SuiObject.from_response(data))
                except InvalidObjectError:
                    logger.debug(f"Skipping object without content: {data.get('objectId')}")
            if not page.get("hasNextPage") or not page.get("nextCursor"):
                break
            cursor = page["nextCursor"]
        return objects

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> SuiClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
