"""
JSON-RPC 2.0 Protocol Implementation.

Message types shared by the stdio bridge to the JS runtime and by the
HTTP client for the Sui full node. Handles serialization, request and
response matching, and error objects.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional, Union


class JSONRPCErrorCode(IntEnum):
    """JSON-RPC 2.0 error codes, including the ones the sidecar emits."""

    # Standard errors
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Server errors (reserved range: -32000 to -32099)
    SERVER_ERROR = -32000
    TIMEOUT_ERROR = -32001
    RUNTIME_NOT_READY = -32002
    SDK_ERROR = -32003
    ENCRYPTION_ERROR = -32004
    TRANSACTION_ERROR = -32005
    ACCESS_DENIED = -32006
    DECRYPTION_ERROR = -32007


class JSONRPCError(Exception):
    """JSON-RPC 2.0 error with code and optional data."""

    def __init__(
        self,
        code: Union[JSONRPCErrorCode, int],
        message: str,
        data: Optional[Any] = None
    ):
        super().__init__(message)
        self.code = int(code)
        self.message = message
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-RPC error object."""
        error = {
            "code": self.code,
            "message": self.message
        }
        if self.data is not None:
            error["data"] = self.data
        return error

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JSONRPCError":
        """Create from JSON-RPC error object."""
        return cls(
            code=data.get("code", JSONRPCErrorCode.INTERNAL_ERROR),
            message=data.get("message", "Unknown error"),
            data=data.get("data")
        )

    @classmethod
    def parse_error(cls, data: Optional[Any] = None) -> "JSONRPCError":
        return cls(JSONRPCErrorCode.PARSE_ERROR, "Parse error", data)

    @classmethod
    def timeout_error(cls, timeout_seconds: float) -> "JSONRPCError":
        return cls(
            JSONRPCErrorCode.TIMEOUT_ERROR,
            f"Request timed out after {timeout_seconds}s"
        )

    @property
    def is_access_denied(self) -> bool:
        """The sidecar reports Seal's NoAccessError with this code."""
        return self.code == JSONRPCErrorCode.ACCESS_DENIED


@dataclass
class JSONRPCRequest:
    """JSON-RPC 2.0 request object."""

    method: str
    params: Optional[Union[list[Any], dict[str, Any]]] = None
    id: Optional[str] = field(default_factory=lambda: str(uuid.uuid4()))
    jsonrpc: str = "2.0"

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-RPC request object."""
        request: dict[str, Any] = {
            "jsonrpc": self.jsonrpc,
            "method": self.method
        }
        if self.params is not None:
            request["params"] = self.params
        if self.id is not None:
            request["id"] = self.id
        return request

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict())

    @property
    def is_notification(self) -> bool:
        """Check if this is a notification (no id)."""
        return self.id is None


@dataclass
class JSONRPCResponse:
    """JSON-RPC 2.0 response object."""

    id: Optional[str]
    result: Optional[Any] = None
    error: Optional[JSONRPCError] = None
    jsonrpc: str = "2.0"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JSONRPCResponse":
        """Create from dictionary."""
        error = None
        if data.get("error") is not None:
            error = JSONRPCError.from_dict(data["error"])

        return cls(
            id=data.get("id"),
            result=data.get("result"),
            error=error,
            jsonrpc=data.get("jsonrpc", "2.0")
        )

    @classmethod
    def from_json(cls, json_str: str) -> "JSONRPCResponse":
        """Parse from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise JSONRPCError.parse_error(str(e))
        if not isinstance(data, dict):
            raise JSONRPCError.parse_error("response is not a JSON object")
        return cls.from_dict(data)

    @property
    def is_success(self) -> bool:
        """Check if this is a success response."""
        return self.error is None

    def raise_for_error(self) -> None:
        """Raise exception if this is an error response."""
        if self.error is not None:
            raise self.error


class JSONRPCProtocol:
    """
    JSON-RPC 2.0 protocol handler.

    Tracks request ids so responses can be matched for async communication.
    """

    def __init__(self):
        self._pending_requests: dict[str, JSONRPCRequest] = {}

    def create_request(
        self,
        method: str,
        params: Optional[Union[list[Any], dict[str, Any]]] = None,
        notification: bool = False
    ) -> JSONRPCRequest:
        """
        Create a new JSON-RPC request.

        Args:
            method: The method name to call
            params: Optional parameters (positional or named)
            notification: If True, create a notification (no response expected)

        Returns:
            The created request object
        """
        request = JSONRPCRequest(
            method=method,
            params=params,
            id=None if notification else str(uuid.uuid4())
        )

        if not notification and request.id:
            self._pending_requests[request.id] = request

        return request

    def match_response(self, response: JSONRPCResponse) -> Optional[JSONRPCRequest]:
        """Match a response to its original request, removing it from the pending set."""
        if response.id is None:
            return None

        return self._pending_requests.pop(response.id, None)

    def cancel_request(self, request_id: str) -> Optional[JSONRPCRequest]:
        """Cancel a pending request."""
        return self._pending_requests.pop(request_id, None)

    def clear_pending(self) -> list[JSONRPCRequest]:
        """Clear all pending requests and return them."""
        requests = list(self._pending_requests.values())
        self._pending_requests.clear()
        return requests


class JSRuntimeMethods:
    """Method names understood by js-services/main.ts."""

    # Lifecycle
    PING = "ping"
    SHUTDOWN = "shutdown"
    GET_STATUS = "getStatus"

    # Seal
    SEAL_CONNECT = "seal.connect"
    SEAL_ENCRYPT = "seal.encrypt"
    SEAL_CREATE_SESSION_KEY = "seal.createSessionKey"
    SEAL_DECRYPT = "seal.decrypt"

    # Sui transactions
    SUI_BUILD_MOVE_CALL_KIND = "sui.buildMoveCallKind"
    SUI_EXECUTE_MOVE_CALL = "sui.executeMoveCall"
