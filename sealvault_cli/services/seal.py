"""Seal threshold encryption through the JS sidecar.

The sidecar holds the ``SealClient``, the signing keypair and any session
keys; Python passes bytes as base64 and identifiers as hex.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sealvault_cli.cli.error_handler import (
    AccessDeniedError,
    EncryptionError,
    LedgerError,
    SealVaultError,
)
from sealvault_cli.js_runtime.manager import JSBridgeManager
from sealvault_cli.js_runtime.protocol import JSONRPCError, JSONRPCErrorCode, JSRuntimeMethods

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoveArg:
    """One argument of a Move call, as understood by the sidecar."""

    kind: str
    value: str

    @classmethod
    def vector_u8(cls, data: bytes) -> MoveArg:
        return cls("vector_u8", data.hex())

    @classmethod
    def object(cls, object_id: str) -> MoveArg:
        return cls("object", object_id)

    @classmethod
    def string(cls, value: str) -> MoveArg:
        return cls("string", value)

    @classmethod
    def address(cls, value: str) -> MoveArg:
        return cls("address", value)

    def to_dict(self) -> dict[str, str]:
        return {"type": self.kind, "value": self.value}


@dataclass(frozen=True)
class SessionCredential:
    """A signed Seal session key held by the sidecar."""

    session_id: str
    address: str
    package_id: str
    ttl_min: int
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class TransactionResult:
    """Outcome of an executed transaction."""

    digest: str
    status: str
    error: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def succeeded(self) -> bool:
        return self.status == "success"


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _unb64(text: str) -> bytes:
    return base64.b64decode(text)


class SealService:
    """Encrypt, approve and decrypt with Seal key servers."""

    def __init__(
        self,
        manager: JSBridgeManager,
        package_id: str,
        key_server_ids: Sequence[str],
        threshold: int,
        fullnode_url: str,
        network: str,
        verify_key_servers: bool = False,
        session_ttl_min: int = 10,
        gas_budget: int = 10_000_000,
    ):
        self._manager = manager
        self._package_id = package_id
        self._key_server_ids = list(key_server_ids)
        self._threshold = threshold
        self._fullnode_url = fullnode_url
        self._network = network
        self._verify_key_servers = verify_key_servers
        self._session_ttl_min = session_ttl_min
        self._gas_budget = gas_budget
        self._connected_address: Optional[str] = None

    @property
    def package_id(self) -> str:
        return self._package_id

    @property
    def threshold(self) -> int:
        return self._threshold

    def target(self, module: str, function: str) -> str:
        """Fully qualified Move function name in the configured package."""
        return f"{self._package_id}::{module}::{function}"

    async def _call(self, method: str, params: dict[str, Any]) -> Any:
        try:
            return await self._manager.call_with_retry(method, params)
        except JSONRPCError as e:
            if e.is_access_denied:
                raise AccessDeniedError(
                    "No access to decryption keys",
                    details={"reason": e.message},
                ) from e
            if e.code == JSONRPCErrorCode.TRANSACTION_ERROR:
                raise LedgerError(f"Transaction failed: {e.message}") from e
            raise EncryptionError(f"{method} failed: {e.message}") from e
        except RuntimeError as e:
            raise SealVaultError(f"JS runtime unavailable: {e}") from e

    async def connect(self) -> str:
        """Initialise the sidecar's Seal and Sui clients.

        Returns:
            The address of the sidecar's signing key
        """
        if self._connected_address is None:
            result = await self._call(JSRuntimeMethods.SEAL_CONNECT, {
                "network": self._network,
                "fullnodeUrl": self._fullnode_url,
                "keyServers": self._key_server_ids,
                "verifyKeyServers": self._verify_key_servers,
            })
            self._connected_address = result["address"]
            logger.info(
                f"Seal client connected ({len(self._key_server_ids)} key servers, "
                f"threshold {self._threshold})"
            )
        return self._connected_address

    async def encrypt(self, identifier: bytes, plaintext: bytes) -> bytes:
        """Encrypt ``plaintext`` under ``identifier``; returns the BCS encrypted object."""
        await self.connect()
        result = await self._call(JSRuntimeMethods.SEAL_ENCRYPT, {
            "packageId": self._package_id,
            "id": identifier.hex(),
            "threshold": self._threshold,
            "data": _b64(plaintext),
        })
        encrypted = _unb64(result["encryptedObject"])
        logger.info(f"Encrypted {len(plaintext)} bytes into {len(encrypted)} bytes")
        return encrypted

    async def create_session(self, ttl_min: Optional[int] = None) -> SessionCredential:
        """Create a session key and sign its personal message with the wallet."""
        await self.connect()
        ttl = ttl_min or self._session_ttl_min
        result = await self._call(JSRuntimeMethods.SEAL_CREATE_SESSION_KEY, {
            "packageId": self._package_id,
            "ttlMin": ttl,
        })
        logger.info(f"Session key created (ttl {ttl} min)")
        return SessionCredential(
            session_id=result["sessionId"],
            address=result["address"],
            package_id=self._package_id,
            ttl_min=ttl,
        )

    async def build_approval(
        self,
        module: str,
        identifier: bytes,
        policy_object: Optional[str] = None,
    ) -> bytes:
        """Build the transaction-kind bytes of a ``seal_approve`` call.

        Address-bound approvals take only the identifier; policy-bound
        approvals also pass the policy object.
        """
        await self.connect()
        arguments = [MoveArg.vector_u8(identifier)]
        if policy_object is not None:
            arguments.append(MoveArg.object(policy_object))
        result = await self._call(JSRuntimeMethods.SUI_BUILD_MOVE_CALL_KIND, {
            "target": self.target(module, "seal_approve"),
            "arguments": [arg.to_dict() for arg in arguments],
        })
        tx_bytes = _unb64(result["txBytes"])
        logger.debug(f"seal_approve transaction bytes: {len(tx_bytes)}")
        return tx_bytes

    async def decrypt(
        self,
        encrypted: bytes,
        approval_tx: bytes,
        session: SessionCredential,
    ) -> bytes:
        """Fetch key shares from the key servers and decrypt.

        Raises:
            AccessDeniedError: If the policy refuses the requester
            EncryptionError: For any other decryption failure
        """
        await self.connect()
        try:
            result = await self._call(JSRuntimeMethods.SEAL_DECRYPT, {
                "data": _b64(encrypted),
                "txBytes": _b64(approval_tx),
                "sessionId": session.session_id,
            })
        except EncryptionError as e:
            raise EncryptionError("Unable to decrypt file", details={"reason": e.message}) from e
        return _unb64(result["data"])

    async def execute(self, module: str, function: str, arguments: Sequence[MoveArg]) -> TransactionResult:
        """Sign and execute a Move call with the wallet.

        Raises:
            LedgerError: If the transaction is rejected or aborts
        """
        await self.connect()
        target = self.target(module, function)
        result = await self._call(JSRuntimeMethods.SUI_EXECUTE_MOVE_CALL, {
            "target": target,
            "arguments": [arg.to_dict() for arg in arguments],
            "gasBudget": self._gas_budget,
        })
        tx = TransactionResult(
            digest=result["digest"],
            status=result.get("status", "unknown"),
            error=result.get("error"),
            raw=result,
        )
        if not tx.succeeded:
            raise LedgerError(
                f"{target} failed: {tx.error or tx.status}",
                details={"digest": tx.digest},
            )
        logger.info(f"Executed {target}: {tx.digest}")
        return tx
