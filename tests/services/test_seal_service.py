"""Tests for the Seal service (sidecar calls mocked)."""

import base64
from unittest.mock import AsyncMock, Mock

import pytest

from sealvault_cli.cli.error_handler import (
    AccessDeniedError,
    EncryptionError,
    LedgerError,
    SealVaultError,
)
from sealvault_cli.js_runtime.protocol import JSONRPCError, JSONRPCErrorCode, JSRuntimeMethods
from sealvault_cli.services.seal import MoveArg, SealService, SessionCredential

PACKAGE_ID = "0x" + "11" * 32
ADDRESS = "0x" + "22" * 32


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


def make_service(responses: dict) -> tuple[SealService, Mock]:
    """Service whose sidecar answers each method from ``responses``."""
    manager = Mock()

    async def call_with_retry(method, params):
        response = responses[method]
        if isinstance(response, Exception):
            raise response
        return response(params) if callable(response) else response

    manager.call_with_retry = AsyncMock(side_effect=call_with_retry)
    service = SealService(
        manager,
        package_id=PACKAGE_ID,
        key_server_ids=["0xks1", "0xks2"],
        threshold=2,
        fullnode_url="https://fullnode.example",
        network="testnet",
    )
    return service, manager


CONNECT = {JSRuntimeMethods.SEAL_CONNECT: {"address": ADDRESS}}


class TestMoveArg:
    """Test MoveArg serialization."""

    def test_vector_u8_is_hex(self) -> None:
        assert MoveArg.vector_u8(b"\x01\xff").to_dict() == {"type": "vector_u8", "value": "01ff"}

    def test_object(self) -> None:
        assert MoveArg.object("0x5").to_dict() == {"type": "object", "value": "0x5"}


class TestConnect:
    """Test connection bookkeeping."""

    @pytest.mark.asyncio
    async def test_connect_once(self) -> None:
        service, manager = make_service(dict(CONNECT))
        assert await service.connect() == ADDRESS
        assert await service.connect() == ADDRESS
        assert manager.call_with_retry.await_count == 1
        params = manager.call_with_retry.await_args.args[1]
        assert params["keyServers"] == ["0xks1", "0xks2"]
        assert params["network"] == "testnet"

    @pytest.mark.asyncio
    async def test_runtime_unavailable(self) -> None:
        service, _ = make_service({JSRuntimeMethods.SEAL_CONNECT: RuntimeError("No JS runtime")})
        with pytest.raises(SealVaultError, match="JS runtime unavailable"):
            await service.connect()


class TestEncrypt:
    """Test encrypt."""

    @pytest.mark.asyncio
    async def test_encrypt(self) -> None:
        seen = {}

        def encrypt(params):
            seen.update(params)
            return {"encryptedObject": b64(b"sealed")}

        service, _ = make_service({**CONNECT, JSRuntimeMethods.SEAL_ENCRYPT: encrypt})
        result = await service.encrypt(b"\xaa\xbb", b"secret")

        assert result == b"sealed"
        assert seen["id"] == "aabb"
        assert seen["packageId"] == PACKAGE_ID
        assert seen["threshold"] == 2
        assert base64.b64decode(seen["data"]) == b"secret"

    @pytest.mark.asyncio
    async def test_sdk_failure_is_encryption_error(self) -> None:
        service, _ = make_service({
            **CONNECT,
            JSRuntimeMethods.SEAL_ENCRYPT: JSONRPCError(JSONRPCErrorCode.SERVER_ERROR, "boom"),
        })
        with pytest.raises(EncryptionError, match="boom"):
            await service.encrypt(b"\x00", b"x")


class TestApprovalAndDecrypt:
    """Test seal_approve construction and decryption."""

    @pytest.mark.asyncio
    async def test_address_bound_approval_has_one_argument(self) -> None:
        seen = {}

        def build(params):
            seen.update(params)
            return {"txBytes": b64(b"tx")}

        service, _ = make_service({**CONNECT, JSRuntimeMethods.SUI_BUILD_MOVE_CALL_KIND: build})
        tx = await service.build_approval("private_data", b"\x01\x02")

        assert tx == b"tx"
        assert seen["target"] == f"{PACKAGE_ID}::private_data::seal_approve"
        assert seen["arguments"] == [{"type": "vector_u8", "value": "0102"}]

    @pytest.mark.asyncio
    async def test_policy_bound_approval_passes_policy(self) -> None:
        seen = {}

        def build(params):
            seen.update(params)
            return {"txBytes": b64(b"tx")}

        service, _ = make_service({**CONNECT, JSRuntimeMethods.SUI_BUILD_MOVE_CALL_KIND: build})
        await service.build_approval("allowlist", b"\x01", policy_object="0xpolicy")

        assert seen["arguments"][1] == {"type": "object", "value": "0xpolicy"}

    @pytest.mark.asyncio
    async def test_create_session(self) -> None:
        service, _ = make_service({
            **CONNECT,
            JSRuntimeMethods.SEAL_CREATE_SESSION_KEY: {"sessionId": "session-1", "address": ADDRESS},
        })
        session = await service.create_session()
        assert session.session_id == "session-1"
        assert session.ttl_min == 10
        assert session.package_id == PACKAGE_ID

    @pytest.mark.asyncio
    async def test_decrypt(self) -> None:
        service, _ = make_service({
            **CONNECT,
            JSRuntimeMethods.SEAL_DECRYPT: {"data": b64(b"plaintext")},
        })
        session = SessionCredential("session-1", ADDRESS, PACKAGE_ID, 10)
        assert await service.decrypt(b"enc", b"tx", session) == b"plaintext"

    @pytest.mark.asyncio
    async def test_decrypt_access_denied(self) -> None:
        service, _ = make_service({
            **CONNECT,
            JSRuntimeMethods.SEAL_DECRYPT: JSONRPCError(JSONRPCErrorCode.ACCESS_DENIED, "NoAccessError"),
        })
        session = SessionCredential("session-1", ADDRESS, PACKAGE_ID, 10)
        with pytest.raises(AccessDeniedError, match="No access to decryption keys"):
            await service.decrypt(b"enc", b"tx", session)

    @pytest.mark.asyncio
    async def test_decrypt_other_failure(self) -> None:
        service, _ = make_service({
            **CONNECT,
            JSRuntimeMethods.SEAL_DECRYPT: JSONRPCError(JSONRPCErrorCode.DECRYPTION_ERROR, "bad share"),
        })
        session = SessionCredential("session-1", ADDRESS, PACKAGE_ID, 10)
        with pytest.raises(EncryptionError, match="Unable to decrypt file"):
            await service.decrypt(b"enc", b"tx", session)


class TestExecute:
    """Test transaction execution."""

    @pytest.mark.asyncio
    async def test_success(self) -> None:
        service, _ = make_service({
            **CONNECT,
            JSRuntimeMethods.SUI_EXECUTE_MOVE_CALL: {"digest": "D1", "status": "success"},
        })
        tx = await service.execute("allowlist", "add", [MoveArg.address(ADDRESS)])
        assert tx.digest == "D1"
        assert tx.succeeded

    @pytest.mark.asyncio
    async def test_move_abort(self) -> None:
        service, _ = make_service({
            **CONNECT,
            JSRuntimeMethods.SUI_EXECUTE_MOVE_CALL: {"digest": "D2", "status": "failure", "error": "EDuplicate"},
        })
        with pytest.raises(LedgerError, match="EDuplicate") as exc_info:
            await service.execute("allowlist", "add", [])
        assert exc_info.value.details["digest"] == "D2"

    @pytest.mark.asyncio
    async def test_rejected_transaction(self) -> None:
        service, _ = make_service({
            **CONNECT,
            JSRuntimeMethods.SUI_EXECUTE_MOVE_CALL: JSONRPCError(
                JSONRPCErrorCode.TRANSACTION_ERROR, "InsufficientGas"
            ),
        })
        with pytest.raises(LedgerError, match="InsufficientGas"):
            await service.execute("allowlist", "publish", [])
