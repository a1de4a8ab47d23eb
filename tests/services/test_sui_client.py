"""Tests for the Sui full node JSON-RPC client."""

import json

import httpx
import pytest

from sealvault_cli.cli.error_handler import (
    InvalidObjectError,
    LedgerError,
    NetworkError,
    NotFoundError,
)
from sealvault_cli.services.sui_client import SuiClient, SuiObject

NODE = "https://fullnode.example"


def rpc_result(request: httpx.Request, result) -> httpx.Response:
    body = json.loads(request.content)
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})


def make_client(handler) -> SuiClient:
    return SuiClient(NODE, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def object_data(object_id: str, fields: dict, type_: str = "0x1::m::T") -> dict:
    return {
        "objectId": object_id,
        "version": "7",
        "content": {"dataType": "moveObject", "type": type_, "fields": fields},
    }


class TestSuiObject:
    """Test SuiObject.from_response."""

    def test_from_response(self) -> None:
        obj = SuiObject.from_response(object_data("0x1", {"name": "x"}))
        assert obj.object_id == "0x1"
        assert obj.type == "0x1::m::T"
        assert obj.fields == {"name": "x"}
        assert obj.version == "7"

    def test_package_has_no_fields(self) -> None:
        with pytest.raises(InvalidObjectError):
            SuiObject.from_response({"objectId": "0x2", "content": {"dataType": "package"}})


class TestCall:
    """Test the raw JSON-RPC call."""

    @pytest.mark.asyncio
    async def test_call_sends_jsonrpc(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(json.loads(request.content))
            return rpc_result(request, "ok")

        async with make_client(handler) as sui:
            assert await sui.call("sui_getChainIdentifier", []) == "ok"

        assert seen["jsonrpc"] == "2.0"
        assert seen["method"] == "sui_getChainIdentifier"
        assert seen["params"] == []

    @pytest.mark.asyncio
    async def test_rpc_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            return httpx.Response(200, json={
                "jsonrpc": "2.0",
                "id": body["id"],
                "error": {"code": -32602, "message": "Invalid params"},
            })

        async with make_client(handler) as sui:
            with pytest.raises(LedgerError, match="Invalid params"):
                await sui.call("sui_getObject", ["bad"])

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        async with make_client(lambda request: httpx.Response(503)) as sui:
            with pytest.raises(NetworkError, match="503"):
                await sui.call("sui_getObject", [])

    @pytest.mark.asyncio
    async def test_non_json_reply(self) -> None:
        async with make_client(lambda request: httpx.Response(200, text="<html>")) as sui:
            with pytest.raises(NetworkError, match="Invalid response"):
                await sui.call("sui_getObject", [])


class TestGetObject:
    """Test get_object."""

    @pytest.mark.asyncio
    async def test_get_object(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            params = json.loads(request.content)["params"]
            assert params[1]["showContent"] is True
            return rpc_result(request, {"data": object_data(params[0], {"creator": "0xabc"})})

        async with make_client(handler) as sui:
            obj = await sui.get_object("0x99")
        assert obj.object_id == "0x99"
        assert obj.fields["creator"] == "0xabc"

    @pytest.mark.asyncio
    async def test_deleted_object(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return rpc_result(request, {"error": {"code": "deleted", "object_id": "0x99"}})

        async with make_client(handler) as sui:
            with pytest.raises(NotFoundError) as exc_info:
                await sui.get_object("0x99")
        assert exc_info.value.details["reason"] == "deleted"


class TestGetOwnedObjects:
    """Test pagination over suix_getOwnedObjects."""

    @pytest.mark.asyncio
    async def test_follows_cursor(self) -> None:
        cursors = []

        def handler(request: httpx.Request) -> httpx.Response:
            params = json.loads(request.content)["params"]
            cursors.append(params[2])
            assert params[1]["filter"] == {"StructType": "0xpkg::allowlist::Cap"}
            if params[2] is None:
                return rpc_result(request, {
                    "data": [{"data": object_data("0xa", {"allowlist_id": "0x1"})}],
                    "hasNextPage": True,
                    "nextCursor": "page2",
                })
            return rpc_result(request, {
                "data": [
                    {"data": object_data("0xb", {"allowlist_id": "0x2"})},
                    {"error": {"code": "displayError"}},
                ],
                "hasNextPage": False,
                "nextCursor": None,
            })

        async with make_client(handler) as sui:
            objects = await sui.get_owned_objects("0xowner", "0xpkg::allowlist::Cap")

        assert [o.object_id for o in objects] == ["0xa", "0xb"]
        assert cursors == [None, "page2"]
