"""Unit tests for the JS Bridge Manager.

Tests lazy bridge creation, retry with backoff, restart after the
runtime stops, and shutdown.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from sealvault_cli.js_runtime.bridge import RuntimeConfig, RuntimeState
from sealvault_cli.js_runtime.manager import JSBridgeManager
from sealvault_cli.js_runtime.protocol import JSONRPCError, JSONRPCErrorCode


def ready_bridge(**call_kwargs) -> MagicMock:
    bridge = MagicMock()
    bridge.is_ready = True
    bridge.state = RuntimeState.READY
    bridge.call = AsyncMock(**call_kwargs)
    bridge.stop = AsyncMock()
    return bridge


class TestJSBridgeManagerConfiguration:
    """Tests for bridge manager construction."""

    def test_from_settings(self):
        manager = JSBridgeManager.from_settings(
            startup_timeout=5.0,
            request_timeout=7.0,
            env_vars={"SEALVAULT_PRIVATE_KEY": "k"},
            max_retries=2,
            debug=True,
        )
        assert manager._config.startup_timeout == 5.0
        assert manager._config.request_timeout == 7.0
        assert manager._config.env_vars == {"SEALVAULT_PRIVATE_KEY": "k"}
        assert manager._config.debug is True
        assert manager._max_retries == 2

    def test_default_config(self):
        manager = JSBridgeManager()
        assert isinstance(manager._config, RuntimeConfig)
        assert not manager.is_running


class TestJSBridgeManagerBridgeLifecycle:
    """Tests for bridge lifecycle management."""

    @pytest.mark.asyncio
    async def test_get_bridge_creates_new_bridge(self):
        """Test that get_bridge creates a bridge when none exists."""
        manager = JSBridgeManager()

        with patch.object(manager, "_create_bridge", new_callable=AsyncMock) as mock_create:
            mock_bridge = ready_bridge()
            mock_create.return_value = mock_bridge

            bridge = await manager.get_bridge()

            mock_create.assert_called_once()
            assert bridge is mock_bridge

    @pytest.mark.asyncio
    async def test_get_bridge_reuses_existing_bridge(self):
        manager = JSBridgeManager()
        mock_bridge = ready_bridge()
        manager._bridge = mock_bridge

        with patch.object(manager, "_create_bridge", new_callable=AsyncMock) as mock_create:
            bridge = await manager.get_bridge()

            mock_create.assert_not_called()
            assert bridge is mock_bridge

    @pytest.mark.asyncio
    async def test_get_bridge_replaces_dead_bridge(self):
        manager = JSBridgeManager()
        dead = ready_bridge()
        dead.is_ready = False
        manager._bridge = dead

        with patch.object(manager, "_create_bridge", new_callable=AsyncMock) as mock_create:
            fresh = ready_bridge()
            mock_create.return_value = fresh
            assert await manager.get_bridge() is fresh

    @pytest.mark.asyncio
    async def test_create_bridge_failure(self):
        manager = JSBridgeManager()
        with patch("sealvault_cli.js_runtime.manager.JSRuntimeBridge") as bridge_cls:
            bridge_cls.return_value.start = AsyncMock(side_effect=RuntimeError("No JS runtime found"))
            with pytest.raises(RuntimeError, match="Failed to start JS Runtime Bridge"):
                await manager.get_bridge()

        status = await manager.get_status()
        assert "No JS runtime found" in status["last_error"]

    @pytest.mark.asyncio
    async def test_shutdown_stops_bridge(self):
        manager = JSBridgeManager()
        bridge = ready_bridge()
        manager._bridge = bridge

        await manager.shutdown()

        bridge.stop.assert_awaited_once()
        assert manager._bridge is None

    @pytest.mark.asyncio
    async def test_context_manager_shuts_down(self):
        bridge = ready_bridge()
        async with JSBridgeManager() as manager:
            manager._bridge = bridge
        bridge.stop.assert_awaited_once()


class TestJSBridgeManagerRetry:
    """Tests for call_with_retry."""

    @pytest.mark.asyncio
    async def test_success_first_try(self):
        manager = JSBridgeManager(base_delay=0)
        manager._bridge = ready_bridge(return_value={"ok": True})

        assert await manager.call_with_retry("ping") == {"ok": True}
        status = await manager.get_status()
        assert status["call_count"] == 1
        assert status["bridge_state"] == "READY"

    @pytest.mark.asyncio
    async def test_retries_server_error(self):
        manager = JSBridgeManager(base_delay=0)
        manager._bridge = ready_bridge(side_effect=[
            JSONRPCError(JSONRPCErrorCode.SERVER_ERROR, "flaky"),
            "pong",
        ])

        with patch("sealvault_cli.js_runtime.manager.asyncio.sleep", new_callable=AsyncMock):
            assert await manager.call_with_retry("ping") == "pong"

    @pytest.mark.asyncio
    async def test_definite_error_not_retried(self):
        manager = JSBridgeManager(base_delay=0)
        bridge = ready_bridge(side_effect=JSONRPCError(JSONRPCErrorCode.ACCESS_DENIED, "NoAccessError"))
        manager._bridge = bridge

        with pytest.raises(JSONRPCError) as exc_info:
            await manager.call_with_retry("seal.decrypt", {})

        assert exc_info.value.is_access_denied
        assert bridge.call.await_count == 1

    @pytest.mark.asyncio
    async def test_restarts_stopped_runtime(self):
        manager = JSBridgeManager(base_delay=0)
        manager._bridge = ready_bridge(side_effect=RuntimeError("Runtime not ready (state: STOPPED)"))
        fresh = ready_bridge(return_value="pong")

        with patch.object(manager, "_create_bridge", new_callable=AsyncMock, return_value=fresh):
            assert await manager.call_with_retry("ping") == "pong"

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        manager = JSBridgeManager(max_retries=2, base_delay=0)
        manager._bridge = ready_bridge(side_effect=RuntimeError("pipe closed"))

        with patch("sealvault_cli.js_runtime.manager.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(RuntimeError, match="failed after 2 attempts"):
                await manager.call_with_retry("ping")

    @pytest.mark.asyncio
    async def test_ping_when_not_running(self):
        assert await JSBridgeManager().ping() is False


class TestJSBridgeManagerStatus:
    """Tests for get_status."""

    @pytest.mark.asyncio
    async def test_not_started(self):
        status = await JSBridgeManager().get_status()
        assert status["bridge_state"] == "NOT_STARTED"
        assert status["is_ready"] is False
        assert "runtime" not in status

    @pytest.mark.asyncio
    async def test_includes_runtime_report(self):
        manager = JSBridgeManager()
        report = {"version": "0.1.0", "sealConnected": True, "address": "0xabc"}
        manager._bridge = ready_bridge(return_value=report)

        status = await manager.get_status()

        assert status["runtime"] == report
        manager._bridge.call.assert_awaited_once_with("getStatus", timeout=5.0)

    @pytest.mark.asyncio
    async def test_runtime_report_failure(self):
        manager = JSBridgeManager()
        manager._bridge = ready_bridge(side_effect=JSONRPCError(JSONRPCErrorCode.TIMEOUT_ERROR, "timed out"))

        status = await manager.get_status()

        assert "timed out" in status["runtime"]["error"]
