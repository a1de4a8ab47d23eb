"""JS Runtime Bridge Manager.

Owns one bridge for the lifetime of a command: lazy start, retry with
exponential backoff, restart after the runtime dies, and shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

from .bridge import JSRuntimeBridge, RuntimeConfig, RuntimeState
from .protocol import JSONRPCError, JSONRPCErrorCode, JSRuntimeMethods

logger = logging.getLogger(__name__)

# JSON-RPC errors worth retrying; everything else is a definite answer
RETRYABLE_CODES = frozenset({
    JSONRPCErrorCode.SERVER_ERROR,
    JSONRPCErrorCode.TIMEOUT_ERROR,
})

MAX_RESTART_BACKOFF = 30.0


class JSBridgeManager:
    """Manages the JS runtime bridge lifecycle.

    One manager is created per command invocation and handed to the
    services that need the sidecar. The bridge is started on first use.

    Example:
        async with JSBridgeManager(config) as manager:
            result = await manager.call_with_retry("seal.encrypt", {...})
    """

    def __init__(
        self,
        config: Optional[RuntimeConfig] = None,
        max_retries: int = 3,
        base_delay: float = 1.0,
    ):
        self._config = config or RuntimeConfig()
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._bridge: Optional[JSRuntimeBridge] = None
        self._bridge_lock = asyncio.Lock()
        self._reconnect_count = 0
        self._last_error: Optional[Exception] = None
        self._call_count = 0

    @classmethod
    def from_settings(
        cls,
        services_path: Optional[Path] = None,
        runtime_executable: Optional[str] = None,
        startup_timeout: float = 30.0,
        request_timeout: float = 60.0,
        env_vars: Optional[dict[str, str]] = None,
        max_retries: int = 3,
        debug: bool = False,
    ) -> JSBridgeManager:
        """Build a manager from flat settings."""
        return cls(
            RuntimeConfig(
                services_path=services_path,
                runtime_executable=runtime_executable,
                startup_timeout=startup_timeout,
                request_timeout=request_timeout,
                env_vars=dict(env_vars or {}),
                debug=debug,
            ),
            max_retries=max_retries,
        )

    @property
    def is_running(self) -> bool:
        return self._bridge is not None and self._bridge.is_ready

    async def get_bridge(self) -> JSRuntimeBridge:
        """Return a ready bridge, starting one if needed.

        Raises:
            RuntimeError: If the bridge cannot be started
        """
        async with self._bridge_lock:
            if self._bridge is None or not self._bridge.is_ready:
                self._bridge = await self._create_bridge()
            return self._bridge

    async def _create_bridge(self) -> JSRuntimeBridge:
        bridge = JSRuntimeBridge(self._config)
        try:
            await bridge.start()
        except (RuntimeError, TimeoutError) as e:
            logger.error(f"Failed to start JS Runtime Bridge: {e}")
            self._last_error = e
            raise RuntimeError(f"Failed to start JS Runtime Bridge: {e}") from e
        logger.info("JS Runtime Bridge started successfully")
        self._last_error = None
        return bridge

    async def _restart_bridge(self) -> None:
        """Stop the current bridge and start a new one, backing off on repeats."""
        async with self._bridge_lock:
            logger.info("Restarting JS Runtime Bridge...")
            self._reconnect_count += 1

            if self._bridge:
                try:
                    await self._bridge.stop()
                finally:
                    self._bridge = None

            if self._reconnect_count > 1:
                backoff = min(2 ** (self._reconnect_count - 1), MAX_RESTART_BACKOFF)
                logger.info(f"Waiting {backoff}s before restart (attempt {self._reconnect_count})")
                await asyncio.sleep(backoff)

            self._bridge = await self._create_bridge()
            logger.info(f"Bridge restarted successfully (attempt {self._reconnect_count})")
            self._reconnect_count = 0

    async def call(
        self,
        method: str,
        params: Optional[dict] = None,
        timeout: Optional[float] = None
    ) -> Any:
        """Call a method once, without retry."""
        bridge = await self.get_bridge()
        self._call_count += 1
        return await bridge.call(method, params, timeout)

    async def call_with_retry(
        self,
        method: str,
        params: Optional[dict] = None,
        max_retries: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Call a method, retrying transient failures with exponential backoff.

        JSON-RPC errors other than server errors and timeouts are raised
        immediately: the sidecar gave a definite answer.

        Raises:
            RuntimeError: If all retry attempts fail
            JSONRPCError: If the JS runtime returns a non-retryable error
        """
        attempts = max_retries or self._max_retries
        last_exception: Optional[Exception] = None

        for attempt in range(attempts):
            try:
                bridge = await self.get_bridge()
                self._call_count += 1
                return await bridge.call(method, params, timeout)

            except JSONRPCError as e:
                last_exception = e
                if e.code in RETRYABLE_CODES and attempt < attempts - 1:
                    delay = self._base_delay * (2 ** attempt)
                    logger.warning(f"{method} failed on attempt {attempt + 1}, retrying in {delay}s: {e}")
                    await asyncio.sleep(delay)
                    continue
                raise

            except RuntimeError as e:
                last_exception = e
                error_msg = str(e).lower()
                if attempt >= attempts - 1:
                    break
                if "not ready" in error_msg or "stopped" in error_msg:
                    logger.warning(f"Bridge not ready on attempt {attempt + 1}, restarting...")
                    await self._restart_bridge()
                    continue
                delay = self._base_delay * (2 ** attempt)
                logger.warning(f"Runtime error on attempt {attempt + 1}, retrying in {delay}s: {e}")
                await asyncio.sleep(delay)

        raise RuntimeError(
            f"Call to '{method}' failed after {attempts} attempts"
        ) from last_exception

    async def shutdown(self) -> None:
        """Stop the bridge if it is running."""
        async with self._bridge_lock:
            if self._bridge:
                try:
                    await self._bridge.stop()
                finally:
                    self._bridge = None
        logger.debug("JS Bridge Manager shutdown complete")

    async def get_status(self) -> dict[str, Any]:
        """Summary of the bridge state for diagnostics.

        When the runtime is up, its own ``getStatus`` report (version,
        uptime, Seal connection, signer address) is added under ``runtime``.
        """
        bridge_state = self._bridge.state if self._bridge else RuntimeState.NOT_STARTED
        status: dict[str, Any] = {
            "bridge_state": bridge_state.name,
            "is_ready": self.is_running,
            "reconnect_count": self._reconnect_count,
            "call_count": self._call_count,
            "last_error": str(self._last_error) if self._last_error else None,
        }
        if self.is_running:
            try:
                status["runtime"] = await self._bridge.call(JSRuntimeMethods.GET_STATUS, timeout=5.0)
            except (JSONRPCError, RuntimeError) as e:
                status["runtime"] = {"error": str(e)}
        return status

    async def ping(self) -> bool:
        if not self.is_running:
            return False
        return await self._bridge.ping()

    async def __aenter__(self) -> JSBridgeManager:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()
