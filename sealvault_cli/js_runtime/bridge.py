"""
JS Runtime Bridge.

Manages the Deno/Bun/Node subprocess that hosts the Seal and Sui
TypeScript SDKs. Requests and responses are newline-delimited JSON-RPC
2.0 messages on the child's stdin and stdout.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Any, Optional, Union

from .protocol import (
    JSONRPCError,
    JSONRPCProtocol,
    JSONRPCRequest,
    JSONRPCResponse,
    JSRuntimeMethods,
)

logger = logging.getLogger(__name__)

DEFAULT_SERVICES_PATH = Path(__file__).parent.parent / "js-services"


class RuntimeState(Enum):
    """State of the JS runtime subprocess."""

    NOT_STARTED = auto()
    STARTING = auto()
    READY = auto()
    ERROR = auto()
    SHUTTING_DOWN = auto()
    STOPPED = auto()


@dataclass
class RuntimeConfig:
    """Configuration for the JS runtime."""

    # Directory holding main.ts
    services_path: Optional[Path] = None

    # Runtime executable (auto-detected if not specified)
    runtime_executable: Optional[str] = None

    startup_timeout: float = 30.0
    request_timeout: float = 60.0

    # Added on top of the parent environment
    env_vars: dict[str, str] = field(default_factory=dict)

    debug: bool = False


class JSRuntimeBridge:
    """
    Bridge to the JavaScript runtime subprocess.

    Example:
        async with JSRuntimeBridge(config) as bridge:
            result = await bridge.call("seal.encrypt", {...})
    """

    def __init__(self, config: Optional[RuntimeConfig] = None):
        self._config = config or RuntimeConfig()
        self._protocol = JSONRPCProtocol()
        self._state = RuntimeState.NOT_STARTED
        self._process: Optional[asyncio.subprocess.Process] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._stderr_task: Optional[asyncio.Task] = None
        self._pending_futures: dict[str, asyncio.Future] = {}
        self._lock = asyncio.Lock()
        self._ready_event = asyncio.Event()
        self._error_message: Optional[str] = None

    @property
    def state(self) -> RuntimeState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == RuntimeState.READY

    async def start(self) -> None:
        """
        Start the JS runtime subprocess and wait for its ready notification.

        Raises:
            RuntimeError: If the runtime fails to start
            TimeoutError: If startup times out
        """
        async with self._lock:
            if self._state not in (RuntimeState.NOT_STARTED, RuntimeState.STOPPED):
                raise RuntimeError(f"Cannot start runtime in state: {self._state}")

            self._state = RuntimeState.STARTING
            self._ready_event.clear()

            try:
                await self._spawn_process()
                await asyncio.wait_for(
                    self._ready_event.wait(),
                    timeout=self._config.startup_timeout
                )
                self._state = RuntimeState.READY
                logger.info("JS runtime started successfully")

            except asyncio.TimeoutError:
                self._state = RuntimeState.ERROR
                self._error_message = "Startup timeout"
                await self._cleanup()
                raise TimeoutError(
                    f"JS runtime failed to start within {self._config.startup_timeout}s"
                )
            except Exception as e:
                self._state = RuntimeState.ERROR
                self._error_message = str(e)
                await self._cleanup()
                raise RuntimeError(f"Failed to start JS runtime: {e}") from e

    async def stop(self) -> None:
        """Stop the JS runtime subprocess gracefully."""
        async with self._lock:
            if self._state in (RuntimeState.NOT_STARTED, RuntimeState.STOPPED):
                return

            self._state = RuntimeState.SHUTTING_DOWN

            try:
                if self._process and self._process.returncode is None:
                    try:
                        await asyncio.wait_for(
                            self._send_notification(JSRuntimeMethods.SHUTDOWN),
                            timeout=5.0
                        )
                    except (OSError, RuntimeError, asyncio.TimeoutError) as e:
                        logger.debug(f"Shutdown notification not delivered: {e}")

                await self._cleanup()

            finally:
                self._state = RuntimeState.STOPPED
                logger.info("JS runtime stopped")

    async def call(
        self,
        method: str,
        params: Optional[Union[list[Any], dict[str, Any]]] = None,
        timeout: Optional[float] = None
    ) -> Any:
        """
        Call a method on the JS runtime.

        Raises:
            JSONRPCError: If the call fails or times out
            RuntimeError: If the runtime is not ready
        """
        if not self.is_ready:
            detail = f": {self._error_message}" if self._error_message else ""
            raise RuntimeError(f"Runtime not ready (state: {self._state.name}){detail}")

        request = self._protocol.create_request(method, params)
        timeout = timeout or self._config.request_timeout

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending_futures[request.id] = future

        try:
            await self._send_request(request)
            response = await asyncio.wait_for(future, timeout=timeout)
            response.raise_for_error()
            return response.result

        except asyncio.TimeoutError:
            self._protocol.cancel_request(request.id)
            raise JSONRPCError.timeout_error(timeout)
        finally:
            self._pending_futures.pop(request.id, None)

    async def ping(self) -> bool:
        """Ping the JS runtime to check if it's responsive."""
        try:
            result = await self.call(JSRuntimeMethods.PING, timeout=5.0)
        except (JSONRPCError, RuntimeError):
            return False
        return result == "pong"

    async def __aenter__(self) -> "JSRuntimeBridge":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    # Private methods

    async def _spawn_process(self) -> None:
        """Spawn the JS runtime subprocess."""
        from .discovery import discover_runtime, get_runtime_args

        runtime = self._config.runtime_executable
        if not runtime:
            runtime = await discover_runtime()

        services_path = self._config.services_path or DEFAULT_SERVICES_PATH
        entry_point = services_path / "main.ts"
        if not entry_point.exists():
            raise FileNotFoundError(f"JS services entry point not found: {entry_point}")

        args = get_runtime_args(runtime, entry_point, self._config.debug)

        env = dict(os.environ)
        env.update(self._config.env_vars)
        if self._config.debug:
            env["DEBUG"] = "1"

        logger.debug(f"Starting JS runtime: {' '.join(args)}")

        self._process = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(services_path),
            env=env,
        )

        self._reader_task = asyncio.create_task(self._read_loop())
        self._stderr_task = asyncio.create_task(self._drain_stderr())

    async def _read_loop(self) -> None:
        """Read and process messages from the subprocess."""
        if not self._process or not self._process.stdout:
            return

        try:
            while True:
                line = await self._process.stdout.readline()
                if not line:
                    break
                await self._handle_message(line.decode().strip())
        except asyncio.CancelledError:
            pass
        except (OSError, ValueError) as e:
            logger.error(f"Read loop error: {e}")
            self._state = RuntimeState.ERROR
            self._error_message = str(e)
        else:
            if self._state == RuntimeState.READY:
                logger.warning("JS runtime closed its output unexpectedly")
                self._state = RuntimeState.ERROR
                self._error_message = "Runtime exited"
            self._fail_pending(RuntimeError("Runtime stopped"))

    async def _drain_stderr(self) -> None:
        """Forward the child's stderr to the debug log so the pipe never fills."""
        if not self._process or not self._process.stderr:
            return
        try:
            while True:
                line = await self._process.stderr.readline()
                if not line:
                    break
                logger.debug(f"JS runtime: {line.decode(errors='replace').rstrip()}")
        except asyncio.CancelledError:
            pass

    async def _handle_message(self, message: str) -> None:
        """Handle a message from the subprocess."""
        if not message:
            return

        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            logger.debug(f"JS runtime: {message}")
            return
        if not isinstance(data, dict):
            logger.debug(f"JS runtime: {message}")
            return

        if "id" in data and ("result" in data or "error" in data):
            self._handle_response(JSONRPCResponse.from_dict(data))
        elif data.get("method") == "ready":
            version = (data.get("params") or {}).get("version")
            logger.debug(f"JS services ready (version {version})")
            self._ready_event.set()
        else:
            logger.debug(f"Ignoring unexpected message from JS runtime: {data.get('method')}")

    def _handle_response(self, response: JSONRPCResponse) -> None:
        """Resolve the future waiting for this response."""
        self._protocol.match_response(response)
        future = self._pending_futures.get(response.id) if response.id else None
        if future is not None and not future.done():
            future.set_result(response)

    async def _send_request(self, request: JSONRPCRequest) -> None:
        """Write a request line to the subprocess."""
        if not self._process or not self._process.stdin:
            raise RuntimeError("Process not running")

        message = request.to_json() + "\n"
        self._process.stdin.write(message.encode())
        await self._process.stdin.drain()

    async def _send_notification(
        self,
        method: str,
        params: Optional[Union[list[Any], dict[str, Any]]] = None
    ) -> None:
        request = self._protocol.create_request(method, params, notification=True)
        await self._send_request(request)

    def _fail_pending(self, error: Exception) -> None:
        for future in self._pending_futures.values():
            if not future.done():
                future.set_exception(error)
        self._pending_futures.clear()
        self._protocol.clear_pending()

    async def _cleanup(self) -> None:
        """Clean up subprocess resources."""
        for task in (self._reader_task, self._stderr_task):
            if task:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._reader_task = None
        self._stderr_task = None

        if self._process:
            if self._process.returncode is None:
                self._process.terminate()
                try:
                    await asyncio.wait_for(self._process.wait(), timeout=5.0)
                except asyncio.TimeoutError:
                    self._process.kill()
                    await self._process.wait()
            self._process = None

        self._fail_pending(RuntimeError("Runtime stopped"))
