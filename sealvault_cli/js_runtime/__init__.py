"""JS Runtime Bridge for communicating with the Seal/Sui SDK sidecar.

The Seal client and Sui transaction builder only exist as TypeScript
SDKs, so they run in a Deno/Bun/Node subprocess that Python talks to
with JSON-RPC over stdio.
"""

from sealvault_cli.js_runtime.bridge import JSRuntimeBridge, RuntimeConfig, RuntimeState
from sealvault_cli.js_runtime.discovery import (
    RuntimeInfo,
    RuntimeType,
    discover_runtime,
    discover_all_runtimes,
)
from sealvault_cli.js_runtime.protocol import (
    JSONRPCError,
    JSONRPCErrorCode,
    JSONRPCProtocol,
    JSRuntimeMethods,
)
from sealvault_cli.js_runtime.manager import JSBridgeManager

__all__ = [
    # Bridge
    "JSRuntimeBridge",
    "RuntimeConfig",
    "RuntimeState",
    # Protocol
    "JSONRPCError",
    "JSONRPCErrorCode",
    "JSONRPCProtocol",
    "JSRuntimeMethods",
    # Discovery
    "RuntimeInfo",
    "RuntimeType",
    "discover_runtime",
    "discover_all_runtimes",
    # Manager
    "JSBridgeManager",
]
