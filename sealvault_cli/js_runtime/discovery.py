"""
JS Runtime Discovery.

Finds an installed JavaScript runtime (Deno, Bun or Node.js with tsx)
able to run the TypeScript sidecar, and builds its command line.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class RuntimeType(Enum):
    """Supported JavaScript runtime types."""

    DENO = auto()
    NODE = auto()
    BUN = auto()

    @classmethod
    def from_string(cls, value: str) -> RuntimeType:
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown JS runtime: {value}. Use deno, bun or node.") from None


@dataclass
class RuntimeInfo:
    """Information about a discovered runtime."""

    type: RuntimeType
    executable: str
    version: Optional[str] = None

    @property
    def display_name(self) -> str:
        version_str = f" v{self.version}" if self.version else ""
        return f"{self.type.name.title()}{version_str}"


# Detection order (preferred first)
RUNTIME_PREFERENCE = [
    RuntimeType.DENO,
    RuntimeType.BUN,
    RuntimeType.NODE,
]

RUNTIME_EXECUTABLES = {
    RuntimeType.DENO: ["deno"],
    RuntimeType.NODE: ["node", "nodejs"],
    RuntimeType.BUN: ["bun"],
}


async def discover_runtime(
    preferred: Optional[RuntimeType] = None
) -> str:
    """
    Discover an available JavaScript runtime.

    Args:
        preferred: Runtime to try first

    Returns:
        Path to the runtime executable

    Raises:
        RuntimeError: If no suitable runtime is found
    """
    search_order = list(RUNTIME_PREFERENCE)
    if preferred and preferred in search_order:
        search_order.remove(preferred)
        search_order.insert(0, preferred)

    for runtime_type in search_order:
        info = await _detect_runtime(runtime_type)
        if info:
            logger.info(f"Discovered runtime: {info.display_name}")
            return info.executable

    raise RuntimeError(
        "No JavaScript runtime found. Please install Deno, Bun, or Node.js with tsx.\n"
        "Recommended: Install Deno from https://deno.land"
    )


async def discover_all_runtimes() -> list[RuntimeInfo]:
    """Discover all available JavaScript runtimes."""
    runtimes = []
    for runtime_type in RuntimeType:
        info = await _detect_runtime(runtime_type)
        if info:
            runtimes.append(info)
    return runtimes


async def _detect_runtime(runtime_type: RuntimeType) -> Optional[RuntimeInfo]:
    for executable in RUNTIME_EXECUTABLES.get(runtime_type, []):
        path = shutil.which(executable)
        if not path:
            continue
        # Node cannot run TypeScript without tsx
        if runtime_type == RuntimeType.NODE and not shutil.which("tsx"):
            logger.debug("Node.js found but tsx is missing; skipping")
            continue
        version = await _get_version(path, runtime_type)
        return RuntimeInfo(type=runtime_type, executable=path, version=version)
    return None


async def _get_version(executable: str, runtime_type: RuntimeType) -> Optional[str]:
    """Get the version of a runtime."""
    try:
        process = await asyncio.create_subprocess_exec(
            executable,
            "--version",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
        stdout, _ = await asyncio.wait_for(process.communicate(), timeout=5.0)
    except (OSError, asyncio.TimeoutError) as e:
        logger.debug(f"Failed to get version for {executable}: {e}")
        return None

    output = stdout.decode().strip()
    if not output:
        return None

    if runtime_type == RuntimeType.DENO:
        # "deno 2.x.x (...)"
        for line in output.splitlines():
            if line.startswith("deno"):
                return line.split()[1]
    elif runtime_type == RuntimeType.NODE:
        # "v20.x.x"
        return output.lstrip("v").split()[0]

    # Bun: "1.x.x"
    return output.split()[0]


def get_runtime_args(
    executable: str,
    entry_point: Path,
    debug: bool = False
) -> list[str]:
    """
    Build the command line for running the sidecar.

    Args:
        executable: Path to the runtime executable
        entry_point: Path to main.ts
        debug: Enable the runtime's inspector

    Returns:
        List of command-line arguments
    """
    exe_name = Path(executable).name.lower()

    if "deno" in exe_name:
        args = [
            executable,
            "run",
            "--allow-read",
            "--allow-net",
            "--allow-env",
        ]
        if debug:
            args.append("--inspect")
    elif "bun" in exe_name:
        args = [executable, "run"]
        if debug:
            args.append("--inspect")
    else:
        tsx_path = shutil.which("tsx")
        if tsx_path is None:
            raise RuntimeError(
                "Node.js needs tsx to run TypeScript. Install with: npm install -g tsx"
            )
        args = [tsx_path]
        if debug:
            args.append("--inspect")

    args.append(str(entry_point))
    return args
