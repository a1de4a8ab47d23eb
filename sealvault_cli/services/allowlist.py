"""Allowlist policy objects.

An allowlist is a shared Move object (``name``, ``list`` of addresses)
administered through a ``Cap`` object owned by its creator. Blobs
encrypted under a policy-bound identifier can be decrypted by any
address on the list.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from sealvault_cli.cli.error_handler import NotFoundError, SealVaultError, ValidationError
from sealvault_cli.identity.binder import is_valid_sui_address, normalize_address
from sealvault_cli.services.seal import MoveArg, SealService, TransactionResult
from sealvault_cli.services.sui_client import SuiClient, SuiObject

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "N/A"


@dataclass(frozen=True)
class Cap:
    """Administrative capability for one allowlist."""

    id: str
    allowlist_id: str


@dataclass
class Allowlist:
    """An allowlist and its members."""

    id: str
    name: str = UNKNOWN_NAME
    members: list[str] = field(default_factory=list)

    def contains(self, address: str) -> bool:
        target = normalize_address(address)
        return any(normalize_address(m) == target for m in self.members if is_valid_sui_address(m))


@dataclass(frozen=True)
class CapSummary:
    """A Cap with the name and size of its allowlist, for selection menus."""

    cap: Cap
    name: str
    member_count: int


def _uid(value: Any) -> Optional[str]:
    """Move UIDs and IDs come back either as strings or ``{"id": ...}``."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        inner = value.get("id")
        if isinstance(inner, str):
            return inner
        if isinstance(inner, dict):
            return _uid(inner)
    return None


def parse_cap(obj: SuiObject) -> Optional[Cap]:
    """Build a Cap from object fields, or None if they are incomplete."""
    cap_id = _uid(obj.fields.get("id")) or obj.object_id
    allowlist_id = _uid(obj.fields.get("allowlist_id"))
    if not cap_id or not allowlist_id:
        return None
    return Cap(id=cap_id, allowlist_id=allowlist_id)


class AllowlistService:
    """Queries and administers allowlists owned by the wallet."""

    def __init__(
        self,
        sui: SuiClient,
        seal: SealService,
        package_id: str,
        owner: str,
        module: str = "allowlist",
    ):
        self._sui = sui
        self._seal = seal
        self._package_id = package_id
        self._owner = owner
        self._module = module

    @property
    def module(self) -> str:
        return self._module

    @property
    def cap_type(self) -> str:
        return f"{self._package_id}::{self._module}::Cap"

    async def list_caps(self) -> list[Cap]:
        """All Cap objects owned by the wallet."""
        logger.info(f"Loading all Cap objects for address: {self._owner}")
        objects = await self._sui.get_owned_objects(self._owner, struct_type=self.cap_type)
        caps = []
        for obj in objects:
            cap = parse_cap(obj)
            if cap is None:
                logger.debug(f"Skipping malformed Cap object {obj.object_id}")
                continue
            caps.append(cap)
        logger.info(f"Found {len(caps)} Cap object(s)")
        return caps

    async def get_allowlist(self, allowlist_id: str) -> Allowlist:
        """Read an allowlist object."""
        obj = await self._sui.get_object(allowlist_id)
        members = obj.fields.get("list") or []
        return Allowlist(
            id=allowlist_id,
            name=obj.fields.get("name") or UNKNOWN_NAME,
            members=[str(m) for m in members],
        )

    async def find_cap(self, allowlist_id: str, caps: Optional[Sequence[Cap]] = None) -> Cap:
        """Find the wallet's Cap for an allowlist.

        Raises:
            NotFoundError: If the wallet does not administer the allowlist
        """
        caps = list(caps) if caps is not None else await self.list_caps()
        target = allowlist_id.lower()
        for cap in caps:
            if cap.allowlist_id.lower() == target:
                return cap
        raise NotFoundError(
            f"No Cap found for allowlist ID: {allowlist_id}",
            details={"available": ", ".join(c.allowlist_id for c in caps) or "none"},
        )

    async def summarize_caps(self, caps: Sequence[Cap]) -> list[CapSummary]:
        """Load every Cap's allowlist concurrently.

        A lookup that fails yields name ``N/A`` and zero members instead of
        failing the whole summary.
        """
        async def summarize(cap: Cap) -> CapSummary:
            try:
                allowlist = await self.get_allowlist(cap.allowlist_id)
            except SealVaultError as e:
                logger.warning(f"Failed to load allowlist {cap.allowlist_id}: {e}")
                return CapSummary(cap=cap, name=UNKNOWN_NAME, member_count=0)
            return CapSummary(cap=cap, name=allowlist.name, member_count=len(allowlist.members))

        return list(await asyncio.gather(*(summarize(cap) for cap in caps)))

    async def add_member(self, allowlist_id: str, cap_id: str, address: str) -> TransactionResult:
        """Add an address to an allowlist.

        Raises:
            ValidationError: If the address is not a valid Sui address
        """
        address = address.strip()
        if not is_valid_sui_address(address):
            raise ValidationError(f"Invalid Sui address: {address}")
        logger.info(f"Adding {address} to allowlist {allowlist_id}")
        return await self._seal.execute(self._module, "add", [
            MoveArg.object(allowlist_id),
            MoveArg.object(cap_id),
            MoveArg.address(normalize_address(address)),
        ])

    async def publish_blob(self, allowlist_id: str, cap_id: str, blob_id: str) -> TransactionResult:
        """Attach a Walrus blob id to an allowlist."""
        logger.info(f"Publishing blob {blob_id} to allowlist {allowlist_id}")
        return await self._seal.execute(self._module, "publish", [
            MoveArg.object(allowlist_id),
            MoveArg.object(cap_id),
            MoveArg.string(blob_id),
        ])
