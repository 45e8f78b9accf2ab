"""Identity directory: registration, credentials, presence and lookup."""

from __future__ import annotations

import logging
import secrets
from typing import Any

from relay_chat.core import security
from relay_chat.core.errors import (
    BadCredential,
    DuplicateHandle,
    NotFound,
    TransientStoreError,
)
from relay_chat.core.settings import Settings, settings
from relay_chat.db.realtime import RealtimeDatabase
from relay_chat.schemas.identity import Identity, Presence
from relay_chat.services.addressing import validate_handle

logger = logging.getLogger(__name__)

__all__ = ["IdentityDirectory"]


class IdentityDirectory:
    """Maps handles to generated addresses and presence.

    Identities live under ``identities/{handle}``; ``addresses/{address}``
    is a secondary index so address lookups do not scan the directory.
    """

    def __init__(self, db: RealtimeDatabase, config: Settings | None = None) -> None:
        self._db = db
        self._config = config or settings

    def generate_address(self) -> str:
        """Return the address prefix followed by random digits."""
        digits = "".join(str(secrets.randbelow(10)) for _ in range(self._config.address_digits))
        return f"{self._config.address_prefix}{digits}"

    async def _allocate_address(self) -> str:
        for _ in range(max(1, self._config.address_allocation_attempts)):
            address = self.generate_address()
            if not await self._db.exists(f"addresses/{address}"):
                return address
            logger.warning("Generated address %s already taken; retrying", address)
        raise TransientStoreError("Could not allocate a unique address")

    async def register(self, handle: str, password: str) -> Identity:
        """Create an identity with a fresh address and presence ``online``.

        Raises:
            InvalidHandle: If the handle is not usable as a key.
            DuplicateHandle: If the handle is already registered.
        """
        validate_handle(handle)
        if await self._db.exists(f"identities/{handle}"):
            raise DuplicateHandle("Username already exists")

        address = await self._allocate_address()
        identity = Identity(
            handle=handle,
            address=address,
            presence=Presence.ONLINE,
            registered_at=self._db.server_time(),
        )
        record = identity.to_tree()
        record["passwordHash"] = security.hash_password(password)
        await self._db.update(
            "",
            {
                f"identities/{handle}": record,
                f"addresses/{address}": handle,
            },
        )
        logger.info("Registered %s with address %s", handle, address)
        return identity

    async def authenticate(self, handle: str, password: str) -> Identity:
        """Check credentials and mark the identity online.

        Raises:
            NotFound: If the handle is unknown.
            BadCredential: If the password does not match.
        """
        record = await self._read(handle)
        if record is None:
            raise NotFound("User not found")
        if not security.verify_password(password, str(record.get("passwordHash", ""))):
            raise BadCredential("Invalid password")

        now = self._db.server_time()
        await self._db.update(
            f"identities/{handle}",
            {"presence": Presence.ONLINE.value, "lastLogin": now},
        )
        record.update(presence=Presence.ONLINE.value, lastLogin=now)
        return Identity.model_validate(record)

    async def get(self, handle: str) -> Identity:
        identity = await self.find(handle)
        if identity is None:
            raise NotFound("User not found")
        return identity

    async def find(self, handle: str) -> Identity | None:
        record = await self._read(handle)
        return Identity.model_validate(record) if record is not None else None

    async def set_presence(self, handle: str, state: Presence | str) -> None:
        """Overwrite the presence of ``handle``; last writer wins."""
        presence = Presence(state)
        if not await self._db.exists(f"identities/{handle}"):
            raise NotFound("User not found")
        await self._db.set(f"identities/{handle}/presence", presence.value)

    async def update_profile(
        self,
        handle: str,
        *,
        bio: str | None = None,
        presence: Presence | str | None = None,
    ) -> Identity:
        """Edit the mutable profile fields. Handle and address never change."""
        values: dict[str, Any] = {}
        if bio is not None:
            values["bio"] = bio
        if presence is not None:
            values["presence"] = Presence(presence).value

        if not await self._db.exists(f"identities/{handle}"):
            raise NotFound("User not found")
        if values:
            await self._db.update(f"identities/{handle}", values)
        return await self.get(handle)

    async def find_by_address(self, address: str) -> Identity | None:
        """Resolve an address through the address index."""
        if not address or "/" in address:
            return None
        handle = await self._db.get(f"addresses/{address}")
        if not isinstance(handle, str):
            return None
        identity = await self.find(handle)
        if identity is None or identity.address != address:
            return None
        return identity

    async def list_all(self) -> list[Identity]:
        """Return every identity in storage order."""
        records = await self._db.get("identities") or {}
        return [Identity.model_validate(record) for record in records.values()]

    async def _read(self, handle: str) -> dict[str, Any] | None:
        if not handle or "/" in handle:
            return None
        record = await self._db.get(f"identities/{handle}")
        return record if isinstance(record, dict) else None
