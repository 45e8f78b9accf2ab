"""Client context bundling the database connection, the stores and a session.

A ``ChatClient`` is created once per process (or per test), connected, and
passed to whatever needs the stores. The HTTP API shares one client between
requests and authenticates each request with a bearer token; interactive
callers use ``login``/``logout`` to hold a single session on the client.
"""

from __future__ import annotations

import logging
from types import TracebackType

from relay_chat.core.errors import ChatError, NotAuthenticated
from relay_chat.core.settings import Settings, settings
from relay_chat.db.memory import MemoryDatabase
from relay_chat.db.realtime import RealtimeDatabase
from relay_chat.schemas.identity import Identity, Presence
from relay_chat.schemas.message import Message
from relay_chat.services.addressing import ConversationAddressing, two_party_key
from relay_chat.services.contacts import ContactBook
from relay_chat.services.cooldown import CooldownService
from relay_chat.services.identity import IdentityDirectory
from relay_chat.services.media_host import MediaHostClient
from relay_chat.services.messages import MessageStore
from relay_chat.services.retention import RetentionSweeper
from relay_chat.services.stories import MediaPostStore

logger = logging.getLogger(__name__)


def open_database(config: Settings) -> RealtimeDatabase:
    """Create the database backend selected by ``DATABASE_BACKEND``."""
    if config.database_backend == "sql":
        from relay_chat.db.sql import SqlDatabase

        return SqlDatabase.from_url(config.database_url, echo=config.sql_debug)
    return MemoryDatabase()


class ChatClient:
    """Explicit context object owning every store of one deployment."""

    def __init__(
        self,
        config: Settings | None = None,
        *,
        database: RealtimeDatabase | None = None,
        media_host: MediaHostClient | None = None,
        cooldown: CooldownService | None = None,
    ) -> None:
        self.config = config or settings
        self._database = database
        self._media_host = media_host
        self._owns_database = database is None
        self._owns_media_host = media_host is None
        self._cooldown = cooldown
        self._session: Identity | None = None
        self._connected = False

    # --- Lifecycle -----------------------------------------------------------------
    async def connect(self) -> ChatClient:
        """Open the database and build the stores. Calling it twice is a no-op."""
        if self._connected:
            return self

        config = self.config
        if self._database is None:
            self._database = open_database(config)
        if self._media_host is None:
            self._media_host = MediaHostClient.from_settings(config)
        if self._cooldown is None:
            self._cooldown = CooldownService.from_settings(config)

        db = self._database
        self.directory = IdentityDirectory(db, config)
        self.addressing = ConversationAddressing(db, config)
        self.contacts = ContactBook(db, self.directory)
        self.messages = MessageStore(
            db, contacts=self.contacts, cooldown=self._cooldown, config=config
        )
        self.stories = MediaPostStore(db, self._media_host, contacts=self.contacts, config=config)
        self.sweeper = RetentionSweeper(db, retention_ms=config.retention_ms)
        self._connected = True
        logger.info("Connected to %s realtime database", config.database_backend)
        return self

    async def close(self) -> None:
        """End the session and release the resources this client opened.

        A database or media host passed in by the caller stays open.
        """
        if not self._connected:
            return
        try:
            await self.logout()
        finally:
            if self._owns_media_host and self._media_host is not None:
                await self._media_host.close()
                self._media_host = None
            if self._owns_database and self._database is not None:
                await self._database.close()
                self._database = None
            self._connected = False

    async def __aenter__(self) -> ChatClient:
        return await self.connect()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def database(self) -> RealtimeDatabase:
        if self._database is None:
            raise RuntimeError("ChatClient is not connected")
        return self._database

    # --- Session -------------------------------------------------------------------
    @property
    def current_user(self) -> Identity:
        if self._session is None:
            raise NotAuthenticated("Please log in first")
        return self._session

    async def register(self, handle: str, password: str) -> Identity:
        """Register and open a session; new users join the community."""
        identity = await self.directory.register(handle, password)
        await self.addressing.join_community(identity.handle)
        self._session = identity
        return identity

    async def login(self, handle: str, password: str) -> Identity:
        identity = await self.directory.authenticate(handle, password)
        await self.addressing.join_community(identity.handle)
        self._session = identity
        return identity

    async def logout(self) -> None:
        """Mark the session user offline and forget the session."""
        if self._session is None:
            return
        handle = self._session.handle
        self._session = None
        try:
            await self.directory.set_presence(handle, Presence.OFFLINE)
        except ChatError as err:
            logger.warning("Could not mark %s offline: %s", handle, err)

    # --- Conveniences for the session user -----------------------------------------
    async def send_to(self, peer_handle: str, text: str) -> Message:
        sender = self.current_user.handle
        return await self.messages.append(two_party_key(sender, peer_handle), sender, text)

    async def send_to_community(self, text: str) -> Message:
        sender = self.current_user.handle
        return await self.messages.append(await self.addressing.community_key(), sender, text)
