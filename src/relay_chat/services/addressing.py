"""Conversation addressing and the shared community conversation."""

from __future__ import annotations

import logging

from relay_chat.core.errors import InvalidHandle, InvalidPair, NotFound
from relay_chat.core.settings import Settings, settings
from relay_chat.db.realtime import RealtimeDatabase
from relay_chat.schemas.community import CommunityGroup, Member
from relay_chat.schemas.identity import HANDLE_PATTERN

logger = logging.getLogger(__name__)

COMMUNITY_KEY = "community"
PAIR_SEPARATOR = ":"


def validate_handle(handle: str) -> str:
    """Return ``handle`` if it can be used as a tree key and in pair keys."""
    if not isinstance(handle, str) or not HANDLE_PATTERN.match(handle):
        raise InvalidHandle(f"Invalid handle: {handle!r}")
    return handle


def two_party_key(handle_a: str, handle_b: str) -> str:
    """Return the conversation key shared by two handles.

    The key is the lexicographically sorted pair joined by ``:``, so
    ``two_party_key(a, b) == two_party_key(b, a)``. ``:`` never occurs in a
    handle, which keeps the key unambiguous.
    """
    validate_handle(handle_a)
    validate_handle(handle_b)
    if handle_a == handle_b:
        raise InvalidPair("A conversation needs two different participants")
    return PAIR_SEPARATOR.join(sorted((handle_a, handle_b)))


def is_community(conversation_key: str) -> bool:
    return conversation_key == COMMUNITY_KEY


def participants(conversation_key: str) -> tuple[str, str] | None:
    """Return both handles of a two-party key, or None for the community key."""
    if is_community(conversation_key):
        return None
    first, sep, second = conversation_key.partition(PAIR_SEPARATOR)
    if not sep or not first or not second:
        raise InvalidPair(f"Not a conversation key: {conversation_key!r}")
    return first, second


class ConversationAddressing:
    """Resolve conversation keys and provision the community group."""

    def __init__(self, db: RealtimeDatabase, config: Settings | None = None) -> None:
        self._db = db
        self._config = config or settings

    @staticmethod
    def two_party_key(handle_a: str, handle_b: str) -> str:
        return two_party_key(handle_a, handle_b)

    @property
    def group_path(self) -> str:
        return f"groups/{COMMUNITY_KEY}"

    async def community_key(self) -> str:
        """Return the community key, creating the group on first access."""
        if not await self._db.exists(self.group_path):
            group = CommunityGroup(
                id=COMMUNITY_KEY,
                name=self._config.community_name,
                description=self._config.community_description,
                created_at=self._db.server_time(),
            )
            await self._db.set(self.group_path, group.to_tree())
            logger.info("Provisioned community conversation %s", COMMUNITY_KEY)
        return COMMUNITY_KEY

    async def get_community(self) -> CommunityGroup:
        await self.community_key()
        data = await self._db.get(self.group_path)
        if data is None:
            raise NotFound("Community group not found")
        return CommunityGroup.model_validate(data)

    async def join_community(self, handle: str) -> Member:
        """Add ``handle`` to the community; joining twice keeps the first record."""
        validate_handle(handle)
        await self.community_key()
        member_path = f"{self.group_path}/members/{handle}"
        existing = await self._db.get(member_path)
        if existing is not None:
            return Member.model_validate(existing)

        member = Member(handle=handle, joined_at=self._db.server_time())
        await self._db.set(member_path, member.to_tree())
        return member

    async def list_members(self) -> list[Member]:
        """Return community members in join order."""
        group = await self.get_community()
        return sorted(group.members.values(), key=lambda member: member.joined_at)
