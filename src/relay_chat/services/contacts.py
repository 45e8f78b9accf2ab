"""Saved contacts and chat history side tables.

Both tables live under ``identities/{handle}`` and are derived data: saved
contacts come from address lookups and chat history from message writes.
``ContactBook.record_message`` is the only code that writes chat history, and
``rebuild`` recomputes it from the conversation logs.
"""

from __future__ import annotations

import logging
from typing import Any

from relay_chat.core.errors import InvalidPair, NotFound
from relay_chat.db.realtime import RealtimeDatabase
from relay_chat.schemas.contact import ChatHistoryEntry, SavedContact
from relay_chat.schemas.message import DELETED_PLACEHOLDER, Message, is_message_record
from relay_chat.services.addressing import COMMUNITY_KEY, is_community, participants
from relay_chat.services.identity import IdentityDirectory

logger = logging.getLogger(__name__)


def display_text(message: Message) -> str:
    """Return the text shown for ``message`` in history previews."""
    if message.deleted or message.text == DELETED_PLACEHOLDER:
        return DELETED_PLACEHOLDER
    return message.text


class ContactBook:
    """Per-identity saved contacts and chat history."""

    def __init__(self, db: RealtimeDatabase, directory: IdentityDirectory) -> None:
        self._db = db
        self._directory = directory

    # --- Saved contacts ------------------------------------------------------------
    async def add_contact(self, handle: str, address: str) -> SavedContact:
        """Save the identity that owns ``address`` as a contact of ``handle``."""
        owner = await self._directory.get(handle)
        if address == owner.address:
            raise InvalidPair("Cannot add yourself as a contact")
        contact = await self._directory.find_by_address(address)
        if contact is None:
            raise NotFound("User not found")

        path = f"identities/{handle}/savedContacts/{contact.handle}"
        existing = await self._db.get(path)
        if existing is not None:
            return SavedContact.model_validate(existing)

        saved = SavedContact(
            handle=contact.handle,
            address=contact.address,
            added_at=self._db.server_time(),
        )
        await self._db.set(path, saved.to_tree())
        logger.info("%s saved contact %s", handle, contact.handle)
        return saved

    async def list_contacts(self, handle: str) -> list[SavedContact]:
        """Return saved contacts in the order they were added."""
        records = await self._db.get(f"identities/{handle}/savedContacts") or {}
        contacts = [SavedContact.model_validate(record) for record in records.values()]
        return sorted(contacts, key=lambda contact: contact.added_at)

    async def remove_contact(self, handle: str, contact_handle: str) -> None:
        path = f"identities/{handle}/savedContacts/{contact_handle}"
        if not await self._db.exists(path):
            raise NotFound("Contact not found")
        await self._db.remove(path)

    # --- Chat history --------------------------------------------------------------
    async def list_history(self, handle: str) -> list[ChatHistoryEntry]:
        """Return history entries, most recent activity first."""
        records = await self._db.get(f"identities/{handle}/chatHistory") or {}
        entries = [ChatHistoryEntry.model_validate(record) for record in records.values()]
        return sorted(entries, key=lambda entry: entry.last_message_time, reverse=True)

    async def record_message(self, conversation_key: str, message: Message) -> None:
        """Upsert the history entry of every participant for a new message."""
        entries = await self._entries_for(conversation_key, message)
        if entries:
            await self._db.update("identities", entries)

    async def rebuild(self, handle: str) -> int:
        """Recompute the chat history of ``handle`` from the conversation logs.

        Returns the number of entries written.
        """
        identity = await self._directory.get(handle)
        conversations = await self._db.get("conversations") or {}
        is_member = await self._db.exists(f"groups/{COMMUNITY_KEY}/members/{handle}")

        history: dict[str, Any] = {}
        for key, node in conversations.items():
            if not isinstance(node, dict):
                continue
            latest = _latest_message(node.get("messages"))
            if latest is None:
                continue
            if is_community(key):
                if is_member or handle in (node.get("participants") or {}):
                    history[COMMUNITY_KEY] = _community_entry(latest)
                continue
            pair = _pair_or_none(key)
            if pair is None or identity.handle not in pair:
                continue
            peer_handle = pair[1] if pair[0] == identity.handle else pair[0]
            peer = await self._directory.find(peer_handle)
            if peer is None:
                continue
            history[peer.address] = _entry(peer_handle, peer.address, latest)

        await self._db.set(f"identities/{handle}/chatHistory", history or None)
        return len(history)

    async def _entries_for(self, conversation_key: str, message: Message) -> dict[str, Any]:
        if is_community(conversation_key):
            members = await self._db.get(f"groups/{COMMUNITY_KEY}/members") or {}
            handles = set(members) | {message.sender}
            entry = _community_entry(message)
            return {f"{handle}/chatHistory/{COMMUNITY_KEY}": entry for handle in handles}

        pair = participants(conversation_key)
        if pair is None:
            return {}
        first = await self._directory.find(pair[0])
        second = await self._directory.find(pair[1])
        if first is None or second is None:
            logger.warning("Skipping history for %s: participant missing", conversation_key)
            return {}
        return {
            f"{first.handle}/chatHistory/{second.address}": _entry(
                second.handle, second.address, message
            ),
            f"{second.handle}/chatHistory/{first.address}": _entry(
                first.handle, first.address, message
            ),
        }


def _entry(peer_handle: str, peer_address: str, message: Message) -> dict[str, Any]:
    return ChatHistoryEntry(
        peer_handle=peer_handle,
        peer_address=peer_address,
        last_message=display_text(message),
        last_message_time=message.sort_key,
    ).to_tree()


def _community_entry(message: Message) -> dict[str, Any]:
    return _entry(COMMUNITY_KEY, COMMUNITY_KEY, message)


def _pair_or_none(conversation_key: str) -> tuple[str, str] | None:
    try:
        return participants(conversation_key)
    except InvalidPair:
        return None


def _latest_message(records: Any) -> Message | None:
    if not isinstance(records, dict):
        return None
    messages = [
        Message.model_validate({**record, "id": message_id})
        for message_id, record in records.items()
        if is_message_record(record)
    ]
    if not messages:
        return None
    return max(messages, key=lambda message: (message.sort_key, message.id))
