"""Message store: per-conversation append-only logs.

Messages live under ``conversations/{key}/messages/{id}``. Deletion from a
client is always soft; only the retention sweeper removes records.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from relay_chat.core.errors import EmptyMessage, Forbidden, MessageTooLong, NotFound
from relay_chat.core.settings import Settings, settings
from relay_chat.db.realtime import SERVER_TIMESTAMP, RealtimeDatabase, Subscription
from relay_chat.schemas.message import (
    DELETED_PLACEHOLDER,
    Message,
    MessageStatus,
    is_message_record,
)
from relay_chat.services.addressing import participants
from relay_chat.services.contacts import ContactBook
from relay_chat.services.cooldown import CooldownService

logger = logging.getLogger(__name__)

MessagesCallback = Callable[[list[Message]], Awaitable[None] | None]


def sort_messages(records: Any) -> list[Message]:
    """Turn a ``messages`` snapshot into a list ordered by creation time.

    Records without a timestamp sort first; ties keep push-key order.
    Partial nodes left behind by a concurrent sweep are skipped.
    """
    if not isinstance(records, dict):
        return []
    messages = [
        Message.model_validate({**record, "id": message_id})
        for message_id, record in records.items()
        if is_message_record(record)
    ]
    return sorted(messages, key=lambda message: (message.sort_key, message.id))


class MessageStore:
    """Append, read and annotate conversation messages."""

    def __init__(
        self,
        db: RealtimeDatabase,
        *,
        contacts: ContactBook,
        cooldown: CooldownService | None = None,
        config: Settings | None = None,
    ) -> None:
        self._db = db
        self._contacts = contacts
        self._cooldown = cooldown
        self._config = config or settings

    def validate_text(self, text: str) -> None:
        """Check the composition limits.

        The hard bound is checked first so oversized payloads always report
        it, whatever the soft limit is configured to.
        """
        if len(text) > self._config.hard_message_length:
            raise MessageTooLong(self._config.hard_message_length, bound="hard")
        if len(text) > self._config.max_message_length:
            raise MessageTooLong(self._config.max_message_length, bound="soft")
        if not text.strip():
            raise EmptyMessage()

    async def append(self, conversation_key: str, sender: str, text: str) -> Message:
        """Add a message to a conversation and return it as stored.

        Raises:
            MessageTooLong: If the text exceeds the soft or hard bound.
            EmptyMessage: If the text is empty or whitespace.
            Forbidden: If ``sender`` is not part of a two-party conversation.
            RateLimited: If the sender is still cooling down.
        """
        self.validate_text(text)
        pair = participants(conversation_key)
        if pair is not None and sender not in pair:
            raise Forbidden("Sender is not a participant of this conversation")
        if self._cooldown is not None:
            self._cooldown.check(sender, conversation_key)

        base = f"conversations/{conversation_key}"
        message_id = self._db.push_key()
        record: dict[str, Any] = {
            "sender": sender,
            "text": text,
            "createdAt": SERVER_TIMESTAMP,
            "deleted": False,
        }
        if pair is not None:
            record["status"] = MessageStatus.PENDING.value

        updates: dict[str, Any] = {f"messages/{message_id}": record}
        for handle in pair or (sender,):
            updates[f"participants/{handle}"] = True
        await self._db.update(base, updates)

        if pair is not None:
            await self._db.set(f"{base}/messages/{message_id}/status", MessageStatus.SENT.value)
        if self._cooldown is not None:
            self._cooldown.record(sender, conversation_key)

        message = await self.get(conversation_key, message_id)
        await self._contacts.record_message(conversation_key, message)
        logger.debug("Appended %s to %s", message_id, conversation_key)
        return message

    async def get(self, conversation_key: str, message_id: str) -> Message:
        record = await self._db.get(f"conversations/{conversation_key}/messages/{message_id}")
        if not is_message_record(record):
            raise NotFound("Message not found")
        return Message.model_validate({**record, "id": message_id})

    async def list(self, conversation_key: str) -> list[Message]:
        """Return the conversation log ordered by creation time."""
        records = await self._db.get(f"conversations/{conversation_key}/messages")
        return sort_messages(records)

    async def watch(self, conversation_key: str, callback: MessagesCallback) -> Subscription:
        """Call ``callback`` with the sorted log now and after every change."""

        async def deliver(records: Any) -> None:
            result = callback(sort_messages(records))
            if inspect.isawaitable(result):
                await result

        return await self._db.subscribe(f"conversations/{conversation_key}/messages", deliver)

    async def mark_read(self, conversation_key: str, reader: str) -> int:
        """Mark every unread message addressed to ``reader`` as read."""
        return await self._advance(conversation_key, reader, MessageStatus.READ)

    async def mark_delivered(self, conversation_key: str, reader: str) -> int:
        """Mark pending and sent messages addressed to ``reader`` as delivered."""
        return await self._advance(conversation_key, reader, MessageStatus.DELIVERED)

    async def _advance(self, conversation_key: str, reader: str, target: MessageStatus) -> int:
        updates = {
            f"messages/{message.id}/status": target.value
            for message in await self.list(conversation_key)
            if message.sender != reader
            and not message.deleted
            and message.status is not None
            and message.status.rank < target.rank
        }
        if updates:
            await self._db.update(f"conversations/{conversation_key}", updates)
        return len(updates)

    async def soft_delete_one(self, conversation_key: str, message_id: str, actor: str) -> Message:
        """Replace a message's text with the deletion placeholder.

        Raises:
            NotFound: If the message does not exist.
            Forbidden: If ``actor`` did not send the message.
        """
        message = await self.get(conversation_key, message_id)
        if message.sender != actor:
            raise Forbidden("Only the sender can delete this message")
        if message.deleted:
            return message

        await self._db.update(
            f"conversations/{conversation_key}/messages/{message_id}",
            {"text": DELETED_PLACEHOLDER, "deleted": True, "deletedBy": actor},
        )
        return message.model_copy(
            update={"text": DELETED_PLACEHOLDER, "deleted": True, "deleted_by": actor}
        )

    async def soft_delete_all(self, conversation_key: str, actor: str) -> int:
        """Soft-delete every message of the conversation in one update."""
        pair = participants(conversation_key)
        if pair is not None and actor not in pair:
            raise Forbidden("Only participants can clear this conversation")
        updates: dict[str, Any] = {}
        for message in await self.list(conversation_key):
            if message.deleted:
                continue
            updates[f"messages/{message.id}/text"] = DELETED_PLACEHOLDER
            updates[f"messages/{message.id}/deleted"] = True
            updates[f"messages/{message.id}/deletedBy"] = actor
        if updates:
            await self._db.update(f"conversations/{conversation_key}", updates)
            logger.info("%s cleared conversation %s", actor, conversation_key)
        return len(updates) // 3
