# src/relay_chat/schemas/message.py
"""Message-related Pydantic schemas."""

from enum import StrEnum

from pydantic import BaseModel, Field

from .common import TreeRecord

DELETED_PLACEHOLDER = "This message was deleted"


class MessageStatus(StrEnum):
    """Delivery status of a two-party message."""

    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = [
    MessageStatus.PENDING,
    MessageStatus.SENT,
    MessageStatus.DELIVERED,
    MessageStatus.READ,
]


class Message(TreeRecord):
    """Entry of a conversation log.

    ``created_at`` is None until the database has assigned its timestamp.
    Community messages carry no ``status``.
    """

    id: str
    sender: str
    text: str
    created_at: int | None = None
    status: MessageStatus | None = None
    deleted: bool = False
    deleted_by: str | None = None

    @property
    def sort_key(self) -> int:
        return self.created_at or 0


def is_message_record(value: object) -> bool:
    """Return True if a stored node holds a whole message.

    A status or deletion write that lands after the sweeper removed a message
    leaves a node with only those fields; readers skip such nodes.
    """
    return isinstance(value, dict) and "sender" in value and "text" in value


class MessageCreate(BaseModel):
    """Schema for sending a message."""

    text: str = Field(..., description="Message text")


class MessageRef(BaseModel):
    """Identifiers returned after a successful send."""

    conversation_key: str
    message: Message
