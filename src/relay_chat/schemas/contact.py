"""Contact and chat history schemas.

Both are per-identity side tables derived from directory lookups and message
writes; they are never authoritative.
"""

from pydantic import BaseModel, Field

from .common import TreeRecord


class SavedContact(TreeRecord):
    """Contact saved under ``identities/{handle}/savedContacts/{contact}``."""

    handle: str
    address: str
    added_at: int


class ChatHistoryEntry(TreeRecord):
    """Latest activity with one peer, keyed by the peer's address."""

    peer_handle: str
    peer_address: str
    last_message: str
    last_message_time: int


class ContactCreate(BaseModel):
    """Schema for saving a contact by address."""

    address: str = Field(..., description="Generated address of the contact")
