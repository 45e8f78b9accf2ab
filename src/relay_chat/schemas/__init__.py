"""
Pydantic schemas for stored records and API request/response models.

Records use camelCase aliases so the tree layout matches what browser clients
read directly from the realtime database.
"""

from .common import ErrorResponse, TreeRecord
from .community import CommunityGroup, Member
from .contact import ChatHistoryEntry, ContactCreate, SavedContact
from .identity import (
    Identity,
    LoginRequest,
    LoginResponse,
    Presence,
    PresenceUpdate,
    ProfileUpdateRequest,
    RegisterRequest,
)
from .message import DELETED_PLACEHOLDER, Message, MessageCreate, MessageRef, MessageStatus
from .story import MediaPost, MediaType, StoryGroup, StoryView

__all__ = [
    "ErrorResponse", "TreeRecord",
    "CommunityGroup", "Member",
    "ChatHistoryEntry", "ContactCreate", "SavedContact",
    "Identity", "LoginRequest", "LoginResponse", "Presence", "PresenceUpdate",
    "ProfileUpdateRequest", "RegisterRequest",
    "DELETED_PLACEHOLDER", "Message", "MessageCreate", "MessageRef", "MessageStatus",
    "MediaPost", "MediaType", "StoryGroup", "StoryView",
]
