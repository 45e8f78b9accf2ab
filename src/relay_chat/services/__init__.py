"""Business logic services for Relay Chat."""

from .addressing import COMMUNITY_KEY, ConversationAddressing, two_party_key
from .contacts import ContactBook
from .cooldown import CooldownService
from .identity import IdentityDirectory
from .media_host import MediaHostClient, MediaUpload
from .messages import MessageStore
from .retention import RetentionSweeper, RetentionWorker, SweepResult
from .stories import MediaPostStore

__all__ = [
    "COMMUNITY_KEY",
    "ConversationAddressing",
    "ContactBook",
    "CooldownService",
    "IdentityDirectory",
    "MediaHostClient",
    "MediaUpload",
    "MediaPostStore",
    "MessageStore",
    "RetentionSweeper",
    "RetentionWorker",
    "SweepResult",
    "two_party_key",
]
