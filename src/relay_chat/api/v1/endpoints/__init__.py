"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .community import router as community_router
from .contacts import router as contacts_router
from .messages import router as messages_router
from .stories import router as stories_router
from .system import router as system_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "community_router",
    "contacts_router",
    "messages_router",
    "stories_router",
    "system_router",
    "users_router",
]
