"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    community_router,
    contacts_router,
    messages_router,
    stories_router,
    system_router,
    users_router,
)

__all__ = [
    "auth_router",
    "community_router",
    "contacts_router",
    "messages_router",
    "stories_router",
    "system_router",
    "users_router",
]
