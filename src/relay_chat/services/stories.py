"""Ephemeral media posts (stories) shown to saved contacts for 24 hours."""

from __future__ import annotations

import logging
from typing import Any

from relay_chat.core.errors import Forbidden, NotFound, TooLarge, UnsupportedType
from relay_chat.core.settings import Settings, settings
from relay_chat.db.realtime import RealtimeDatabase
from relay_chat.schemas.story import MediaPost, MediaType, StoryGroup, StoryView
from relay_chat.services.contacts import ContactBook
from relay_chat.services.media_host import SUPPORTED_EXTENSIONS, MediaHostClient, MediaUpload

logger = logging.getLogger(__name__)


class MediaPostStore:
    """Stores stories under ``stories/{owner}/{postId}``."""

    def __init__(
        self,
        db: RealtimeDatabase,
        media_host: MediaHostClient,
        *,
        contacts: ContactBook,
        config: Settings | None = None,
    ) -> None:
        self._db = db
        self._media_host = media_host
        self._contacts = contacts
        self._config = config or settings

    def validate(self, media: MediaUpload) -> MediaType:
        media_type = media.media_type
        if media_type is None or media.extension not in SUPPORTED_EXTENSIONS:
            raise UnsupportedType("Please select an image or video file")
        if media.size > self._config.media_max_bytes:
            raise TooLarge(self._config.media_max_bytes)
        return media_type

    def is_expired(self, post: MediaPost, now: int | None = None) -> bool:
        now = self._db.server_time() if now is None else now
        return now - post.created_at >= self._config.retention_ms

    async def post(self, owner: str, media: MediaUpload) -> MediaPost:
        """Upload ``media`` and publish it as a story of ``owner``."""
        media_type = self.validate(media)
        media_url = await self._media_host.upload(media.filename, media.content, media.content_type)

        post = MediaPost(
            id=self._db.push_key(),
            owner=owner,
            media_url=media_url,
            media_type=media_type,
            created_at=self._db.server_time(),
        )
        await self._db.set(f"stories/{owner}/{post.id}", post.to_tree(exclude={"id"}))
        logger.info("%s posted story %s", owner, post.id)
        return post

    async def get(self, owner: str, post_id: str) -> MediaPost:
        """Return a live story; expired and partial records read as missing."""
        record = await self._db.get(f"stories/{owner}/{post_id}")
        if not _is_post_record(record):
            raise NotFound("Story not found")
        post = _to_post(owner, post_id, record)
        if self.is_expired(post):
            raise NotFound("Story not found")
        return post

    async def list_visible(self, viewer: str) -> list[StoryGroup]:
        """Return unexpired stories of the viewer's saved contacts.

        Owners appear in the order the viewer saved them; each owner's posts
        are oldest first.
        """
        contacts = await self._contacts.list_contacts(viewer)
        if not contacts:
            return []
        now = self._db.server_time()
        groups = []
        for contact in contacts:
            posts = [
                post for post in await self._posts_of(contact.handle)
                if not self.is_expired(post, now)
            ]
            if posts:
                posts.sort(key=lambda post: post.created_at)
                groups.append(StoryGroup(owner=contact.handle, posts=posts))
        return groups

    async def list_own(self, owner: str) -> list[MediaPost]:
        """Return the owner's unexpired stories, newest first."""
        now = self._db.server_time()
        posts = [post for post in await self._posts_of(owner) if not self.is_expired(post, now)]
        return sorted(posts, key=lambda post: post.created_at, reverse=True)

    async def mark_viewed(self, owner: str, post_id: str, viewer: str) -> MediaPost:
        """Record that ``viewer`` opened a story; repeated views keep one entry."""
        post = await self.get(owner, post_id)
        view = StoryView(viewed_at=self._db.server_time())
        await self._db.set(f"stories/{owner}/{post_id}/viewedBy/{viewer}", view.to_tree())
        viewed_by = {**post.viewed_by, viewer: view}
        return post.model_copy(update={"viewed_by": viewed_by})

    async def delete_own(self, owner: str, post_id: str, actor: str) -> None:
        """Hard-delete a story. Only its owner may do so."""
        if actor != owner:
            raise Forbidden("Only the owner can delete this story")
        path = f"stories/{owner}/{post_id}"
        if not await self._db.exists(path):
            raise NotFound("Story not found")
        await self._db.remove(path)
        logger.info("%s deleted story %s", owner, post_id)

    async def _posts_of(self, owner: str) -> list[MediaPost]:
        records = await self._db.get(f"stories/{owner}") or {}
        posts = []
        for post_id, record in records.items():
            if not _is_post_record(record):
                continue
            posts.append(_to_post(owner, post_id, record))
        return posts


def _is_post_record(value: Any) -> bool:
    return isinstance(value, dict) and "mediaUrl" in value and "createdAt" in value


def _to_post(owner: str, post_id: str, record: dict[str, Any]) -> MediaPost:
    return MediaPost.model_validate({"owner": owner, **record, "id": post_id})
