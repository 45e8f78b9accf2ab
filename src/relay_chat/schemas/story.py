"""Story (ephemeral media post) schemas."""

from enum import StrEnum

from pydantic import BaseModel, Field

from .common import TreeRecord


class MediaType(StrEnum):
    """Kinds of media a story can carry."""

    IMAGE = "image"
    VIDEO = "video"


class StoryView(TreeRecord):
    """Record of one viewer opening a story."""

    viewed_at: int


class MediaPost(TreeRecord):
    """Story stored under ``stories/{owner}/{id}``."""

    id: str
    owner: str
    media_url: str
    media_type: MediaType
    created_at: int
    viewed_by: dict[str, StoryView] = Field(default_factory=dict)


class StoryGroup(BaseModel):
    """Visible stories of one owner, oldest first."""

    owner: str
    posts: list[MediaPost]
