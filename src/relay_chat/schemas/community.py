"""Community-related Pydantic schemas."""

from pydantic import Field

from .common import TreeRecord


class Member(TreeRecord):
    """Member entry under ``groups/{communityKey}/members/{handle}``."""

    handle: str
    joined_at: int
    role: str = "member"


class CommunityGroup(TreeRecord):
    """Metadata of the shared community conversation."""

    id: str
    name: str
    description: str
    created_at: int
    created_by: str = "system"
    members: dict[str, Member] = Field(default_factory=dict)
