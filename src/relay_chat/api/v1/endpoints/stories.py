"""Story endpoints: 24-hour media posts shared with saved contacts."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, File, UploadFile, status

from relay_chat.schemas.story import MediaPost, StoryGroup
from relay_chat.services.media_host import MediaUpload

from ..dependencies import ChatClientDep, CurrentIdentityDep

router = APIRouter(prefix="/stories", tags=["stories"])


@router.get("/")
async def list_visible(current: CurrentIdentityDep, client: ChatClientDep) -> list[StoryGroup]:
    """Return stories of the caller's saved contacts."""
    return await client.stories.list_visible(current.handle)


@router.get("/mine")
async def list_own(current: CurrentIdentityDep, client: ChatClientDep) -> list[MediaPost]:
    return await client.stories.list_own(current.handle)


@router.post("/", status_code=status.HTTP_201_CREATED)
async def post_story(
    file: Annotated[UploadFile, File(description="Image or video file")],
    current: CurrentIdentityDep,
    client: ChatClientDep,
) -> MediaPost:
    """Upload a file to the media host and publish it as a story."""
    media = MediaUpload(
        filename=file.filename or "upload",
        content=await file.read(),
        content_type=file.content_type or "application/octet-stream",
    )
    return await client.stories.post(current.handle, media)


@router.post("/{owner}/{post_id}/view")
async def mark_viewed(
    owner: str,
    post_id: str,
    current: CurrentIdentityDep,
    client: ChatClientDep,
) -> MediaPost:
    return await client.stories.mark_viewed(owner, post_id, current.handle)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_story(post_id: str, current: CurrentIdentityDep, client: ChatClientDep) -> None:
    await client.stories.delete_own(current.handle, post_id, current.handle)
