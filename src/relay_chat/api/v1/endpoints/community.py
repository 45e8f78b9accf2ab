"""Community conversation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from relay_chat.schemas.community import CommunityGroup, Member
from relay_chat.schemas.message import Message, MessageCreate, MessageRef

from ..dependencies import ChatClientDep, CurrentIdentityDep

router = APIRouter(prefix="/community", tags=["community"])


@router.get("/")
async def get_community(current: CurrentIdentityDep, client: ChatClientDep) -> CommunityGroup:
    """Return the community group, creating it on first access."""
    return await client.addressing.get_community()


@router.post("/join")
async def join_community(current: CurrentIdentityDep, client: ChatClientDep) -> Member:
    return await client.addressing.join_community(current.handle)


@router.get("/members")
async def list_members(current: CurrentIdentityDep, client: ChatClientDep) -> list[Member]:
    return await client.addressing.list_members()


@router.get("/messages")
async def list_messages(current: CurrentIdentityDep, client: ChatClientDep) -> list[Message]:
    key = await client.addressing.community_key()
    return await client.messages.list(key)


@router.post("/messages", status_code=status.HTTP_201_CREATED)
async def send_message(
    payload: MessageCreate,
    current: CurrentIdentityDep,
    client: ChatClientDep,
) -> MessageRef:
    client.messages.validate_text(payload.text)
    key = await client.addressing.community_key()
    await client.addressing.join_community(current.handle)
    message = await client.messages.append(key, current.handle, payload.text)
    return MessageRef(conversation_key=key, message=message)


@router.delete("/messages/{message_id}")
async def delete_message(
    message_id: str,
    current: CurrentIdentityDep,
    client: ChatClientDep,
) -> Message:
    key = await client.addressing.community_key()
    return await client.messages.soft_delete_one(key, message_id, current.handle)
