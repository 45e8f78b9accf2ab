"""Two-party message endpoints for the Relay Chat API."""

from __future__ import annotations

from fastapi import APIRouter, status

from relay_chat.client import ChatClient
from relay_chat.schemas.identity import Identity
from relay_chat.schemas.message import Message, MessageCreate, MessageRef
from relay_chat.services.addressing import two_party_key

from ..dependencies import ChatClientDep, CurrentIdentityDep

router = APIRouter(prefix="/messages", tags=["messages"])


async def _conversation_with(client: ChatClient, current: Identity, peer: str) -> str:
    """Return the key shared with ``peer`` once the peer is known to exist."""
    key = two_party_key(current.handle, peer)
    await client.directory.get(peer)
    return key


@router.get("/{peer}")
async def list_messages(peer: str, current: CurrentIdentityDep, client: ChatClientDep) -> list[Message]:
    """Return the conversation with ``peer``, oldest first."""
    key = await _conversation_with(client, current, peer)
    return await client.messages.list(key)


@router.post("/{peer}", status_code=status.HTTP_201_CREATED)
async def send_message(
    peer: str,
    payload: MessageCreate,
    current: CurrentIdentityDep,
    client: ChatClientDep,
) -> MessageRef:
    """Send a message to ``peer``."""
    client.messages.validate_text(payload.text)
    key = await _conversation_with(client, current, peer)
    message = await client.messages.append(key, current.handle, payload.text)
    return MessageRef(conversation_key=key, message=message)


@router.post("/{peer}/read")
async def mark_read(peer: str, current: CurrentIdentityDep, client: ChatClientDep) -> dict[str, int]:
    key = await _conversation_with(client, current, peer)
    return {"updated": await client.messages.mark_read(key, current.handle)}


@router.post("/{peer}/delivered")
async def mark_delivered(
    peer: str,
    current: CurrentIdentityDep,
    client: ChatClientDep,
) -> dict[str, int]:
    key = await _conversation_with(client, current, peer)
    return {"updated": await client.messages.mark_delivered(key, current.handle)}


@router.delete("/{peer}/{message_id}")
async def delete_message(
    peer: str,
    message_id: str,
    current: CurrentIdentityDep,
    client: ChatClientDep,
) -> Message:
    """Soft-delete one of the caller's own messages."""
    key = await _conversation_with(client, current, peer)
    return await client.messages.soft_delete_one(key, message_id, current.handle)


@router.delete("/{peer}")
async def clear_conversation(
    peer: str,
    current: CurrentIdentityDep,
    client: ChatClientDep,
) -> dict[str, int]:
    """Soft-delete every message of the conversation."""
    key = await _conversation_with(client, current, peer)
    return {"deleted": await client.messages.soft_delete_all(key, current.handle)}
