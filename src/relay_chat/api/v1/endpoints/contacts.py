"""Saved contact and chat history endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from relay_chat.schemas.contact import ChatHistoryEntry, ContactCreate, SavedContact

from ..dependencies import ChatClientDep, CurrentIdentityDep

router = APIRouter(prefix="/contacts", tags=["contacts"])


@router.get("/")
async def list_contacts(current: CurrentIdentityDep, client: ChatClientDep) -> list[SavedContact]:
    return await client.contacts.list_contacts(current.handle)


@router.post("/", status_code=status.HTTP_201_CREATED)
async def add_contact(
    payload: ContactCreate,
    current: CurrentIdentityDep,
    client: ChatClientDep,
) -> SavedContact:
    """Save the user that owns ``address`` as a contact."""
    return await client.contacts.add_contact(current.handle, payload.address.strip())


@router.get("/history")
async def list_history(
    current: CurrentIdentityDep,
    client: ChatClientDep,
) -> list[ChatHistoryEntry]:
    """Return recent conversations, most recent first."""
    return await client.contacts.list_history(current.handle)


@router.post("/history/rebuild")
async def rebuild_history(current: CurrentIdentityDep, client: ChatClientDep) -> dict[str, int]:
    return {"entries": await client.contacts.rebuild(current.handle)}


@router.delete("/{handle}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_contact(handle: str, current: CurrentIdentityDep, client: ChatClientDep) -> None:
    await client.contacts.remove_contact(current.handle, handle)
