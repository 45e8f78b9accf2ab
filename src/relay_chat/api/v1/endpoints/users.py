"""User directory endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from relay_chat.core.errors import NotFound
from relay_chat.schemas.identity import Identity, PresenceUpdate, ProfileUpdateRequest

from ..dependencies import ChatClientDep, CurrentIdentityDep

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/")
async def list_users(current: CurrentIdentityDep, client: ChatClientDep) -> list[Identity]:
    return await client.directory.list_all()


@router.get("/me")
async def read_me(current: CurrentIdentityDep) -> Identity:
    return current


@router.patch("/me")
async def update_me(
    payload: ProfileUpdateRequest,
    current: CurrentIdentityDep,
    client: ChatClientDep,
) -> Identity:
    """Update bio and presence. Handle and address cannot be changed."""
    return await client.directory.update_profile(
        current.handle,
        bio=payload.bio,
        presence=payload.presence,
    )


@router.put("/me/presence", status_code=status.HTTP_204_NO_CONTENT)
async def set_presence(
    payload: PresenceUpdate,
    current: CurrentIdentityDep,
    client: ChatClientDep,
) -> None:
    await client.directory.set_presence(current.handle, payload.presence)


@router.get("/by-address/{address}")
async def find_by_address(
    address: str,
    current: CurrentIdentityDep,
    client: ChatClientDep,
) -> Identity:
    identity = await client.directory.find_by_address(address)
    if identity is None:
        raise NotFound("User not found")
    return identity
