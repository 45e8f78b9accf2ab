"""Authentication endpoints for the Relay Chat API."""

from __future__ import annotations

from fastapi import APIRouter, status

from relay_chat.core.security import create_access_token
from relay_chat.schemas.identity import LoginRequest, LoginResponse, Presence, RegisterRequest

from ..dependencies import ChatClientDep, CurrentIdentityDep

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, client: ChatClientDep) -> LoginResponse:
    """Register a handle; the new identity joins the community conversation."""
    identity = await client.directory.register(payload.handle, payload.password)
    await client.addressing.join_community(identity.handle)
    return LoginResponse(
        access_token=create_access_token(identity.handle, client.config),
        identity=identity,
    )


@router.post("/login")
async def login(payload: LoginRequest, client: ChatClientDep) -> LoginResponse:
    """Check credentials and return a bearer token."""
    identity = await client.directory.authenticate(payload.handle, payload.password)
    await client.addressing.join_community(identity.handle)
    return LoginResponse(
        access_token=create_access_token(identity.handle, client.config),
        identity=identity,
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(current: CurrentIdentityDep, client: ChatClientDep) -> None:
    """Mark the caller offline. Tokens stay valid until they expire."""
    await client.directory.set_presence(current.handle, Presence.OFFLINE)
