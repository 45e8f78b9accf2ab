"""Shared API dependencies for authentication and store access."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from relay_chat.client import ChatClient
from relay_chat.core.errors import NotAuthenticated
from relay_chat.core.security import decode_access_token
from relay_chat.schemas.identity import Identity

# HTTP Bearer scheme; missing credentials are reported as NotAuthenticated
bearer_scheme = HTTPBearer(auto_error=False)


def get_chat_client(request: Request) -> ChatClient:
    """Return the client context created at application startup."""
    return request.app.state.chat_client


ChatClientDep = Annotated[ChatClient, Depends(get_chat_client)]


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    client: ChatClientDep,
) -> Identity:
    """Resolve the identity named by the bearer token.

    Raises:
        NotAuthenticated: If the token is missing, invalid or names an unknown handle.
    """
    if credentials is None:
        raise NotAuthenticated("Not authenticated")
    handle = decode_access_token(credentials.credentials, client.config)
    identity = await client.directory.find(handle)
    if identity is None:
        raise NotAuthenticated("User not found")
    return identity


CurrentIdentityDep = Annotated[Identity, Depends(get_current_identity)]
