"""Password hashing and session token helpers."""
from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from relay_chat.core.errors import NotAuthenticated
from relay_chat.core.settings import Settings, settings


def hash_password(password: str, salt: str | None = None) -> str:
    """Return a salted SHA-256 hash in ``salt$digest`` form."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.sha256(f"{salt}:{password}".encode("utf-8")).hexdigest()
    return f"{salt}${digest}"


def verify_password(password: str, stored: str) -> bool:
    """Compare a candidate password against a stored ``salt$digest`` hash."""
    salt, _, _digest = stored.partition("$")
    if not salt:
        return False
    return hmac.compare_digest(hash_password(password, salt), stored)


def create_access_token(handle: str, config: Settings | None = None) -> str:
    """Create a JWT bearer token whose subject is the handle."""
    config = config or settings
    expire = datetime.now(UTC) + timedelta(minutes=config.access_token_expire_minutes)
    payload = {"sub": handle, "exp": expire}
    return jwt.encode(payload, config.secret_key, algorithm=config.jwt_algorithm)


def decode_access_token(token: str, config: Settings | None = None) -> str:
    """Return the handle carried by a token.

    Raises:
        NotAuthenticated: If the token is malformed, expired or has no subject.
    """
    config = config or settings
    try:
        payload = jwt.decode(token, config.secret_key, algorithms=[config.jwt_algorithm])
    except JWTError as err:
        raise NotAuthenticated("Could not validate credentials") from err
    subject = payload.get("sub")
    if not subject:
        raise NotAuthenticated("Could not validate credentials")
    return str(subject)
