"""Tests for password hashing and session tokens."""

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from relay_chat.core.errors import NotAuthenticated
from relay_chat.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def test_hash_password_is_salted():
    first = hash_password("pw")
    second = hash_password("pw")
    assert first != second
    assert verify_password("pw", first)
    assert verify_password("pw", second)
    assert not verify_password("other", first)


def test_verify_password_rejects_malformed_hash():
    assert not verify_password("pw", "")
    assert not verify_password("pw", "nodigest")


def test_token_round_trip(test_settings):
    token = create_access_token("alice", test_settings)
    assert decode_access_token(token, test_settings) == "alice"


def test_token_with_wrong_secret(test_settings):
    token = jwt.encode({"sub": "alice"}, "another-secret", algorithm="HS256")
    with pytest.raises(NotAuthenticated):
        decode_access_token(token, test_settings)


def test_expired_token(test_settings):
    payload = {"sub": "alice", "exp": datetime.now(UTC) - timedelta(minutes=1)}
    token = jwt.encode(payload, test_settings.secret_key, algorithm=test_settings.jwt_algorithm)
    with pytest.raises(NotAuthenticated):
        decode_access_token(token, test_settings)


def test_token_without_subject(test_settings):
    token = jwt.encode({"scope": "x"}, test_settings.secret_key, algorithm="HS256")
    with pytest.raises(NotAuthenticated):
        decode_access_token(token, test_settings)
