"""Tests for authentication endpoints."""

from fastapi import status


def test_register_returns_token_and_identity(api) -> None:
    r = api.post("/api/v1/auth/register", json={"handle": "alice", "password": "pw"})
    assert r.status_code == status.HTTP_201_CREATED
    data = r.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["identity"]["handle"] == "alice"
    assert data["identity"]["address"].startswith("08")
    assert data["identity"]["presence"] == "online"


def test_register_duplicate_handle(api, register_user) -> None:
    register_user("alice")
    r = api.post("/api/v1/auth/register", json={"handle": "alice", "password": "pw"})
    assert r.status_code == status.HTTP_409_CONFLICT
    assert r.json() == {
        "detail": "Username already exists",
        "code": "duplicate-handle",
        "retryable": False,
    }


def test_register_invalid_handle(api) -> None:
    r = api.post("/api/v1/auth/register", json={"handle": "bad handle", "password": "pw"})
    assert r.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_login(api, register_user) -> None:
    register_user("alice", "right")

    r = api.post("/api/v1/auth/login", json={"handle": "alice", "password": "right"})
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["identity"]["lastLogin"] is not None

    r = api.post("/api/v1/auth/login", json={"handle": "alice", "password": "wrong"})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert r.json()["code"] == "bad-credential"

    r = api.post("/api/v1/auth/login", json={"handle": "nobody", "password": "right"})
    assert r.status_code == status.HTTP_404_NOT_FOUND


def test_logout_sets_offline(api, register_user) -> None:
    headers = register_user("alice")
    r = api.post("/api/v1/auth/logout", headers=headers)
    assert r.status_code == status.HTTP_204_NO_CONTENT
    assert api.get("/api/v1/users/me", headers=headers).json()["presence"] == "offline"


def test_protected_route_requires_token(api) -> None:
    r = api.get("/api/v1/users/me")
    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert r.json()["code"] == "not-authenticated"

    r = api.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED
