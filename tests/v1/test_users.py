"""Tests for user directory endpoints."""

from fastapi import status


def test_me_and_profile_update(api, register_user) -> None:
    headers = register_user("alice")
    me = api.get("/api/v1/users/me", headers=headers).json()

    r = api.patch(
        "/api/v1/users/me",
        json={"bio": "hello", "presence": "busy"},
        headers=headers,
    )
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["bio"] == "hello"
    assert data["presence"] == "busy"
    assert data["address"] == me["address"]


def test_bio_length_is_limited(api, register_user) -> None:
    headers = register_user("alice")
    r = api.patch("/api/v1/users/me", json={"bio": "x" * 281}, headers=headers)
    assert r.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_set_presence(api, register_user) -> None:
    headers = register_user("alice")
    r = api.put("/api/v1/users/me/presence", json={"presence": "away"}, headers=headers)
    assert r.status_code == status.HTTP_204_NO_CONTENT
    assert api.get("/api/v1/users/me", headers=headers).json()["presence"] == "away"


def test_find_by_address(api, register_user) -> None:
    alice = register_user("alice")
    carol_address = api.get("/api/v1/users/me", headers=register_user("carol")).json()["address"]

    r = api.get(f"/api/v1/users/by-address/{carol_address}", headers=alice)
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["handle"] == "carol"

    r = api.get("/api/v1/users/by-address/080000000000", headers=alice)
    assert r.status_code == status.HTTP_404_NOT_FOUND


def test_list_users(api, register_user) -> None:
    headers = register_user("alice")
    register_user("bob")
    r = api.get("/api/v1/users/", headers=headers)
    assert {user["handle"] for user in r.json()} == {"alice", "bob"}
    assert all("passwordHash" not in user for user in r.json())
