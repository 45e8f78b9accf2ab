"""Tests for system endpoints."""

from fastapi import status


def test_health(api) -> None:
    r = api.get("/health")
    assert r.status_code == status.HTTP_200_OK
    assert r.json() == {"status": "ok"}


def test_public_config_hides_secrets(api) -> None:
    r = api.get("/api/v1/system/config")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["messages"]["max_length"] == 70
    assert data["retention"]["hours"] == 24
    assert "secret" not in r.text


def test_manual_sweep(api, register_user, clock) -> None:
    alice = register_user("alice")
    register_user("bob")
    api.post("/api/v1/messages/bob", json={"text": "old news"}, headers=alice)

    clock.advance(hours=25)
    r = api.post("/api/v1/system/sweep", headers=alice)
    assert r.status_code == status.HTTP_200_OK
    assert r.json() == {
        "ok": True,
        "deleted_messages": 1,
        "deleted_posts": 0,
        "error": None,
        "deleted_count": 1,
    }
    assert api.get("/api/v1/messages/bob", headers=alice).json() == []


def test_sweep_requires_auth(api) -> None:
    assert api.post("/api/v1/system/sweep").status_code == status.HTTP_401_UNAUTHORIZED
