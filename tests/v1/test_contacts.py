"""Tests for saved contact and chat history endpoints."""

from fastapi import status


def _address(api, headers) -> str:
    return api.get("/api/v1/users/me", headers=headers).json()["address"]


def test_add_list_and_remove_contact(api, register_user) -> None:
    alice = register_user("alice")
    bob_address = _address(api, register_user("bob"))

    r = api.post("/api/v1/contacts/", json={"address": bob_address}, headers=alice)
    assert r.status_code == status.HTTP_201_CREATED
    assert r.json()["handle"] == "bob"

    contacts = api.get("/api/v1/contacts/", headers=alice).json()
    assert [(c["handle"], c["address"]) for c in contacts] == [("bob", bob_address)]

    r = api.delete("/api/v1/contacts/bob", headers=alice)
    assert r.status_code == status.HTTP_204_NO_CONTENT
    assert api.get("/api/v1/contacts/", headers=alice).json() == []


def test_add_contact_errors(api, register_user) -> None:
    alice = register_user("alice")

    r = api.post("/api/v1/contacts/", json={"address": _address(api, alice)}, headers=alice)
    assert r.json()["code"] == "invalid-pair"

    r = api.post("/api/v1/contacts/", json={"address": "080000000000"}, headers=alice)
    assert r.status_code == status.HTTP_404_NOT_FOUND


def test_history_and_rebuild(api, register_user) -> None:
    alice = register_user("alice")
    bob = register_user("bob")
    api.post("/api/v1/messages/bob", json={"text": "hey"}, headers=alice)

    history = api.get("/api/v1/contacts/history", headers=bob).json()
    assert [(e["peerHandle"], e["lastMessage"]) for e in history] == [("alice", "hey")]

    r = api.post("/api/v1/contacts/history/rebuild", headers=bob)
    assert r.json() == {"entries": 1}
