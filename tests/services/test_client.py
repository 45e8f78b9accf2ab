"""Tests for the ChatClient context and its session lifecycle."""

import pytest

from relay_chat.client import ChatClient, open_database
from relay_chat.core.errors import NotAuthenticated
from relay_chat.core.settings import Settings
from relay_chat.db.memory import MemoryDatabase
from relay_chat.db.sql import SqlDatabase
from relay_chat.schemas.identity import Presence
from relay_chat.services.addressing import COMMUNITY_KEY
from relay_chat.services.cooldown import CooldownService


def test_open_database_follows_backend_setting():
    assert isinstance(open_database(Settings(database_backend="memory")), MemoryDatabase)
    sql = open_database(Settings(database_backend="sql", database_url="sqlite://"))
    assert isinstance(sql, SqlDatabase)


@pytest.mark.asyncio
async def test_current_user_requires_session(chat):
    with pytest.raises(NotAuthenticated):
        chat.current_user


@pytest.mark.asyncio
async def test_register_opens_session_and_joins_community(chat):
    identity = await chat.register("alice", "pw")

    assert chat.current_user == identity
    members = await chat.addressing.list_members()
    assert [member.handle for member in members] == ["alice"]


@pytest.mark.asyncio
async def test_logout_marks_offline_and_clears_session(chat):
    await chat.register("alice", "pw")
    await chat.logout()

    assert (await chat.directory.get("alice")).presence == Presence.OFFLINE
    with pytest.raises(NotAuthenticated):
        chat.current_user
    await chat.logout()


@pytest.mark.asyncio
async def test_login_and_send(chat, cooldown):
    cooldown.seconds = 0
    await chat.directory.register("bob", "pw")
    await chat.directory.register("alice", "pw")
    await chat.login("alice", "pw")

    direct = await chat.send_to("bob", "hi bob")
    group = await chat.send_to_community("hi all")

    assert direct.sender == "alice"
    assert [m.text for m in await chat.messages.list("alice:bob")] == ["hi bob"]
    assert [m.id for m in await chat.messages.list(COMMUNITY_KEY)] == [group.id]


@pytest.mark.asyncio
async def test_context_manager_leaves_shared_database_open(
    test_settings, db, media_host, cooldown, mocker
):
    close = mocker.spy(db, "close")
    async with ChatClient(test_settings, database=db, media_host=media_host, cooldown=cooldown) as chat:
        await chat.register("alice", "pw")
        assert chat.connected

    assert not chat.connected
    close.assert_not_called()
    assert (await db.get("identities/alice/presence")) == Presence.OFFLINE.value


@pytest.mark.asyncio
async def test_two_clients_share_one_database(test_settings, db, media_host, cooldown):
    first = ChatClient(test_settings, database=db, media_host=media_host, cooldown=cooldown)
    second = ChatClient(test_settings, database=db, media_host=media_host, cooldown=cooldown)
    async with first, second:
        await first.register("alice", "pw")

    async with ChatClient(test_settings, database=db, media_host=media_host) as third:
        assert (await third.directory.get("alice")).handle == "alice"


@pytest.mark.asyncio
async def test_close_releases_database_it_opened(test_settings):
    chat = ChatClient(test_settings, cooldown=CooldownService(0))
    await chat.connect()
    opened = chat.database
    await chat.close()

    assert opened._closed
    with pytest.raises(RuntimeError):
        chat.database
