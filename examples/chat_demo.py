#!/usr/bin/env python3
"""Walk through a short conversation against an in-memory Relay Chat store.

This script shows how to:
1. Register two users and exchange messages
2. Post to the community conversation
3. Run a retention sweep

Usage:
    python examples/chat_demo.py
"""

import asyncio

from relay_chat.client import ChatClient
from relay_chat.core.settings import Settings
from relay_chat.services.addressing import two_party_key


async def main() -> None:
    config = Settings(database_backend="memory", message_cooldown_seconds=0)

    async with ChatClient(config) as alice_session, ChatClient(
        config, database=alice_session.database
    ) as bob_session:
        alice = await alice_session.register("alice", "alice-pass")
        bob = await bob_session.register("bob", "bob-pass")
        print(f"alice is at {alice.address}, bob is at {bob.address}")

        await alice_session.contacts.add_contact(alice.handle, bob.address)
        await alice_session.send_to("bob", "Hi Bob!")
        await bob_session.send_to("alice", "Hey Alice, this disappears in a day.")
        await bob_session.send_to_community("Hello everyone")

        key = two_party_key(alice.handle, bob.handle)
        await bob_session.messages.mark_read(key, bob.handle)
        for message in await alice_session.messages.list(key):
            print(f"[{message.status}] {message.sender}: {message.text}")

        for entry in await alice_session.contacts.list_history(alice.handle):
            print(f"history: {entry.peer_handle} -> {entry.last_message}")

        result = await alice_session.sweeper.sweep()
        print(f"sweep ok={result.ok} deleted={result.deleted_count}")


if __name__ == "__main__":
    asyncio.run(main())
