"""Tests for the retention sweeper and its background worker."""

import asyncio

import pytest

from relay_chat.core.errors import TransientStoreError
from relay_chat.services.retention import RetentionSweeper, RetentionWorker, SweepResult

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS


@pytest.fixture
def sweeper(db):
    return RetentionSweeper(db, retention_ms=DAY_MS)


async def _seed_message(db, key, message_id, created_at):
    record = {"sender": "alice", "text": "hi"}
    if created_at is not None:
        record["createdAt"] = created_at
    await db.set(f"conversations/{key}/messages/{message_id}", record)


@pytest.mark.asyncio
async def test_retention_horizon(sweeper, db, clock):
    now = clock.now_ms
    await _seed_message(db, "alice:bob", "expired", now - DAY_MS - 1)
    await _seed_message(db, "alice:bob", "boundary", now - DAY_MS)
    await _seed_message(db, "alice:bob", "recent", now - 23 * HOUR_MS)
    await _seed_message(db, "alice:bob", "untimed", None)

    result = await sweeper.sweep()

    assert result.ok
    assert result.deleted_messages == 3
    remaining = await db.get("conversations/alice:bob/messages")
    assert list(remaining) == ["recent"]


@pytest.mark.asyncio
async def test_sweeps_stories_and_every_conversation(sweeper, db, clock):
    now = clock.now_ms
    await _seed_message(db, "alice:bob", "m1", now - 2 * DAY_MS)
    await _seed_message(db, "community", "m2", now - 2 * DAY_MS)
    await db.set("stories/bob/old", {"owner": "bob", "createdAt": now - DAY_MS})
    await db.set("stories/bob/new", {"owner": "bob", "createdAt": now - 1000})

    result = await sweeper.sweep()

    assert result == SweepResult(ok=True, deleted_messages=2, deleted_posts=1)
    assert result.deleted_count == 3
    assert list(await db.get("stories/bob")) == ["new"]


@pytest.mark.asyncio
async def test_sweep_is_idempotent(sweeper, db, clock):
    await _seed_message(db, "alice:bob", "m1", clock.now_ms - 2 * DAY_MS)
    assert (await sweeper.sweep()).deleted_count == 1
    assert (await sweeper.sweep()).deleted_count == 0


@pytest.mark.asyncio
async def test_enumeration_failure_reports_error(sweeper, db, mocker):
    mocker.patch.object(db, "get", side_effect=TransientStoreError("offline"))

    result = await sweeper.sweep()

    assert result.ok is False
    assert result.deleted_count == 0
    assert "offline" in result.error


@pytest.mark.asyncio
async def test_item_failure_is_skipped(sweeper, db, clock, mocker):
    old = clock.now_ms - 2 * DAY_MS
    await _seed_message(db, "alice:bob", "m1", old)
    await _seed_message(db, "alice:carol", "m2", old)

    real_remove = db.remove

    async def flaky_remove(path):
        if "alice:bob" in path:
            raise TransientStoreError("write failed")
        await real_remove(path)

    mocker.patch.object(db, "remove", side_effect=flaky_remove)

    result = await sweeper.sweep()

    assert result.ok
    assert result.deleted_messages == 1
    assert await db.exists("conversations/alice:bob/messages/m1")


@pytest.mark.asyncio
async def test_worker_runs_after_initial_delay_and_stops(sweeper, mocker):
    sweep = mocker.patch.object(sweeper, "sweep", return_value=SweepResult(ok=True))
    worker = RetentionWorker(sweeper, initial_delay=0.01, interval=60)

    await worker.start()
    await asyncio.sleep(0.1)
    assert worker.running
    await worker.stop()

    sweep.assert_awaited_once()
    assert worker.last_result == SweepResult(ok=True)
    assert not worker.running


@pytest.mark.asyncio
async def test_worker_stop_before_first_run(sweeper, mocker):
    sweep = mocker.patch.object(sweeper, "sweep", return_value=SweepResult(ok=True))
    worker = RetentionWorker(sweeper, initial_delay=60, interval=60)

    await worker.start()
    await worker.stop()

    sweep.assert_not_called()


@pytest.mark.asyncio
async def test_worker_trigger_runs_immediately(sweeper, db, clock):
    await _seed_message(db, "alice:bob", "m1", clock.now_ms - 2 * DAY_MS)
    worker = RetentionWorker(sweeper, initial_delay=60, interval=60)

    result = await worker.trigger()

    assert result.deleted_messages == 1
    assert worker.last_result is result
