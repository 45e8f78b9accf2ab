"""Retention sweep for messages and stories.

Everything older than the retention horizon is hard-deleted. The sweep is
idempotent and safe to run concurrently with writers; a record created while a
sweep runs is simply left for the next run.

``RetentionWorker`` runs the sweep in the background: once shortly after
startup and then once per interval.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from relay_chat.core.errors import TransientStoreError
from relay_chat.core.settings import Settings, settings
from relay_chat.db.realtime import RealtimeDatabase

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """Outcome of one sweep run."""

    ok: bool
    deleted_messages: int = 0
    deleted_posts: int = 0
    error: str | None = None

    @property
    def deleted_count(self) -> int:
        return self.deleted_messages + self.deleted_posts


class RetentionSweeper:
    """Deletes messages and media posts past the retention horizon."""

    def __init__(self, db: RealtimeDatabase, *, retention_ms: int | None = None) -> None:
        self._db = db
        self.retention_ms = settings.retention_ms if retention_ms is None else retention_ms

    def is_expired(self, created_at: Any, now: int) -> bool:
        """Records without a usable timestamp count as expired."""
        if isinstance(created_at, bool) or not isinstance(created_at, (int, float)):
            return True
        return now - created_at >= self.retention_ms

    async def sweep(self) -> SweepResult:
        now = self._db.server_time()
        try:
            conversation_keys = list((await self._db.get("conversations") or {}).keys())
            owners = list((await self._db.get("stories") or {}).keys())
        except TransientStoreError as err:
            logger.error("Retention sweep could not enumerate records: %s", err)
            return SweepResult(ok=False, error=str(err))

        deleted_messages = 0
        for key in conversation_keys:
            deleted_messages += await self._sweep_collection(
                f"conversations/{key}/messages", now
            )

        deleted_posts = 0
        for owner in owners:
            deleted_posts += await self._sweep_collection(f"stories/{owner}", now)

        result = SweepResult(ok=True, deleted_messages=deleted_messages, deleted_posts=deleted_posts)
        logger.info(
            "Retention sweep removed %s messages and %s stories",
            result.deleted_messages,
            result.deleted_posts,
        )
        return result

    async def _sweep_collection(self, path: str, now: int) -> int:
        try:
            records = await self._db.get(path)
        except TransientStoreError as err:
            logger.warning("Skipping %s during retention sweep: %s", path, err)
            return 0
        if not isinstance(records, dict):
            return 0

        deleted = 0
        for record_id, record in records.items():
            created_at = record.get("createdAt") if isinstance(record, dict) else None
            if not self.is_expired(created_at, now):
                continue
            try:
                await self._db.remove(f"{path}/{record_id}")
            except TransientStoreError as err:
                logger.warning("Could not delete %s/%s: %s", path, record_id, err)
                continue
            deleted += 1
        return deleted


class RetentionWorker:
    """Runs ``RetentionSweeper.sweep`` on a schedule inside the event loop."""

    def __init__(
        self,
        sweeper: RetentionSweeper,
        *,
        initial_delay: float | None = None,
        interval: float | None = None,
        config: Settings | None = None,
    ) -> None:
        config = config or settings
        self.sweeper = sweeper
        self.initial_delay = (
            config.sweep_initial_delay_seconds if initial_delay is None else initial_delay
        )
        self.interval = config.sweep_interval_seconds if interval is None else interval
        self.last_result: SweepResult | None = None
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background sweep loop."""
        if not self.running:
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background sweep loop."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None

    async def trigger(self) -> SweepResult:
        """Run one sweep now, outside the schedule."""
        self.last_result = await self.sweeper.sweep()
        return self.last_result

    async def _run(self) -> None:
        if await self._wait(self.initial_delay):
            return
        while not self._stopping.is_set():
            result = await self.trigger()
            if not result.ok:
                logger.warning("Retention sweep failed: %s", result.error)
            if await self._wait(max(0.1, float(self.interval))):
                return

    async def _wait(self, delay: float) -> bool:
        """Sleep for ``delay`` seconds; return True if stop was requested."""
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=max(0.0, delay))
        except TimeoutError:
            return False
        return True
