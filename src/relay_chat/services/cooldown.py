"""Per-sender send cooldowns.

Backed by Redis when ``REDIS_URL`` is configured so several API workers share
the window; otherwise the last-send times are kept in process.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from threading import Lock
from typing import Any

import redis

from relay_chat.core.errors import RateLimited
from relay_chat.core.settings import Settings, settings

logger = logging.getLogger(__name__)


class CooldownService:
    """Tracks the last send of each (sender, conversation) pair."""

    def __init__(
        self,
        seconds: float,
        *,
        redis_client: Any | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.seconds = float(seconds)
        self._redis = redis_client
        self._clock = clock
        self._last_sent: dict[str, float] = {}
        self._lock = Lock()

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> CooldownService:
        config = config or settings
        client = None
        if config.redis_url:
            client = redis.from_url(config.redis_url)
        return cls(config.message_cooldown_seconds, redis_client=client)

    @staticmethod
    def _key(sender: str, conversation_key: str) -> str:
        return f"cooldown:{conversation_key}:{sender}"

    def _last(self, key: str) -> float | None:
        if self._redis is not None:
            try:
                raw = self._redis.get(key)
                return float(raw) if raw is not None else None
            except redis.RedisError as err:
                logger.warning("Redis unavailable for cooldowns, using local cache: %s", err)
                self._redis = None

        with self._lock:
            return self._last_sent.get(key)

    def remaining(self, sender: str, conversation_key: str) -> float:
        """Return the seconds left before ``sender`` may send again, or 0."""
        if self.seconds <= 0:
            return 0.0
        last = self._last(self._key(sender, conversation_key))
        if last is None:
            return 0.0
        return max(0.0, self.seconds - (self._clock() - last))

    def check(self, sender: str, conversation_key: str) -> None:
        """Raise ``RateLimited`` while the sender is inside the window."""
        left = self.remaining(sender, conversation_key)
        if left > 0:
            raise RateLimited(left)

    def record(self, sender: str, conversation_key: str) -> None:
        """Start a new window for the sender after a successful send."""
        if self.seconds <= 0:
            return
        key = self._key(sender, conversation_key)
        now = self._clock()
        if self._redis is not None:
            try:
                self._redis.set(key, repr(now), ex=math.ceil(self.seconds))
                return
            except redis.RedisError as err:
                logger.warning("Redis unavailable for cooldowns, using local cache: %s", err)
                self._redis = None

        with self._lock:
            # Drop windows that have already closed.
            expired = [k for k, last in self._last_sent.items() if now - last >= self.seconds]
            for stale in expired:
                del self._last_sent[stale]
            self._last_sent[key] = now
