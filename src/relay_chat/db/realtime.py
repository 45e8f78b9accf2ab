"""Client contract for the hierarchical realtime database.

The database is a JSON-like tree addressed by ``/``-separated paths. It offers
point reads, subtree writes and deletes, atomic multi-path updates,
server-assigned timestamps and subscriptions that deliver an initial snapshot
followed by a fresh snapshot after every write touching the watched path.

Backends implement ``_read`` and ``_apply``; everything else (path handling,
timestamp resolution, listener fan-out, push keys) lives in the base class.
"""

from __future__ import annotations

import copy
import inspect
import itertools
import logging
import secrets
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from relay_chat.db.time import now_ms

logger = logging.getLogger(__name__)

Path = tuple[str, ...]
Listener = Callable[[Any], Awaitable[None] | None]


class _ServerTimestamp:
    """Placeholder resolved to the database clock when a value is written."""

    _instance: _ServerTimestamp | None = None

    def __new__(cls) -> _ServerTimestamp:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


def split_path(path: str) -> Path:
    """Split a ``/``-separated path into segments.

    Leading and trailing slashes are ignored; the empty path is the root.

    Raises:
        ValueError: If an inner segment is empty.
    """
    stripped = path.strip("/")
    if not stripped:
        return ()
    parts = tuple(stripped.split("/"))
    if any(not part for part in parts):
        raise ValueError(f"Invalid database path: {path!r}")
    return parts


def _overlaps(a: Path, b: Path) -> bool:
    shortest = min(len(a), len(b))
    return a[:shortest] == b[:shortest]


def prepare_value(value: Any, now: int) -> Any:
    """Resolve server timestamps and drop empty branches.

    Like the hosted database, ``None`` leaves and empty mappings are not
    stored; a value that prepares to nothing means "delete".
    """
    if value is SERVER_TIMESTAMP:
        return now
    if isinstance(value, Mapping):
        prepared = {}
        for key, child in value.items():
            key = str(key)
            if not key or "/" in key:
                raise ValueError(f"Invalid key: {key!r}")
            resolved = prepare_value(child, now)
            if resolved is not None:
                prepared[key] = resolved
        return prepared or None
    if isinstance(value, (list, tuple)):
        return prepare_value({str(i): item for i, item in enumerate(value)}, now)
    return value


@dataclass
class Subscription:
    """Handle returned by ``RealtimeDatabase.subscribe``."""

    path: str
    _cancel: Callable[[], None] = field(repr=False)
    active: bool = True

    def cancel(self) -> None:
        """Stop receiving snapshots. Safe to call more than once."""
        if self.active:
            self.active = False
            self._cancel()


@dataclass
class _Watch:
    parts: Path
    callback: Listener


class RealtimeDatabase(ABC):
    """Base class for realtime database backends."""

    def __init__(self, clock: Callable[[], int] | None = None) -> None:
        self._clock = clock or now_ms
        self._watches: dict[int, _Watch] = {}
        self._watch_ids = itertools.count(1)
        self._closed = False

    # --- Backend hooks ---------------------------------------------------------------
    @abstractmethod
    async def _read(self, parts: Path) -> Any:
        """Return a deep copy of the value stored at ``parts`` or None."""

    @abstractmethod
    async def _apply(self, writes: dict[Path, Any]) -> None:
        """Atomically replace each path's subtree with its prepared value.

        A value of None removes the subtree.
        """

    async def _dispose(self) -> None:  # noqa: B027 - optional hook
        """Release backend resources."""

    # --- Public API ------------------------------------------------------------------
    def server_time(self) -> int:
        """Return the database clock in epoch milliseconds."""
        return self._clock()

    def push_key(self) -> str:
        """Return a new unique, chronologically sortable child key."""
        return f"{self._clock():013d}-{secrets.token_hex(5)}"

    async def get(self, path: str) -> Any:
        """Return the value at ``path`` (a nested dict for subtrees) or None."""
        return await self._read(split_path(path))

    async def exists(self, path: str) -> bool:
        return await self.get(path) is not None

    async def set(self, path: str, value: Any) -> None:
        """Replace the subtree at ``path`` with ``value``; None deletes it."""
        parts = split_path(path)
        await self._commit({parts: prepare_value(value, self.server_time())})

    async def remove(self, path: str) -> None:
        await self.set(path, None)

    async def update(self, path: str, values: Mapping[str, Any]) -> None:
        """Apply several writes below ``path`` as one atomic operation.

        Keys of ``values`` are paths relative to ``path``; a None value deletes
        that child.
        """
        base = split_path(path)
        now = self.server_time()
        writes: dict[Path, Any] = {}
        for relative, value in values.items():
            writes[base + split_path(relative)] = prepare_value(value, now)
        if writes:
            await self._commit(writes)

    async def subscribe(self, path: str, callback: Listener) -> Subscription:
        """Watch ``path``; ``callback`` gets the current value and every change."""
        parts = split_path(path)
        watch_id = next(self._watch_ids)
        self._watches[watch_id] = _Watch(parts=parts, callback=callback)
        subscription = Subscription(
            path="/".join(parts),
            _cancel=lambda: self._watches.pop(watch_id, None),
        )
        await self._deliver(self._watches[watch_id])
        return subscription

    async def close(self) -> None:
        """Drop every subscription and release the backend."""
        if self._closed:
            return
        self._closed = True
        self._watches.clear()
        await self._dispose()

    # --- Internals -------------------------------------------------------------------
    async def _commit(self, writes: dict[Path, Any]) -> None:
        await self._apply(writes)
        touched = list(writes)
        for watch in list(self._watches.values()):
            if any(_overlaps(watch.parts, parts) for parts in touched):
                await self._deliver(watch)

    async def _deliver(self, watch: _Watch) -> None:
        snapshot = await self._read(watch.parts)
        try:
            result = watch.callback(copy.deepcopy(snapshot))
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Listener for %s raised", "/".join(watch.parts) or "/")
