"""In-process realtime database used for tests and single-node deployments."""

from __future__ import annotations

import copy
from collections.abc import Callable
from typing import Any

from relay_chat.db.realtime import Path, RealtimeDatabase


class MemoryDatabase(RealtimeDatabase):
    """Tree held in a nested dict; writes are atomic within the event loop."""

    def __init__(self, clock: Callable[[], int] | None = None) -> None:
        super().__init__(clock)
        self._root: dict[str, Any] = {}

    async def _read(self, parts: Path) -> Any:
        node: Any = self._root
        for part in parts:
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        if node == {}:
            return None
        return copy.deepcopy(node)

    async def _apply(self, writes: dict[Path, Any]) -> None:
        for parts, value in writes.items():
            self._write(parts, copy.deepcopy(value))

    def _write(self, parts: Path, value: Any) -> None:
        if not parts:
            self._root = value if isinstance(value, dict) else {}
            return

        if value is None:
            self._delete(parts)
            return

        node = self._root
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value

    def _delete(self, parts: Path) -> None:
        trail: list[tuple[dict[str, Any], str]] = []
        node: Any = self._root
        for part in parts:
            if not isinstance(node, dict) or part not in node:
                return
            trail.append((node, part))
            node = node[part]

        # Remove the leaf, then prune parents left empty.
        for parent, key in reversed(trail):
            del parent[key]
            if parent:
                break
