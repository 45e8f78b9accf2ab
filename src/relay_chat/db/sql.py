"""Realtime database backed by a relational table of leaf paths.

Blocking SQLAlchemy work runs in a worker thread so the event loop stays free;
writes are serialized so a multi-path update commits as one transaction.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator
from typing import Any

from sqlalchemy import delete, insert, or_, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from relay_chat.core.errors import TransientStoreError
from relay_chat.db.realtime import Path, RealtimeDatabase
from relay_chat.db.session import create_tables, make_engine, make_sessionmaker
from relay_chat.models import TreeNode

logger = logging.getLogger(__name__)


def _flatten(parts: Path, value: Any) -> Iterator[tuple[str, Any]]:
    if isinstance(value, dict):
        for key, child in value.items():
            yield from _flatten(parts + (key,), child)
    elif parts and value is not None:
        yield "/".join(parts), value


def _subtree_clause(path: str):
    return or_(TreeNode.path == path, TreeNode.path.startswith(f"{path}/", autoescape=True))


class SqlDatabase(RealtimeDatabase):
    """Tree persisted in the ``tree_node`` table."""

    def __init__(
        self,
        engine: Engine,
        clock: Callable[[], int] | None = None,
        *,
        create_schema: bool = True,
    ) -> None:
        super().__init__(clock)
        self._engine = engine
        self._sessions = make_sessionmaker(engine)
        self._write_lock = asyncio.Lock()
        if create_schema:
            create_tables(engine)

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        echo: bool = False,
        clock: Callable[[], int] | None = None,
    ) -> SqlDatabase:
        """Build a database from a SQLAlchemy URL."""
        return cls(make_engine(url, echo=echo), clock)

    async def _read(self, parts: Path) -> Any:
        try:
            return await asyncio.to_thread(self._read_sync, parts)
        except SQLAlchemyError as err:
            logger.warning("Realtime tree read failed for %s: %s", "/".join(parts) or "/", err)
            raise TransientStoreError(f"Database read failed: {err}") from err

    async def _apply(self, writes: dict[Path, Any]) -> None:
        async with self._write_lock:
            try:
                await asyncio.to_thread(self._apply_sync, writes)
            except SQLAlchemyError as err:
                logger.warning("Realtime tree write failed: %s", err)
                raise TransientStoreError(f"Database write failed: {err}") from err

    async def _dispose(self) -> None:
        await asyncio.to_thread(self._engine.dispose)

    def _read_sync(self, parts: Path) -> Any:
        path = "/".join(parts)
        stmt = select(TreeNode.path, TreeNode.value)
        if path:
            stmt = stmt.where(_subtree_clause(path))
        with self._sessions() as db:
            rows = db.execute(stmt).all()

        if not rows:
            return None

        tree: dict[str, Any] = {}
        depth = len(parts)
        for row_path, value in rows:
            segments = row_path.split("/")[depth:]
            if not segments:
                # Scalar stored exactly at the requested path.
                return value
            node = tree
            for segment in segments[:-1]:
                node = node.setdefault(segment, {})
            node[segments[-1]] = value
        return tree

    def _apply_sync(self, writes: dict[Path, Any]) -> None:
        with self._sessions() as db, db.begin():
            for parts, value in writes.items():
                self._replace_subtree(db, parts, value)

    @staticmethod
    def _replace_subtree(db: Session, parts: Path, value: Any) -> None:
        path = "/".join(parts)

        # Writing below a scalar replaces that scalar.
        ancestors = ["/".join(parts[:i]) for i in range(1, len(parts))]
        if ancestors:
            db.execute(
                delete(TreeNode).where(TreeNode.path.in_(ancestors)),
                execution_options={"synchronize_session": False},
            )

        stmt = delete(TreeNode).where(_subtree_clause(path)) if path else delete(TreeNode)
        db.execute(stmt, execution_options={"synchronize_session": False})

        leaves = [{"path": leaf_path, "value": leaf} for leaf_path, leaf in _flatten(parts, value)]
        if leaves:
            db.execute(insert(TreeNode), leaves)
