"""SQLAlchemy model storing one leaf of the realtime tree per row."""

from typing import Any

from sqlalchemy import JSON, Text
from sqlalchemy.orm import Mapped, mapped_column

from relay_chat.db.session import Base


class TreeNode(Base):
    """Leaf value addressed by its full ``/``-separated path.

    Subtrees are never stored directly; a subtree read collects every leaf
    whose path starts with ``<path>/``.
    """

    __tablename__ = "tree_node"

    path: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=False)
