# src/relay_chat/models/__init__.py
"""SQLAlchemy models for the Relay Chat application."""

from .tree_node import TreeNode

__all__ = ["TreeNode"]
