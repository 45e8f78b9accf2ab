# src/relay_chat/db/__init__.py
"""Realtime database backends."""

from .memory import MemoryDatabase
from .realtime import SERVER_TIMESTAMP, RealtimeDatabase, Subscription, split_path

__all__ = [
    "MemoryDatabase",
    "RealtimeDatabase",
    "SERVER_TIMESTAMP",
    "Subscription",
    "split_path",
]
