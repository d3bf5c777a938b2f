"""Persistence backends for the ledger."""
from .base import BaseStore
from .memory import InMemoryStore
from .mongo import MongoStore

__all__ = ["BaseStore", "InMemoryStore", "MongoStore"]
