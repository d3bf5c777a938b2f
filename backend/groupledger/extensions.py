import logging

from flask import current_app, has_app_context
from pymongo import MongoClient
from pymongo.errors import ConfigurationError

from groupledger.repositories import InMemoryStore, MongoStore
from groupledger.utils.enums import StoreBackend

logger = logging.getLogger(__name__)

_client = None
_store = None

def init_store(app, store=None):
    """Build the store named by LEDGER_STORE unless one is handed in."""
    global _client, _store
    if store is not None:
        _store = store
    elif StoreBackend(app.config["LEDGER_STORE"]) == StoreBackend.MONGO:
        _client = MongoClient(app.config["MONGO_URI"])

        # get_default_database() extracts DB name from URI; fall back to MONGO_DB_NAME
        try:
            db = _client.get_default_database()
        except ConfigurationError:
            db = _client[app.config["MONGO_DB_NAME"]]

        _store = MongoStore(db)
        _store.ensure_indexes()
        logger.info("[MongoDB] Connected to database: %s", db.name)
    else:
        _store = InMemoryStore()
        logger.info("Using in-memory ledger store")

    app.extensions["groupledger.store"] = _store
    return _store

def get_store():
    """Get the store instance. Must be called after init_store."""
    if has_app_context() and "groupledger.store" in current_app.extensions:
        return current_app.extensions["groupledger.store"]
    if _store is None:
        raise RuntimeError("Store not initialized. Call init_store first.")
    return _store
