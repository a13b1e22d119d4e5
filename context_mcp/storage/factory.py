"""Lazy key-value store singleton selected by STORE_BACKEND."""

from loguru import logger

from context_mcp.config import settings
from context_mcp.storage.base import KeyValueStore
from context_mcp.storage.dynamodb_store import DynamoDBKeyValueStore
from context_mcp.storage.memory_store import InMemoryKeyValueStore

_store: KeyValueStore | None = None


def get_store() -> KeyValueStore:
    """Return the global KeyValueStore singleton (lazy-init)."""
    global _store
    if _store is None:
        backend = settings.STORE_BACKEND.lower()
        if backend == "dynamodb":
            _store = DynamoDBKeyValueStore(
                table_name=settings.DYNAMODB_TABLE_NAME,
                region_name=settings.AWS_REGION,
                endpoint_url=settings.DYNAMODB_ENDPOINT_URL,
            )
        elif backend == "memory":
            _store = InMemoryKeyValueStore()
        else:
            raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND!r}")
        logger.info(f"Key-value store backend: {backend}")
    return _store


def set_store(store: KeyValueStore | None) -> None:
    """Replace the global store (None resets to lazy initialisation)."""
    global _store
    _store = store
