"""Shared fixtures: every test gets a fresh in-memory store."""

import pytest

from context_mcp.schemas.locations import Coordinates
from context_mcp.storage.factory import set_store
from context_mcp.storage.memory_store import InMemoryKeyValueStore


@pytest.fixture(autouse=True)
def store() -> InMemoryKeyValueStore:
    """Install a fresh InMemoryKeyValueStore as the global store."""
    store = InMemoryKeyValueStore()
    set_store(store)
    yield store
    set_store(None)


@pytest.fixture
def coordinates() -> Coordinates:
    return Coordinates(lat=37.7749, lng=-122.4194)
