"""Key-value store contract.

Every entity (locations, default and per-location food preferences) is a row
keyed by (owner, key). Two secondary lookups are part of the contract:
owner + record_type and owner + location_tag. Operations are atomic per
record; there are no cross-record transactions.
"""

from abc import ABC, abstractmethod
from typing import Any

from context_mcp.schemas.records import Record, RecordType


class KeyValueStore(ABC):
    @abstractmethod
    async def put(
        self,
        owner: str,
        key: str,
        payload: dict[str, Any],
        *,
        record_type: RecordType,
        location_tag: str | None = None,
    ) -> Record:
        """Create a record. Raises ConflictError if (owner, key) already exists."""

    @abstractmethod
    async def get(self, owner: str, key: str) -> Record | None:
        """Return the record or None; absence is not an error."""

    @abstractmethod
    async def query_by_type(self, owner: str, record_type: RecordType) -> list[Record]:
        ...

    @abstractmethod
    async def query_by_location_tag(self, owner: str, location_tag: str) -> list[Record]:
        ...

    @abstractmethod
    async def update(self, owner: str, key: str, payload: dict[str, Any]) -> Record | None:
        """Replace the payload of an existing record; None if it does not exist."""

    @abstractmethod
    async def delete(self, owner: str, key: str) -> bool:
        """Delete a record. Returns False if nothing was deleted."""

    @abstractmethod
    async def upsert(
        self,
        owner: str,
        key: str,
        payload: dict[str, Any],
        *,
        record_type: RecordType,
        location_tag: str | None = None,
    ) -> Record:
        """Create or wholly replace a record, keeping its original created_at."""

    async def close(self) -> None:
        """Release backend resources."""
