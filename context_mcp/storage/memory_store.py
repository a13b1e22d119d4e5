"""In-process key-value store used for local development and tests."""

import asyncio
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from context_mcp.errors import ConflictError
from context_mcp.schemas.records import Record, RecordType
from context_mcp.storage.base import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store with the same uniqueness and index contract as DynamoDB."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], Record] = {}
        self._by_type: dict[tuple[str, RecordType], set[str]] = defaultdict(set)
        self._by_tag: dict[tuple[str, str], set[str]] = defaultdict(set)
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Index maintenance
    # ------------------------------------------------------------------

    def _index(self, record: Record) -> None:
        self._by_type[(record.owner, record.record_type)].add(record.key)
        if record.location_tag:
            self._by_tag[(record.owner, record.location_tag)].add(record.key)

    def _unindex(self, record: Record) -> None:
        self._by_type[(record.owner, record.record_type)].discard(record.key)
        if record.location_tag:
            self._by_tag[(record.owner, record.location_tag)].discard(record.key)

    def _collect(self, owner: str, keys: set[str]) -> list[Record]:
        records = [self._records[(owner, key)] for key in keys]
        records.sort(key=lambda r: (r.created_at, r.key))
        return [r.model_copy(deep=True) for r in records]

    # ------------------------------------------------------------------
    # KeyValueStore
    # ------------------------------------------------------------------

    async def put(
        self,
        owner: str,
        key: str,
        payload: dict[str, Any],
        *,
        record_type: RecordType,
        location_tag: str | None = None,
    ) -> Record:
        async with self._lock:
            if (owner, key) in self._records:
                raise ConflictError(f"Record '{key}' already exists for owner '{owner}'")
            now = datetime.now(timezone.utc)
            record = Record(
                owner=owner,
                key=key,
                payload=payload,
                record_type=record_type,
                location_tag=location_tag,
                created_at=now,
                updated_at=now,
            )
            self._records[(owner, key)] = record
            self._index(record)
            logger.debug(f"put: owner={owner}, key={key}")
            return record.model_copy(deep=True)

    async def get(self, owner: str, key: str) -> Record | None:
        record = self._records.get((owner, key))
        return record.model_copy(deep=True) if record else None

    async def query_by_type(self, owner: str, record_type: RecordType) -> list[Record]:
        return self._collect(owner, self._by_type.get((owner, record_type), set()))

    async def query_by_location_tag(self, owner: str, location_tag: str) -> list[Record]:
        return self._collect(owner, self._by_tag.get((owner, location_tag), set()))

    async def update(self, owner: str, key: str, payload: dict[str, Any]) -> Record | None:
        async with self._lock:
            existing = self._records.get((owner, key))
            if existing is None:
                return None
            record = existing.model_copy(
                update={"payload": payload, "updated_at": datetime.now(timezone.utc)}
            )
            self._records[(owner, key)] = record
            return record.model_copy(deep=True)

    async def delete(self, owner: str, key: str) -> bool:
        async with self._lock:
            record = self._records.pop((owner, key), None)
            if record is None:
                return False
            self._unindex(record)
            logger.debug(f"delete: owner={owner}, key={key}")
            return True

    async def upsert(
        self,
        owner: str,
        key: str,
        payload: dict[str, Any],
        *,
        record_type: RecordType,
        location_tag: str | None = None,
    ) -> Record:
        async with self._lock:
            now = datetime.now(timezone.utc)
            existing = self._records.get((owner, key))
            if existing is not None:
                self._unindex(existing)
            record = Record(
                owner=owner,
                key=key,
                payload=payload,
                record_type=record_type,
                location_tag=location_tag,
                created_at=existing.created_at if existing else now,
                updated_at=now,
            )
            self._records[(owner, key)] = record
            self._index(record)
            return record.model_copy(deep=True)
