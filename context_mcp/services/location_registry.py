"""
Location registry.

Locations live in the generic key-value store as ``location.<LocationKey>``
records with record_type=location and location_tag=<LocationKey>. System
locations (home/work/gym/school) take their defaults from
SYSTEM_LOCATION_CONFIGS; custom locations are namespaced under
``user_defined.<slug>``.
"""

from datetime import datetime, timezone

from loguru import logger

from context_mcp.errors import ConflictError, NotFoundError, ValidationError
from context_mcp.schemas.locations import (
    SYSTEM_LOCATION_CONFIGS,
    Coordinates,
    Location,
    LocationCategory,
    LocationData,
    LocationFeature,
    LocationFilter,
    LocationUpdate,
    SystemLocationType,
    custom_location_key,
    parse_location_key,
)
from context_mcp.schemas.records import RecordType
from context_mcp.storage.base import KeyValueStore
from context_mcp.storage.keys import location_record_key
from context_mcp.utils.record_formatters import format_location, format_locations


def _now() -> datetime:
    return datetime.now(timezone.utc)


class LocationRegistry:
    """System and user-defined locations for a single owner namespace."""

    def __init__(self, store: KeyValueStore, cascade_delete_overrides: bool = True) -> None:
        self._store = store
        self._cascade_delete_overrides = cascade_delete_overrides

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_system(
        self,
        owner: str,
        location_type: SystemLocationType | str,
        address: str,
        coordinates: Coordinates,
        nickname: str | None = None,
        notes: str | None = None,
    ) -> Location:
        try:
            location_type = SystemLocationType(location_type)
        except ValueError as e:
            raise ValidationError(f"Invalid system location type: {location_type}") from e

        logger.info(f"Creating system location: owner={owner}, type={location_type.value}")
        location_key = location_type.value
        config = SYSTEM_LOCATION_CONFIGS[location_type]
        now = _now()
        data = LocationData(
            address=address,
            coordinates=coordinates,
            nickname=nickname or config.display_name,
            category=config.category,
            features=list(config.features),
            is_system_location=True,
            notes=notes,
            created_at=now,
            last_used_at=now,
        )
        return await self._create(
            owner,
            location_key,
            data,
            conflict_message=f"{location_type.value} location already exists for this user",
        )

    async def create_custom(
        self,
        owner: str,
        name: str,
        address: str,
        coordinates: Coordinates,
        nickname: str,
        category: LocationCategory,
        features: list[LocationFeature],
        parent_category: LocationCategory | None = None,
        notes: str | None = None,
    ) -> Location:
        location_key = custom_location_key(name)
        if not features:
            raise ValidationError("Custom locations require at least one feature")

        logger.info(f"Creating custom location: owner={owner}, key={location_key}")
        now = _now()
        data = LocationData(
            address=address,
            coordinates=coordinates,
            nickname=nickname,
            category=category,
            features=list(features),
            is_system_location=False,
            parent_category=parent_category,
            notes=notes,
            created_at=now,
            last_used_at=now,
        )
        return await self._create(
            owner,
            location_key,
            data,
            conflict_message=f"Location '{location_key}' already exists for this user",
        )

    async def _create(
        self,
        owner: str,
        location_key: str,
        data: LocationData,
        conflict_message: str,
    ) -> Location:
        key = location_record_key(location_key)
        # Friendly fast path; the store's unique (owner, key) constraint is authoritative.
        if await self._store.get(owner, key) is not None:
            raise ConflictError(conflict_message)
        try:
            record = await self._store.put(
                owner,
                key,
                data.model_dump(mode="json", by_alias=False),
                record_type=RecordType.LOCATION,
                location_tag=location_key,
            )
        except ConflictError as e:
            raise ConflictError(conflict_message) from e
        return format_location(record)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get(self, owner: str, location_key: str) -> Location:
        location_key = parse_location_key(location_key)
        record = await self._store.get(owner, location_record_key(location_key))
        if record is None:
            raise NotFoundError(f"Location '{location_key}' not found")
        return format_location(record)

    async def list_all(self, owner: str) -> list[Location]:
        records = await self._store.query_by_type(owner, RecordType.LOCATION)
        return format_locations(records)

    async def list_system(self, owner: str) -> list[Location]:
        return [loc for loc in await self.list_all(owner) if loc.is_system_location]

    async def list_custom(self, owner: str) -> list[Location]:
        return [loc for loc in await self.list_all(owner) if not loc.is_system_location]

    async def list_locations(
        self, owner: str, location_filter: LocationFilter = LocationFilter.ALL
    ) -> list[Location]:
        if location_filter == LocationFilter.SYSTEM:
            return await self.list_system(owner)
        if location_filter == LocationFilter.CUSTOM:
            return await self.list_custom(owner)
        return await self.list_all(owner)

    async def list_available_system_types(self, owner: str) -> list[SystemLocationType]:
        existing = {loc.location_key for loc in await self.list_system(owner)}
        return [t for t in SystemLocationType if t.value not in existing]

    # ------------------------------------------------------------------
    # Mutate
    # ------------------------------------------------------------------

    async def update(self, owner: str, location_key: str, changes: LocationUpdate) -> Location:
        location_key = parse_location_key(location_key)
        logger.info(f"Updating location: owner={owner}, key={location_key}")
        key = location_record_key(location_key)

        existing = await self._store.get(owner, key)
        if existing is None:
            raise NotFoundError(f"Location '{location_key}' not found")

        fields = changes.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        if "features" in fields and not fields["features"]:
            raise ValidationError("A location requires at least one feature")

        payload = {**existing.payload, **fields, "last_used_at": _now().isoformat()}
        payload = LocationData.model_validate(payload).model_dump(mode="json", by_alias=False)

        record = await self._store.update(owner, key, payload)
        if record is None:
            raise NotFoundError(f"Location '{location_key}' not found")
        return format_location(record)

    async def delete(self, owner: str, location_key: str) -> None:
        location_key = parse_location_key(location_key)
        logger.info(f"Deleting location: owner={owner}, key={location_key}")

        deleted = await self._store.delete(owner, location_record_key(location_key))
        if not deleted:
            raise NotFoundError(f"Location '{location_key}' not found")

        if self._cascade_delete_overrides:
            for record in await self._store.query_by_location_tag(owner, location_key):
                logger.debug(f"Cascade delete: owner={owner}, key={record.key}")
                await self._store.delete(owner, record.key)

    async def mark_used(self, owner: str, location_key: str) -> None:
        """Refresh last_used_at; silently ignores unknown locations."""
        location_key = parse_location_key(location_key)
        key = location_record_key(location_key)

        existing = await self._store.get(owner, key)
        if existing is None:
            logger.debug(f"mark_used on missing location ignored: owner={owner}, key={location_key}")
            return

        payload = {**existing.payload, "last_used_at": _now().isoformat()}
        await self._store.update(owner, key, payload)
