"""
Food preference resolver.

Two layers are stored per owner:
- ``food_preferences.default``: the global set (one per owner)
- ``food_preferences.location.<LocationKey>``: optional per-location override

Writes always replace a whole set. The effective view for a location is the
default set with every overriding category replaced in place and categories
only present in the override appended.
"""

from datetime import datetime, timezone

import pydantic
from loguru import logger

from context_mcp.errors import ValidationError
from context_mcp.schemas.food_preferences import (
    EffectiveFoodPreferenceSet,
    FoodCategory,
    FoodPreference,
    FoodPreferenceSet,
    PreferenceLevel,
)
from context_mcp.schemas.locations import parse_location_key
from context_mcp.schemas.records import RecordType
from context_mcp.services.location_registry import LocationRegistry
from context_mcp.storage.base import KeyValueStore
from context_mcp.storage.keys import DEFAULT_FOOD_PREFERENCES_KEY, location_food_preferences_key
from context_mcp.utils.record_formatters import format_food_preference_set


def neutral_defaults() -> FoodPreferenceSet:
    """Every food category at neutral; returned when no default set was saved."""
    return FoodPreferenceSet(
        preferences=[
            FoodPreference(category=category, level=PreferenceLevel.NEUTRAL)
            for category in FoodCategory
        ],
        updated_at=None,
    )


def _build_set(preferences: list[FoodPreference]) -> FoodPreferenceSet:
    try:
        return FoodPreferenceSet(preferences=preferences, updated_at=datetime.now(timezone.utc))
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid food preferences: {e.errors()[0]['msg']}") from e


def _with_level(
    preferences: list[FoodPreference],
    category: FoodCategory,
    level: PreferenceLevel,
) -> list[FoodPreference]:
    """Set the level of ``category``, appending it if absent."""
    updated = [p.model_copy() for p in preferences]
    for preference in updated:
        if preference.category == category:
            preference.level = level
            return updated
    updated.append(FoodPreference(category=category, level=level))
    return updated


def merge_preferences(
    default: FoodPreferenceSet,
    override: FoodPreferenceSet | None,
) -> EffectiveFoodPreferenceSet:
    """Category-keyed merge of a default set and an optional override set.

    Overriding entries replace the default entry for the same category in
    place; categories only in the override are appended in override order.
    """
    if override is None:
        return EffectiveFoodPreferenceSet(**default.model_dump())

    merged = [p.model_copy() for p in default.preferences]
    positions = {p.category: i for i, p in enumerate(merged)}
    for entry in override.preferences:
        if entry.category in positions:
            merged[positions[entry.category]] = entry.model_copy()
        else:
            positions[entry.category] = len(merged)
            merged.append(entry.model_copy())

    timestamps = [t for t in (default.updated_at, override.updated_at) if t is not None]
    return EffectiveFoodPreferenceSet(
        preferences=merged,
        updated_at=max(timestamps) if timestamps else None,
    )


class FoodPreferenceResolver:
    """Default and per-location food preferences with layered resolution."""

    def __init__(self, store: KeyValueStore, locations: LocationRegistry) -> None:
        self._store = store
        self._locations = locations

    # ------------------------------------------------------------------
    # Default set
    # ------------------------------------------------------------------

    async def get_default(self, owner: str) -> FoodPreferenceSet:
        record = await self._store.get(owner, DEFAULT_FOOD_PREFERENCES_KEY)
        if record is None:
            return neutral_defaults()
        return format_food_preference_set(record)

    async def set_default(self, owner: str, preferences: list[FoodPreference]) -> FoodPreferenceSet:
        logger.info(f"Setting default food preferences: owner={owner}, count={len(preferences)}")
        preference_set = _build_set(preferences)
        record = await self._store.upsert(
            owner,
            DEFAULT_FOOD_PREFERENCES_KEY,
            preference_set.model_dump(mode="json", by_alias=False),
            record_type=RecordType.FOOD_PREFERENCES,
        )
        return format_food_preference_set(record)

    async def update_default_one(
        self,
        owner: str,
        category: FoodCategory,
        level: PreferenceLevel,
    ) -> FoodPreferenceSet:
        current = await self.get_default(owner)
        return await self.set_default(owner, _with_level(current.preferences, category, level))

    # ------------------------------------------------------------------
    # Location overrides
    # ------------------------------------------------------------------

    async def get_location_override(self, owner: str, location_key: str) -> FoodPreferenceSet | None:
        location_key = parse_location_key(location_key)
        record = await self._store.get(owner, location_food_preferences_key(location_key))
        return format_food_preference_set(record) if record else None

    async def set_location_override(
        self,
        owner: str,
        location_key: str,
        preferences: list[FoodPreference],
    ) -> FoodPreferenceSet:
        location_key = parse_location_key(location_key)
        await self._locations.get(owner, location_key)

        logger.info(
            f"Setting location food preferences: owner={owner}, "
            f"location={location_key}, count={len(preferences)}"
        )
        preference_set = _build_set(preferences)
        record = await self._store.upsert(
            owner,
            location_food_preferences_key(location_key),
            preference_set.model_dump(mode="json", by_alias=False),
            record_type=RecordType.FOOD_PREFERENCES,
            location_tag=location_key,
        )
        return format_food_preference_set(record)

    async def update_location_override_one(
        self,
        owner: str,
        location_key: str,
        category: FoodCategory,
        level: PreferenceLevel,
    ) -> FoodPreferenceSet:
        current = await self.get_location_override(owner, location_key)
        preferences = current.preferences if current else []
        return await self.set_location_override(
            owner, location_key, _with_level(preferences, category, level)
        )

    async def delete_location_override(self, owner: str, location_key: str) -> None:
        """Revert a location to the defaults; a missing override is not an error."""
        location_key = parse_location_key(location_key)
        deleted = await self._store.delete(owner, location_food_preferences_key(location_key))
        logger.info(
            f"Deleted location food preferences: owner={owner}, "
            f"location={location_key}, existed={deleted}"
        )

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def get_effective(self, owner: str, location_key: str | None = None) -> EffectiveFoodPreferenceSet:
        default = await self.get_default(owner)
        if not location_key:
            return merge_preferences(default, None)
        override = await self.get_location_override(owner, location_key)
        return merge_preferences(default, override)
