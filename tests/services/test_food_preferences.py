"""Tests for food preference resolution."""

from datetime import datetime, timedelta, timezone

import pytest

from context_mcp.errors import NotFoundError, ValidationError
from context_mcp.schemas.food_preferences import (
    FoodCategory,
    FoodPreference,
    FoodPreferenceSet,
    PreferenceLevel,
)
from context_mcp.services.food_preferences import (
    FoodPreferenceResolver,
    merge_preferences,
    neutral_defaults,
)
from context_mcp.services.location_registry import LocationRegistry
from context_mcp.storage.memory_store import InMemoryKeyValueStore

LOVE, LIKE, NEUTRAL, DISLIKE, HATE = (
    PreferenceLevel.LOVE,
    PreferenceLevel.LIKE,
    PreferenceLevel.NEUTRAL,
    PreferenceLevel.DISLIKE,
    PreferenceLevel.HATE,
)


def pref(category: FoodCategory, level: PreferenceLevel) -> FoodPreference:
    return FoodPreference(category=category, level=level)


@pytest.fixture
def locations(store: InMemoryKeyValueStore) -> LocationRegistry:
    return LocationRegistry(store)


@pytest.fixture
def resolver(store: InMemoryKeyValueStore, locations: LocationRegistry) -> FoodPreferenceResolver:
    return FoodPreferenceResolver(store, locations)


class TestPreferenceLevel:
    def test_scores_are_ordered(self):
        assert [level.score for level in PreferenceLevel] == [5, 4, 3, 2, 1]


class TestFoodPreferenceSet:
    def test_duplicate_categories_rejected(self):
        with pytest.raises(ValueError):
            FoodPreferenceSet(
                preferences=[
                    pref(FoodCategory.PIZZA, LOVE),
                    pref(FoodCategory.PIZZA, HATE),
                ]
            )

    def test_neutral_defaults_cover_every_category(self):
        defaults = neutral_defaults()
        assert {p.category for p in defaults.preferences} == set(FoodCategory)
        assert all(p.level == NEUTRAL for p in defaults.preferences)
        assert defaults.updated_at is None


class TestMergePreferences:
    def test_no_override_returns_default(self):
        default = FoodPreferenceSet(preferences=[pref(FoodCategory.THAI, LIKE)])
        effective = merge_preferences(default, None)
        assert effective.preferences == default.preferences
        assert effective.updated_at == default.updated_at

    def test_override_replaces_in_place_and_appends(self):
        default = FoodPreferenceSet(
            preferences=[
                pref(FoodCategory.ITALIAN, LOVE),
                pref(FoodCategory.FAST_FOOD, NEUTRAL),
            ]
        )
        override = FoodPreferenceSet(
            preferences=[
                pref(FoodCategory.SEAFOOD, LIKE),
                pref(FoodCategory.FAST_FOOD, LOVE),
            ]
        )
        effective = merge_preferences(default, override)
        assert [(p.category, p.level) for p in effective.preferences] == [
            (FoodCategory.ITALIAN, LOVE),
            (FoodCategory.FAST_FOOD, LOVE),
            (FoodCategory.SEAFOOD, LIKE),
        ]

    def test_empty_override_equals_default(self):
        default = FoodPreferenceSet(preferences=[pref(FoodCategory.VEGAN, HATE)])
        effective = merge_preferences(default, FoodPreferenceSet(preferences=[]))
        assert effective.preferences == default.preferences

    def test_merge_is_idempotent(self):
        default = FoodPreferenceSet(preferences=[pref(FoodCategory.BBQ, DISLIKE)])
        override = FoodPreferenceSet(preferences=[pref(FoodCategory.BBQ, LOVE)])
        once = merge_preferences(default, override)
        twice = merge_preferences(once, override)
        assert once.preferences == twice.preferences

    def test_updated_at_is_latest(self):
        earlier = datetime(2026, 1, 1, tzinfo=timezone.utc)
        later = earlier + timedelta(days=1)
        default = FoodPreferenceSet(preferences=[], updated_at=later)
        override = FoodPreferenceSet(preferences=[], updated_at=earlier)
        assert merge_preferences(default, override).updated_at == later


class TestDefaults:
    @pytest.mark.asyncio
    async def test_unset_default_is_all_neutral(self, resolver):
        default = await resolver.get_default("u1")
        assert default == neutral_defaults()

    @pytest.mark.asyncio
    async def test_set_default_replaces_whole_set(self, resolver):
        await resolver.set_default("u1", [pref(FoodCategory.ITALIAN, LOVE)])
        result = await resolver.set_default("u1", [pref(FoodCategory.COFFEE, LIKE)])
        assert [p.category for p in result.preferences] == [FoodCategory.COFFEE]
        assert result.updated_at is not None
        stored = await resolver.get_default("u1")
        assert stored.preferences == result.preferences

    @pytest.mark.asyncio
    async def test_set_default_rejects_duplicates(self, resolver):
        with pytest.raises(ValidationError):
            await resolver.set_default(
                "u1",
                [pref(FoodCategory.ITALIAN, LOVE), pref(FoodCategory.ITALIAN, HATE)],
            )

    @pytest.mark.asyncio
    async def test_update_default_one_starts_from_neutral(self, resolver):
        result = await resolver.update_default_one("u1", FoodCategory.SEAFOOD, LOVE)
        levels = {p.category: p.level for p in result.preferences}
        assert len(levels) == len(FoodCategory)
        assert levels[FoodCategory.SEAFOOD] == LOVE
        assert levels[FoodCategory.PIZZA] == NEUTRAL


class TestLocationOverrides:
    @pytest.mark.asyncio
    async def test_override_requires_existing_location(self, resolver):
        with pytest.raises(NotFoundError):
            await resolver.set_location_override("u1", "work", [pref(FoodCategory.PIZZA, LOVE)])

    @pytest.mark.asyncio
    async def test_override_rejects_malformed_key(self, resolver):
        with pytest.raises(ValidationError):
            await resolver.get_location_override("u1", "not a key")

    @pytest.mark.asyncio
    async def test_work_override_scenario(self, resolver, locations, coordinates):
        await locations.create_system("u1", "work", address="a", coordinates=coordinates)
        await resolver.set_default(
            "u1",
            [pref(FoodCategory.ITALIAN, LOVE), pref(FoodCategory.FAST_FOOD, NEUTRAL)],
        )
        await resolver.set_location_override("u1", "work", [pref(FoodCategory.FAST_FOOD, LOVE)])

        effective = await resolver.get_effective("u1", "work")
        levels = {p.category: p.level for p in effective.preferences}
        assert levels == {FoodCategory.ITALIAN: LOVE, FoodCategory.FAST_FOOD: LOVE}

        assert (await resolver.get_effective("u1")).preferences == (
            await resolver.get_default("u1")
        ).preferences

    @pytest.mark.asyncio
    async def test_location_without_override_resolves_to_default(
        self, resolver, locations, coordinates
    ):
        await locations.create_system("u1", "home", address="a", coordinates=coordinates)
        await resolver.set_default("u1", [pref(FoodCategory.THAI, LIKE)])
        effective = await resolver.get_effective("u1", "home")
        default = await resolver.get_default("u1")
        assert effective.preferences == default.preferences
        assert effective.updated_at == default.updated_at

    @pytest.mark.asyncio
    async def test_update_location_override_one_starts_empty(
        self, resolver, locations, coordinates
    ):
        await locations.create_system("u1", "gym", address="a", coordinates=coordinates)
        override = await resolver.update_location_override_one(
            "u1", "gym", FoodCategory.HEALTHY, LOVE
        )
        assert [(p.category, p.level) for p in override.preferences] == [
            (FoodCategory.HEALTHY, LOVE)
        ]

    @pytest.mark.asyncio
    async def test_delete_override_reverts_to_default(self, resolver, locations, coordinates):
        await locations.create_system("u1", "work", address="a", coordinates=coordinates)
        await resolver.set_location_override("u1", "work", [pref(FoodCategory.PIZZA, HATE)])

        await resolver.delete_location_override("u1", "work")
        await resolver.delete_location_override("u1", "work")

        assert await resolver.get_location_override("u1", "work") is None
        effective = await resolver.get_effective("u1", "work")
        assert effective.preferences == neutral_defaults().preferences

    @pytest.mark.asyncio
    async def test_deleting_location_removes_override(self, resolver, locations, coordinates):
        await locations.create_system("u1", "work", address="a", coordinates=coordinates)
        await resolver.set_location_override("u1", "work", [pref(FoodCategory.PIZZA, HATE)])

        await locations.delete("u1", "work")
        await locations.create_system("u1", "work", address="b", coordinates=coordinates)

        assert await resolver.get_location_override("u1", "work") is None
