"""Request-scoped service construction over the shared key-value store."""

from context_mcp.config import settings
from context_mcp.services.food_preferences import FoodPreferenceResolver
from context_mcp.services.location_registry import LocationRegistry
from context_mcp.storage.factory import get_store


def get_location_registry() -> LocationRegistry:
    return LocationRegistry(
        get_store(),
        cascade_delete_overrides=settings.CASCADE_DELETE_LOCATION_OVERRIDES,
    )


def get_food_preference_resolver() -> FoodPreferenceResolver:
    return FoodPreferenceResolver(get_store(), get_location_registry())
