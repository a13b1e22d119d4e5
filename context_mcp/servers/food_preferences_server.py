"""
Food Preferences MCP Server.

Tools for a user's default food preference set and per-location overrides,
plus resolution of the effective set for a location. Mounted into the
registry via tool_registry.py.
"""

from fastmcp import FastMCP

from context_mcp.infrastructure.trace_decorator import traced
from context_mcp.schemas.food_preferences import (
    EffectiveFoodPreferenceSet,
    FoodCategory,
    FoodPreference,
    FoodPreferenceSet,
    PreferenceLevel,
)
from context_mcp.schemas.responses import LocationFoodPreferencesResponse, OperationResult
from context_mcp.services.factory import get_food_preference_resolver

food_preferences_mcp = FastMCP("food_preferences")


# ---------------------------------------------------------------------------
# Default preferences
# ---------------------------------------------------------------------------


@food_preferences_mcp.tool(
    title="Get Default Food Preferences",
    description=(
        "Get the user's default food preferences. Users who never set any "
        "get every category at 'neutral'."
    ),
    tags={"food_preferences", "defaults", "get"},
    annotations={
        "title": "Get Default Food Preferences",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@traced(span_name="context.tool.get_default_food_preferences")
async def get_default_food_preferences(user_id: str) -> FoodPreferenceSet:
    return await get_food_preference_resolver().get_default(user_id)


@food_preferences_mcp.tool(
    title="Set Default Food Preferences",
    description=(
        "Replace the user's default food preferences with the given list. "
        "Each category may appear at most once."
    ),
    tags={"food_preferences", "defaults", "set"},
    annotations={
        "title": "Set Default Food Preferences",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@traced(span_name="context.tool.set_default_food_preferences")
async def set_default_food_preferences(
    user_id: str,
    preferences: list[FoodPreference],
) -> FoodPreferenceSet:
    """Replace the default set.

    Args:
        user_id: Unique identifier for the user.
        preferences: Category/level pairs, e.g. [{"category": "italian", "level": "love"}].
    """
    return await get_food_preference_resolver().set_default(user_id, preferences)


@food_preferences_mcp.tool(
    title="Update Default Food Preference",
    description="Set the level of a single category in the user's default food preferences.",
    tags={"food_preferences", "defaults", "update"},
    annotations={
        "title": "Update Default Food Preference",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@traced(span_name="context.tool.update_default_food_preference")
async def update_default_food_preference(
    user_id: str,
    category: FoodCategory,
    level: PreferenceLevel,
) -> FoodPreferenceSet:
    return await get_food_preference_resolver().update_default_one(user_id, category, level)


# ---------------------------------------------------------------------------
# Location overrides
# ---------------------------------------------------------------------------


@food_preferences_mcp.tool(
    title="Get Location Food Preferences",
    description=(
        "Get the food preference override stored for a location. When the "
        "location has no override, has_override is false and the defaults apply."
    ),
    tags={"food_preferences", "locations", "get"},
    annotations={
        "title": "Get Location Food Preferences",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@traced(span_name="context.tool.get_location_food_preferences")
async def get_location_food_preferences(
    user_id: str,
    location_key: str,
) -> LocationFoodPreferencesResponse:
    override = await get_food_preference_resolver().get_location_override(user_id, location_key)
    return LocationFoodPreferencesResponse(
        location_key=location_key,
        has_override=override is not None,
        food_preferences=override,
    )


@food_preferences_mcp.tool(
    title="Set Location Food Preferences",
    description=(
        "Replace the food preference override for an existing location. "
        "Categories not listed fall back to the user's defaults."
    ),
    tags={"food_preferences", "locations", "set"},
    annotations={
        "title": "Set Location Food Preferences",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@traced(span_name="context.tool.set_location_food_preferences")
async def set_location_food_preferences(
    user_id: str,
    location_key: str,
    preferences: list[FoodPreference],
) -> FoodPreferenceSet:
    """Replace a location's override set.

    Args:
        user_id: Unique identifier for the user.
        location_key: Key of an existing location (e.g. "work").
        preferences: Category/level pairs overriding the defaults.
    """
    return await get_food_preference_resolver().set_location_override(
        user_id, location_key, preferences
    )


@food_preferences_mcp.tool(
    title="Update Location Food Preference",
    description="Set the level of a single category in a location's override set.",
    tags={"food_preferences", "locations", "update"},
    annotations={
        "title": "Update Location Food Preference",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@traced(span_name="context.tool.update_location_food_preference")
async def update_location_food_preference(
    user_id: str,
    location_key: str,
    category: FoodCategory,
    level: PreferenceLevel,
) -> FoodPreferenceSet:
    return await get_food_preference_resolver().update_location_override_one(
        user_id, location_key, category, level
    )


@food_preferences_mcp.tool(
    title="Delete Location Food Preferences",
    description="Remove a location's override so it reverts to the user's defaults.",
    tags={"food_preferences", "locations", "delete"},
    annotations={
        "title": "Delete Location Food Preferences",
        "readOnlyHint": False,
        "destructiveHint": True,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@traced(span_name="context.tool.delete_location_food_preferences")
async def delete_location_food_preferences(user_id: str, location_key: str) -> OperationResult:
    await get_food_preference_resolver().delete_location_override(user_id, location_key)
    return OperationResult(
        success=True,
        message=f"Food preferences for '{location_key}' reverted to defaults",
    )


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


@food_preferences_mcp.tool(
    title="Get Effective Food Preferences",
    description=(
        "Resolve the food preferences that apply at a location: the user's "
        "defaults with the location's override applied per category. Omit "
        "location_key to get the defaults."
    ),
    tags={"food_preferences", "resolve"},
    annotations={
        "title": "Get Effective Food Preferences",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@traced(span_name="context.tool.get_effective_food_preferences")
async def get_effective_food_preferences(
    user_id: str,
    location_key: str | None = None,
) -> EffectiveFoodPreferenceSet:
    """Resolve the effective set.

    Args:
        user_id: Unique identifier for the user.
        location_key: Optional location whose override should be applied.
    """
    return await get_food_preference_resolver().get_effective(user_id, location_key)
