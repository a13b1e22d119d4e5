"""
Locations MCP Server.

Self-contained FastMCP instance with tools for system (home/work/gym/school)
and user-defined locations. Mounted into the registry via tool_registry.py.
"""

from fastmcp import FastMCP

from context_mcp.infrastructure.trace_decorator import traced
from context_mcp.schemas.locations import (
    AvailableSystemLocationsResponse,
    Coordinates,
    Location,
    LocationCategory,
    LocationFeature,
    LocationFilter,
    LocationListResponse,
    LocationUpdate,
    SystemLocationType,
)
from context_mcp.schemas.responses import OperationResult
from context_mcp.services.factory import get_location_registry

locations_mcp = FastMCP("locations")


# ---------------------------------------------------------------------------
# MCP Tools
# ---------------------------------------------------------------------------


@locations_mcp.tool(
    title="Get User Locations",
    description=(
        "List a user's saved locations. Filter by 'system' for home, work, gym "
        "and school, by 'custom' for user-defined places, or 'all' for both."
    ),
    tags={"locations", "list"},
    annotations={
        "title": "Get User Locations",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@traced(span_name="context.tool.get_user_locations")
async def get_user_locations(
    user_id: str,
    type: LocationFilter = LocationFilter.ALL,
) -> LocationListResponse:
    """List locations for a user.

    Args:
        user_id: Unique identifier for the user (e.g. "user-123").
        type: Which locations to return: "all", "system" or "custom".
    """
    locations = await get_location_registry().list_locations(user_id, type)
    return LocationListResponse(count=len(locations), locations=locations)


@locations_mcp.tool(
    title="Get Location",
    description=(
        "Fetch a single location by key. System locations use their type as "
        "the key (e.g. 'home'); custom locations use 'user_defined.<slug>'."
    ),
    tags={"locations", "get"},
    annotations={
        "title": "Get Location",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@traced(span_name="context.tool.get_location")
async def get_location(user_id: str, location_key: str) -> Location:
    """Fetch one location.

    Args:
        user_id: Unique identifier for the user.
        location_key: Location key (e.g. "home", "user_defined.moms_house").
    """
    return await get_location_registry().get(user_id, location_key)


@locations_mcp.tool(
    title="Create System Location",
    description=(
        "Create one of the predefined locations (home, work, gym, school). "
        "Category and features come from the location type; each type can "
        "exist once per user."
    ),
    tags={"locations", "create", "system"},
    annotations={
        "title": "Create System Location",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
@traced(span_name="context.tool.create_system_location")
async def create_system_location(
    user_id: str,
    location_type: SystemLocationType,
    address: str,
    coordinates: Coordinates,
    nickname: str | None = None,
    notes: str | None = None,
) -> Location:
    """Create a system location.

    Args:
        user_id: Unique identifier for the user.
        location_type: One of "home", "work", "gym", "school".
        address: Full address of the location.
        coordinates: Latitude/longitude pair.
        nickname: Optional display name; defaults to the type's display name.
        notes: Optional free-form notes.
    """
    return await get_location_registry().create_system(
        user_id,
        location_type,
        address=address,
        coordinates=coordinates,
        nickname=nickname,
        notes=notes,
    )


@locations_mcp.tool(
    title="Create Custom Location",
    description=(
        "Create a user-defined location such as 'Mom's House' or 'Beach House'. "
        "The name is normalized into the key 'user_defined.<slug>'. At least "
        "one feature is required."
    ),
    tags={"locations", "create", "custom"},
    annotations={
        "title": "Create Custom Location",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
@traced(span_name="context.tool.create_custom_location")
async def create_custom_location(
    user_id: str,
    location_name: str,
    address: str,
    coordinates: Coordinates,
    nickname: str,
    category: LocationCategory,
    features: list[LocationFeature],
    parent_category: LocationCategory | None = None,
    notes: str | None = None,
) -> Location:
    """Create a custom location.

    Args:
        user_id: Unique identifier for the user.
        location_name: Free-form name, normalized into the location key.
        address: Full address of the location.
        coordinates: Latitude/longitude pair.
        nickname: Display name of the location.
        category: Location category (e.g. "residence", "travel").
        features: Capabilities enabled at the location (at least one).
        parent_category: Optional parent category.
        notes: Optional free-form notes.
    """
    return await get_location_registry().create_custom(
        user_id,
        location_name,
        address=address,
        coordinates=coordinates,
        nickname=nickname,
        category=category,
        features=features,
        parent_category=parent_category,
        notes=notes,
    )


@locations_mcp.tool(
    title="Update Location",
    description=(
        "Update fields of an existing location. Only the fields provided are "
        "changed; the location's key and system flag cannot be changed."
    ),
    tags={"locations", "update"},
    annotations={
        "title": "Update Location",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@traced(span_name="context.tool.update_location")
async def update_location(
    user_id: str,
    location_key: str,
    address: str | None = None,
    coordinates: Coordinates | None = None,
    nickname: str | None = None,
    category: LocationCategory | None = None,
    features: list[LocationFeature] | None = None,
    notes: str | None = None,
) -> Location:
    """Apply a partial update to a location.

    Args:
        user_id: Unique identifier for the user.
        location_key: Key of the location to update.
        address: New address.
        coordinates: New coordinates.
        nickname: New display name.
        category: New category.
        features: New feature list (replaces the old one).
        notes: New notes.
    """
    changes = LocationUpdate(
        address=address,
        coordinates=coordinates,
        nickname=nickname,
        category=category,
        features=features,
        notes=notes,
    )
    return await get_location_registry().update(user_id, location_key, changes)


@locations_mcp.tool(
    title="Delete Location",
    description=(
        "Delete a location. Food preference overrides attached to the "
        "location are removed with it."
    ),
    tags={"locations", "delete"},
    annotations={
        "title": "Delete Location",
        "readOnlyHint": False,
        "destructiveHint": True,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
@traced(span_name="context.tool.delete_location")
async def delete_location(user_id: str, location_key: str) -> OperationResult:
    """Delete a location.

    Args:
        user_id: Unique identifier for the user.
        location_key: Key of the location to delete.
    """
    await get_location_registry().delete(user_id, location_key)
    return OperationResult(success=True, message=f"Location '{location_key}' deleted")


@locations_mcp.tool(
    title="Mark Location As Used",
    description="Record that a location was just used. Unknown locations are ignored.",
    tags={"locations", "usage"},
    annotations={
        "title": "Mark Location As Used",
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@traced(span_name="context.tool.mark_location_as_used")
async def mark_location_as_used(user_id: str, location_key: str) -> OperationResult:
    await get_location_registry().mark_used(user_id, location_key)
    return OperationResult(success=True, message=f"Location '{location_key}' marked as used")


@locations_mcp.tool(
    title="Get Available System Locations",
    description="List the system location types the user has not created yet.",
    tags={"locations", "system", "list"},
    annotations={
        "title": "Get Available System Locations",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    },
)
@traced(span_name="context.tool.get_available_system_locations")
async def get_available_system_locations(user_id: str) -> AvailableSystemLocationsResponse:
    available = await get_location_registry().list_available_system_types(user_id)
    return AvailableSystemLocationsResponse(count=len(available), location_types=available)
