"""
REST adapter for locations and food preferences.

Every response uses the ``{success, data, error, message}`` envelope; domain
errors map to their HTTP status (404, 409, 400, 502). The owner comes from
the ``userId`` query parameter.
"""

import functools
from typing import Any, Awaitable, Callable, TypeVar

from fastmcp import FastMCP
from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import to_jsonable_python
from starlette.requests import Request
from starlette.responses import JSONResponse

from context_mcp.errors import ContextRouterError, ValidationError
from context_mcp.schemas.locations import LocationFilter, LocationUpdate
from context_mcp.schemas.requests import (
    CreateCustomLocationRequest,
    CreateSystemLocationRequest,
    SetFoodPreferencesRequest,
    UpdateFoodPreferenceRequest,
)
from context_mcp.schemas.responses import ApiResponse
from context_mcp.services.factory import get_food_preference_resolver, get_location_registry

ModelT = TypeVar("ModelT", bound=BaseModel)
Handler = Callable[[Request], Awaitable[JSONResponse]]

# ---------------------------------------------------------------------------
# Envelope helpers
# ---------------------------------------------------------------------------


def _ok(data: Any = None, message: str | None = None, status_code: int = 200) -> JSONResponse:
    envelope = ApiResponse(success=True, data=to_jsonable_python(data), message=message)
    return JSONResponse(envelope.model_dump(), status_code=status_code)


def _fail(error: ContextRouterError) -> JSONResponse:
    envelope = ApiResponse(success=False, error=error.error_type, message=error.message)
    return JSONResponse(envelope.model_dump(), status_code=error.http_status)


def _describe(error: PydanticValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]


def rest_endpoint(handler: Handler) -> Handler:
    """Translate domain and validation errors into the error envelope."""

    @functools.wraps(handler)
    async def wrapper(request: Request) -> JSONResponse:
        try:
            return await handler(request)
        except ContextRouterError as e:
            logger.warning(f"{request.method} {request.url.path} -> {e.http_status}: {e.message}")
            return _fail(e)
        except PydanticValidationError as e:
            return _fail(ValidationError(_describe(e)))
        except Exception:
            logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            return _fail(ContextRouterError("Internal server error"))

    return wrapper


def _user_id(request: Request) -> str:
    user_id = request.query_params.get("userId")
    if not user_id:
        raise ValidationError("userId query parameter is required")
    return user_id


async def _body(request: Request, model: type[ModelT]) -> ModelT:
    try:
        raw = await request.json()
    except ValueError as e:
        raise ValidationError("Request body must be valid JSON") from e
    return model.model_validate(raw)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


def register_rest_routes(mcp: FastMCP) -> None:
    """Register the REST routes; literal paths precede ``{location_key}`` paths."""

    # --- Locations (collection) ---

    @mcp.custom_route("/api/locations", methods=["GET"])
    @rest_endpoint
    async def list_locations(request: Request) -> JSONResponse:
        user_id = _user_id(request)
        raw_filter = request.query_params.get("type", LocationFilter.ALL.value)
        try:
            location_filter = LocationFilter(raw_filter)
        except ValueError as e:
            raise ValidationError(f"Invalid location type filter: {raw_filter}") from e
        locations = await get_location_registry().list_locations(user_id, location_filter)
        return _ok(locations, message=f"Found {len(locations)} locations")

    @mcp.custom_route("/api/locations/available-system", methods=["GET"])
    @rest_endpoint
    async def available_system_locations(request: Request) -> JSONResponse:
        available = await get_location_registry().list_available_system_types(_user_id(request))
        return _ok(available)

    @mcp.custom_route("/api/locations/system", methods=["POST"])
    @rest_endpoint
    async def create_system_location(request: Request) -> JSONResponse:
        user_id = _user_id(request)
        body = await _body(request, CreateSystemLocationRequest)
        location = await get_location_registry().create_system(
            user_id,
            body.location_type,
            address=body.address,
            coordinates=body.coordinates,
            nickname=body.nickname,
            notes=body.notes,
        )
        return _ok(location, message="System location created", status_code=201)

    @mcp.custom_route("/api/locations/custom", methods=["POST"])
    @rest_endpoint
    async def create_custom_location(request: Request) -> JSONResponse:
        user_id = _user_id(request)
        body = await _body(request, CreateCustomLocationRequest)
        location = await get_location_registry().create_custom(
            user_id,
            body.location_name,
            address=body.address,
            coordinates=body.coordinates,
            nickname=body.nickname,
            category=body.category,
            features=body.features,
            parent_category=body.parent_category,
            notes=body.notes,
        )
        return _ok(location, message="Custom location created", status_code=201)

    # --- Food preferences (literal paths) ---

    @mcp.custom_route("/api/locations/food-preferences/default", methods=["GET", "PUT", "PATCH"])
    @rest_endpoint
    async def default_food_preferences(request: Request) -> JSONResponse:
        user_id = _user_id(request)
        resolver = get_food_preference_resolver()
        if request.method == "PUT":
            body = await _body(request, SetFoodPreferencesRequest)
            result = await resolver.set_default(user_id, body.preferences)
            return _ok(result, message="Default food preferences updated")
        if request.method == "PATCH":
            body = await _body(request, UpdateFoodPreferenceRequest)
            result = await resolver.update_default_one(user_id, body.category, body.level)
            return _ok(result, message="Default food preference updated")
        return _ok(await resolver.get_default(user_id))

    @mcp.custom_route("/api/locations/food-preferences/effective", methods=["GET"])
    @rest_endpoint
    async def effective_food_preferences(request: Request) -> JSONResponse:
        user_id = _user_id(request)
        location_key = request.query_params.get("locationKey") or None
        result = await get_food_preference_resolver().get_effective(user_id, location_key)
        return _ok(result)

    # --- Single location ---

    @mcp.custom_route(
        "/api/locations/{location_key}/food-preferences",
        methods=["GET", "PUT", "PATCH", "DELETE"],
    )
    @rest_endpoint
    async def location_food_preferences(request: Request) -> JSONResponse:
        user_id = _user_id(request)
        location_key = request.path_params["location_key"]
        resolver = get_food_preference_resolver()
        if request.method == "PUT":
            body = await _body(request, SetFoodPreferencesRequest)
            result = await resolver.set_location_override(user_id, location_key, body.preferences)
            return _ok(result, message="Location food preferences updated")
        if request.method == "PATCH":
            body = await _body(request, UpdateFoodPreferenceRequest)
            result = await resolver.update_location_override_one(
                user_id, location_key, body.category, body.level
            )
            return _ok(result, message="Location food preference updated")
        if request.method == "DELETE":
            await resolver.delete_location_override(user_id, location_key)
            return _ok(message="Location food preferences reverted to defaults")
        override = await resolver.get_location_override(user_id, location_key)
        if override is None:
            return _ok(None, message="No override; defaults apply")
        return _ok(override)

    @mcp.custom_route("/api/locations/{location_key}/mark-used", methods=["POST"])
    @rest_endpoint
    async def mark_location_used(request: Request) -> JSONResponse:
        user_id = _user_id(request)
        await get_location_registry().mark_used(user_id, request.path_params["location_key"])
        return _ok(message="Location marked as used")

    @mcp.custom_route("/api/locations/{location_key}", methods=["GET", "PUT", "DELETE"])
    @rest_endpoint
    async def location_detail(request: Request) -> JSONResponse:
        user_id = _user_id(request)
        location_key = request.path_params["location_key"]
        registry = get_location_registry()
        if request.method == "PUT":
            changes = await _body(request, LocationUpdate)
            location = await registry.update(user_id, location_key, changes)
            return _ok(location, message="Location updated")
        if request.method == "DELETE":
            await registry.delete(user_id, location_key)
            return _ok(message=f"Location '{location_key}' deleted")
        return _ok(await registry.get(user_id, location_key))
