"""Tests for the FastMCP tool servers through an in-memory client."""

import json

import httpx
import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError

from context_mcp.request_context import forwarded_authorization
from context_mcp.servers import graphql_server
from context_mcp.servers.food_preferences_server import food_preferences_mcp
from context_mcp.servers.graphql_server import graphql_mcp
from context_mcp.servers.location_server import locations_mcp

COORDS = {"lat": 40.7128, "lng": -74.006}


class TestLocationTools:
    @pytest.mark.asyncio
    async def test_create_and_list(self):
        async with Client(locations_mcp) as client:
            created = await client.call_tool(
                "create_system_location",
                {"user_id": "u1", "location_type": "home", "address": "1 Main", "coordinates": COORDS},
            )
            assert created.structured_content["locationKey"] == "home"
            assert created.structured_content["nickname"] == "Home"

            listed = await client.call_tool("get_user_locations", {"user_id": "u1", "type": "system"})
            assert listed.structured_content["count"] == 1

            available = await client.call_tool("get_available_system_locations", {"user_id": "u1"})
            assert "home" not in available.structured_content["locationTypes"]

    @pytest.mark.asyncio
    async def test_custom_location_and_update(self):
        async with Client(locations_mcp) as client:
            await client.call_tool(
                "create_custom_location",
                {
                    "user_id": "u1",
                    "location_name": "Beach House",
                    "address": "9 Shore Rd",
                    "coordinates": COORDS,
                    "nickname": "Beach",
                    "category": "travel",
                    "features": ["food_preferences"],
                },
            )
            updated = await client.call_tool(
                "update_location",
                {"user_id": "u1", "location_key": "user_defined.beach_house", "notes": "summer"},
            )
            assert updated.structured_content["notes"] == "summer"
            assert updated.structured_content["nickname"] == "Beach"

    @pytest.mark.asyncio
    async def test_duplicate_system_location_is_tool_error(self):
        args = {"user_id": "u1", "location_type": "gym", "address": "x", "coordinates": COORDS}
        async with Client(locations_mcp) as client:
            await client.call_tool("create_system_location", args)
            with pytest.raises(ToolError, match="already exists"):
                await client.call_tool("create_system_location", args)

    @pytest.mark.asyncio
    async def test_delete_and_mark_used(self):
        async with Client(locations_mcp) as client:
            await client.call_tool(
                "create_system_location",
                {"user_id": "u1", "location_type": "work", "address": "x", "coordinates": COORDS},
            )
            used = await client.call_tool(
                "mark_location_as_used", {"user_id": "u1", "location_key": "work"}
            )
            assert used.structured_content["success"] is True
            deleted = await client.call_tool(
                "delete_location", {"user_id": "u1", "location_key": "work"}
            )
            assert deleted.structured_content["success"] is True
            with pytest.raises(ToolError, match="not found"):
                await client.call_tool("get_location", {"user_id": "u1", "location_key": "work"})


class TestFoodPreferenceTools:
    @pytest.mark.asyncio
    async def test_effective_preferences_for_location(self):
        async with Client(locations_mcp) as client:
            await client.call_tool(
                "create_system_location",
                {"user_id": "u1", "location_type": "work", "address": "x", "coordinates": COORDS},
            )

        async with Client(food_preferences_mcp) as client:
            await client.call_tool(
                "set_default_food_preferences",
                {
                    "user_id": "u1",
                    "preferences": [
                        {"category": "italian", "level": "love"},
                        {"category": "fast_food", "level": "neutral"},
                    ],
                },
            )
            await client.call_tool(
                "update_location_food_preference",
                {"user_id": "u1", "location_key": "work", "category": "fast_food", "level": "love"},
            )
            override = await client.call_tool(
                "get_location_food_preferences", {"user_id": "u1", "location_key": "work"}
            )
            assert override.structured_content["hasOverride"] is True

            effective = await client.call_tool(
                "get_effective_food_preferences", {"user_id": "u1", "location_key": "work"}
            )
            levels = {
                p["category"]: p["level"] for p in effective.structured_content["preferences"]
            }
            assert levels == {"italian": "love", "fast_food": "love"}

    @pytest.mark.asyncio
    async def test_missing_override_reports_defaults_apply(self):
        async with Client(food_preferences_mcp) as client:
            result = await client.call_tool(
                "get_location_food_preferences", {"user_id": "u1", "location_key": "home"}
            )
        assert result.structured_content["hasOverride"] is False
        assert result.structured_content["foodPreferences"] is None

    @pytest.mark.asyncio
    async def test_default_preferences_start_neutral(self):
        async with Client(food_preferences_mcp) as client:
            result = await client.call_tool("get_default_food_preferences", {"user_id": "new-user"})
        levels = {p["level"] for p in result.structured_content["preferences"]}
        assert levels == {"neutral"}
        assert result.structured_content["updatedAt"] is None


class TestGraphQLTools:
    @pytest.fixture
    def gateway_requests(self, monkeypatch) -> list[httpx.Request]:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            body = json.loads(request.content)
            if "__schema" in body["query"] or "__type" in body["query"]:
                return httpx.Response(200, json={"data": {"__schema": {"types": []}}})
            return httpx.Response(200, json={"data": {"user": {"id": "1"}}})

        monkeypatch.setattr(graphql_server, "_transport", httpx.MockTransport(handler))
        graphql_server._schema_cache.clear()
        yield requests
        graphql_server._schema_cache.clear()

    @pytest.mark.asyncio
    async def test_query_forwards_authorization(self, gateway_requests):
        with forwarded_authorization("Bearer user-token"):
            async with Client(graphql_mcp) as client:
                result = await client.call_tool(
                    "query_user_context", {"query": "{ user { id } }"}
                )
        assert result.structured_content == {"user": {"id": "1"}}
        assert gateway_requests[0].headers["authorization"] == "Bearer user-token"

    @pytest.mark.asyncio
    async def test_query_tool_rejects_mutations(self, gateway_requests):
        async with Client(graphql_mcp) as client:
            with pytest.raises(ToolError, match="mutate_user_context"):
                await client.call_tool(
                    "query_user_context", {"query": "mutation { deleteUser { id } }"}
                )
        assert gateway_requests == []

    @pytest.mark.asyncio
    async def test_mutate_tool_requires_mutation(self, gateway_requests):
        async with Client(graphql_mcp) as client:
            with pytest.raises(ToolError, match="requires a mutation"):
                await client.call_tool("mutate_user_context", {"mutation": "{ user { id } }"})

    @pytest.mark.asyncio
    async def test_query_schema_gate(self, gateway_requests):
        async with Client(graphql_mcp) as client:
            with pytest.raises(ToolError):
                await client.call_tool(
                    "query_schema", {"query": "{ __schema { types { name } } users { email } }"}
                )
            result = await client.call_tool(
                "query_schema", {"query": '{ __type(name: "User") { name } }'}
            )
        assert result.structured_content == {"__schema": {"types": []}}
        assert len(gateway_requests) == 1

    @pytest.mark.asyncio
    async def test_get_schema_is_cached(self, gateway_requests):
        async with Client(graphql_mcp) as client:
            await client.call_tool("get_schema", {})
            await client.call_tool("get_schema", {})
        assert len(gateway_requests) == 1
