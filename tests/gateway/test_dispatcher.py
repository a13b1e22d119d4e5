"""Tests for the JSON-RPC tool dispatch gateway."""

import json
import warnings

import pytest

from context_mcp.errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
)
from context_mcp.gateway.dispatcher import ToolDispatchGateway, ToolGroup
from context_mcp.request_context import current_authorization
from context_mcp.servers.tool_registry import TOOL_GROUPS

COORDS = {"lat": 51.5072, "lng": -0.1276}


@pytest.fixture
def gateway() -> ToolDispatchGateway:
    return ToolDispatchGateway(
        groups=TOOL_GROUPS,
        server_name="test-router",
        server_version="9.9.9",
        default_protocol_version="2024-11-05",
    )


def call(name: str, arguments: dict, request_id: int = 1) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "tools/call",
        "params": {"name": name, "arguments": arguments},
    }


class TestInitialize:
    @pytest.mark.asyncio
    async def test_defaults_protocol_version(self, gateway):
        response = await gateway.handle({"jsonrpc": "2.0", "id": 1, "method": "initialize"})
        result = response["result"]
        assert result["protocolVersion"] == "2024-11-05"
        assert result["capabilities"] == {"tools": {}}
        assert result["serverInfo"] == {"name": "test-router", "version": "9.9.9"}

    @pytest.mark.asyncio
    async def test_echoes_requested_protocol_version(self, gateway):
        response = await gateway.handle(
            {
                "jsonrpc": "2.0",
                "id": "a",
                "method": "initialize",
                "params": {"protocolVersion": "2025-06-18"},
            }
        )
        assert response["id"] == "a"
        assert response["result"]["protocolVersion"] == "2025-06-18"


class TestPing:
    @pytest.mark.asyncio
    async def test_ping_returns_empty_result(self, gateway):
        response = await gateway.handle({"jsonrpc": "2.0", "id": 7, "method": "ping"})
        assert response == {"jsonrpc": "2.0", "id": 7, "result": {}}


class TestToolsList:
    @pytest.mark.asyncio
    async def test_lists_every_group(self, gateway):
        response = await gateway.handle({"jsonrpc": "2.0", "id": 1, "method": "tools/list"})
        tools = response["result"]["tools"]
        names = {tool["name"] for tool in tools}
        assert {"create_system_location", "get_effective_food_preferences", "query_schema"} <= names
        assert all("inputSchema" in tool and "description" in tool for tool in tools)

    @pytest.mark.asyncio
    async def test_catalog_is_stable(self, gateway):
        first = await gateway.handle({"jsonrpc": "2.0", "id": 1, "method": "tools/list"})
        second = await gateway.handle({"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
        assert first["result"] == second["result"]

    @pytest.mark.asyncio
    async def test_routes_by_group(self, gateway):
        assert await gateway.route("get_location") == ToolGroup.LOCATIONS
        assert await gateway.route("set_location_food_preferences") == ToolGroup.FOOD_PREFERENCES
        assert await gateway.route("get_schema") == ToolGroup.GRAPHQL


class TestToolsCall:
    @pytest.mark.asyncio
    async def test_success_returns_json_text(self, gateway):
        response = await gateway.handle(
            call(
                "create_system_location",
                {"user_id": "u1", "location_type": "home", "address": "1 Main", "coordinates": COORDS},
            )
        )
        result = response["result"]
        assert "isError" not in result
        location = json.loads(result["content"][0]["text"])
        assert location["locationKey"] == "home"
        assert location["isSystemLocation"] is True
        assert "location_key" not in location

    @pytest.mark.asyncio
    async def test_unknown_tool_is_in_band_error(self, gateway):
        response = await gateway.handle(call("nonexistent_tool", {"x": 1}))
        assert "error" not in response
        result = response["result"]
        assert result["isError"] is True
        envelope = json.loads(result["content"][0]["text"])
        assert envelope["tool"] == "nonexistent_tool"
        assert envelope["arguments"] == {"x": 1}
        assert "Unknown tool" in envelope["error"]

    @pytest.mark.asyncio
    async def test_domain_failure_is_in_band_error(self, gateway):
        response = await gateway.handle(call("get_location", {"user_id": "u1", "location_key": "gym"}))
        result = response["result"]
        assert result["isError"] is True
        assert "not found" in json.loads(result["content"][0]["text"])["error"]

    @pytest.mark.asyncio
    async def test_missing_tool_name_is_invalid_params(self, gateway):
        response = await gateway.handle(
            {"jsonrpc": "2.0", "id": 3, "method": "tools/call", "params": {"arguments": {}}}
        )
        assert response["error"]["code"] == INVALID_PARAMS
        assert response["id"] == 3

    @pytest.mark.asyncio
    async def test_result_fields_read_without_deprecation_warnings(self, gateway):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            await gateway.handle({"jsonrpc": "2.0", "id": 1, "method": "tools/list"})
            await gateway.handle(call("get_available_system_locations", {"user_id": "u1"}))
        assert [w for w in caught if w.filename.endswith("dispatcher.py")] == []

    @pytest.mark.asyncio
    async def test_authorization_is_scoped_to_the_call(self, gateway):
        await gateway.call_tool("get_user_locations", {"user_id": "u1"}, authorization="Bearer t")
        assert current_authorization() is None


class TestEnvelopeErrors:
    @pytest.mark.asyncio
    async def test_unknown_method(self, gateway):
        response = await gateway.handle({"jsonrpc": "2.0", "id": 1, "method": "resources/list"})
        assert response["error"]["code"] == METHOD_NOT_FOUND

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            [1, 2],
            {"id": 1, "method": "initialize"},
            {"jsonrpc": "1.0", "id": 1, "method": "initialize"},
            {"jsonrpc": "2.0", "id": 1},
            {"jsonrpc": "2.0", "method": "tools/list"},
        ],
    )
    async def test_invalid_requests(self, gateway, payload):
        response = await gateway.handle(payload)
        assert response["error"]["code"] == INVALID_REQUEST

    @pytest.mark.asyncio
    async def test_notifications_get_no_response(self, gateway):
        assert await gateway.handle({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_internal_error(self, gateway, monkeypatch):
        async def boom(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(gateway, "load_catalog", boom)
        response = await gateway.handle({"jsonrpc": "2.0", "id": 7, "method": "tools/list"})
        assert response["error"]["code"] == INTERNAL_ERROR
        assert response["id"] == 7
