"""
MCP Tool Registry.

Aggregates the tool groups into a single FastMCP instance, exposes them
through the JSON-RPC façade and the REST adapter, and initializes
observability on startup.
"""

from fastmcp import FastMCP
from loguru import logger

from context_mcp.api.rest_routes import register_rest_routes
from context_mcp.api.rpc_routes import register_rpc_routes
from context_mcp.config import settings
from context_mcp.gateway.dispatcher import ToolDispatchGateway, ToolGroup
from context_mcp.infrastructure.observability import initialize_observability
from context_mcp.servers.food_preferences_server import food_preferences_mcp
from context_mcp.servers.graphql_server import graphql_mcp
from context_mcp.servers.location_server import locations_mcp
from context_mcp.storage.dynamodb_store import DynamoDBKeyValueStore
from context_mcp.storage.factory import get_store

TOOL_GROUPS: dict[ToolGroup, FastMCP] = {
    ToolGroup.LOCATIONS: locations_mcp,
    ToolGroup.FOOD_PREFERENCES: food_preferences_mcp,
    ToolGroup.GRAPHQL: graphql_mcp,
}


class McpServersRegistry:
    def __init__(self) -> None:
        self.registry = FastMCP(settings.SERVER_NAME)
        self.gateway = ToolDispatchGateway(
            groups=TOOL_GROUPS,
            server_name=settings.SERVER_NAME,
            server_version=settings.SERVER_VERSION,
            default_protocol_version=settings.DEFAULT_PROTOCOL_VERSION,
        )

        # Tool names are unique across groups, so groups mount without a prefix.
        for server in TOOL_GROUPS.values():
            self.registry.mount(server)

        register_rpc_routes(self.registry, self.gateway)
        register_rest_routes(self.registry)
        self._is_initialized = False

    async def initialize(self) -> None:
        """Initialize observability, prepare the store and load the tool catalog."""
        if self._is_initialized:
            return

        logger.info("Initializing MCP tool registry...")

        initialize_observability(
            service_name=settings.OTEL_SERVICE_NAME,
            enabled=settings.AGENT_OBSERVABILITY_ENABLED,
        )

        store = get_store()
        if settings.DYNAMODB_CREATE_TABLE and isinstance(store, DynamoDBKeyValueStore):
            await store.ensure_table()

        catalog = await self.gateway.load_catalog()
        self._is_initialized = True
        logger.info(
            f"Registry initialized with {len(catalog)} tools: {[t.name for t in catalog]}"
        )

    def get_registry(self) -> FastMCP:
        return self.registry
