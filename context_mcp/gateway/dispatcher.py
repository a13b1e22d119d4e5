"""
JSON-RPC tool dispatch gateway.

A thin JSON-RPC 2.0 façade over the mounted tool groups for clients that do
not speak MCP. ``tools/list`` returns a catalog built once from the groups;
``tools/call`` routes by tool name to the owning group and invokes it through
an in-memory FastMCP client. Tool failures are reported in-band as an
``isError`` result; only envelope problems become JSON-RPC errors.
"""

import asyncio
import json
from enum import Enum
from typing import Any

from fastmcp import Client, FastMCP
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from context_mcp.errors import (
    INTERNAL_ERROR,
    InvalidParamsError,
    InvalidRequestError,
    MethodNotFoundError,
    NotFoundError,
    ProtocolError,
)
from context_mcp.infrastructure.observability import get_observability_manager
from context_mcp.request_context import forwarded_authorization
from context_mcp.schemas.jsonrpc import (
    JSONRPC_VERSION,
    JsonRpcRequest,
    ToolDescriptor,
    error_response,
    success_response,
)


class ToolGroup(str, Enum):
    LOCATIONS = "locations"
    FOOD_PREFERENCES = "food_preferences"
    GRAPHQL = "graphql"


class ToolExecutionError(Exception):
    """A tool returned an error result."""


def _result_text(result: Any) -> str:
    structured = getattr(result, "structuredContent", None)
    if structured is not None:
        return json.dumps(structured, indent=2, default=str)
    return "\n".join(
        block.text for block in result.content if getattr(block, "type", None) == "text"
    )


class ToolDispatchGateway:
    """Routes JSON-RPC requests to the tool groups."""

    def __init__(
        self,
        groups: dict[ToolGroup, FastMCP],
        server_name: str,
        server_version: str,
        default_protocol_version: str,
    ) -> None:
        self._groups = groups
        self._server_name = server_name
        self._server_version = server_version
        self._default_protocol_version = default_protocol_version
        self._catalog: list[ToolDescriptor] | None = None
        self._routes: dict[str, ToolGroup] = {}
        self._catalog_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def load_catalog(self) -> list[ToolDescriptor]:
        """Build the catalog and the name -> group map on first use."""
        async with self._catalog_lock:
            if self._catalog is not None:
                return self._catalog

            catalog: list[ToolDescriptor] = []
            routes: dict[str, ToolGroup] = {}
            for group, server in self._groups.items():
                async with Client(server) as client:
                    tools = await client.list_tools()
                for tool in tools:
                    if tool.name in routes:
                        raise ValueError(
                            f"Tool '{tool.name}' is defined by both "
                            f"'{routes[tool.name].value}' and '{group.value}'"
                        )
                    routes[tool.name] = group
                    catalog.append(
                        ToolDescriptor(
                            name=tool.name,
                            description=tool.description or "",
                            input_schema=tool.inputSchema,
                        )
                    )

            logger.info(f"Tool catalog loaded with {len(catalog)} tools: {sorted(routes)}")
            self._catalog = catalog
            self._routes = routes
            return catalog

    async def route(self, tool_name: str) -> ToolGroup:
        await self.load_catalog()
        group = self._routes.get(tool_name)
        if group is None:
            raise NotFoundError(f"Unknown tool: {tool_name}")
        return group

    # ------------------------------------------------------------------
    # Tool invocation
    # ------------------------------------------------------------------

    async def call_tool(
        self,
        tool_name: str,
        arguments: dict[str, Any],
        authorization: str | None = None,
    ) -> dict[str, Any]:
        """Invoke a tool; any failure is returned as an in-band error result."""
        observability = get_observability_manager()
        with observability.create_span(
            name="context.dispatch.tools_call",
            attributes={"context.dispatch.tool": tool_name},
        ):
            try:
                group = await self.route(tool_name)
                with forwarded_authorization(authorization):
                    async with Client(self._groups[group]) as client:
                        result = await client.call_tool_mcp(tool_name, arguments)
                if result.isError:
                    raise ToolExecutionError(_result_text(result) or "Tool execution failed")
                text = _result_text(result)
            except Exception as e:
                logger.warning(f"Tool call failed: tool={tool_name}, error={e}")
                observability.add_span_event(
                    "tool.error", {"context.dispatch.tool": tool_name, "error": str(e)}
                )
                envelope = {"error": str(e), "tool": tool_name, "arguments": arguments}
                return {
                    "content": [
                        {"type": "text", "text": json.dumps(envelope, indent=2, default=str)}
                    ],
                    "isError": True,
                }

        return {"content": [{"type": "text", "text": text}]}

    # ------------------------------------------------------------------
    # JSON-RPC
    # ------------------------------------------------------------------

    async def handle(
        self,
        payload: Any,
        authorization: str | None = None,
    ) -> dict[str, Any] | None:
        """Handle one decoded JSON-RPC message.

        Returns the response object, or None for notifications.
        """
        request_id = payload.get("id") if isinstance(payload, dict) else None
        try:
            request = self._parse_request(payload)
            if request.is_notification:
                logger.debug(f"Notification received: {request.method}")
                return None
            result = await self._dispatch(request, authorization)
        except ProtocolError as e:
            logger.warning(f"JSON-RPC error {e.jsonrpc_code}: {e.message}")
            return error_response(request_id, e.jsonrpc_code, e.message)
        except Exception:
            logger.exception("Unhandled error while dispatching JSON-RPC request")
            return error_response(request_id, INTERNAL_ERROR, "Internal error")

        return success_response(request.id, result)

    @staticmethod
    def _parse_request(payload: Any) -> JsonRpcRequest:
        if not isinstance(payload, dict):
            raise InvalidRequestError("Invalid Request: expected a JSON object")
        if payload.get("jsonrpc") != JSONRPC_VERSION:
            raise InvalidRequestError("Invalid Request: jsonrpc must be '2.0'")
        try:
            request = JsonRpcRequest.model_validate(payload)
        except PydanticValidationError as e:
            raise InvalidRequestError(f"Invalid Request: {e.errors()[0]['msg']}") from e
        if not request.is_notification and "id" not in payload:
            raise InvalidRequestError("Invalid Request: missing id")
        return request

    async def _dispatch(self, request: JsonRpcRequest, authorization: str | None) -> Any:
        params = request.params or {}

        if request.method == "initialize":
            return {
                "protocolVersion": params.get("protocolVersion") or self._default_protocol_version,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": self._server_name, "version": self._server_version},
            }

        if request.method == "ping":
            return {}

        if request.method == "tools/list":
            catalog = await self.load_catalog()
            return {"tools": [tool.model_dump(by_alias=True) for tool in catalog]}

        if request.method == "tools/call":
            name = params.get("name")
            if not isinstance(name, str) or not name:
                raise InvalidParamsError("Invalid params: tools/call requires a tool name")
            arguments = params.get("arguments") or {}
            if not isinstance(arguments, dict):
                raise InvalidParamsError("Invalid params: arguments must be an object")
            return await self.call_tool(name, arguments, authorization)

        raise MethodNotFoundError(f"Method not found: {request.method}")
