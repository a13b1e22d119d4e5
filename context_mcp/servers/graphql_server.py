"""
GraphQL MCP Server.

Pass-through tools for the downstream GraphQL gateway: queries, mutations
and schema introspection. Each call builds a client carrying the caller's
Authorization header. Mounted into the registry via tool_registry.py.
"""

from typing import Any

import httpx
from fastmcp import FastMCP

from context_mcp.clients.graphql_client import (
    FULL_INTROSPECTION_QUERY,
    GraphQLClient,
    IntrospectionCache,
)
from context_mcp.config import settings
from context_mcp.errors import ValidationError
from context_mcp.infrastructure.trace_decorator import traced
from context_mcp.request_context import current_authorization
from context_mcp.services.introspection_gate import (
    OperationKind,
    classify_operation,
    validate_introspection_query,
)

graphql_mcp = FastMCP("graphql")

# ---------------------------------------------------------------------------
# Client construction
# ---------------------------------------------------------------------------

_schema_cache = IntrospectionCache(ttl_seconds=settings.SCHEMA_CACHE_TTL_SECONDS)

# Overridden in tests with an httpx.MockTransport.
_transport: httpx.AsyncBaseTransport | None = None


def _build_client() -> GraphQLClient:
    return GraphQLClient(
        endpoint=settings.GRAPHQL_GATEWAY_URL,
        authorization=current_authorization(),
        service_token=settings.SERVICE_TOKEN or None,
        timeout=settings.GRAPHQL_TIMEOUT_SECONDS,
        transport=_transport,
    )


# ---------------------------------------------------------------------------
# MCP Tools
# ---------------------------------------------------------------------------


@graphql_mcp.tool(
    title="Query User Context",
    description=(
        "Run a GraphQL query against the user context gateway and return its "
        "data. Mutations and subscriptions are rejected; use "
        "mutate_user_context for writes."
    ),
    tags={"graphql", "query"},
    annotations={
        "title": "Query User Context",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
@traced(span_name="context.tool.query_user_context")
async def query_user_context(
    query: str,
    variables: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Execute a read-only GraphQL query.

    Args:
        query: GraphQL query document.
        variables: Optional variables for the query.
    """
    if classify_operation(query) in (OperationKind.MUTATION, OperationKind.SUBSCRIPTION):
        raise ValidationError("query_user_context only accepts queries; use mutate_user_context")
    async with _build_client() as client:
        return await client.query(query, variables)


@graphql_mcp.tool(
    title="Mutate User Context",
    description="Run a GraphQL mutation against the user context gateway and return its data.",
    tags={"graphql", "mutation"},
    annotations={
        "title": "Mutate User Context",
        "readOnlyHint": False,
        "destructiveHint": True,
        "idempotentHint": False,
        "openWorldHint": True,
    },
)
@traced(span_name="context.tool.mutate_user_context")
async def mutate_user_context(
    mutation: str,
    variables: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Execute a GraphQL mutation.

    Args:
        mutation: GraphQL mutation document.
        variables: Optional variables for the mutation.
    """
    if classify_operation(mutation) != OperationKind.MUTATION:
        raise ValidationError("mutate_user_context requires a mutation operation")
    async with _build_client() as client:
        return await client.mutate(mutation, variables)


@graphql_mcp.tool(
    title="Get Schema",
    description="Return the full introspection result of the user context GraphQL schema.",
    tags={"graphql", "schema", "introspection"},
    annotations={
        "title": "Get Schema",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
@traced(span_name="context.tool.get_schema")
async def get_schema() -> dict[str, Any]:
    async with _build_client() as client:
        return await client.introspect(FULL_INTROSPECTION_QUERY, cache=_schema_cache)


@graphql_mcp.tool(
    title="Query Schema",
    description=(
        "Run a custom introspection query (only __schema, __type and "
        "__typename root fields) to explore part of the schema."
    ),
    tags={"graphql", "schema", "introspection"},
    annotations={
        "title": "Query Schema",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
@traced(span_name="context.tool.query_schema")
async def query_schema(query: str) -> dict[str, Any]:
    """Execute a gated introspection query.

    Args:
        query: Introspection-only GraphQL document, e.g. '{ __type(name: "User") { fields { name } } }'.
    """
    query = validate_introspection_query(query, max_length=settings.INTROSPECTION_MAX_QUERY_LENGTH)
    async with _build_client() as client:
        return await client.introspect(query, cache=_schema_cache)
