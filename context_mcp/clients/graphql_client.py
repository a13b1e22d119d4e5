"""
GraphQL gateway HTTP client.

Posts documents to the downstream GraphQL gateway. A client is built per
tool call so the caller's Authorization header is forwarded as-is; an
optional service token identifies this service to the gateway.

Introspection responses are cached process-wide for a short TTL since the
schema rarely changes between calls.
"""

import time
from typing import Any

import httpx
from loguru import logger

from context_mcp.errors import UpstreamError

FULL_INTROSPECTION_QUERY = """
query IntrospectionQuery {
  __schema {
    queryType { name }
    mutationType { name }
    subscriptionType { name }
    types { ...FullType }
  }
}

fragment FullType on __Type {
  kind
  name
  description
  fields(includeDeprecated: true) {
    name
    description
    args { ...InputValue }
    type { ...TypeRef }
    isDeprecated
    deprecationReason
  }
  inputFields { ...InputValue }
  interfaces { ...TypeRef }
  enumValues(includeDeprecated: true) {
    name
    description
    isDeprecated
    deprecationReason
  }
  possibleTypes { ...TypeRef }
}

fragment InputValue on __InputValue {
  name
  description
  type { ...TypeRef }
  defaultValue
}

fragment TypeRef on __Type {
  kind
  name
  ofType {
    kind
    name
    ofType {
      kind
      name
      ofType {
        kind
        name
        ofType { kind name }
      }
    }
  }
}
""".strip()


class IntrospectionCache:
    """TTL cache of introspection results keyed by query text."""

    def __init__(self, ttl_seconds: int = 300) -> None:
        self._ttl = ttl_seconds
        # query -> (result, timestamp)
        self._entries: dict[str, tuple[dict, float]] = {}

    def get(self, query: str) -> dict | None:
        entry = self._entries.get(query)
        if entry is None:
            return None
        result, stored_at = entry
        if time.monotonic() - stored_at > self._ttl:
            del self._entries[query]
            return None
        return result

    def set(self, query: str, result: dict) -> None:
        self._entries[query] = (result, time.monotonic())

    def clear(self) -> None:
        self._entries.clear()


class GraphQLClient:
    """Async client for the downstream GraphQL gateway."""

    def __init__(
        self,
        endpoint: str,
        authorization: str | None = None,
        service_token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not endpoint:
            raise ValueError("GRAPHQL_GATEWAY_URL is not set.")
        headers = {"Content-Type": "application/json"}
        if service_token:
            headers["x-service-token"] = service_token
        if authorization:
            headers["Authorization"] = authorization
        self._endpoint = endpoint
        self._client = httpx.AsyncClient(headers=headers, timeout=timeout, transport=transport)

    async def execute(self, document: str, variables: dict[str, Any] | None = None) -> dict:
        """POST a document and return its ``data``; GraphQL errors raise UpstreamError."""
        body: dict[str, Any] = {"query": document}
        if variables:
            body["variables"] = variables

        logger.debug(f"GraphQL request: endpoint={self._endpoint}, length={len(document)}")
        try:
            response = await self._client.post(self._endpoint, json=body)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"GraphQL gateway error: {e.response.status_code} - {e.response.text}")
            raise UpstreamError(f"GraphQL gateway returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"GraphQL gateway unreachable: {e}")
            raise UpstreamError(f"GraphQL gateway request failed: {e}") from e
        except ValueError as e:
            raise UpstreamError("GraphQL gateway returned a non-JSON response") from e

        errors = payload.get("errors")
        if errors:
            messages = "; ".join(str(err.get("message", err)) for err in errors)
            raise UpstreamError(f"GraphQL errors: {messages}")
        return payload.get("data") or {}

    async def query(self, query: str, variables: dict[str, Any] | None = None) -> dict:
        return await self.execute(query, variables)

    async def mutate(self, mutation: str, variables: dict[str, Any] | None = None) -> dict:
        return await self.execute(mutation, variables)

    async def introspect(self, query: str, cache: IntrospectionCache | None = None) -> dict:
        """Run an introspection query, served from ``cache`` when fresh."""
        if cache is not None:
            cached = cache.get(query)
            if cached is not None:
                logger.debug("Introspection cache hit")
                return cached
        result = await self.execute(query)
        if cache is not None:
            cache.set(query, result)
        return result

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "GraphQLClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
