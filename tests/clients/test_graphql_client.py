"""Tests for GraphQLClient and IntrospectionCache."""

import json

import httpx
import pytest

from context_mcp.clients.graphql_client import GraphQLClient, IntrospectionCache
from context_mcp.errors import UpstreamError

ENDPOINT = "http://gateway.test/graphql"


def _client(handler, **kwargs) -> GraphQLClient:
    return GraphQLClient(endpoint=ENDPOINT, transport=httpx.MockTransport(handler), **kwargs)


class TestExecute:
    @pytest.mark.asyncio
    async def test_returns_data(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": {"user": {"id": "1"}}})

        async with _client(handler) as client:
            assert await client.query("{ user { id } }") == {"user": {"id": "1"}}

    @pytest.mark.asyncio
    async def test_sends_query_variables_and_headers(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            seen["headers"] = request.headers
            return httpx.Response(200, json={"data": {}})

        async with _client(handler, authorization="Bearer abc", service_token="svc") as client:
            await client.mutate("mutation { x }", {"id": 1})

        assert seen["body"] == {"query": "mutation { x }", "variables": {"id": 1}}
        assert seen["headers"]["authorization"] == "Bearer abc"
        assert seen["headers"]["x-service-token"] == "svc"

    @pytest.mark.asyncio
    async def test_omits_absent_credentials(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["headers"] = request.headers
            return httpx.Response(200, json={"data": {}})

        async with _client(handler) as client:
            await client.query("{ a }")

        assert "authorization" not in seen["headers"]
        assert "x-service-token" not in seen["headers"]

    @pytest.mark.asyncio
    async def test_graphql_errors_raise(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"errors": [{"message": "Unknown field"}]})

        async with _client(handler) as client:
            with pytest.raises(UpstreamError, match="Unknown field"):
                await client.query("{ nope }")

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="unavailable")

        async with _client(handler) as client:
            with pytest.raises(UpstreamError, match="503"):
                await client.query("{ a }")

    @pytest.mark.asyncio
    async def test_non_json_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>")

        async with _client(handler) as client:
            with pytest.raises(UpstreamError, match="non-JSON"):
                await client.query("{ a }")

    def test_missing_endpoint_rejected(self):
        with pytest.raises(ValueError):
            GraphQLClient(endpoint="")


class TestIntrospection:
    @pytest.mark.asyncio
    async def test_cache_serves_repeat_queries(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"data": {"__schema": {"types": []}}})

        cache = IntrospectionCache(ttl_seconds=60)
        async with _client(handler) as client:
            first = await client.introspect("{ __schema { types { name } } }", cache=cache)
            second = await client.introspect("{ __schema { types { name } } }", cache=cache)

        assert first == second
        assert len(calls) == 1

    def test_expired_entries_are_dropped(self, monkeypatch):
        now = [1000.0]
        monkeypatch.setattr("context_mcp.clients.graphql_client.time.monotonic", lambda: now[0])
        cache = IntrospectionCache(ttl_seconds=10)
        cache.set("q", {"a": 1})
        assert cache.get("q") == {"a": 1}
        now[0] += 11
        assert cache.get("q") is None
