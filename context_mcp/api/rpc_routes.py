"""
HTTP routes for the JSON-RPC façade and health check.

Registered as FastMCP custom routes so they share the ASGI app with the
native ``/mcp`` endpoint.
"""

import json
from datetime import datetime, timezone
from typing import Any

from fastmcp import FastMCP
from loguru import logger
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from context_mcp.config import settings
from context_mcp.errors import INTERNAL_ERROR, INVALID_REQUEST, PARSE_ERROR
from context_mcp.gateway.dispatcher import ToolDispatchGateway
from context_mcp.schemas.jsonrpc import error_response

_HTTP_STATUS_BY_CODE = {
    PARSE_ERROR: 400,
    INVALID_REQUEST: 400,
    INTERNAL_ERROR: 500,
}


def _http_status(response: dict[str, Any]) -> int:
    error = response.get("error")
    if not error:
        return 200
    return _HTTP_STATUS_BY_CODE.get(error["code"], 200)


def register_rpc_routes(mcp: FastMCP, gateway: ToolDispatchGateway) -> None:
    @mcp.custom_route("/rpc", methods=["POST"])
    async def rpc(request: Request) -> Response:
        try:
            payload = json.loads(await request.body())
        except ValueError:
            logger.warning("JSON-RPC parse error")
            return JSONResponse(error_response(None, PARSE_ERROR, "Parse error"), status_code=400)

        response = await gateway.handle(payload, request.headers.get("authorization"))
        if response is None:
            return Response(status_code=204)
        return JSONResponse(response, status_code=_http_status(response))

    @mcp.custom_route("/health", methods=["GET"])
    async def health(request: Request) -> JSONResponse:
        return JSONResponse(
            {
                "status": "ok",
                "service": settings.SERVER_NAME,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        )
