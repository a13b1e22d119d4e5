"""
Per-request credentials forwarded to downstream services.

The JSON-RPC façade sets the caller's Authorization header in a context
variable before invoking a tool; tools served natively over ``/mcp`` fall
back to the headers of the current FastMCP HTTP request.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

from fastmcp.server.dependencies import get_http_headers

_forwarded_authorization: ContextVar[str | None] = ContextVar(
    "forwarded_authorization", default=None
)


@contextmanager
def forwarded_authorization(authorization: str | None) -> Iterator[None]:
    """Scope ``authorization`` to the current task and the tasks it starts."""
    token = _forwarded_authorization.set(authorization)
    try:
        yield
    finally:
        _forwarded_authorization.reset(token)


def current_authorization() -> str | None:
    authorization = _forwarded_authorization.get()
    if authorization:
        return authorization
    headers = get_http_headers(include_all=True)
    return headers.get("authorization") or None
