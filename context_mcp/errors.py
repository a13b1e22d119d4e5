"""
Error taxonomy shared by the domain services and the edge adapters.

Domain code raises these; the REST adapter maps them to the response
envelope, the tool servers surface them as in-band tool errors, and the
JSON-RPC façade maps the protocol errors to JSON-RPC error objects.
"""


class ContextRouterError(Exception):
    """Base class for every error raised by the context router."""

    http_status: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ContextRouterError):
    http_status = 404
    error_type = "not_found"


class ConflictError(ContextRouterError):
    http_status = 409
    error_type = "conflict"


class ValidationError(ContextRouterError):
    http_status = 400
    error_type = "validation_error"


class UpstreamError(ContextRouterError):
    http_status = 502
    error_type = "upstream_error"


# ---------------------------------------------------------------------------
# JSON-RPC protocol errors
# ---------------------------------------------------------------------------

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class ProtocolError(ContextRouterError):
    """A malformed JSON-RPC exchange; never wrapped as a tool result."""

    jsonrpc_code: int = INTERNAL_ERROR


class ParseError(ProtocolError):
    http_status = 400
    error_type = "parse_error"
    jsonrpc_code = PARSE_ERROR


class InvalidRequestError(ProtocolError):
    http_status = 400
    error_type = "invalid_request"
    jsonrpc_code = INVALID_REQUEST


class MethodNotFoundError(ProtocolError):
    http_status = 200
    error_type = "method_not_found"
    jsonrpc_code = METHOD_NOT_FOUND


class InvalidParamsError(ProtocolError):
    http_status = 200
    error_type = "invalid_params"
    jsonrpc_code = INVALID_PARAMS
