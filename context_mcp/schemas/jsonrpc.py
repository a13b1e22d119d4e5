"""Pydantic models for the JSON-RPC 2.0 tool dispatch envelope."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

JSONRPC_VERSION = "2.0"
NOTIFICATION_PREFIX = "notifications/"


class JsonRpcRequest(BaseModel):
    jsonrpc: str = Field(description="Protocol version, always '2.0'.")
    method: str = Field(min_length=1, description="Method name.")
    id: str | int | None = Field(None, description="Request id; absent for notifications.")
    params: dict[str, Any] | None = Field(None, description="Method parameters.")

    @property
    def is_notification(self) -> bool:
        return self.method.startswith(NOTIFICATION_PREFIX)


class JsonRpcError(BaseModel):
    code: int
    message: str
    data: Any = None


class ToolDescriptor(BaseModel):
    """Static catalog entry returned by tools/list."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    input_schema: dict[str, Any] = Field(alias="inputSchema")


def success_response(request_id: str | int | None, result: Any) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def error_response(request_id: str | int | None, code: int, message: str) -> dict[str, Any]:
    error = JsonRpcError(code=code, message=message)
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": error.model_dump(exclude_none=True),
    }
