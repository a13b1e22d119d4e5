from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Server ---
    SERVER_NAME: str = Field(
        default="personal-context-router",
        description="Server name reported by the JSON-RPC initialize handshake.",
    )
    SERVER_VERSION: str = Field(
        default="1.0.0",
        description="Server version reported by the JSON-RPC initialize handshake.",
    )
    DEFAULT_PROTOCOL_VERSION: str = Field(
        default="2024-11-05",
        description="MCP protocol version echoed when the client does not send one.",
    )
    HOST: str = Field(default="0.0.0.0", description="Bind address for uvicorn.")
    PORT: int = Field(default=3003, description="Listen port for uvicorn.")
    LOG_LEVEL: str = Field(default="INFO", description="Loguru sink level.")

    # --- AWS ---
    AWS_REGION: str = Field(
        default="us-east-2",
        description="AWS region for all services.",
    )

    # --- Storage ---
    STORE_BACKEND: str = Field(
        default="memory",
        description="Key-value store backend: 'memory' or 'dynamodb'.",
    )
    DYNAMODB_TABLE_NAME: str = Field(
        default="personal-context-preferences",
        description="DynamoDB table holding (owner, key) records.",
    )
    DYNAMODB_ENDPOINT_URL: str = Field(
        default="",
        description="Optional DynamoDB endpoint override (e.g. DynamoDB Local).",
    )
    DYNAMODB_CREATE_TABLE: bool = Field(
        default=False,
        description="Create the DynamoDB table and indexes on startup if missing.",
    )
    CASCADE_DELETE_LOCATION_OVERRIDES: bool = Field(
        default=True,
        description="Delete a location's food-preference override when the location is deleted.",
    )

    # --- GraphQL gateway ---
    GRAPHQL_GATEWAY_URL: str = Field(
        default="http://localhost:4000/graphql",
        description="Downstream GraphQL gateway endpoint.",
    )
    SERVICE_TOKEN: str = Field(
        default="",
        description="Service-to-service token sent as x-service-token.",
    )
    GRAPHQL_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Timeout for downstream GraphQL requests.",
    )
    SCHEMA_CACHE_TTL_SECONDS: int = Field(
        default=300,
        description="TTL in seconds for cached introspection responses.",
    )
    INTROSPECTION_MAX_QUERY_LENGTH: int = Field(
        default=5000,
        description="Maximum accepted length of a schema introspection query.",
    )

    # --- Observability ---
    OTEL_SERVICE_NAME: str = Field(
        default="context-router-mcp",
        description="Service name used for the OpenTelemetry tracer.",
    )
    AGENT_OBSERVABILITY_ENABLED: bool = Field(
        default=True,
        description="Enable OpenTelemetry spans around tool handlers.",
    )


settings = Settings()
