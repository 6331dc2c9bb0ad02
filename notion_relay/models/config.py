"""Configuration models for the Notion sync relay."""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NotionConfig(BaseModel):
    """Configuration for the upstream Notion API."""

    api_base_url: str = Field(
        default="https://api.notion.com/v1", description="Notion REST API base URL"
    )
    api_version: str = Field(default="2022-06-28", description="Notion-Version header value")
    integration_token: str | None = Field(
        default=None,
        description="Server-side credential used by the poll scheduler only",
    )
    timeout_seconds: float = Field(
        default=30.0, gt=0.0, le=300.0, description="Outbound request timeout in seconds"
    )
    max_retries: int = Field(
        default=2, ge=0, le=10, description="Retries on transport failures"
    )
    page_size: int = Field(default=100, ge=1, le=100, description="Query page size")


class SyncConfig(BaseModel):
    """Configuration for change detection and automatic polling."""

    auto_sync_enabled: bool = Field(default=False, description="Enable the poll scheduler")
    sync_interval_seconds: float = Field(
        default=300.0, ge=1.0, description="Seconds between scheduler ticks"
    )
    serialize_per_source: bool = Field(
        default=False,
        description="Serialize fetch/detect per data source instead of last-writer-wins",
    )


class ServerConfig(BaseModel):
    """Configuration for the HTTP/WebSocket server."""

    name: str = Field(default="Notion Sync Relay", description="Service name")
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, ge=1, le=65535, description="Listen port")
    cors_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://localhost:5173",
        ],
        description="Explicitly allowed CORS origins",
    )
    cors_origin_regex: str | None = Field(
        default=r"https://.*\.vercel\.app",
        description="Regex of additionally allowed CORS origins",
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        description="If True, output JSON logs. If False, use console format.",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional path to log file. If None, logs only to stdout.",
    )


class AppConfig(BaseSettings):
    """Main relay configuration.

    Loaded from YAML by ConfigLoader. Fields the YAML omits fall back to
    environment variables with the APP_ prefix (e.g. APP_SYNC__AUTO_SYNC_ENABLED).
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    notion: NotionConfig = Field(default_factory=NotionConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
