"""12-factor configuration adapter using environment variables and an optional .env file."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


class AppConfig(BaseSettings):
    """Application configuration following 12-factor principles."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Host to bind the server to")
    port: int = Field(default=5000, description="Port to bind the server to")
    reload: bool = Field(default=False, description="Enable auto-reload for development")
    log_level: str = Field(default="info", description="Log level for the application and uvicorn")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Origins allowed to call the API from a browser",
    )

    # Identity
    jwt_secret: str = Field(default="change-me", description="Secret used to sign bearer tokens")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_expires_days: int = Field(default=7, description="Bearer token lifetime in days")

    # Persistence
    store_backend: str = Field(default="memory", description="Storage backend: 'memory' or 'mongo'")
    mongodb_uri: str = Field(
        default="mongodb://localhost:27017", description="MongoDB connection string"
    )
    mongodb_database: str = Field(default="memoryscape", description="MongoDB database name")

    # AI helpers
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(default="gpt-3.5-turbo", description="Chat completion model")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1", description="Base URL of the chat completions API"
    )
    openai_timeout: int = Field(default=30, description="Timeout for AI requests in seconds")
    openai_min_delay_seconds: float = Field(
        default=0.2, description="Minimum spacing between consecutive AI requests"
    )

    # Media
    cloudinary_cloud_name: str | None = Field(default=None, description="Cloudinary cloud name")
    cloudinary_api_key: str | None = Field(default=None, description="Cloudinary API key")
    cloudinary_api_secret: str | None = Field(default=None, description="Cloudinary API secret")
    max_upload_bytes: int = Field(
        default=100 * 1024 * 1024, description="Maximum accepted upload size in bytes"
    )

    # Rate limiting configuration
    rate_limit_per_minute: int = Field(
        default=100,
        description="Maximum number of API requests allowed per IP address per minute",
    )
    ai_rate_limit_per_minute: int = Field(
        default=10,
        description="Maximum number of AI requests allowed per IP address per minute",
    )

    # Realtime presence
    presence_sweep_interval_seconds: int = Field(
        default=300, description="Interval between idle presence sweeps in seconds"
    )
    presence_stale_after_seconds: int = Field(
        default=3600, description="Inactivity after which a connected user is evicted"
    )
    connection_queue_size: int = Field(
        default=256, description="Outbound event queue size per realtime connection"
    )

    # Operations
    admin_command_token: str | None = Field(
        default=None,
        description="Shared secret for admin, analytics and monitoring endpoints (X-Admin-Token)",
    )

    @field_validator("store_backend")
    @classmethod
    def validate_store_backend(cls, v: str) -> str:
        """Validate store backend is either 'memory' or 'mongo'."""
        if v.lower() not in ("memory", "mongo"):
            raise ValueError("store_backend must be either 'memory' or 'mongo'")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a standard logging level name."""
        if v.lower() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return v.lower()

    @field_validator(
        "jwt_expires_days",
        "rate_limit_per_minute",
        "ai_rate_limit_per_minute",
        "presence_sweep_interval_seconds",
        "presence_stale_after_seconds",
        "connection_queue_size",
        "max_upload_bytes",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate limits and intervals are positive."""
        if v <= 0:
            raise ValueError("value must be positive")
        return v

    @property
    def ai_enabled(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def media_enabled(self) -> bool:
        return bool(
            self.cloudinary_cloud_name and self.cloudinary_api_key and self.cloudinary_api_secret
        )
