"""
apishell: Application Configuration
===================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the application factory and the `run()` entry point.
When:  Loaded once at module import time; treated as immutable afterwards.

Recognized variables:
    ENVIRONMENT (or NODE_ENV)  development | production | test
    ALLOW_HTTP                 false turns on HTTPS enforcement
    CORS_ORIGIN                comma-separated allowed origins
    BODY_LIMIT                 max parsed body size in bytes
    COMPRESSION_THRESHOLD      min response size (bytes) to gzip
    TRUSTED_PROXIES            hosts whose X-Forwarded-* headers are trusted
    LOG_LEVEL                  DEBUG | INFO | WARNING | ERROR | CRITICAL
"""

from typing import List

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# 10mb, enough for HTML documents with inline images
DEFAULT_BODY_LIMIT = 10 * 1024 * 1024


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development. Production
    deployments should set ENVIRONMENT=production and a real CORS_ORIGIN.
    """

    # ── Environment ───────────────────────────────────────────────────────
    # What: Deployment environment name; anything but "production" enables
    # the development access log.
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("environment", "node_env"),
    )

    # What: When False, every request must arrive over HTTPS (403 otherwise).
    # Off by default: TLS is normally terminated by the reverse proxy.
    allow_http: bool = Field(default=True)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs, or "*" for any origin
    cors_origin: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into the list CORSMiddleware expects."""
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]

    # ── Transport ─────────────────────────────────────────────────────────
    body_limit: int = Field(default=DEFAULT_BODY_LIMIT, ge=1)
    compression_threshold: int = Field(default=10, ge=0)

    # What: Hosts allowed to set X-Forwarded-For / X-Forwarded-Proto.
    # Why "*": The app is served behind a single platform router.
    trusted_proxies: str = Field(default="*")

    @property
    def trusted_proxies_list(self) -> List[str]:
        return [host.strip() for host in self.trusted_proxies.split(",") if host.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("environment")
    @classmethod
    def normalize_environment(cls, v: str) -> str:
        return v.strip().lower()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Singleton instance used by the default application
settings = Settings()
