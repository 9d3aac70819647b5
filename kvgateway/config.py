"""
Application Configuration

Loads configuration from environment variables and provides
type-safe access to settings.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = Field(default="kvgateway", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8080, alias="API_PORT")

    # Backend Service
    application_name: str = Field(default="fabric:/GettingStartedApplication", alias="APPLICATION_NAME")
    backend_service_name: str = Field(default="StatefulBackendService", alias="BACKEND_SERVICE_NAME")

    # Reverse Proxy
    reverse_proxy_host: str = Field(default="localhost", alias="REVERSE_PROXY_HOST")
    reverse_proxy_port: int = Field(default=19081, alias="REVERSE_PROXY_PORT")
    proxy_timeout: float = Field(default=30.0, alias="PROXY_TIMEOUT")
    proxy_max_connections: int = Field(default=100, alias="PROXY_MAX_CONNECTIONS")

    # Placement Service
    placement_endpoint: str = Field(default="http://localhost:19080", alias="PLACEMENT_ENDPOINT")
    placement_api_version: str = Field(default="6.0", alias="PLACEMENT_API_VERSION")
    placement_timeout: float = Field(default=10.0, alias="PLACEMENT_TIMEOUT")

    # Fan-out
    fanout_strategy: str = Field(default="sequential", alias="FANOUT_STRATEGY")
    fanout_max_concurrency: int = Field(default=8, alias="FANOUT_MAX_CONCURRENCY")

    # CORS
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="text", alias="LOG_FORMAT")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        populate_by_name = True

    @property
    def backend_service_uri(self) -> str:
        """Full name of the backend service, e.g. fabric:/App/StatefulBackendService."""
        if not self.application_name.strip() or not self.backend_service_name.strip():
            return ""
        return f"{self.application_name.rstrip('/')}/{self.backend_service_name.strip('/')}"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def json_logs(self) -> bool:
        return self.log_format.lower() == "json"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
