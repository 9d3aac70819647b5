# kvgateway Middleware Module
# Provides common middleware components for the FastAPI application

from .logging_middleware import LoggingMiddleware, RequestLogger, setup_logging
from .exceptions import (
    GatewayException,
    InvalidKeyError,
    DirectoryUnavailableError,
    PartitionErrorResponse,
    PartitionDecodeError,
    PartitionUnreachableError,
    ConfigurationError,
    OperationNotImplementedError,
    status_allows_body
)

__all__ = [
    # Logging
    "LoggingMiddleware",
    "RequestLogger",
    "setup_logging",

    # Exceptions
    "GatewayException",
    "InvalidKeyError",
    "DirectoryUnavailableError",
    "PartitionErrorResponse",
    "PartitionDecodeError",
    "PartitionUnreachableError",
    "ConfigurationError",
    "OperationNotImplementedError",
    "status_allows_body"
]
