"""
Custom Exceptions
Exception classes for kvgateway error handling
"""

from fastapi import status
from typing import Optional, Dict, Any, List


# HTTP forbids a body on 1xx, 204 and 304 responses
BODYLESS_STATUSES = (204, 304)


def status_allows_body(status_code: int) -> bool:
    return status_code >= 200 and status_code not in BODYLESS_STATUSES


class GatewayException(Exception):
    """
    Base exception for all kvgateway errors.
    """

    def __init__(
        self,
        message: str,
        code: str = "GATEWAY_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[List[Dict[str, Any]]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or []
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response"""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


# Key Exceptions

class InvalidKeyError(GatewayException):
    """Raised when a key is empty or does not start with an ASCII letter"""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(
            message=message,
            code="INVALID_KEY",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=[{"field": "key", "value": key}] if key is not None else []
        )


# Directory Exceptions

class DirectoryUnavailableError(GatewayException):
    """Raised when the placement service cannot produce a usable partition list"""

    def __init__(self, service_name: str, reason: Optional[str] = None):
        super().__init__(
            message=f"Partition directory unavailable for {service_name}" + (f" - {reason}" if reason else ""),
            code="DIRECTORY_UNAVAILABLE",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=[{"service_name": service_name, "reason": reason}]
        )


# Partition Exceptions

class PartitionErrorResponse(GatewayException):
    """Raised when a partition answers with a non-success status"""

    def __init__(
        self,
        partition_id: str,
        status_code: int,
        message: Optional[str] = None,
        code: str = "PARTITION_ERROR"
    ):
        self.partition_id = partition_id
        super().__init__(
            message=message or f"Partition {partition_id} returned status {status_code}",
            code=code,
            status_code=status_code,
            details=[{"partition_id": partition_id, "status": status_code}]
        )


class PartitionDecodeError(PartitionErrorResponse):
    """Raised when a partition body is not a list of key/value pairs"""

    def __init__(self, partition_id: str, reason: str):
        super().__init__(
            partition_id=partition_id,
            status_code=status.HTTP_502_BAD_GATEWAY,
            message=f"Could not decode response of partition {partition_id}: {reason}",
            code="PARTITION_DECODE_ERROR"
        )


class PartitionUnreachableError(GatewayException):
    """Raised when the proxy call for a partition fails at transport level"""

    def __init__(
        self,
        partition_id: str,
        reason: Optional[str] = None,
        timed_out: bool = False
    ):
        self.partition_id = partition_id
        self.timed_out = timed_out
        super().__init__(
            message=f"Partition unreachable: {partition_id}" + (f" - {reason}" if reason else ""),
            code="PARTITION_UNREACHABLE",
            status_code=(
                status.HTTP_504_GATEWAY_TIMEOUT if timed_out
                else status.HTTP_502_BAD_GATEWAY
            ),
            details=[{"partition_id": partition_id, "reason": reason, "timed_out": timed_out}]
        )


# Configuration Exceptions

class ConfigurationError(GatewayException):
    """Raised at startup when required routing settings are missing"""

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=[{"setting": setting}] if setting else []
        )


# Unsupported Operations

UNSUPPORTED_OPERATIONS = {
    "get": "No method implemented to get a specific key/value pair from the backend service",
    "delete": "No method implemented to delete a specified key/value pair in the backend service",
}


class OperationNotImplementedError(GatewayException, NotImplementedError):
    """Raised for operations the backend store does not expose"""

    def __init__(self, operation: str, message: Optional[str] = None):
        super().__init__(
            message=message or UNSUPPORTED_OPERATIONS.get(operation, f"Operation not implemented: {operation}"),
            code="NOT_IMPLEMENTED",
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            details=[{"operation": operation}]
        )
