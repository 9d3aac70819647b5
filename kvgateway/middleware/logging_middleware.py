"""
Logging Middleware
Structured request/response events for the kvgateway API, tagged with the
routing operation each call triggers
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Optional
from datetime import datetime, timezone
import logging
import time
import json
import traceback
import uuid

logger = logging.getLogger(__name__)

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = '{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'

VALUES_PATH = "/api/values"

ROUTED_OPERATIONS = {
    ("GET", VALUES_PATH): "read_all",
    ("PUT", VALUES_PATH): "write",
}


def routed_operation(method: str, path: str) -> str:
    """
    Name the routing operation behind an inbound call.

    read_all fans out to every partition, write goes to one partition,
    unsupported covers the single-key routes and other is everything else.
    """
    operation = ROUTED_OPERATIONS.get((method.upper(), path.rstrip("/")))
    if operation:
        return operation
    if path.startswith(VALUES_PATH + "/"):
        return "unsupported"
    return "other"


class RequestLogger:
    """
    Emits one JSON line per request, response or failure.
    """

    def __init__(self, logger_name: str = "kvgateway.requests"):
        self.logger = logging.getLogger(logger_name)

    def _emit(self, level: int, event: str, request_id: str, **fields):
        payload = {"event": event, "request_id": request_id}
        payload.update(fields)
        payload["timestamp"] = datetime.now(timezone.utc).isoformat()
        self.logger.log(level, json.dumps(payload))

    def log_request(
        self,
        request_id: str,
        method: str,
        path: str,
        operation: str,
        client_ip: str
    ):
        self._emit(
            logging.INFO, "request", request_id,
            method=method, path=path, operation=operation, client_ip=client_ip
        )

    def log_response(
        self,
        request_id: str,
        operation: str,
        status_code: int,
        duration_ms: float
    ):
        """Level follows the status: partition failures surface as 5xx."""
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        self._emit(
            level, "response", request_id,
            operation=operation, status_code=status_code, duration_ms=round(duration_ms, 2)
        )

    def log_error(self, request_id: str, operation: str, error: str):
        self._emit(
            logging.ERROR, "error", request_id,
            operation=operation, error=error, traceback=traceback.format_exc()
        )


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every routed call with its operation and timing, and propagates
    X-Request-ID. Health probes are not logged.
    """

    EXCLUDED_PATHS = frozenset({
        "/health/live",
        "/health/ready",
        "/ping",
        "/favicon.ico",
    })

    def __init__(
        self,
        app,
        request_logger: Optional[RequestLogger] = None,
        slow_request_threshold_ms: float = 1000.0
    ):
        super().__init__(app)
        self.request_logger = request_logger or RequestLogger()
        self.slow_request_threshold_ms = slow_request_threshold_ms

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        operation = routed_operation(request.method, request.url.path)

        self.request_logger.log_request(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            operation=operation,
            client_ip=request.client.host if request.client else "unknown",
        )

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            self.request_logger.log_error(request_id, operation, str(e))
            raise
        duration_ms = (time.perf_counter() - start_time) * 1000

        self.request_logger.log_response(request_id, operation, response.status_code, duration_ms)

        # A slow read_all usually means one partition is lagging
        if duration_ms > self.slow_request_threshold_ms:
            logger.warning(
                f"Slow {operation}: {request.method} {request.url.path} "
                f"took {duration_ms:.2f}ms"
            )

        response.headers["X-Request-ID"] = request_id
        return response


def setup_logging(level: str = "INFO", json_format: bool = False):
    """
    Configure root logging once at process start.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_format: Emit JSON lines instead of plain text
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=JSON_FORMAT if json_format else TEXT_FORMAT
    )

    # Per-partition proxy calls would otherwise flood the log
    for noisy in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
