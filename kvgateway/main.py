"""
kvgateway Main Application
FastAPI application entry point for the partition router
"""

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from typing import Optional
import logging

import uvicorn

from .config import Settings, get_settings
from .api import api_router, health_router, init_dependencies, shutdown_dependencies
from .middleware import GatewayException, LoggingMiddleware, setup_logging, status_allows_body

logger = logging.getLogger(__name__)


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan context manager.
        A ConfigurationError raised here aborts startup.
        """
        logger.info(f"Starting {settings.app_name}...")

        await init_dependencies(settings)
        logger.info(f"API server running on {settings.api_host}:{settings.api_port}")

        try:
            yield
        finally:
            logger.info(f"Shutting down {settings.app_name}...")
            await shutdown_dependencies()
            logger.info("Shutdown complete")

    app = FastAPI(
        title="kvgateway API",
        description="""
        kvgateway routes key/value operations to the partitions of a
        range-partitioned backend service reached through a local reverse proxy.

        * **Writes** go to the single partition owning the key (first letter A-Z)
        * **Reads** fan out to every partition and merge the results
        * A failing partition fails the whole read
        """,
        version=settings.app_version,
        debug=settings.debug,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )

    configure_middleware(app, settings)
    configure_exception_handlers(app)

    app.include_router(api_router)
    app.include_router(health_router)

    @app.get("/ping", tags=["root"])
    async def ping():
        """Simple ping endpoint for load balancer health checks."""
        return {"status": "ok"}

    return app


def configure_middleware(app: FastAPI, settings: Settings):
    """Configure application middleware"""

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"]
    )

    app.add_middleware(LoggingMiddleware)


def configure_exception_handlers(app: FastAPI):
    """Configure exception handlers"""

    @app.exception_handler(GatewayException)
    async def gateway_exception_handler(request: Request, exc: GatewayException):
        """Render routing errors with their own status code"""
        if exc.status_code >= 500:
            logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
        if not status_allows_body(exc.status_code):
            # A partition answered 204/304; pass the bare status on
            return Response(status_code=exc.status_code)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError
    ):
        """Handle request validation errors"""
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": "VALIDATION_ERROR",
                "message": "Invalid request parameters",
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in error["loc"]),
                        "message": error["msg"],
                        "code": error["type"]
                    }
                    for error in exc.errors()
                ]
            }
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unhandled exceptions"""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": []
            }
        )


def run():
    """Console entry point: serve the application with uvicorn."""
    settings = get_settings()
    setup_logging(level=settings.log_level, json_format=settings.json_logs)

    logger.info("=" * 60)
    logger.info(f"{settings.app_name} v{settings.app_version}")
    logger.info(f"Backend service: {settings.backend_service_uri}")
    logger.info(f"Reverse proxy: {settings.reverse_proxy_host}:{settings.reverse_proxy_port}")
    logger.info(f"Placement endpoint: {settings.placement_endpoint}")
    logger.info("=" * 60)

    uvicorn.run(
        create_application(settings),
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
