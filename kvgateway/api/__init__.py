# kvgateway API Module
# FastAPI routers and endpoints for the partition router

from .router import api_router
from .health import router as health_router
from .dependencies import (
    init_dependencies,
    shutdown_dependencies,
    get_read_aggregator,
    get_write_router
)

__all__ = [
    "api_router",
    "health_router",
    "init_dependencies",
    "shutdown_dependencies",
    "get_read_aggregator",
    "get_write_router"
]
