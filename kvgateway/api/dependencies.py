"""
API Dependencies
FastAPI dependency injection for the kvgateway API
"""

from typing import Optional
from fastapi import HTTPException, status
import logging

from ..config import Settings
from ..core.partitioning import ProxyAddressBuilder
from ..core.routing import ReadAggregator, WriteRouter, create_fanout_strategy
from ..distributed.communication import ProxyClient
from ..distributed.coordination import PlacementClient, PartitionDirectory

logger = logging.getLogger(__name__)


# Global instances (initialized at startup)
_proxy_client: Optional[ProxyClient] = None
_placement_client: Optional[PlacementClient] = None
_read_aggregator: Optional[ReadAggregator] = None
_write_router: Optional[WriteRouter] = None
_settings: Optional[Settings] = None


async def init_dependencies(settings: Settings):
    """
    Initialize all dependencies at application startup.

    Raises:
        ConfigurationError: routing settings are missing or invalid
    """
    global _proxy_client, _placement_client, _read_aggregator, _write_router, _settings

    # Validate configuration before opening any connection
    address_builder = ProxyAddressBuilder(
        reverse_proxy_port=settings.reverse_proxy_port,
        service_name=settings.backend_service_uri,
        host=settings.reverse_proxy_host,
    )
    fanout = create_fanout_strategy(
        settings.fanout_strategy,
        settings.fanout_max_concurrency,
    )

    _settings = settings

    _proxy_client = ProxyClient(
        timeout=settings.proxy_timeout,
        max_connections=settings.proxy_max_connections,
    )
    _placement_client = PlacementClient(
        endpoint=settings.placement_endpoint,
        api_version=settings.placement_api_version,
        timeout=settings.placement_timeout,
    )

    _read_aggregator = ReadAggregator(
        directory=PartitionDirectory(_placement_client),
        address_builder=address_builder,
        client=_proxy_client,
        fanout=fanout,
    )
    _write_router = WriteRouter(
        address_builder=address_builder,
        client=_proxy_client,
    )

    logger.info(
        f"Routing {settings.backend_service_uri} through {address_builder.base_url} "
        f"({fanout.name} fan-out)"
    )


async def shutdown_dependencies():
    """Cleanup dependencies at application shutdown"""
    global _proxy_client, _placement_client, _read_aggregator, _write_router, _settings

    if _proxy_client:
        await _proxy_client.close()
        _proxy_client = None

    if _placement_client:
        await _placement_client.close()
        _placement_client = None

    _read_aggregator = None
    _write_router = None
    _settings = None

    logger.info("Dependencies cleaned up")


async def get_read_aggregator() -> ReadAggregator:
    """Get read aggregator instance"""
    if _read_aggregator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Read aggregator not initialized"
        )
    return _read_aggregator


async def get_write_router() -> WriteRouter:
    """Get write router instance"""
    if _write_router is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Write router not initialized"
        )
    return _write_router


def get_active_settings() -> Optional[Settings]:
    """Settings the dependencies were initialized with"""
    return _settings
