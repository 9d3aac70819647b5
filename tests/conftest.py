"""
Shared pytest fixtures
"""
import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from kvgateway.config import Settings
from kvgateway.core.models import PartitionDescriptor, PartitionKind
from kvgateway.core.partitioning import ProxyAddressBuilder
from kvgateway.distributed.communication import ProxyClient

SERVICE_NAME = "fabric:/GettingStartedApplication/StatefulBackendService"
PROXY_PORT = 19081


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "integration: tests exercising the FastAPI application")


def range_item(partition_id: str, low: int, high: int) -> Dict[str, Any]:
    """Placement service item for an Int64Range partition"""
    return {
        "PartitionInformation": {
            "ServicePartitionKind": "Int64Range",
            "Id": partition_id,
            "LowKey": str(low),
            "HighKey": str(high),
        },
        "PartitionStatus": "Ready",
    }


def kv_body(*pairs) -> bytes:
    """Backend body as the stateful service serializes its key/value list"""
    return json.dumps([{"Key": k, "Value": v} for k, v in pairs]).encode()


class FakePlacement:
    """In-memory placement service"""

    def __init__(self, items: Optional[List[Dict[str, Any]]] = None, error: Optional[Exception] = None):
        self.items = items or []
        self.error = error
        self.calls: List[str] = []

    async def get_partitions(self, service_name: str) -> List[Dict[str, Any]]:
        self.calls.append(service_name)
        if self.error is not None:
            raise self.error
        return list(self.items)


class ProxyBackend:
    """
    httpx MockTransport handler standing in for the reverse proxy.

    Responses are looked up by PartitionKey; every request is recorded.
    """

    def __init__(self):
        self.responses: Dict[Optional[str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []

    def on_partition(self, partition_key: Optional[str], status_code: int = 200, content: bytes = b"[]"):
        self.responses[partition_key] = lambda request: httpx.Response(
            status_code,
            content=content,
            headers={"content-type": "application/json"},
        )

    def raise_on_partition(self, partition_key: Optional[str], exc_type: type):
        def handler(request: httpx.Request) -> httpx.Response:
            raise exc_type("simulated failure", request=request)
        self.responses[partition_key] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = request.url.params.get("PartitionKey")
        handler = self.responses.get(key)
        if handler is None:
            return httpx.Response(404, content=b"no such partition")
        return handler(request)

    @property
    def partition_keys(self) -> List[Optional[str]]:
        return [r.url.params.get("PartitionKey") for r in self.requests]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        application_name="fabric:/GettingStartedApplication",
        backend_service_name="StatefulBackendService",
        reverse_proxy_port=PROXY_PORT,
        placement_endpoint="http://placement.test",
    )


@pytest.fixture
def address_builder() -> ProxyAddressBuilder:
    return ProxyAddressBuilder(reverse_proxy_port=PROXY_PORT, service_name=SERVICE_NAME)


@pytest.fixture
def proxy_backend() -> ProxyBackend:
    return ProxyBackend()


@pytest.fixture
async def proxy_client(proxy_backend: ProxyBackend):
    client = ProxyClient(timeout=1.0, transport=httpx.MockTransport(proxy_backend))
    yield client
    await client.close()


@pytest.fixture
def three_partitions() -> List[Dict[str, Any]]:
    """Placement items splitting 0-25 into three ranges"""
    return [
        range_item("p-low", 0, 8),
        range_item("p-mid", 9, 17),
        range_item("p-high", 18, 25),
    ]


@pytest.fixture
def descriptor() -> PartitionDescriptor:
    return PartitionDescriptor(
        partition_id="p-low",
        kind=PartitionKind.INT64_RANGE,
        low_key=0,
        high_key=8,
    )
