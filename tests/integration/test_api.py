"""
Integration Tests for API Endpoints
Tests the FastAPI surface with the proxy and placement service mocked
"""

import asyncio
import json
import logging
import socket

import httpx
import pytest
import uvicorn
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport

from kvgateway.api import dependencies
from kvgateway.api.dependencies import get_read_aggregator, get_write_router, init_dependencies
from kvgateway.config import Settings
from kvgateway.core.routing import ReadAggregator, WriteRouter
from kvgateway.distributed.coordination import PartitionDirectory
from kvgateway.main import create_application
from kvgateway.middleware.exceptions import (
    UNSUPPORTED_OPERATIONS,
    ConfigurationError,
    DirectoryUnavailableError,
)

from conftest import SERVICE_NAME, FakePlacement, kv_body

pytestmark = pytest.mark.integration


# ============================================================================
# Test Fixtures
# ============================================================================

@pytest.fixture
def placement(three_partitions) -> FakePlacement:
    return FakePlacement(three_partitions)


@pytest.fixture
def app(settings, placement, address_builder, proxy_client):
    """Create FastAPI app with routing components wired to mocks"""
    app = create_application(settings)

    aggregator = ReadAggregator(
        directory=PartitionDirectory(placement),
        address_builder=address_builder,
        client=proxy_client,
    )
    write_router = WriteRouter(address_builder=address_builder, client=proxy_client)

    app.dependency_overrides[get_read_aggregator] = lambda: aggregator
    app.dependency_overrides[get_write_router] = lambda: write_router
    return app


@pytest.fixture
async def client(app):
    """Create async HTTP client"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ============================================================================
# Read Endpoint Tests
# ============================================================================

class TestGetValues:

    @pytest.mark.asyncio
    async def test_aggregates_all_partitions(self, client: AsyncClient, proxy_backend):
        proxy_backend.on_partition("0", content=kv_body(("alice", "1")))
        proxy_backend.on_partition("9", content=kv_body(("kate", "2"), ("jon", "3")))
        proxy_backend.on_partition("18", content=b"[]")

        response = await client.get("/api/values")

        assert response.status_code == 200
        data = response.json()
        assert [item["key"] for item in data] == ["alice", "kate", "jon"]
        assert data[0] == {
            "key": "alice",
            "value": "1 - p-low - Int64Range",
            "partition_id": "p-low",
            "partition_kind": "Int64Range",
        }

    @pytest.mark.asyncio
    async def test_no_partitions(self, client: AsyncClient, placement, proxy_backend):
        placement.items = []

        response = await client.get("/api/values")

        assert response.status_code == 200
        assert response.json() == []
        assert proxy_backend.requests == []

    @pytest.mark.asyncio
    async def test_partition_status_surfaced(self, client: AsyncClient, proxy_backend):
        proxy_backend.on_partition("0", content=kv_body(("alice", "1")))
        proxy_backend.on_partition("9", status_code=429, content=b"slow down")
        proxy_backend.on_partition("18", content=kv_body(("zoe", "4")))

        response = await client.get("/api/values")

        assert response.status_code == 429
        body = response.json()
        assert body["error"] == "PARTITION_ERROR"
        assert "alice" not in response.text

    @pytest.mark.asyncio
    async def test_partition_timeout(self, client: AsyncClient, proxy_backend):
        proxy_backend.raise_on_partition("0", httpx.ReadTimeout)

        response = await client.get("/api/values")

        assert response.status_code == 504
        assert response.json()["error"] == "PARTITION_UNREACHABLE"

    @pytest.mark.asyncio
    async def test_directory_unavailable(self, client: AsyncClient, placement):
        placement.error = DirectoryUnavailableError(SERVICE_NAME, "down")

        response = await client.get("/api/values")

        assert response.status_code == 503
        assert response.json()["error"] == "DIRECTORY_UNAVAILABLE"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [204, 304])
    async def test_bodyless_partition_status(self, client: AsyncClient, proxy_backend, status_code):
        proxy_backend.on_partition("0", status_code=status_code, content=b"")

        response = await client.get("/api/values")

        assert response.status_code == status_code
        assert response.content == b""

    @pytest.mark.asyncio
    async def test_response_event_names_operation(self, client: AsyncClient, proxy_backend, caplog):
        for key in ("0", "9", "18"):
            proxy_backend.on_partition(key)
        caplog.set_level(logging.INFO, logger="kvgateway.requests")

        await client.get("/api/values", headers={"X-Request-ID": "req-7"})

        events = [json.loads(r.getMessage()) for r in caplog.records if r.name == "kvgateway.requests"]
        assert [e["event"] for e in events] == ["request", "response"]
        assert all(e["operation"] == "read_all" for e in events)
        assert events[1]["request_id"] == "req-7"
        assert events[1]["status_code"] == 200


# ============================================================================
# Write Endpoint Tests
# ============================================================================

class TestPutValue:

    @pytest.mark.asyncio
    async def test_passthrough(self, client: AsyncClient, proxy_backend):
        proxy_backend.on_partition("25", status_code=202, content=b'{"stored": true}')

        response = await client.put("/api/values", json={"key": "zebra", "value": "y"})

        assert response.status_code == 202
        assert response.json() == {"stored": True}
        sent = proxy_backend.requests[0]
        assert sent.url.params["PartitionKey"] == "25"
        assert json.loads(sent.content) == {"key": "zebra", "value": "y"}

    @pytest.mark.asyncio
    async def test_capitalized_fields(self, client: AsyncClient, proxy_backend):
        proxy_backend.on_partition("0", content=b"")

        response = await client.put("/api/values", json={"Key": "Alice", "Value": "x"})

        assert response.status_code == 200
        assert proxy_backend.partition_keys == ["0"]

    @pytest.mark.asyncio
    async def test_backend_error_passthrough(self, client: AsyncClient, proxy_backend):
        proxy_backend.on_partition("0", status_code=500, content=b"disk full")

        response = await client.put("/api/values", json={"key": "alice", "value": "x"})

        assert response.status_code == 500
        assert response.text == "disk full"

    @pytest.mark.asyncio
    async def test_scalar_value_stored_as_string(self, client: AsyncClient, proxy_backend):
        proxy_backend.on_partition("0")

        response = await client.put("/api/values", json={"key": "alice", "value": 5})

        assert response.status_code == 200
        assert json.loads(proxy_backend.requests[0].content) == {"key": "alice", "value": "5"}

    @pytest.mark.asyncio
    async def test_no_content_write(self, client: AsyncClient, proxy_backend):
        proxy_backend.on_partition("0", status_code=204, content=b"")

        response = await client.put("/api/values", json={"key": "alice", "value": "x"})

        assert response.status_code == 204
        assert response.content == b""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload,message", [
        ({"key": "1name", "value": "x"}, "The key must begin with a letter between A and Z"),
        ({"key": "", "value": "x"}, "No key provided"),
        ({"value": "x"}, "No key provided"),
    ])
    async def test_invalid_key(self, client: AsyncClient, proxy_backend, payload, message):
        response = await client.put("/api/values", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "INVALID_KEY"
        assert body["message"] == message
        assert proxy_backend.requests == []


# ============================================================================
# Unsupported Operations
# ============================================================================

class TestNotImplemented:

    @pytest.mark.asyncio
    async def test_get_by_id(self, client: AsyncClient, proxy_backend):
        response = await client.get("/api/values/5")

        assert response.status_code == 501
        assert response.json()["error"] == "NOT_IMPLEMENTED"
        assert response.json()["message"] == UNSUPPORTED_OPERATIONS["get"]
        assert proxy_backend.requests == []

    @pytest.mark.asyncio
    async def test_delete_by_id(self, client: AsyncClient, proxy_backend):
        response = await client.delete("/api/values/5")

        assert response.status_code == 501
        assert proxy_backend.requests == []

    @pytest.mark.asyncio
    async def test_independent_of_initialization(self, settings):
        app = create_application(settings)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            assert (await client.get("/api/values/5")).status_code == 501
            assert (await client.delete("/api/values/5")).status_code == 501


# ============================================================================
# Lifecycle and Health
# ============================================================================

class TestLifecycle:

    @pytest.mark.asyncio
    async def test_not_ready_before_startup(self, settings):
        app = create_application(settings)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            assert (await client.get("/health/ready")).status_code == 503
            assert (await client.get("/health/live")).status_code == 200
            assert (await client.get("/api/values")).status_code == 503

    def test_ready_after_startup(self, settings):
        with TestClient(create_application(settings)) as client:
            response = client.get("/health/ready")

            assert response.status_code == 200
            data = response.json()
            assert data["service_name"] == SERVICE_NAME
            assert data["fanout_strategy"] == "sequential"
            assert data["proxy"]["request_count"] == 0
            assert client.get("/ping").json() == {"status": "ok"}

    def test_debug_setting(self):
        assert create_application(Settings(debug=True, _env_file=None)).debug
        assert not create_application(Settings(_env_file=None)).debug

    def test_request_id_header(self, settings):
        with TestClient(create_application(settings)) as client:
            response = client.get("/api/values/5", headers={"X-Request-ID": "req-42"})

            assert response.headers["X-Request-ID"] == "req-42"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [
        {"reverse_proxy_port": 0},
        {"backend_service_name": ""},
        {"fanout_strategy": "scatter"},
    ])
    async def test_bad_configuration_is_startup_fatal(self, overrides):
        settings = Settings(_env_file=None, **overrides)

        with pytest.raises(ConfigurationError):
            await init_dependencies(settings)
        assert dependencies._read_aggregator is None


# ============================================================================
# Served over HTTP
# ============================================================================

class TestServedByUvicorn:

    @pytest.mark.asyncio
    async def test_no_content_partition_served_cleanly(self, app, proxy_backend, caplog):
        proxy_backend.on_partition("0", status_code=204, content=b"")
        caplog.set_level(logging.INFO)

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.bind(("127.0.0.1", 0))
        host, port = sock.getsockname()
        server = uvicorn.Server(uvicorn.Config(app, lifespan="off", log_config=None))
        serving = asyncio.create_task(server.serve(sockets=[sock]))

        try:
            for _ in range(500):
                if server.started or serving.done():
                    break
                await asyncio.sleep(0.01)
            assert server.started

            async with AsyncClient(base_url=f"http://{host}:{port}") as client:
                response = await client.get("/api/values")
        finally:
            server.should_exit = True
            await serving
            sock.close()

        assert response.status_code == 204
        assert response.content == b""
        server_errors = [
            r for r in caplog.records
            if r.name.startswith("uvicorn") and r.levelno >= logging.ERROR
        ]
        assert server_errors == []
