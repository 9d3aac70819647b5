"""
Partition Directory

Discovers the current partitions of a backend service through the
cluster placement service. The list is fetched fresh for every call;
topology changes are visible to the very next read.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol

import httpx

from ...core.models import PartitionDescriptor, PartitionKind
from ...core.partitioning.proxy_address import strip_scheme
from ...middleware.exceptions import DirectoryUnavailableError, GatewayException

logger = logging.getLogger(__name__)

# Upper bound on continuation pages followed for one listing
MAX_PAGES = 1000


def service_id_from_name(service_name: str) -> str:
    """'fabric:/App/Service' -> 'App~Service' as used in placement service paths."""
    return strip_scheme(service_name).replace("/", "~")


class PlacementService(Protocol):
    """Anything able to list the raw partition entries of a service."""

    async def get_partitions(self, service_name: str) -> List[Dict[str, Any]]:
        ...


class PlacementClient:
    """
    Client for the cluster management REST endpoint.

    Follows ContinuationToken paging and returns the raw partition items
    in the order the cluster reported them.
    """

    def __init__(
        self,
        endpoint: str,
        api_version: str = "6.0",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.api_version = api_version
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.endpoint,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def get_partitions(self, service_name: str) -> List[Dict[str, Any]]:
        """
        List every partition item of a service.

        Raises:
            DirectoryUnavailableError: the endpoint is unreachable or answers
                with anything other than a well formed partition page
        """
        path = f"/Services/{service_id_from_name(service_name)}/$/GetPartitions"
        items: List[Dict[str, Any]] = []
        continuation: Optional[str] = None

        for _ in range(MAX_PAGES):
            params = {"api-version": self.api_version}
            if continuation:
                params["ContinuationToken"] = continuation

            try:
                response = await self._get_client().get(path, params=params)
            except httpx.TimeoutException as e:
                raise DirectoryUnavailableError(service_name, f"placement query timed out: {e}") from e
            except httpx.HTTPError as e:
                raise DirectoryUnavailableError(service_name, f"placement service unreachable: {e}") from e

            if response.status_code != 200:
                raise DirectoryUnavailableError(
                    service_name,
                    f"placement service returned status {response.status_code}"
                )

            try:
                page = response.json()
            except ValueError as e:
                raise DirectoryUnavailableError(service_name, "placement response is not JSON") from e

            if not isinstance(page, dict) or not isinstance(page.get("Items"), list):
                raise DirectoryUnavailableError(service_name, "placement response has no Items list")

            items.extend(page["Items"])
            continuation = page.get("ContinuationToken")
            if not continuation:
                return items

        raise DirectoryUnavailableError(service_name, f"more than {MAX_PAGES} partition pages")


class PartitionDirectory:
    """
    Resolves a service name into its partition descriptors.

    A listing is all or nothing: one malformed entry fails the whole call,
    since aggregating over an incomplete list would silently drop records.
    """

    def __init__(self, placement: PlacementService):
        self.placement = placement

    async def list_partitions(self, service_name: str) -> List[PartitionDescriptor]:
        """
        Args:
            service_name: Full service name, e.g. fabric:/App/StatefulBackendService

        Returns:
            Descriptors in the order the placement service returned them

        Raises:
            DirectoryUnavailableError
        """
        try:
            items = await self.placement.get_partitions(service_name)
        except GatewayException:
            raise
        except Exception as e:
            raise DirectoryUnavailableError(service_name, str(e)) from e

        if not isinstance(items, list):
            raise DirectoryUnavailableError(service_name, "partition list is not a sequence")

        partitions = [self._parse_partition(service_name, item) for item in items]
        logger.debug(f"Directory returned {len(partitions)} partitions for {service_name}")
        return partitions

    @staticmethod
    def _parse_partition(service_name: str, item: Any) -> PartitionDescriptor:
        """Convert one placement item into a descriptor."""
        info = item.get("PartitionInformation") if isinstance(item, dict) else None
        if not isinstance(info, dict):
            raise DirectoryUnavailableError(service_name, "partition entry without PartitionInformation")

        partition_id = info.get("Id")
        if not partition_id:
            raise DirectoryUnavailableError(service_name, "partition entry without Id")

        try:
            kind = PartitionKind(info.get("ServicePartitionKind"))
        except ValueError as e:
            raise DirectoryUnavailableError(
                service_name,
                f"unknown partition kind {info.get('ServicePartitionKind')!r}"
            ) from e

        if kind == PartitionKind.INT64_RANGE:
            try:
                low_key = int(info["LowKey"])
                high_key = int(info["HighKey"])
            except (KeyError, TypeError, ValueError) as e:
                raise DirectoryUnavailableError(
                    service_name,
                    f"partition {partition_id} has an invalid key range"
                ) from e
            if low_key > high_key:
                raise DirectoryUnavailableError(
                    service_name,
                    f"partition {partition_id} has LowKey above HighKey"
                )
            return PartitionDescriptor(
                partition_id=str(partition_id),
                kind=kind,
                low_key=low_key,
                high_key=high_key,
            )

        if kind == PartitionKind.NAMED:
            name = info.get("Name")
            if not name:
                raise DirectoryUnavailableError(service_name, f"named partition {partition_id} has no Name")
            return PartitionDescriptor(partition_id=str(partition_id), kind=kind, name=str(name))

        return PartitionDescriptor(partition_id=str(partition_id), kind=kind)
