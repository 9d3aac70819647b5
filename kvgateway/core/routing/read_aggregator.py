"""
Read Aggregator

Reads every partition of the backend service and merges the records into
one result. The partition list comes from the directory on each call.

Failure policy is all or nothing: if any partition cannot be read the
whole aggregation fails with that partition's status, and records already
gathered from other partitions are discarded.
"""

import logging
import time
from typing import Any, List, Optional

from ..models import AggregatedResult, PartitionDescriptor, Record
from ..partitioning.proxy_address import ProxyAddressBuilder
from .fanout import FanOutStrategy, SequentialFanOut
from ...distributed.communication.rest_client import ProxyClient, ProxyResponse
from ...distributed.coordination.partition_directory import PartitionDirectory
from ...middleware.exceptions import (
    OperationNotImplementedError,
    PartitionDecodeError,
    PartitionErrorResponse,
    PartitionUnreachableError,
)

logger = logging.getLogger(__name__)


def decode_records(partition: PartitionDescriptor, response: ProxyResponse) -> List[Record]:
    """
    Decode a partition body: a JSON list of {"Key": ..., "Value": ...} objects.

    Field names are matched case-insensitively.
    """
    try:
        payload: Any = response.json()
    except ValueError as e:
        raise PartitionDecodeError(partition.partition_id, "body is not JSON") from e

    if not isinstance(payload, list):
        raise PartitionDecodeError(partition.partition_id, "body is not a list")

    records = []
    for entry in payload:
        if not isinstance(entry, dict):
            raise PartitionDecodeError(partition.partition_id, "entry is not an object")
        fields = {str(name).lower(): value for name, value in entry.items()}
        if "key" not in fields:
            raise PartitionDecodeError(partition.partition_id, "entry has no key")
        value = fields.get("value")
        records.append(Record(
            key=str(fields["key"]),
            value="" if value is None else str(value),
        ))
    return records


class ReadAggregator:
    """
    Aggregates the records of every partition of a service.

    The order of the result is directory order, then the order each
    partition returned its records in.
    """

    def __init__(
        self,
        directory: PartitionDirectory,
        address_builder: ProxyAddressBuilder,
        client: ProxyClient,
        fanout: Optional[FanOutStrategy] = None,
        service_name: Optional[str] = None,
    ):
        """
        Args:
            directory: Source of the current partition list
            address_builder: Builds per-partition proxy URLs
            client: Shared proxy client
            fanout: Partition call strategy (sequential by default)
            service_name: Service read when get_all() is called without one
        """
        self.directory = directory
        self.address_builder = address_builder
        self.client = client
        self.fanout = fanout or SequentialFanOut()
        self.service_name = service_name or address_builder.service_name

    async def get_all(self, service_name: Optional[str] = None) -> AggregatedResult:
        """
        Read every record of every partition.

        Raises:
            DirectoryUnavailableError: the partition list could not be obtained
            PartitionErrorResponse: a partition answered with a failure status
                or an undecodable body
            PartitionUnreachableError: a partition call failed or timed out
        """
        service_name = service_name or self.service_name
        start_time = time.perf_counter()

        partitions = await self.directory.list_partitions(service_name)

        async def fetch(partition: PartitionDescriptor) -> List[Record]:
            return await self._read_partition(service_name, partition)

        try:
            per_partition = await self.fanout.run(partitions, fetch)
        except (PartitionErrorResponse, PartitionUnreachableError) as e:
            logger.warning(f"Aggregated read of {service_name} aborted: {e.message}")
            raise

        records: List[Record] = []
        for partition_records in per_partition:
            if partition_records:
                records.extend(partition_records)

        elapsed = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Aggregated {len(records)} records from {len(partitions)} partitions "
            f"of {service_name} in {elapsed:.1f}ms"
        )

        return AggregatedResult(
            records=tuple(records),
            partitions_queried=len(partitions),
            total_time_ms=elapsed,
        )

    async def _read_partition(
        self,
        service_name: str,
        partition: PartitionDescriptor,
    ) -> List[Record]:
        """Read and annotate the records of a single partition."""
        url = self.address_builder.build_read_url(
            service_name,
            partition.kind,
            partition.partition_key,
        )
        response = await self.client.get(url)

        if response.transport_failed:
            raise PartitionUnreachableError(
                partition.partition_id,
                reason=response.error,
                timed_out=response.timed_out,
            )

        if response.status != 200:
            raise PartitionErrorResponse(partition.partition_id, response.status)

        records = decode_records(partition, response)
        logger.debug(f"Partition {partition.partition_id} returned {len(records)} records")
        return [record.annotated(partition) for record in records]

    async def get(self, key: str) -> Record:
        """Single key reads are not exposed by the backend service."""
        raise OperationNotImplementedError("get")
