"""
Write Router

Sends a write to the single partition that owns the key. The backend's
answer is returned as is: no retry, no status translation.
"""

import logging
from typing import Optional

from ..models import WriteResult
from ..partitioning.key_partitioner import compute_partition_key
from ..partitioning.proxy_address import ProxyAddressBuilder
from ...distributed.communication.rest_client import ProxyClient
from ...middleware.exceptions import (
    InvalidKeyError,
    OperationNotImplementedError,
    PartitionUnreachableError,
)

logger = logging.getLogger(__name__)


class WriteRouter:
    """Routes key/value writes to their owning partition."""

    def __init__(
        self,
        address_builder: ProxyAddressBuilder,
        client: ProxyClient,
        service_name: Optional[str] = None,
    ):
        self.address_builder = address_builder
        self.client = client
        self.service_name = service_name or address_builder.service_name

    async def put(self, key: Optional[str], value: Optional[str]) -> WriteResult:
        """
        Write one key/value pair.

        Args:
            key: Application key, must start with a letter A-Z
            value: Value to store

        Returns:
            Status, body and content type exactly as the backend sent them

        Raises:
            InvalidKeyError: key is empty or does not start with a letter
            PartitionUnreachableError: the proxy could not be reached at all
        """
        if not key:
            raise InvalidKeyError("No key provided", key=key)

        partition_key = compute_partition_key(key)
        url = self.address_builder.build_write_url(self.service_name, key, partition_key)

        payload = {"key": key, "value": "" if value is None else value}
        response = await self.client.put(url, data=payload)

        if response.transport_failed:
            logger.warning(f"Write of key {key!r} to partition {partition_key} failed: {response.error}")
            raise PartitionUnreachableError(
                str(partition_key),
                reason=response.error,
                timed_out=response.timed_out,
            )

        logger.debug(f"Write of key {key!r} routed to partition {partition_key}: {response.status}")

        return WriteResult(
            status_code=response.status,
            body=response.body,
            content_type=response.content_type,
            partition_key=partition_key,
        )

    async def delete(self, key: str) -> WriteResult:
        """Deletes are not exposed by the backend service."""
        raise OperationNotImplementedError("delete")
