"""
Partitioning Module - key placement and reverse proxy addressing.

Maps application keys onto the 26 integer partition keys of the backend
and composes the proxy URLs that select a partition.
"""

from .key_partitioner import (
    compute_partition_key,
    PARTITION_KEY_MIN,
    PARTITION_KEY_MAX,
    PARTITION_COUNT,
)
from .proxy_address import ProxyAddressBuilder, strip_scheme

__all__ = [
    "compute_partition_key",
    "PARTITION_KEY_MIN",
    "PARTITION_KEY_MAX",
    "PARTITION_COUNT",
    "ProxyAddressBuilder",
    "strip_scheme",
]
