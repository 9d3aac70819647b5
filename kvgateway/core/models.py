"""
Core Models
Value types exchanged between the directory, the routers and the API layer
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Any, Iterator, List, Optional, Tuple


class PartitionKind(str, Enum):
    """Partitioning schemes understood by the reverse proxy."""
    INT64_RANGE = "Int64Range"
    NAMED = "Named"
    SINGLETON = "Singleton"


@dataclass(frozen=True)
class PartitionDescriptor:
    """
    One partition of the backend service as reported by the placement service.

    Only lives for the duration of a single read; the directory is queried
    again for every aggregation.
    """
    partition_id: str
    kind: PartitionKind
    low_key: Optional[int] = None
    high_key: Optional[int] = None
    name: Optional[str] = None

    @property
    def partition_key(self) -> Optional[str]:
        """Value sent to the proxy as PartitionKey (None for singletons)."""
        if self.kind == PartitionKind.INT64_RANGE:
            return str(self.low_key)
        if self.kind == PartitionKind.NAMED:
            return self.name
        return None


@dataclass(frozen=True)
class Record:
    """A key/value pair, optionally tagged with the partition it came from."""
    key: str
    value: str
    partition_id: Optional[str] = None
    partition_kind: Optional[PartitionKind] = None

    def annotated(self, partition: PartitionDescriptor) -> "Record":
        """Return a copy whose value and provenance name the source partition."""
        return replace(
            self,
            value=f"{self.value} - {partition.partition_id} - {partition.kind.value}",
            partition_id=partition.partition_id,
            partition_kind=partition.kind,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "value": self.value,
            "partition_id": self.partition_id,
            "partition_kind": self.partition_kind.value if self.partition_kind else None,
        }


@dataclass(frozen=True)
class AggregatedResult:
    """
    Records gathered from every partition.

    Order is directory order first, then the order each partition returned
    its records in. Nothing is de-duplicated or sorted.
    """
    records: Tuple[Record, ...] = ()
    partitions_queried: int = 0
    total_time_ms: float = 0.0

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def to_list(self) -> List[Dict[str, Any]]:
        return [record.to_dict() for record in self.records]


@dataclass(frozen=True)
class WriteResult:
    """Backend answer to a routed write, passed through untouched."""
    status_code: int
    body: bytes = b""
    content_type: Optional[str] = None
    partition_key: Optional[int] = None
