# kvgateway core
# Partitioning, routing and the value types shared between them

from .models import (
    PartitionKind,
    PartitionDescriptor,
    Record,
    AggregatedResult,
    WriteResult,
)

__all__ = [
    "PartitionKind",
    "PartitionDescriptor",
    "Record",
    "AggregatedResult",
    "WriteResult",
]
