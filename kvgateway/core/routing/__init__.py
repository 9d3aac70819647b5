"""
Routing Module - single partition writes and multi partition reads.
"""

from .fanout import (
    FanOutStrategy,
    SequentialFanOut,
    ConcurrentFanOut,
    create_fanout_strategy,
)
from .read_aggregator import ReadAggregator, decode_records
from .write_router import WriteRouter

__all__ = [
    "FanOutStrategy",
    "SequentialFanOut",
    "ConcurrentFanOut",
    "create_fanout_strategy",
    "ReadAggregator",
    "decode_records",
    "WriteRouter",
]
