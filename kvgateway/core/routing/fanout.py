"""
Fan-out strategies for multi-partition reads.

Both strategies share one contract: results come back in the order the
partitions were given, and the first failure aborts the whole fan-out.
Switching from sequential to concurrent calls never changes what the
caller observes, only latency.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from ..models import PartitionDescriptor
from ...middleware.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

PartitionFetch = Callable[[PartitionDescriptor], Awaitable[T]]


class FanOutStrategy(ABC):
    """Runs one fetch per partition."""

    name: str = "base"

    @abstractmethod
    async def run(
        self,
        partitions: Sequence[PartitionDescriptor],
        fetch: PartitionFetch,
    ) -> List[T]:
        """
        Returns:
            One fetch result per partition, in partition order

        Raises:
            Whatever the first failing fetch raised
        """


class SequentialFanOut(FanOutStrategy):
    """Visits partitions one at a time and stops at the first failure."""

    name = "sequential"

    async def run(
        self,
        partitions: Sequence[PartitionDescriptor],
        fetch: PartitionFetch,
    ) -> List[T]:
        results = []
        for partition in partitions:
            results.append(await fetch(partition))
        return results


class ConcurrentFanOut(FanOutStrategy):
    """
    Issues up to max_concurrency partition calls at once.

    When a call fails the outstanding ones are cancelled and the failure of
    the earliest failed partition (in partition order) is raised.
    """

    name = "concurrent"

    def __init__(self, max_concurrency: int = 8):
        if max_concurrency < 1:
            raise ConfigurationError(
                f"fan-out concurrency must be at least 1, got {max_concurrency}",
                setting="fanout_max_concurrency"
            )
        self.max_concurrency = max_concurrency

    async def run(
        self,
        partitions: Sequence[PartitionDescriptor],
        fetch: PartitionFetch,
    ) -> List[T]:
        if not partitions:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(partition: PartitionDescriptor) -> T:
            async with semaphore:
                return await fetch(partition)

        tasks = [asyncio.ensure_future(bounded(partition)) for partition in partitions]

        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise

        failed = [task for task in tasks if task in done and not task.cancelled() and task.exception()]
        if failed:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            logger.debug(f"Fan-out aborted, {len(pending)} partition calls cancelled")
            raise failed[0].exception()

        return [task.result() for task in tasks]


def create_fanout_strategy(name: str, max_concurrency: Optional[int] = None) -> FanOutStrategy:
    """Build the strategy named in settings."""
    normalized = (name or "").strip().lower()
    if normalized == SequentialFanOut.name:
        return SequentialFanOut()
    if normalized == ConcurrentFanOut.name:
        return ConcurrentFanOut(max_concurrency or 8)
    raise ConfigurationError(f"Unknown fan-out strategy: {name!r}", setting="fanout_strategy")
