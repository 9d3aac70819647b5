"""
Coordination module - partition discovery through the placement service.
"""

from .partition_directory import (
    PlacementClient,
    PlacementService,
    PartitionDirectory,
    service_id_from_name,
)

__all__ = [
    "PlacementClient",
    "PlacementService",
    "PartitionDirectory",
    "service_id_from_name",
]
