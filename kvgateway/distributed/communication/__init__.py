"""
Communication module - HTTP access to backend partitions.
"""

from .rest_client import ProxyClient, ProxyResponse

__all__ = [
    "ProxyClient",
    "ProxyResponse",
]
