"""
Proxy Address Builder

Composes reverse proxy URLs. The proxy addresses a service by its name
without the scheme prefix and picks the partition from the PartitionKind
and PartitionKey query parameters.
"""

import re
from typing import Optional, Union
from urllib.parse import quote, urlencode

from ..models import PartitionKind
from .key_partitioner import compute_partition_key
from ...middleware.exceptions import ConfigurationError

_SCHEME_PREFIX = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:/+")


def strip_scheme(service_name: str) -> str:
    """'fabric:/App/Service' -> 'App/Service'"""
    return _SCHEME_PREFIX.sub("", service_name).strip("/")


class ProxyAddressBuilder:
    """
    Builds read and write URLs against the local reverse proxy.

    All arguments are checked once at construction; a builder that exists
    is always able to produce a URL.
    """

    def __init__(
        self,
        reverse_proxy_port: Optional[int],
        service_name: Optional[str],
        host: str = "localhost",
        scheme: str = "http",
        values_path: str = "api/values",
    ):
        """
        Args:
            reverse_proxy_port: Port the reverse proxy listens on
            service_name: Default backend service, e.g. fabric:/App/StatefulBackendService
            host: Reverse proxy host
            scheme: URL scheme used to reach the proxy
            values_path: Path of the key/value resource on the backend

        Raises:
            ConfigurationError: a required setting is missing or invalid
        """
        if reverse_proxy_port is None:
            raise ConfigurationError("Reverse proxy port is not configured", setting="reverse_proxy_port")
        if not 0 < int(reverse_proxy_port) < 65536:
            raise ConfigurationError(
                f"Invalid reverse proxy port: {reverse_proxy_port}",
                setting="reverse_proxy_port"
            )
        if not service_name or not strip_scheme(service_name):
            raise ConfigurationError("Backend service name is not configured", setting="backend_service_name")
        if not host:
            raise ConfigurationError("Reverse proxy host is not configured", setting="reverse_proxy_host")

        self.reverse_proxy_port = int(reverse_proxy_port)
        self.service_name = service_name
        self.host = host
        self.scheme = scheme
        self.values_path = values_path.strip("/")

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.reverse_proxy_port}"

    def service_url(self, service_name: Optional[str] = None) -> str:
        """URL of the values resource of a service, without partition selector."""
        path = strip_scheme(service_name or self.service_name)
        return f"{self.base_url}/{path}/{self.values_path}"

    def build_read_url(
        self,
        service_name: Optional[str],
        partition_kind: PartitionKind,
        partition_key: Optional[Union[int, str]],
    ) -> str:
        """URL reading every record of one partition."""
        kind = PartitionKind(partition_kind)
        params = {"PartitionKind": kind.value}
        if kind != PartitionKind.SINGLETON:
            params["PartitionKey"] = str(partition_key)
        return f"{self.service_url(service_name)}?{urlencode(params)}"

    def build_write_url(
        self,
        service_name: Optional[str],
        key: str,
        partition_key: Optional[int] = None,
    ) -> str:
        """
        URL writing one key on the partition that owns it.

        The partition key is computed from the key when not supplied.
        """
        if partition_key is None:
            partition_key = compute_partition_key(key)
        params = {
            "PartitionKind": PartitionKind.INT64_RANGE.value,
            "PartitionKey": str(partition_key),
        }
        return f"{self.service_url(service_name)}/{quote(key, safe='')}?{urlencode(params)}"
