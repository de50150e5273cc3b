"""
Resolver collaborators for DNS cluster discovery.

The cluster talks to the outside world only through the ``Resolver``
protocol: DNS lookups on one side, the node transport's membership view
and connect operation on the other. ``DNSResolver`` is the production
implementation, backed by aiodns and a ``NodeTransport``. Tests swap in
their own objects with the same methods.
"""

import asyncio
import socket
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

import aiodns

from dns_cluster.discovery.models.resource_type import ResourceType
from dns_cluster.distribution import DistributionState
from dns_cluster.env import Env
from dns_cluster.logging import Logger
from dns_cluster.transport import NodeTransport


class Resolver(Protocol):
    def basename(self, node_name: str) -> str:
        ...

    def node_name(self) -> str:
        ...

    async def lookup(self, query: str, resource_type: ResourceType) -> list[Any]:
        ...

    async def list_nodes(self) -> list[str]:
        ...

    async def connect_node(self, node_name: str) -> bool:
        ...

    def distribution_state(self) -> DistributionState | None:
        ...


def basename(node_name: str) -> str:
    """
    Return the portion of a node name before the ``@``.

    Raises:
        ValueError: The node name is not of the form ``basename@host``.
    """
    parts = str(node_name).split("@")
    if len(parts) != 2 or not parts[0]:
        raise ValueError(f"expected a node name of the form basename@host, got: {node_name!r}")

    return parts[0]


@dataclass
class DNSResolver:
    """
    Production resolver using aiodns for record lookups.

    A/AAAA and SRV lookups go through aiodns. For SRV records resolved
    into addresses, each target host is looked up through the event
    loop's getaddrinfo. Every lookup error is absorbed and reported as
    an empty answer, so a single failing name never interrupts a
    discovery cycle.
    """

    transport: NodeTransport
    """Node transport providing membership and connections."""

    resolution_timeout_seconds: float = 5.0
    """Timeout for an individual DNS query."""

    _aiodns_resolver: aiodns.DNSResolver | None = field(default=None, repr=False)
    """Internal aiodns resolver, created lazily inside the running loop."""

    _on_error: Callable[[str, str], None] | None = field(default=None, repr=False)
    """Optional callback when a lookup fails (query, error)."""

    @classmethod
    def from_env(cls, env: Env, logger: Logger | None = None) -> "DNSResolver":
        return cls(
            transport=NodeTransport(
                **env.get_transport_config(),
                logger=logger,
            ),
            resolution_timeout_seconds=env.DNS_CLUSTER_DNS_TIMEOUT,
        )

    def set_callbacks(
        self,
        on_error: Callable[[str, str], None] | None = None,
    ) -> None:
        self._on_error = on_error

    def basename(self, node_name: str) -> str:
        return basename(node_name)

    def node_name(self) -> str:
        return self.transport.node_name

    async def list_nodes(self) -> list[str]:
        return self.transport.connected_nodes()

    async def connect_node(self, node_name: str) -> bool:
        return await self.transport.connect(node_name)

    def distribution_state(self) -> DistributionState | None:
        return self.transport.distribution_state()

    async def lookup(self, query: str, resource_type: ResourceType) -> list[str]:
        if resource_type == ResourceType.SRV_HOSTNAMES:
            return await self._lookup_by_name(query, "SRV")

        if resource_type == ResourceType.SRV_IPS:
            hostnames = await self._lookup_by_name(query, "SRV")
            results = await asyncio.gather(
                *[self._lookup_host_by_name(hostname) for hostname in hostnames]
            )

            return [address for addresses in results for address in addresses]

        if resource_type == ResourceType.AAAA:
            return await self._lookup_by_name(query, "AAAA")

        return await self._lookup_by_name(query, "A")

    async def _lookup_by_name(self, query: str, record_type: str) -> list[str]:
        if self._aiodns_resolver is None:
            self._aiodns_resolver = aiodns.DNSResolver()

        try:
            records = await asyncio.wait_for(
                self._aiodns_resolver.query(query, record_type),
                timeout=self.resolution_timeout_seconds,
            )

        except asyncio.TimeoutError:
            self._report_error(
                query,
                f"{record_type} resolution timeout ({self.resolution_timeout_seconds}s)",
            )
            return []

        except aiodns.error.DNSError as exc:
            self._report_error(query, f"{record_type} query failed: {exc}")
            return []

        except Exception as exc:
            self._report_error(query, f"Unexpected error during {record_type} query: {exc}")
            return []

        if not records:
            return []

        # SRV answers carry (priority, weight, port, host); only the host matters here
        return [record.host.rstrip(".") for record in records]

    async def _lookup_host_by_name(self, hostname: str) -> list[str]:
        try:
            results = await asyncio.wait_for(
                asyncio.get_running_loop().getaddrinfo(
                    hostname,
                    0,
                    family=socket.AF_UNSPEC,
                    type=socket.SOCK_STREAM,
                ),
                timeout=self.resolution_timeout_seconds,
            )

        except asyncio.TimeoutError:
            self._report_error(
                hostname,
                f"Resolution timeout ({self.resolution_timeout_seconds}s)",
            )
            return []

        except OSError as exc:
            self._report_error(hostname, f"getaddrinfo failed: {exc}")
            return []

        addresses: list[str] = []
        seen: set[str] = set()

        for _family, _type, _proto, _canonname, sockaddr in results:
            address = sockaddr[0]
            if address not in seen:
                seen.add(address)
                addresses.append(address)

        return addresses

    def _report_error(self, query: str, message: str) -> None:
        if self._on_error is not None:
            self._on_error(query, message)
