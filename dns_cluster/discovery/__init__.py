"""
DNS based peer discovery.

Resolves one or more DNS names into candidate peers, which the cluster
engine then diffs against the transport's current membership.
"""

from dns_cluster.discovery.models import (
    CandidatePeer as CandidatePeer,
    DiscoveryResult as DiscoveryResult,
    QueryConfig as QueryConfig,
    QuerySpec as QuerySpec,
    ResourceType as ResourceType,
    normalize_address as normalize_address,
)
from dns_cluster.discovery.dns import (
    DNSResolver as DNSResolver,
    Resolver as Resolver,
)
