"""
Simple DNS clustering for distributed Python services.

Usage:
    from dns_cluster import start_cluster

    cluster = await start_cluster(query="myapp.internal")
"""

from dns_cluster.cluster import (
    DNSCluster as DNSCluster,
    DEFAULT_NAME as DEFAULT_NAME,
    IGNORE as IGNORE,
    get_cluster as get_cluster,
    start_cluster as start_cluster,
)
from dns_cluster.discovery import (
    CandidatePeer as CandidatePeer,
    DiscoveryResult as DiscoveryResult,
    DNSResolver as DNSResolver,
    QueryConfig as QueryConfig,
    QuerySpec as QuerySpec,
    Resolver as Resolver,
    ResourceType as ResourceType,
)
from dns_cluster.distribution import DistributionState as DistributionState
from dns_cluster.env import (
    Env as Env,
    load_env as load_env,
)
from dns_cluster.errors import (
    ClusterAlreadyStartedError as ClusterAlreadyStartedError,
    ConfigurationError as ConfigurationError,
    InvalidQueryError as InvalidQueryError,
    InvalidResourceTypesError as InvalidResourceTypesError,
    MissingQueryError as MissingQueryError,
)
from dns_cluster.transport import NodeTransport as NodeTransport
