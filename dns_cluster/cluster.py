"""
Simple DNS based cluster discovery.

A DNS query is made every ``interval_ms`` milliseconds to discover new
peers. Every answer is turned into a node name and, unless the node is
already connected, handed to the resolver's ``connect_node``.

Default node discovery:
    Nodes are only joined if their basename matches the basename of the
    current node. If this node is ``myapp@fdaa:1:36c9:a7b:198:c4b1:73c6:1``
    it will try to connect to ``myapp@<ip>`` for every ip returned by DNS.

Specifying remote basenames:
    To connect to nodes with a different basename, use a tuple with the
    basename and query, e.g. ``("remote", "remote-app.internal")``.

Multiple queries:
    Pass a list to cluster apps published under different names, e.g.
    ``["app-one.internal", "app-two.internal", ("other", "other.internal")]``.
    All nodes need to share the same cookie to connect successfully.

Usage:
    cluster = await start_cluster(query="myapp.internal")
    ...
    await cluster.stop()

    # returns None without polling
    await start_cluster(query="ignore")
"""

import asyncio
from typing import Any

from dns_cluster.discovery.dns import DNSResolver, Resolver
from dns_cluster.discovery.models import (
    CandidatePeer,
    DiscoveryResult,
    PollOptions,
    QueryConfig,
    ResourceType,
    normalize_address,
    parse_queries,
    parse_resource_types,
)
from dns_cluster.discovery.models.resource_type import DEFAULT_RESOURCE_TYPES
from dns_cluster.distribution import distribution_warning
from dns_cluster.env import Env, load_env
from dns_cluster.errors import (
    ClusterAlreadyStartedError,
    ConfigurationError,
    MissingQueryError,
)
from dns_cluster.logging import Logger, LoggingConfig, LogLevel
from dns_cluster.logging.dns_cluster_logging_models import (
    ClusterConnected,
    ClusterDebug,
    ClusterError,
    ClusterWarning,
    DiscoveryCycleDebug,
)
from dns_cluster.transport import NodeTransport


DEFAULT_NAME = "DNSCluster"
IGNORE = "ignore"

_OPTIONS = frozenset({
    "name",
    "query",
    "resource_types",
    "interval_ms",
    "connect_timeout_ms",
    "log_level",
    "resolver",
    "logger",
    "env",
})

_clusters: dict[str, "DNSCluster"] = {}


def get_cluster(name: str = DEFAULT_NAME) -> "DNSCluster | None":
    """Return the running cluster registered under ``name``, if any."""
    return _clusters.get(name)


async def start_cluster(**options: Any) -> "DNSCluster | None":
    """
    Build a cluster from options and start polling.

    Returns None when ``query`` is ``"ignore"``.

    Raises:
        ConfigurationError: The options are invalid. Nothing was started.
        ClusterAlreadyStartedError: A cluster with the same name is running.
    """
    cluster = DNSCluster.create(**options)
    if cluster is None:
        return None

    await cluster.start()
    return cluster


class DNSCluster:
    """
    Periodically resolves DNS queries and connects to newly seen peers.

    Each discovery cycle resolves every (resource type, query) pair,
    deduplicates the answers into candidate peers, drops the peers the
    resolver already reports as connected, and attempts the rest
    concurrently. The next cycle is scheduled once the current one has
    finished, so there is never more than one cycle in flight.
    """

    def __init__(
        self,
        config: QueryConfig,
        resolver: Resolver,
        logger: Logger | None = None,
        name: str = DEFAULT_NAME,
        env: Env | None = None,
        transport: NodeTransport | None = None,
        owns_logger: bool = False,
    ) -> None:
        self._config = config
        self._resolver = resolver
        self._logger = logger or Logger()
        self._owns_logger = owns_logger or logger is None
        self._name = name
        self._env = env or Env()
        self._transport = transport
        self._node_name = resolver.node_name()

        self._loop: asyncio.AbstractEventLoop | None = None
        self._poll_timer: asyncio.TimerHandle | None = None
        self._cycle_task: asyncio.Task | None = None
        self._running = False

    @classmethod
    def create(cls, **options: Any) -> "DNSCluster | None":
        """
        Validate options and build a cluster without starting it.

        Options:
            name: Name the cluster is registered under. Defaults to ``DNSCluster``.
            query: Required. A domain such as ``"myapp.internal"``, a
                ``(basename, domain)`` tuple, or a list of those. The
                value ``"ignore"`` skips starting the cluster.
            resource_types: Record kinds to query. Defaults to A and AAAA.
            interval_ms: Milliseconds between DNS queries. Defaults to 5000.
            connect_timeout_ms: Milliseconds to wait for discovered nodes to
                connect. Defaults to 10000.
            log_level: Level to log successful connections at. Not logged
                when omitted.
            resolver: Resolver to use instead of the aiodns backed default.
            logger: Logger to use.
            env: Env to use instead of loading one from the environment.

        Returns:
            The cluster, or None when ``query`` is ``"ignore"``.
        """
        if "query" not in options:
            raise MissingQueryError(f"missing required query option in {options!r}")

        query = options["query"]
        if isinstance(query, str) and query == IGNORE:
            return None

        unknown = set(options) - _OPTIONS
        if unknown:
            raise ConfigurationError(f"unknown cluster options: {sorted(unknown)}")

        name = options.get("name", DEFAULT_NAME)
        if not isinstance(name, str) or not name:
            raise ConfigurationError(f"expected name to be a non-empty string, got: {name!r}")

        queries = parse_queries(query)
        resource_types = parse_resource_types(
            options.get("resource_types", DEFAULT_RESOURCE_TYPES)
        )
        poll_options = PollOptions.from_options(
            interval_ms=options.get("interval_ms", 5_000),
            connect_timeout_ms=options.get("connect_timeout_ms", 10_000),
            log_level=options.get("log_level"),
        )

        env: Env = options.get("env") or load_env(Env)
        logging_config = env.get_logging_config()
        if LogLevel.to_level(logging_config["log_level"]) is None:
            raise ConfigurationError(
                f"unknown log level: {logging_config['log_level']!r}"
            )

        logger: Logger | None = options.get("logger")
        owns_logger = logger is None
        if owns_logger:
            logger = Logger()

        resolver: Resolver | None = options.get("resolver")
        transport: NodeTransport | None = None
        if resolver is None:
            default_resolver = DNSResolver.from_env(env, logger=logger)
            transport = default_resolver.transport
            resolver = default_resolver

        try:
            own_basename = resolver.basename(resolver.node_name())

        except ValueError as basename_error:
            raise ConfigurationError(str(basename_error)) from basename_error

        config = QueryConfig.from_options(
            basename=own_basename,
            query=list(queries),
            resource_types=resource_types,
            interval_ms=poll_options.interval_ms,
            connect_timeout_ms=poll_options.connect_timeout_ms,
            log_level=poll_options.log_level,
        )

        # global logging settings change only once every option is valid
        LoggingConfig().update(**logging_config)

        return cls(
            config,
            resolver,
            logger=logger,
            name=name,
            env=env,
            transport=transport,
            owns_logger=owns_logger,
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> QueryConfig:
        return self._config

    @property
    def node_name(self) -> str:
        return self._node_name

    @property
    def running(self) -> bool:
        return self._running

    @property
    def logger(self) -> Logger:
        return self._logger

    async def start(self) -> None:
        """
        Run the distribution check, the first discovery cycle, and arm
        the poll timer.
        """
        if self._running:
            return

        registered = _clusters.get(self._name)
        if registered is not None and registered is not self:
            raise ClusterAlreadyStartedError(self._name)

        if self._transport is not None:
            await self._start_transport()

        _clusters[self._name] = self
        self._loop = asyncio.get_running_loop()
        self._running = True

        await self._warn_on_invalid_distribution()
        await self._poll()

    async def stop(self) -> None:
        """Cancel polling and unregister the cluster. Safe to call twice."""
        self._running = False

        if self._poll_timer is not None:
            self._poll_timer.cancel()
            self._poll_timer = None

        cycle_task = self._cycle_task
        self._cycle_task = None
        if (
            cycle_task is not None
            and not cycle_task.done()
            and cycle_task is not asyncio.current_task()
        ):
            cycle_task.cancel()
            try:
                await cycle_task

            except asyncio.CancelledError:
                pass

        if _clusters.get(self._name) is self:
            del _clusters[self._name]

        if self._transport is not None:
            await self._transport.stop()

        if self._owns_logger:
            await self._logger.close()

    async def discover(self) -> DiscoveryResult:
        """
        Run a single discovery cycle without scheduling the next one.

        Resolves all queries, diffs the candidates against the currently
        connected nodes, and attempts every node that is not connected.
        """
        candidates = await self.discover_ips()

        connected_nodes = {
            str(node_name) for node_name in await self._resolver.list_nodes()
        }

        new_names = [
            candidate.node_name
            for candidate in candidates
            if candidate.node_name not in connected_nodes
        ]

        semaphore = asyncio.Semaphore(max(1, len(candidates)))
        outcomes = await asyncio.gather(*[
            self._connect(node_name, semaphore) for node_name in new_names
        ])

        result = DiscoveryResult(
            candidates=tuple(candidates),
            attempted=tuple(new_names),
            connected=tuple(
                node_name
                for node_name, connected in zip(new_names, outcomes)
                if connected
            ),
        )

        await self._logger.log(
            DiscoveryCycleDebug(
                message="Discovery cycle completed",
                node=self._node_name,
                candidates=len(result.candidates),
                attempted=len(result.attempted),
                connected=len(result.connected),
            ),
            name="dns_cluster",
        )

        return result

    async def discover_ips(self) -> list[CandidatePeer]:
        """
        Resolve every (resource type, query) pair into unique candidates.

        Resource types form the outer loop and queries the inner one.
        Candidates keep the order they were first seen in.
        """
        pairs = [
            (resource_type, query)
            for resource_type in self._config.resource_types
            for query in self._config.queries
        ]

        answers = await asyncio.gather(*[
            self._lookup(query.domain, resource_type)
            for resource_type, query in pairs
        ])

        candidates: dict[CandidatePeer, None] = {}
        for (_, query), raw_addresses in zip(pairs, answers):
            # use the query's basename when given, otherwise our own
            basename = query.basename or self._config.basename

            for raw_address in raw_addresses:
                try:
                    address = normalize_address(raw_address)

                except (TypeError, ValueError, OverflowError):
                    continue

                candidates.setdefault(
                    CandidatePeer(basename=basename, address=address)
                )

        return list(candidates)

    async def _lookup(self, query: str, resource_type: ResourceType) -> list[Any]:
        try:
            return list(await self._resolver.lookup(query, resource_type))

        except Exception as lookup_error:
            await self._logger.log(
                ClusterDebug(
                    message=f"Lookup of {resource_type.value} records for {query} failed - {lookup_error}",
                    node=self._node_name,
                ),
                name="dns_cluster",
            )

            return []

    async def _connect(self, node_name: str, semaphore: asyncio.Semaphore) -> bool:
        async with semaphore:
            try:
                connected = await asyncio.wait_for(
                    self._resolver.connect_node(node_name),
                    timeout=self._config.connect_timeout_seconds,
                )

            except Exception:
                # timeouts and transport errors are failed attempts, retried next cycle
                return False

        if connected is not True:
            return False

        if self._config.log_level is not None:
            await self._logger.log(
                ClusterConnected(
                    message=f"{self._node_name} connected to {node_name}",
                    node=self._node_name,
                    peer=node_name,
                    level=self._config.log_level,
                ),
                name="dns_cluster",
            )

        return True

    async def _poll(self) -> None:
        try:
            await self.discover()

        except asyncio.CancelledError:
            raise

        except Exception as cycle_error:
            await self._logger.log(
                ClusterError(
                    message=f"Discovery cycle failed - {cycle_error}",
                    node=self._node_name,
                ),
                name="dns_cluster",
            )

        self._schedule_next_poll()

    def _schedule_next_poll(self) -> None:
        if not self._running or self._loop is None:
            return

        self._poll_timer = self._loop.call_later(
            self._config.interval_seconds,
            self._on_poll_timer,
        )

    def _on_poll_timer(self) -> None:
        self._poll_timer = None

        if not self._running:
            return

        self._cycle_task = self._loop.create_task(self._poll())

    async def _start_transport(self) -> None:
        try:
            await self._transport.start()

        except OSError as listen_error:
            # the transport stays stopped, so connection attempts are no-ops
            await self._logger.log(
                ClusterWarning(
                    message=f"Node transport could not listen - {listen_error}",
                    node=self._node_name,
                ),
                name="dns_cluster",
            )

    async def _warn_on_invalid_distribution(self) -> None:
        try:
            state = self._resolver.distribution_state()

        except Exception as state_error:
            await self._logger.log(
                ClusterDebug(
                    message=f"Could not read distribution state - {state_error}",
                    node=self._node_name,
                ),
                name="dns_cluster",
            )
            return

        warning = distribution_warning(state, self._env.is_release)

        if warning is not None:
            await self._logger.log(
                ClusterWarning(
                    message=warning,
                    node=self._node_name,
                ),
                name="dns_cluster",
            )
