"""
Pytest configuration for dns_cluster tests.

Provides resolver and logger doubles shared by the unit tests.
Async tests opt in with ``@pytest.mark.asyncio``.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import pytest

from dns_cluster import cluster as cluster_module
from dns_cluster.discovery.models import ResourceType
from dns_cluster.distribution import DistributionState
from dns_cluster.env import Env
from dns_cluster.logging import Entry, LoggingConfig


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


@dataclass
class MockResolver:
    """
    Resolver double recording every lookup and connection attempt.

    Lookups answer from ``answers`` keyed by (query, resource type),
    falling back to ``default_answer``. Pairs listed in ``failures``
    raise instead of answering.
    """

    own_node: str = "app@fdaa:0:36c9:a7b:db:400e:1352:1"
    answers: dict[tuple[str, ResourceType], list[Any]] = field(default_factory=dict)
    default_answer: list[Any] = field(default_factory=list)
    failures: set[tuple[str, ResourceType]] = field(default_factory=set)

    connected: list[str] = field(default_factory=list)
    """Nodes reported by list_nodes."""

    connectable: set[str] | None = None
    """Nodes connect_node succeeds for. None means every node."""

    connect_delays: dict[str, float] = field(default_factory=dict)
    connect_errors: set[str] = field(default_factory=set)
    state: DistributionState | None = None

    lookups: list[tuple[str, ResourceType]] = field(default_factory=list)
    connect_attempts: list[str] = field(default_factory=list)
    list_nodes_calls: int = 0

    def basename(self, node_name: str) -> str:
        return node_name.split("@")[0]

    def node_name(self) -> str:
        return self.own_node

    async def lookup(self, query: str, resource_type: ResourceType) -> list[Any]:
        self.lookups.append((query, resource_type))

        if (query, resource_type) in self.failures:
            raise OSError(f"simulated failure for {query}")

        return list(self.answers.get((query, resource_type), self.default_answer))

    async def list_nodes(self) -> list[str]:
        self.list_nodes_calls += 1
        return list(self.connected)

    async def connect_node(self, node_name: str) -> bool:
        self.connect_attempts.append(node_name)

        delay = self.connect_delays.get(node_name)
        if delay:
            await asyncio.sleep(delay)

        if node_name in self.connect_errors:
            raise ConnectionRefusedError(node_name)

        if self.connectable is None or node_name in self.connectable:
            self.connected.append(node_name)
            return True

        return False

    def distribution_state(self) -> DistributionState | None:
        return self.state


class RecordingLogger:
    """Logger double keeping every entry it is asked to log."""

    def __init__(self) -> None:
        self.entries: list[Entry] = []
        self.closed = False

    async def log(
        self,
        entry: Entry,
        name: str | None = None,
        template: str | None = None,
        filter: Callable[[Entry], bool] | None = None,
    ):
        self.entries.append(entry)

    async def close(self):
        self.closed = True

    def of_type(self, entry_type: type[Entry]) -> list[Entry]:
        return [entry for entry in self.entries if isinstance(entry, entry_type)]


async def wait_until(
    condition: Callable[[], bool | Awaitable[bool]],
    timeout: float = 2.0,
    interval: float = 0.01,
) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        result = condition()
        if asyncio.iscoroutine(result):
            result = await result

        if result:
            return True

        await asyncio.sleep(interval)

    return False


@pytest.fixture
def mock_resolver() -> MockResolver:
    return MockResolver()


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def env() -> Env:
    return Env()


@pytest.fixture
def waiter():
    return wait_until


@pytest.fixture(autouse=True)
def reset_cluster_state():
    yield

    cluster_module._clusters.clear()
    LoggingConfig().update(
        log_level="info",
        log_output="stderr",
        disabled_loggers=[],
    )
