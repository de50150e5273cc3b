"""
TCP transport connecting dns_cluster nodes to each other.

Nodes are named ``basename@host``. Every node listens on the same
transport port, so a node name alone is enough to reach a peer. Two
nodes authenticate each other by exchanging a signed Hello frame keyed
by a shared cookie, and the resulting connection is held open until
either side closes it.
"""

import asyncio

import msgspec

from dns_cluster.distribution import DistributionState, name_domain_for
from dns_cluster.errors import HandshakeError
from dns_cluster.logging import Logger
from dns_cluster.logging.dns_cluster_logging_models import (
    ClusterDebug,
    ClusterInfo,
)

from .hello import (
    FRAME_HEADER,
    MAX_FRAME_SIZE,
    Hello,
    decode_hello,
    encode_hello,
    sign_node_name,
    verify_hello,
)


UNDISTRIBUTED_NODE_NAME = "nonode@nohost"


class NodeTransport:
    """
    Listens for and opens authenticated peer connections.

    The transport is the production membership view for a cluster:
    ``connected_nodes`` reports peers with an open connection and
    ``connect`` attempts a new one. When no node name is configured the
    transport never starts, and every connection attempt is a no-op.
    """

    def __init__(
        self,
        node_name: str | None = None,
        cookie: str = "dns-cluster-dev-cookie-change-in-prod",
        host: str = "0.0.0.0",
        port: int = 4370,
        handshake_timeout: float = 5.0,
        logger: Logger | None = None,
    ) -> None:
        self._node_name = node_name
        self._cookie = cookie
        self._host = host
        self._port = port
        self._handshake_timeout = handshake_timeout
        self._logger = logger or Logger()

        self._server: asyncio.Server | None = None
        self._connections: dict[str, asyncio.StreamWriter] = {}
        self._watch_tasks: dict[str, asyncio.Task] = {}

    @property
    def node_name(self) -> str:
        return self._node_name or UNDISTRIBUTED_NODE_NAME

    @property
    def port(self) -> int:
        return self._port

    @property
    def started(self) -> bool:
        return self._server is not None

    def distribution_state(self) -> DistributionState:
        return DistributionState(
            started=self.started,
            name_domain=name_domain_for(self._node_name),
        )

    def connected_nodes(self) -> list[str]:
        return list(self._connections)

    async def start(self) -> None:
        if self._server is not None or self._node_name is None:
            return

        self._server = await asyncio.start_server(
            self._accept,
            host=self._host,
            port=self._port,
        )

        if self._port == 0:
            sockets = self._server.sockets or []
            if sockets:
                self._port = sockets[0].getsockname()[1]

        await self._logger.log(
            ClusterInfo(
                message=f"Node transport listening on {self._host}:{self._port}",
                node=self.node_name,
            ),
            name="dns_cluster",
        )

    async def stop(self) -> None:
        server = self._server
        self._server = None

        if server is not None:
            server.close()

        for writer in list(self._connections.values()):
            writer.close()

        self._connections.clear()

        watch_tasks = list(self._watch_tasks.values())
        self._watch_tasks.clear()

        for task in watch_tasks:
            task.cancel()

        if watch_tasks:
            await asyncio.gather(*watch_tasks, return_exceptions=True)

        # open peer connections must be closed before the server can finish closing
        if server is not None:
            await server.wait_closed()

    async def connect(self, node_name: str) -> bool:
        """
        Open and authenticate a connection to ``node_name``.

        Returns True only when a new connection was established. Already
        connected peers, our own name, unreachable hosts and rejected
        handshakes all return False.
        """
        if not self.started:
            return False

        if node_name in self._connections or node_name == self.node_name:
            return False

        _, separator, address = node_name.partition("@")
        if not separator or not address:
            return False

        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(address, self._port),
                timeout=self._handshake_timeout,
            )

        except (OSError, asyncio.TimeoutError):
            return False

        try:
            await asyncio.wait_for(
                self._initiate_handshake(node_name, reader, writer),
                timeout=self._handshake_timeout,
            )

        except (
            HandshakeError,
            OSError,
            asyncio.TimeoutError,
            asyncio.IncompleteReadError,
            msgspec.DecodeError,
        ) as handshake_error:
            writer.close()
            await self._logger.log(
                ClusterDebug(
                    message=f"Handshake failed - {handshake_error}",
                    node=self.node_name,
                    peer=node_name,
                ),
                name="dns_cluster",
            )

            return False

        return self._register(node_name, reader, writer)

    async def _initiate_handshake(
        self,
        node_name: str,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        writer.write(encode_hello(self._own_hello()))
        await writer.drain()

        reply = await self._read_hello(reader)
        if not verify_hello(reply, self._cookie):
            raise HandshakeError(node_name, "cookie mismatch")

        if reply.node != node_name:
            raise HandshakeError(node_name, f"peer identified as '{reply.node}'")

    async def _accept(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        try:
            hello = await asyncio.wait_for(
                self._read_hello(reader),
                timeout=self._handshake_timeout,
            )

            if not verify_hello(hello, self._cookie):
                raise HandshakeError(hello.node, "cookie mismatch")

            if hello.node in self._connections:
                raise HandshakeError(hello.node, "already connected")

            writer.write(encode_hello(self._own_hello()))
            await writer.drain()

        except (
            HandshakeError,
            OSError,
            asyncio.TimeoutError,
            asyncio.IncompleteReadError,
            msgspec.DecodeError,
        ):
            writer.close()
            return

        self._register(hello.node, reader, writer)

    async def _read_hello(self, reader: asyncio.StreamReader) -> Hello:
        header = await reader.readexactly(FRAME_HEADER.size)
        (size,) = FRAME_HEADER.unpack(header)

        if size > MAX_FRAME_SIZE:
            raise HandshakeError("unknown", f"frame of {size} bytes exceeds limit")

        return decode_hello(await reader.readexactly(size))

    def _own_hello(self) -> Hello:
        return Hello(
            node=self.node_name,
            digest=sign_node_name(self.node_name, self._cookie),
        )

    def _register(
        self,
        node_name: str,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> bool:
        if node_name in self._connections:
            writer.close()
            return False

        self._connections[node_name] = writer
        self._watch_tasks[node_name] = asyncio.create_task(
            self._watch(node_name, reader, writer)
        )

        return True

    async def _watch(
        self,
        node_name: str,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        try:
            while await reader.read(4096):
                pass

        except OSError:
            pass

        finally:
            if self._connections.get(node_name) is writer:
                del self._connections[node_name]
                self._watch_tasks.pop(node_name, None)

            writer.close()
