import asyncio
import sys
from typing import (
    Callable,
    Dict,
    Literal,
    TextIO,
    TypeVar,
)

import msgspec

from dns_cluster.logging.config.logging_config import LoggingConfig
from dns_cluster.logging.config.stream_type import StreamType
from dns_cluster.logging.models import Entry, Log

T = TypeVar('T', bound=Entry)

LogFormat = Literal['text', 'json']


class LoggerStream:
    def __init__(
        self,
        name: str | None = None,
        template: str | None = None,
        log_format: LogFormat = 'text',
        streams: Dict[StreamType, TextIO] | None = None,
    ) -> None:
        if name is None:
            name = "default"

        self._name = name
        self._default_template = template
        self._log_format: LogFormat = log_format

        self._init_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._encoder = msgspec.json.Encoder()

        self._streams: Dict[StreamType, TextIO] = streams or {}
        self._config = LoggingConfig()
        self._initialized: bool = False
        self._closed = False

    @property
    def name(self):
        return self._name

    @property
    def closed(self):
        return self._closed

    async def initialize(self):

        async with self._init_lock:

            if self._initialized:
                return

            if self._loop is None:
                self._loop = asyncio.get_running_loop()

            self._initialized = True

    async def log(
        self,
        log: Log[T],
        template: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        if template is None:
            template = self._default_template

        await self._log(
            log,
            template=template,
            filter=filter,
        )

    async def _log(
        self,
        log: Log[T],
        template: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        entry: Entry = log.entry

        if self._config.enabled(self._name, entry.level) is False:
            return

        if filter and filter(entry) is False:
            return

        if self._initialized is False:
            await self.initialize()

        if self._closed:
            return

        if self._log_format == 'json':
            line = self._encoder.encode(log).decode()

        else:
            if template is None:
                template = "{timestamp} - {level} - {thread_id} - {filename}:{function_name}.{line_number} - {message}"

            line = entry.to_template(
                template,
                context={
                    "filename": log.filename,
                    "function_name": log.function_name,
                    "line_number": log.line_number,
                    "thread_id": log.thread_id,
                    "timestamp": log.timestamp,
                },
            )

        async with self._write_lock:
            await self._loop.run_in_executor(
                None,
                self._write,
                line,
                self._config.output,
            )

    def _write(self, line: str, stream_type: StreamType):
        stream = self._streams.get(stream_type)
        if stream is None:
            stream = sys.stdout if stream_type == StreamType.STDOUT else sys.stderr

        stream.write(line + "\n")
        stream.flush()

    async def close(self):
        self._closed = True
