from __future__ import annotations

import asyncio
import datetime
import sys
import threading
from typing import (
    Callable,
    Dict,
    TextIO,
    TypeVar,
)

from dns_cluster.logging.config.stream_type import StreamType
from dns_cluster.logging.models import Entry, Log

from .logger_context import LoggerContext
from .logger_stream import LogFormat

T = TypeVar('T', bound=Entry)


class Logger:
    def __init__(
        self,
        streams: Dict[StreamType, TextIO] | None = None,
    ) -> None:
        self._contexts: Dict[str, LoggerContext] = {}
        self._streams = streams

    def __getitem__(self, name: str):

        if self._contexts.get(name) is None:
            self._contexts[name] = LoggerContext(
                name=name,
                streams=self._streams,
            )

        return self._contexts[name]

    def configure(
        self,
        name: str | None = None,
        template: str | None = None,
        log_format: LogFormat = 'text',
    ):
        if name is None:
            name = 'default'

        self._contexts[name] = LoggerContext(
            name=name,
            template=template,
            log_format=log_format,
            streams=self._streams,
        )

    def context(
        self,
        name: str | None = None,
        template: str | None = None,
        nested: bool = False,
    ):
        if name is None:
            name = 'default'

        if self._contexts.get(name) is None:

            self._contexts[name] = LoggerContext(
                name=name,
                template=template,
                nested=nested,
                streams=self._streams,
            )

        else:
            self._contexts[name].template = template if template else self._contexts[name].template
            self._contexts[name].nested = nested

        return self._contexts[name]

    async def log(
        self,
        entry: T,
        name: str | None = None,
        template: str | None = None,
        filter: Callable[[T], bool] | None = None,
    ):
        if name is None:
            name = 'default'

        frame = sys._getframe(1)
        code = frame.f_code

        async with self.context(
            name=name,
            nested=True,
        ) as ctx:
            await ctx.log(
                Log(
                    entry=entry,
                    filename=code.co_filename,
                    function_name=code.co_name,
                    line_number=frame.f_lineno,
                    thread_id=threading.get_native_id(),
                    timestamp=datetime.datetime.now(datetime.timezone.utc).isoformat()
                ),
                template=template,
                filter=filter,
            )

    async def batch(
        self,
        *entries: T,
        name: str | None = None,
    ):
        if name is None:
            name = 'default'

        frame = sys._getframe(1)
        code = frame.f_code

        async with self.context(
            name=name,
            nested=True,
        ) as ctx:
            await asyncio.gather(*[
                ctx.log(
                    Log(
                        entry=entry,
                        filename=code.co_filename,
                        function_name=code.co_name,
                        line_number=frame.f_lineno,
                        thread_id=threading.get_native_id(),
                        timestamp=datetime.datetime.now(datetime.timezone.utc).isoformat()
                    ),
                ) for entry in entries
            ])

    async def close(self):

        contexts_count = len(self._contexts)

        if contexts_count > 0:
            await asyncio.gather(*[
                context.stream.close() for context in self._contexts.values()
            ])

            self._contexts.clear()
