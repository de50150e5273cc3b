from typing import Dict, TextIO

from dns_cluster.logging.config.stream_type import StreamType

from .logger_stream import LoggerStream, LogFormat


class LoggerContext:
    def __init__(
        self,
        name: str | None = None,
        template: str | None = None,
        log_format: LogFormat = 'text',
        streams: Dict[StreamType, TextIO] | None = None,
        nested: bool = False,
    ) -> None:
        self.name = name
        self.template = template
        self.log_format = log_format
        self.stream = LoggerStream(
            name=name,
            template=template,
            log_format=log_format,
            streams=streams,
        )
        self.nested = nested

    async def __aenter__(self):
        await self.stream.initialize()
        return self.stream

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.nested is False:
            await self.stream.close()
