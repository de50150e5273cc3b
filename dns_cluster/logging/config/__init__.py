from .log_level_map import LogLevelMap as LogLevelMap
from .logging_config import (
    LoggingConfig as LoggingConfig,
    LogOutput as LogOutput,
)
from .stream_type import StreamType as StreamType
