from .logger import Logger as Logger
from .logger_context import LoggerContext as LoggerContext
from .logger_stream import (
    LoggerStream as LoggerStream,
    LogFormat as LogFormat,
)
