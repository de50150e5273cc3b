from .models import Entry, LogLevel


class ClusterDebug(Entry, kw_only=True):
    node: str
    peer: str | None = None
    level: LogLevel = LogLevel.DEBUG

class ClusterInfo(Entry, kw_only=True):
    node: str
    peer: str | None = None
    level: LogLevel = LogLevel.INFO

class ClusterWarning(Entry, kw_only=True):
    node: str
    peer: str | None = None
    level: LogLevel = LogLevel.WARN

class ClusterError(Entry, kw_only=True):
    node: str
    peer: str | None = None
    level: LogLevel = LogLevel.ERROR

class ClusterConnected(Entry, kw_only=True):
    node: str
    peer: str
    level: LogLevel = LogLevel.INFO

class DiscoveryCycleDebug(Entry, kw_only=True):
    node: str
    candidates: int
    attempted: int
    connected: int
    level: LogLevel = LogLevel.DEBUG
