"""
Tests for the structured logger.

Streams write into StringIO buffers instead of the process's
stdout/stderr so output can be inspected.
"""

import io

import msgspec
import pytest

from dns_cluster.logging import Log, Logger, LoggingConfig, LogLevel, StreamType
from dns_cluster.logging.dns_cluster_logging_models import (
    ClusterConnected,
    ClusterDebug,
    ClusterWarning,
)


@pytest.fixture
def buffers():
    return {
        StreamType.STDOUT: io.StringIO(),
        StreamType.STDERR: io.StringIO(),
    }


class TestLogLevel:
    """Test level name parsing."""

    @pytest.mark.parametrize(
        "name, level",
        [
            ("debug", LogLevel.DEBUG),
            ("INFO", LogLevel.INFO),
            ("warning", LogLevel.WARN),
            (LogLevel.ERROR, LogLevel.ERROR),
        ],
    )
    def test_to_level(self, name, level):
        assert LogLevel.to_level(name) == level

    def test_unknown_level(self):
        assert LogLevel.to_level("loud") is None

    def test_config_rejects_unknown_level(self):
        with pytest.raises(ValueError, match="unknown log level"):
            LoggingConfig().update(log_level="loud")


class TestLogger:
    """Test writing entries through named logger contexts."""

    @pytest.mark.asyncio
    async def test_text_output_uses_template(self, buffers):
        logger = Logger(streams=buffers)
        logger.configure(name="dns_cluster", template="{level} {node} {message}")

        await logger.log(
            ClusterWarning(message="no transport", node="app@10.0.0.1"),
            name="dns_cluster",
        )

        assert buffers[StreamType.STDERR].getvalue() == "WARN app@10.0.0.1 no transport\n"
        assert buffers[StreamType.STDOUT].getvalue() == ""

    @pytest.mark.asyncio
    async def test_default_template_includes_caller(self, buffers):
        logger = Logger(streams=buffers)

        await logger.log(ClusterWarning(message="hello", node="app@10.0.0.1"))

        line = buffers[StreamType.STDERR].getvalue()

        assert " - WARN - " in line
        assert "test_default_template_includes_caller" in line
        assert line.endswith(" - hello\n")

    @pytest.mark.asyncio
    async def test_json_output(self, buffers):
        logger = Logger(streams=buffers)
        logger.configure(name="dns_cluster", log_format="json")

        await logger.log(
            ClusterConnected(
                message="connected",
                node="app@10.0.0.1",
                peer="app@10.0.0.2",
                level=LogLevel.ERROR,
            ),
            name="dns_cluster",
        )

        record = msgspec.json.decode(buffers[StreamType.STDERR].getvalue())

        assert record["entry"]["peer"] == "app@10.0.0.2"
        assert record["entry"]["level"] == "ERROR"
        assert record["function_name"] == "test_json_output"

    @pytest.mark.asyncio
    async def test_entries_below_the_configured_level_are_dropped(self, buffers):
        logger = Logger(streams=buffers)

        await logger.log(ClusterDebug(message="quiet", node="app@10.0.0.1"))
        assert buffers[StreamType.STDERR].getvalue() == ""

        LoggingConfig().update(log_level="debug")
        await logger.log(ClusterDebug(message="loud", node="app@10.0.0.1"))

        assert "loud" in buffers[StreamType.STDERR].getvalue()

    @pytest.mark.asyncio
    async def test_output_stream_follows_config(self, buffers):
        LoggingConfig().update(log_output="stdout")
        logger = Logger(streams=buffers)

        await logger.log(ClusterWarning(message="to stdout", node="app@10.0.0.1"))

        assert "to stdout" in buffers[StreamType.STDOUT].getvalue()
        assert buffers[StreamType.STDERR].getvalue() == ""

    @pytest.mark.asyncio
    async def test_disabled_loggers_are_silent(self, buffers):
        LoggingConfig().update(disabled_loggers=["dns_cluster"])
        logger = Logger(streams=buffers)

        await logger.log(
            ClusterWarning(message="muted", node="app@10.0.0.1"),
            name="dns_cluster",
        )
        await logger.log(ClusterWarning(message="audible", node="app@10.0.0.1"))

        output = buffers[StreamType.STDERR].getvalue()

        assert "muted" not in output
        assert "audible" in output

    @pytest.mark.asyncio
    async def test_filter_drops_entries(self, buffers):
        logger = Logger(streams=buffers)

        await logger.log(
            ClusterWarning(message="filtered", node="app@10.0.0.1"),
            filter=lambda entry: entry.peer is not None,
        )

        assert buffers[StreamType.STDERR].getvalue() == ""

    @pytest.mark.asyncio
    async def test_batch(self, buffers):
        logger = Logger(streams=buffers)
        logger.configure(name="dns_cluster", template="{message}")

        await logger.batch(
            ClusterWarning(message="one", node="app@10.0.0.1"),
            ClusterWarning(message="two", node="app@10.0.0.1"),
            name="dns_cluster",
        )

        lines = buffers[StreamType.STDERR].getvalue().splitlines()

        assert sorted(lines) == ["one", "two"]

    @pytest.mark.asyncio
    async def test_closed_streams_drop_entries(self, buffers):
        logger = Logger(streams=buffers)
        logger.configure(name="dns_cluster", template="{message}")

        await logger.log(
            ClusterWarning(message="before close", node="app@10.0.0.1"),
            name="dns_cluster",
        )

        stream = logger["dns_cluster"].stream
        await logger.close()
        await stream.log(
            Log(
                entry=ClusterWarning(message="after close", node="app@10.0.0.1"),
                filename=__file__,
                function_name="test_closed_streams_drop_entries",
                line_number=0,
            ),
        )

        assert stream.closed is True
        assert buffers[StreamType.STDERR].getvalue() == "before close\n"
