"""Tests for the command-line entry point."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from tangle_peerer.__main__ import ColoredFormatter, build_parser, main, setup_logging

FLAGS = [
    "--main-node-name",
    "node-a",
    "--iota-hornet-selector",
    "app=iota-hornet",
    "--iota-hornet-ns",
    "iota",
    "--private-key-file",
    "/app/p2pstore/identity.key",
]


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    """Undo the handlers and level installed by setup_logging."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestMain:
    """Tests for main()."""

    def test_missing_env_exits_with_error(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Without MY_NODE_NAME the process fails fast."""
        monkeypatch.delenv("MY_NODE_NAME", raising=False)
        monkeypatch.setenv("MY_IP", "10.0.0.5")

        assert main(FLAGS) == 1
        assert "MY_NODE_NAME not specified" in caplog.text

    def test_missing_flag_exits_with_error(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        """The first missing flag is named."""
        monkeypatch.setenv("MY_NODE_NAME", "node-b")
        monkeypatch.setenv("MY_IP", "10.0.0.5")

        assert main(FLAGS[2:]) == 1
        assert "--main-node-name not specified" in caplog.text

    def test_invalid_duration_is_a_usage_error(self) -> None:
        """argparse rejects a malformed duration."""
        with pytest.raises(SystemExit) as excinfo:
            main([*FLAGS, "--refresh-period", "soon"])

        assert excinfo.value.code == 2


class TestParser:
    """Tests for the argument parser."""

    def test_defaults(self) -> None:
        """Periods and ports fall back to their defaults."""
        args = build_parser().parse_args(FLAGS)

        assert args.refresh_period == 300
        assert args.retry_period == 5
        assert args.hornet_rest_api_port == 14265
        assert args.gossip_protocol_port == 15600
        assert args.verbose is False

    def test_durations(self) -> None:
        """Durations accept Go-style units."""
        args = build_parser().parse_args([*FLAGS, "--refresh-period", "1m30s", "-v"])

        assert args.refresh_period == 90
        assert args.verbose is True


class TestLogging:
    """Tests for logging setup."""

    def test_verbose_enables_debug(self) -> None:
        """-v lowers the root level to DEBUG."""
        setup_logging(verbose=True)

        assert logging.getLogger().level == logging.DEBUG

    def test_httpx_quiet_by_default(self) -> None:
        """Per-request httpx logs are hidden unless verbose."""
        setup_logging()

        assert logging.getLogger("httpx").level == logging.WARNING

    def test_no_color_uses_plain_formatter(self) -> None:
        """--no-color installs a formatter without ANSI codes."""
        setup_logging(no_color=True)

        formatter = logging.getLogger().handlers[-1].formatter
        assert not isinstance(formatter, ColoredFormatter)

    def test_colored_format(self) -> None:
        """Level, logger name and message all appear in the output."""
        record = logging.LogRecord(
            "tangle_peerer.sidecar", logging.ERROR, __file__, 1, "peer %s gone", ("x",), None
        )

        output = ColoredFormatter().format(record)

        assert ColoredFormatter.LEVEL_COLORS[logging.ERROR] in output
        assert "ERROR" in output
        assert "tangle_peerer.sidecar" in output
        assert "peer x gone" in output
