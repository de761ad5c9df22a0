"""Unit tests validating CLI parsing behavior."""

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from poolserver.bootstrap.config import (
    DEFAULT_BACKLOG,
    DEFAULT_SHUTDOWN_GRACE_SECONDS,
    DEFAULT_SOCKET_TIMEOUT,
    DEFAULT_WORKERS,
    ServerConfig,
    config_from_args,
    parse_cli_args,
)

if TYPE_CHECKING:
    from _pytest.monkeypatch import MonkeyPatch


def test_parse_cli_args_uses_defaults(monkeypatch: "MonkeyPatch") -> None:
    """Defaults ensure server launches with local settings."""
    for name in (
        "POOL_SERVER_LOG_LEVEL",
        "POOL_SERVER_LOG_DESTINATION",
        "POOL_SERVER_LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    args = parse_cli_args([])

    assert args.directory == "."
    assert args.workers == DEFAULT_WORKERS
    assert args.backlog == DEFAULT_BACKLOG
    assert args.log_level == "INFO"
    assert args.log_destination == "stdout"
    assert args.log_format == "json"
    assert args.socket_timeout == DEFAULT_SOCKET_TIMEOUT
    assert args.shutdown_grace_seconds == DEFAULT_SHUTDOWN_GRACE_SECONDS


def test_parse_cli_args_honors_overrides(tmp_path: Path) -> None:
    """Overrides should replace defaults when flags are present."""
    override_dir = tmp_path.as_posix()

    args = parse_cli_args(
        [
            "--directory",
            override_dir,
            "--host",
            "0.0.0.0",
            "--port",
            "9090",
            "--workers",
            "8",
            "--backlog",
            "32",
            "--log-level",
            "debug",
            "--log-destination",
            "server.log",
            "--log-format",
            "TEXT",
            "--socket-timeout",
            "0",
            "--shutdown-grace-seconds",
            "5",
        ]
    )

    assert args.directory == override_dir
    assert args.host == "0.0.0.0"
    assert args.port == 9090
    assert args.workers == 8
    assert args.backlog == 32
    assert args.log_level == "DEBUG"
    assert args.log_destination == "server.log"
    assert args.log_format == "text"
    assert args.socket_timeout == 0
    assert args.shutdown_grace_seconds == 5


def test_parse_cli_args_honors_environment(monkeypatch: "MonkeyPatch") -> None:
    """Environment variables should seed default logging configuration."""

    monkeypatch.setenv("POOL_SERVER_LOG_LEVEL", "warning")
    monkeypatch.setenv("POOL_SERVER_LOG_DESTINATION", "app.log")
    monkeypatch.setenv("POOL_SERVER_LOG_FORMAT", "TEXT")

    args = parse_cli_args([])

    assert args.log_level == "WARNING"
    assert args.log_destination == "app.log"
    assert args.log_format == "text"


@pytest.mark.parametrize("workers", ["0", "-2", "many"])
def test_parse_cli_args_rejects_invalid_worker_count(workers: str) -> None:
    with pytest.raises(SystemExit):
        parse_cli_args(["--workers", workers])


def test_config_from_args_copies_runtime_settings(tmp_path: Path) -> None:
    args = parse_cli_args(
        [
            "--directory",
            tmp_path.as_posix(),
            "--workers",
            "3",
            "--socket-timeout",
            "0",
            "--shutdown-grace-seconds",
            "7",
        ]
    )
    config = config_from_args(args)

    assert config == ServerConfig(
        workers=3,
        socket_timeout=0,
        shutdown_grace_seconds=7,
        directory=tmp_path.as_posix(),
    )
    assert config.connection_timeout is None


def test_connection_timeout_is_positive_socket_timeout() -> None:
    config = ServerConfig(workers=1, socket_timeout=12, shutdown_grace_seconds=1)
    assert config.connection_timeout == 12
