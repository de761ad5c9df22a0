"""Server configuration and CLI argument parsing."""

import argparse
import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value else default


def _positive_int(raw_value: str) -> int:
    value = int(raw_value)
    if value < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return value


DEFAULT_HOST = _env_str("POOL_SERVER_HOST", "127.0.0.1")
DEFAULT_PORT = _env_int("POOL_SERVER_PORT", 4221)
DEFAULT_WORKERS = _env_int("POOL_SERVER_WORKERS", 4)
DEFAULT_BACKLOG = _env_int("POOL_SERVER_BACKLOG", 10)
DEFAULT_SOCKET_TIMEOUT = _env_int("POOL_SERVER_SOCKET_TIMEOUT", 60)
DEFAULT_SHUTDOWN_GRACE_SECONDS = _env_int("POOL_SERVER_SHUTDOWN_GRACE_SECONDS", 30)

HEADER_DELIMITER = b"\r\n\r\n"
CRLF = b"\r\n"
MAX_REQUEST_BYTES = 2048
STORED_BUFFER_CAPACITY = 1024
STORED_BUFFER_SENTINEL = b"<empty>"
ECHO_BODY_LIMIT = 1024
FILE_CHUNK_SIZE = 1024
RECV_CHUNK_SIZE = 1024
LINGER_DRAIN_BYTES = 64 * 1024

# Idle workers wake this often to notice a shutdown request.
WORKER_POLL_SECONDS = 0.2
ACCEPT_POLL_SECONDS = 0.5


@dataclass
class ServerConfig:
    """Runtime settings shared by the acceptor and the worker pool."""

    workers: int
    socket_timeout: int
    shutdown_grace_seconds: int
    directory: str = "."

    @property
    def connection_timeout(self):
        """Per-connection socket timeout in seconds, or None when disabled."""
        return self.socket_timeout if self.socket_timeout > 0 else None


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Build a ServerConfig from parsed CLI arguments."""
    return ServerConfig(
        workers=args.workers,
        socket_timeout=args.socket_timeout,
        shutdown_grace_seconds=args.shutdown_grace_seconds,
        directory=args.directory,
    )


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(description="Pooled request server")
    parser.add_argument("--directory", default=".", help="Root for file requests")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument(
        "--workers",
        type=_positive_int,
        default=DEFAULT_WORKERS,
        help="Worker pool size; also the connection queue capacity",
    )
    parser.add_argument(
        "--backlog",
        type=int,
        default=DEFAULT_BACKLOG,
        help="Listen backlog passed to the listening socket",
    )
    default_log_level = os.getenv("POOL_SERVER_LOG_LEVEL", "INFO").upper()
    default_destination = os.getenv("POOL_SERVER_LOG_DESTINATION", "stdout")
    default_log_format = os.getenv("POOL_SERVER_LOG_FORMAT", "json").lower()
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=default_destination,
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-format",
        default=default_log_format,
        choices=["json", "text"],
        type=str.lower,
    )
    parser.add_argument(
        "--socket-timeout",
        type=int,
        default=DEFAULT_SOCKET_TIMEOUT,
        help="Per-connection socket timeout in seconds (0 disables)",
    )
    parser.add_argument(
        "--shutdown-grace-seconds",
        type=int,
        default=DEFAULT_SHUTDOWN_GRACE_SECONDS,
        help="Grace period in seconds for draining workers on shutdown",
    )
    return parser.parse_args(argv)
