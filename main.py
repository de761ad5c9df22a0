"""Pooled request server entry point."""

import signal
import sys

from poolserver.bootstrap.config import config_from_args, parse_cli_args
from poolserver.bootstrap.logging_setup import configure_logging
from poolserver.domain.connection_id import get_logger
from poolserver.lifecycle.state import ServerLifecycle
from poolserver.transport.accept_loop import run_server

SERVER_LOGGER = get_logger("server")


def main() -> None:
    """Start the worker pool and run the accept loop until signalled."""
    args = parse_cli_args(sys.argv[1:])
    configure_logging(
        args.log_level, args.log_destination, use_json=args.log_format == "json"
    )

    config = config_from_args(args)
    lifecycle = ServerLifecycle()

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info(
            "Received shutdown signal",
            extra={"event": "signal_received", "signal": signum},
        )
        lifecycle.request_shutdown()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    SERVER_LOGGER.info(
        "Starting pooled request server",
        extra={
            "event": "server_starting",
            "host": args.host,
            "port": args.port,
            "workers": config.workers,
            "directory": config.directory,
            "log_level": args.log_level,
            "socket_timeout": config.socket_timeout,
            "shutdown_grace_seconds": config.shutdown_grace_seconds,
        },
    )
    try:
        run_server(args, config, lifecycle)
    except OSError:
        sys.exit(1)


if __name__ == "__main__":
    main()
