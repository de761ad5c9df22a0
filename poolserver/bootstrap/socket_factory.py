"""Listening socket creation."""

import socket
import sys

from poolserver.bootstrap.config import ACCEPT_POLL_SECONDS
from poolserver.domain.connection_id import get_logger

SOCKET_LOGGER = get_logger("socket")


def create_listening_socket(host: str, port: int, backlog: int) -> socket.socket:
    """Bind and listen on host:port, exiting the process when setup fails."""
    try:
        server_socket = socket.create_server((host, port), backlog=backlog)
    except OSError as error:
        SOCKET_LOGGER.critical(
            "Failed to create listening socket",
            extra={
                "event": "socket_setup_failed",
                "host": host,
                "port": port,
                "error": str(error),
            },
        )
        sys.exit(1)
    # Accept wakes periodically so the acceptor can observe shutdown.
    server_socket.settimeout(ACCEPT_POLL_SECONDS)
    return server_socket
