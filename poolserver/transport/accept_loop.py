"""Acceptor: pulls connections off the listening socket into the queue."""

import argparse
import logging
import socket
import sys
from dataclasses import dataclass
from typing import Optional

from poolserver.bootstrap.config import (
    DEFAULT_BACKLOG,
    DEFAULT_HOST,
    DEFAULT_SHUTDOWN_GRACE_SECONDS,
    DEFAULT_SOCKET_TIMEOUT,
    ServerConfig,
)
from poolserver.bootstrap.socket_factory import create_listening_socket
from poolserver.domain.connection_id import get_logger
from poolserver.lifecycle.state import ServerLifecycle
from poolserver.transport.connection_queue import BoundedConnectionQueue, ConnectionHandle
from poolserver.transport.context import WorkerContext
from poolserver.transport.worker_pool import WorkerPool

ACCEPT_LOGGER = get_logger("transport.accept")


def accept_client(
    server_socket: socket.socket, connection_queue: BoundedConnectionQueue
) -> bool:
    """Accept one connection and hand it to the queue.

    Blocks while the queue is full, pushing back on the listen backlog.
    Returns False when the accept call timed out without a connection.
    Any other accept failure is fatal and is re-raised.
    """
    try:
        client_socket, client_address = server_socket.accept()
    except socket.timeout:
        return False
    except OSError as error:
        ACCEPT_LOGGER.critical(
            "Socket accept failed",
            extra={"event": "accept_error", "error_type": type(error).__name__},
        )
        raise

    handle = ConnectionHandle(client_socket, client_address)
    if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ACCEPT_LOGGER.debug(
            "Client connection accepted",
            extra={"event": "client_accepted", "client": handle.client},
        )
    connection_queue.enqueue(handle)
    if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ACCEPT_LOGGER.debug(
            "Connection enqueued",
            extra={
                "event": "connection_enqueued",
                "client": handle.client,
                "queue_size": connection_queue.size(),
                "capacity": connection_queue.capacity,
            },
        )
    return True


@dataclass
class ServerRuntime:
    """A listening socket with its queue and running worker pool."""

    server_socket: socket.socket
    connection_queue: BoundedConnectionQueue
    pool: WorkerPool
    context: WorkerContext
    lifecycle: ServerLifecycle

    @property
    def address(self) -> tuple[str, int]:
        host, port = self.server_socket.getsockname()[:2]
        return host, port

    def serve_forever(self) -> None:
        """Accept connections until shutdown is requested."""
        while not self.lifecycle.should_stop():
            try:
                accept_client(self.server_socket, self.connection_queue)
            except OSError:
                if self.lifecycle.should_stop():
                    break
                raise

    def shutdown(self, grace_seconds: float) -> bool:
        """Stop accepting, let workers drain the queue, close leftovers.

        Returns True when every worker exited within the grace period.
        """
        self.lifecycle.request_shutdown()
        self.server_socket.close()
        ACCEPT_LOGGER.info(
            "Waiting for workers to drain the queue",
            extra={"event": "shutdown_waiting", "shutdown_grace_seconds": grace_seconds},
        )
        drained = self.pool.join(grace_seconds)
        while True:
            leftover = self.connection_queue.dequeue(timeout=0)
            if leftover is None:
                break
            leftover.client_socket.close()
        ACCEPT_LOGGER.info("Server shutdown complete", extra={"event": "server_stopped"})
        return drained


def create_server(
    port: int,
    workers: int,
    host: str = DEFAULT_HOST,
    backlog: int = DEFAULT_BACKLOG,
    config: Optional[ServerConfig] = None,
    lifecycle: Optional[ServerLifecycle] = None,
) -> ServerRuntime:
    """Return a ready-to-accept server whose worker pool is already running."""
    # pylint: disable=too-many-arguments, too-many-positional-arguments
    if config is None:
        config = ServerConfig(
            workers=workers,
            socket_timeout=DEFAULT_SOCKET_TIMEOUT,
            shutdown_grace_seconds=DEFAULT_SHUTDOWN_GRACE_SECONDS,
        )
    if lifecycle is None:
        lifecycle = ServerLifecycle()

    server_socket = create_listening_socket(host, port, backlog)
    context = WorkerContext(directory=config.directory, config=config)
    connection_queue = BoundedConnectionQueue(workers)
    pool = WorkerPool(workers, connection_queue, context, lifecycle)
    try:
        pool.start()
    except RuntimeError as error:
        ACCEPT_LOGGER.critical(
            "Failed to start worker threads",
            extra={"event": "pool_start_failed", "error": str(error)},
        )
        server_socket.close()
        sys.exit(1)
    return ServerRuntime(server_socket, connection_queue, pool, context, lifecycle)


def run_server(
    args: argparse.Namespace, config: ServerConfig, lifecycle: ServerLifecycle
) -> None:
    """Create the server and drive the accept loop until shutdown."""
    runtime = create_server(
        args.port,
        config.workers,
        host=args.host,
        backlog=args.backlog,
        config=config,
        lifecycle=lifecycle,
    )
    host, port = runtime.address
    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "host": host,
            "port": port,
            "workers": config.workers,
        },
    )
    try:
        runtime.serve_forever()
    finally:
        runtime.shutdown(config.shutdown_grace_seconds)
