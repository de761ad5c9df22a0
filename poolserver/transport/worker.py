"""Processing of one dequeued connection: receive, dispatch, respond, close."""

import logging
import socket

from poolserver.bootstrap.config import LINGER_DRAIN_BYTES, RECV_CHUNK_SIZE
from poolserver.domain.connection_id import (
    bind_connection_id,
    clear_connection_id,
    get_logger,
    next_connection_id,
)
from poolserver.domain.protocol import MalformedRequest, Request, Response
from poolserver.domain.response_builders import bad_request_response
from poolserver.pipeline.io import receive_request, send_response
from poolserver.pipeline.router import route_request
from poolserver.transport.connection_queue import ConnectionHandle
from poolserver.transport.context import WorkerContext

WORKER_LOGGER = get_logger("transport.worker")


def _prepare_socket(client_socket: socket.socket, context: WorkerContext) -> None:
    if context.config is not None:
        client_socket.settimeout(context.config.connection_timeout)


def _read_request(client_socket: socket.socket, handle: ConnectionHandle):
    """Return (request, error_response); both are None for an abandoned request."""
    try:
        request = receive_request(client_socket)
    except MalformedRequest as error:
        WORKER_LOGGER.warning(
            "Malformed request received",
            extra={
                "event": "malformed_request",
                "client": handle.client,
                "error": str(error),
            },
        )
        return None, bad_request_response()

    if request is None and WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        WORKER_LOGGER.debug(
            "Client closed before completing a request",
            extra={"event": "no_request", "client": handle.client},
        )
    return request, None


def _dispatch(
    request: Request, context: WorkerContext, handle: ConnectionHandle
) -> Response:
    try:
        return route_request(request, context)
    except MalformedRequest as error:
        WORKER_LOGGER.warning(
            "Malformed request received",
            extra={
                "event": "malformed_request",
                "client": handle.client,
                "command": request.command,
                "error": str(error),
            },
        )
        return bad_request_response()


def _discard_unread(client_socket: socket.socket) -> None:
    """Consume input the server never read so close() sends FIN, not RST."""
    try:
        client_socket.setblocking(False)
        for _ in range(LINGER_DRAIN_BYTES // RECV_CHUNK_SIZE):
            if not client_socket.recv(RECV_CHUNK_SIZE):
                break
    except OSError:
        pass


def _release(client_socket: socket.socket, handle: ConnectionHandle) -> None:
    try:
        client_socket.shutdown(socket.SHUT_WR)
    except OSError:
        pass
    _discard_unread(client_socket)
    client_socket.close()
    if WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        WORKER_LOGGER.debug(
            "Socket closed", extra={"event": "socket_closed", "client": handle.client}
        )


def handle_connection(handle: ConnectionHandle, context: WorkerContext) -> None:
    """Serve exactly one request on ``handle`` and always close it.

    Failures are confined to this connection: nothing raised while serving
    it propagates to the calling worker loop.
    """
    client_socket = handle.client_socket
    bind_connection_id(next_connection_id())
    try:
        _prepare_socket(client_socket, context)
        request, response = _read_request(client_socket, handle)
        if request is not None:
            response = _dispatch(request, context, handle)
        if response is not None:
            send_response(client_socket, response, context.statistics)
    except (ConnectionError, TimeoutError, OSError) as error:
        WORKER_LOGGER.error(
            "Error handling client connection",
            extra={
                "event": "connection_error",
                "client": handle.client,
                "error_type": type(error).__name__,
            },
        )
    except Exception as error:  # pylint: disable=broad-except
        WORKER_LOGGER.error(
            "Unexpected error in worker",
            extra={
                "event": "worker_error",
                "client": handle.client,
                "error_type": type(error).__name__,
                "error": str(error),
            },
            exc_info=True,
        )
    finally:
        _release(client_socket, handle)
        clear_connection_id()
