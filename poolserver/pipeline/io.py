"""Receive and send primitives for a single connection."""

import logging
import socket
from typing import Optional, Tuple

from poolserver.bootstrap.config import (
    HEADER_DELIMITER,
    MAX_REQUEST_BYTES,
    RECV_CHUNK_SIZE,
)
from poolserver.domain.connection_id import get_logger
from poolserver.domain.protocol import (
    CMD_WRITE,
    MalformedRequest,
    Request,
    Response,
    TransportFault,
)
from poolserver.pipeline.parsing import (
    ECHO_PREFIX,
    determine_content_length,
    parse_request,
)
from poolserver.state.statistics import StatisticsCounters

IO_LOGGER = get_logger("pipeline.io")


def receive_head(client_socket: socket.socket) -> Optional[Tuple[bytes, bytes, bool]]:
    """Read until the header terminator.

    Returns (head, bytes after the terminator, terminated), or None when the
    peer closes before the terminator arrives. A head that does not fit in
    MAX_REQUEST_BYTES is a malformed request, except for echo, which answers
    with whatever fit in the buffer and is reported as not terminated.
    """
    buffer = b""
    while HEADER_DELIMITER not in buffer:
        if len(buffer) >= MAX_REQUEST_BYTES:
            if buffer.startswith(ECHO_PREFIX):
                return buffer, b"", False
            raise MalformedRequest("Request head exceeds limit")
        room = MAX_REQUEST_BYTES - len(buffer)
        chunk = client_socket.recv(min(RECV_CHUNK_SIZE, room))
        if not chunk:
            return None
        buffer += chunk
    head, remainder = buffer.split(HEADER_DELIMITER, 1)
    return head, remainder, True


def receive_body(client_socket: socket.socket, remainder: bytes, length: int) -> bytes:
    """Return exactly ``length`` body bytes, reading past ``remainder`` as needed."""
    body = remainder
    while len(body) < length:
        chunk = client_socket.recv(RECV_CHUNK_SIZE)
        if not chunk:
            raise MalformedRequest("Truncated request body")
        body += chunk
    return body[:length]


def receive_request(client_socket: socket.socket) -> Optional[Request]:
    """Receive and classify one request; write bodies are read in full here."""
    received = receive_head(client_socket)
    if received is None:
        return None
    head, remainder, terminated = received
    request = parse_request(head, remainder)
    request.truncated = not terminated
    if request.command == CMD_WRITE:
        length = determine_content_length(request.headers)
        request.body = receive_body(client_socket, remainder, length)
    if IO_LOGGER.logger.isEnabledFor(logging.DEBUG):
        IO_LOGGER.debug(
            "Parsed request",
            extra={
                "event": "request_parsed",
                "command": request.command,
                "bytes": len(head),
            },
        )
    return request


def send_fully(client_socket: socket.socket, data: bytes) -> int:
    """Send every byte of ``data``, resending the tail after short writes."""
    view = memoryview(data)
    total = 0
    while total < len(view):
        sent = client_socket.send(view[total:])
        if sent == 0:
            raise TransportFault("Peer stopped accepting data")
        total += sent
    return total


def send_response(
    client_socket: socket.socket,
    response: Response,
    statistics: StatisticsCounters,
) -> int:
    """Write the header then the body, updating counters as bytes go out.

    Returns the total number of bytes sent. Counters are only touched after
    the bytes they describe have been accepted by the socket, so a transport
    fault part way through leaves nothing double counted.
    """
    try:
        return _send_response(client_socket, response, statistics)
    finally:
        close_body = getattr(response.body_iter, "close", None)
        if close_body is not None:
            close_body()


def _send_response(
    client_socket: socket.socket,
    response: Response,
    statistics: StatisticsCounters,
) -> int:
    header = response.header_bytes()
    send_fully(client_socket, header)

    if response.is_error:
        statistics.record_error(len(header))
        IO_LOGGER.info(
            "Error response sent",
            extra={
                "event": "error_response_sent",
                "status": response.status_line,
                "error_bytes": len(header),
            },
        )
        return len(header)

    if response.is_streamed:
        statistics.record_header(len(header))
        body_sent = 0
        for chunk in response.body_iter:
            if not chunk:
                continue
            body_sent += send_fully(client_socket, chunk)
            statistics.record_body_chunk(len(chunk))
        statistics.record_request()
    else:
        body_sent = send_fully(client_socket, response.body)
        statistics.record_response(len(header), body_sent)

    if IO_LOGGER.logger.isEnabledFor(logging.DEBUG):
        IO_LOGGER.debug(
            "Response sent",
            extra={
                "event": "response_sent",
                "status": response.status_line,
                "header_bytes": len(header),
                "body_bytes": body_sent,
            },
        )
    return len(header) + body_sent
