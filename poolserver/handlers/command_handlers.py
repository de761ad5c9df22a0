"""Handlers for the ping, echo, write, read and stats commands."""

import logging

from poolserver.bootstrap.config import CRLF, ECHO_BODY_LIMIT
from poolserver.domain.connection_id import get_logger
from poolserver.domain.protocol import Request, Response
from poolserver.domain.response_builders import ok_response, ping_response
from poolserver.state.statistics import StatisticsCounters
from poolserver.state.stored_buffer import StoredBuffer

COMMAND_LOGGER = get_logger("handlers.command")


def handle_ping() -> Response:
    return ping_response()


def handle_echo(request: Request) -> Response:
    """Return everything after the request line, up to the header terminator.

    A head cut off at the request buffer bound is echoed up to ECHO_BODY_LIMIT.
    """
    _, separator, rest = request.head.partition(CRLF)
    if not separator:
        body = b""
    elif request.truncated:
        body = rest[:ECHO_BODY_LIMIT]
    else:
        body = rest
    if COMMAND_LOGGER.logger.isEnabledFor(logging.DEBUG):
        COMMAND_LOGGER.debug(
            "Echo request processed",
            extra={"event": "echo_request", "body_bytes": len(body)},
        )
    return ok_response(body)


def handle_read(stored_buffer: StoredBuffer) -> Response:
    return ok_response(stored_buffer.snapshot())


def handle_write(request: Request, stored_buffer: StoredBuffer) -> Response:
    """Replace the stored buffer with the request body, then answer like read."""
    stored = stored_buffer.replace(request.body)
    COMMAND_LOGGER.info(
        "Stored buffer replaced",
        extra={
            "event": "buffer_written",
            "bytes": len(stored),
            "capacity": stored_buffer.capacity,
        },
    )
    return handle_read(stored_buffer)


def handle_stats(statistics: StatisticsCounters) -> Response:
    return ok_response(statistics.snapshot().render())
