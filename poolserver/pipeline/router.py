"""Command dispatch."""

import logging

from poolserver.domain.connection_id import get_logger
from poolserver.domain.protocol import (
    CMD_ECHO,
    CMD_FILE,
    CMD_PING,
    CMD_READ,
    CMD_STATS,
    CMD_WRITE,
    MalformedRequest,
    Request,
    ResourceNotFound,
    Response,
)
from poolserver.domain.response_builders import not_found_response
from poolserver.handlers.command_handlers import (
    handle_echo,
    handle_ping,
    handle_read,
    handle_stats,
    handle_write,
)
from poolserver.handlers.file_handler import file_response
from poolserver.transport.context import WorkerContext

ROUTER_LOGGER = get_logger("pipeline.router")


def route_request(request: Request, context: WorkerContext) -> Response:
    """Run the handler for ``request.command`` and return its response."""
    if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ROUTER_LOGGER.debug(
            "Request dispatched",
            extra={"event": "request_dispatched", "command": request.command},
        )

    if request.command == CMD_PING:
        return handle_ping()
    if request.command == CMD_ECHO:
        return handle_echo(request)
    if request.command == CMD_WRITE:
        return handle_write(request, context.stored_buffer)
    if request.command == CMD_READ:
        return handle_read(context.stored_buffer)
    if request.command == CMD_STATS:
        return handle_stats(context.statistics)
    if request.command == CMD_FILE:
        try:
            return file_response(request, context.directory)
        except ResourceNotFound:
            ROUTER_LOGGER.info(
                "File not found",
                extra={"event": "file_not_found", "path": request.path},
            )
            return not_found_response()

    raise MalformedRequest(f"No handler for command {request.command!r}")
