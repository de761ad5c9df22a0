"""Pure response builders."""

from typing import Iterable

from poolserver.domain.protocol import (
    STATUS_BAD_REQUEST,
    STATUS_NOT_FOUND,
    STATUS_OK,
    Response,
)

PING_BODY = b"pong"


def ok_response(body: bytes) -> Response:
    """Return a 200 response whose Content-Length is the body size."""
    return Response(STATUS_OK, body)


def streamed_response(body_iter: Iterable[bytes], content_length: int) -> Response:
    """Return a 200 response whose body is produced chunk by chunk."""
    return Response(STATUS_OK, body_iter=body_iter, content_length=content_length)


def ping_response() -> Response:
    return ok_response(PING_BODY)


def bad_request_response() -> Response:
    """Return the bare 400 status line."""
    return Response(STATUS_BAD_REQUEST)


def not_found_response() -> Response:
    """Return the bare 404 status line."""
    return Response(STATUS_NOT_FOUND)
