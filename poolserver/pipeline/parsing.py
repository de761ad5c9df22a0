"""Request head parsing and command matching."""

from poolserver.bootstrap.config import CRLF, HEADER_DELIMITER, STORED_BUFFER_CAPACITY
from poolserver.domain.protocol import (
    CMD_ECHO,
    CMD_FILE,
    CMD_PING,
    CMD_READ,
    CMD_STATS,
    CMD_WRITE,
    MalformedRequest,
    Request,
)

ECHO_PREFIX = b"GET /echo HTTP/1.1" + CRLF

# Checked in order; the first matching prefix wins. Ping must be the whole head.
COMMAND_PREFIXES = (
    (CMD_PING, b"GET /ping HTTP/1.1" + HEADER_DELIMITER),
    (CMD_ECHO, ECHO_PREFIX),
    (CMD_WRITE, b"POST /write HTTP/1.1" + CRLF),
    (CMD_READ, b"GET /read HTTP/1.1" + CRLF),
    (CMD_STATS, b"GET /stats HTTP/1.1" + CRLF),
)
FILE_PREFIX = b"GET /"


def parse_headers(lines: list[str]) -> dict[str, str]:
    """Convert raw header lines into a lowercase-keyed dictionary."""
    parsed = {}
    for line in lines:
        if ":" in line:
            name, value = line.split(":", 1)
            parsed[name.strip().lower()] = value.strip()
    return parsed


def match_command(raw: bytes) -> str:
    """Return the command named by the start of ``raw``."""
    for command, prefix in COMMAND_PREFIXES:
        if raw.startswith(prefix):
            return command
    if raw.startswith(FILE_PREFIX):
        return CMD_FILE
    raise MalformedRequest("Unrecognized request line")


def extract_file_path(first_line: bytes) -> str:
    """Return the path token that follows ``GET /`` on the request line."""
    target = first_line[len(FILE_PREFIX) :]
    token = target.split(b" ", 1)[0]
    return token.decode("utf-8", errors="replace")


def parse_request(head: bytes, remainder: bytes) -> Request:
    """Classify a received head and split out the pieces handlers need."""
    command = match_command(head + HEADER_DELIMITER + remainder)
    lines = head.decode("latin-1").split("\r\n")
    request = Request(
        command=command,
        head=head,
        remainder=remainder,
        headers=parse_headers(lines[1:]),
    )
    if command == CMD_FILE:
        request.path = extract_file_path(request.first_line)
    return request


def determine_content_length(headers: dict[str, str]) -> int:
    """Validate the declared Content-Length and cap it at the buffer capacity."""
    header_value = headers.get("content-length")
    if header_value is None:
        raise MalformedRequest("Missing Content-Length")
    # ASCII decimal digits only.
    if not (header_value.isascii() and header_value.isdigit()):
        raise MalformedRequest("Invalid Content-Length")
    return min(int(header_value), STORED_BUFFER_CAPACITY)
