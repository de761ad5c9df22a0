"""Wire-level types shared by the dispatcher, handlers and I/O pipeline."""

from dataclasses import dataclass, field
from typing import Iterable, Optional

STATUS_OK = "HTTP/1.1 200 OK"
STATUS_BAD_REQUEST = "HTTP/1.1 400 Bad Request"
STATUS_NOT_FOUND = "HTTP/1.1 404 Not Found"

CMD_PING = "ping"
CMD_ECHO = "echo"
CMD_WRITE = "write"
CMD_READ = "read"
CMD_STATS = "stats"
CMD_FILE = "file"


class MalformedRequest(ValueError):
    """Raised when a request cannot be served and must be answered with 400."""


class ResourceNotFound(Exception):
    """Raised when a file request names nothing that can be opened."""


class TransportFault(ConnectionError):
    """Raised when the peer stops accepting bytes mid-response."""


@dataclass
class Request:
    """A received request: the head up to the terminator plus trailing bytes."""

    command: str
    head: bytes
    remainder: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)
    path: str = ""
    body: bytes = b""
    truncated: bool = False

    @property
    def first_line(self) -> bytes:
        return self.head.split(b"\r\n", 1)[0]


@dataclass
class Response:
    """A response waiting to be written back to the client.

    Error responses carry only their status line. Success responses carry
    either a fixed ``body`` or a ``body_iter`` whose total size is declared
    up front in ``content_length``.
    """

    status_line: str
    body: bytes = b""
    body_iter: Optional[Iterable[bytes]] = None
    content_length: Optional[int] = None

    @property
    def is_error(self) -> bool:
        return self.status_line != STATUS_OK

    @property
    def is_streamed(self) -> bool:
        return self.body_iter is not None

    def declared_length(self) -> int:
        if self.content_length is not None:
            return self.content_length
        return len(self.body)

    def header_bytes(self) -> bytes:
        """Serialize the status line, plus Content-Length for successes."""
        if self.is_error:
            return self.status_line.encode()
        return (
            f"{self.status_line}\r\nContent-Length: {self.declared_length()}\r\n\r\n"
        ).encode()
