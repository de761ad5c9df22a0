"""Serving files from the configured directory."""

import logging
import os
from typing import BinaryIO, Iterator

from poolserver.bootstrap.config import FILE_CHUNK_SIZE
from poolserver.domain.connection_id import get_logger
from poolserver.domain.protocol import Request, Response, ResourceNotFound, TransportFault
from poolserver.domain.response_builders import streamed_response
from poolserver.domain.sandbox import resolve_sandbox_path

FILE_LOGGER = get_logger("handlers.file")


class FileBody:
    """Exactly ``length`` bytes of an open file, read in fixed-size chunks."""

    def __init__(
        self, file_handle: BinaryIO, length: int, chunk_size: int = FILE_CHUNK_SIZE
    ) -> None:
        self._file_handle = file_handle
        self.length = length
        self._chunk_size = chunk_size

    def __iter__(self) -> Iterator[bytes]:
        remaining = self.length
        while remaining > 0:
            chunk = self._file_handle.read(min(self._chunk_size, remaining))
            if not chunk:
                # The header already promised ``length`` bytes.
                raise TransportFault("File ended before its declared length")
            remaining -= len(chunk)
            if FILE_LOGGER.logger.isEnabledFor(logging.DEBUG):
                FILE_LOGGER.debug(
                    "File chunk read",
                    extra={"event": "file_chunk_read", "bytes": len(chunk)},
                )
            yield chunk

    def close(self) -> None:
        self._file_handle.close()


def file_response(request: Request, directory: str) -> Response:
    """Open the requested file and describe it as a streamed response.

    The file is opened before anything is sent so that an unreadable file
    becomes a 404. The declared length is the size of the opened file.
    """
    resolved_path = resolve_sandbox_path(directory, request.path)
    try:
        file_handle = open(resolved_path, "rb")  # pylint: disable=consider-using-with
    except OSError as exc:
        raise ResourceNotFound(resolved_path.as_posix()) from exc
    try:
        size = os.fstat(file_handle.fileno()).st_size
    except OSError as exc:
        file_handle.close()
        raise ResourceNotFound(resolved_path.as_posix()) from exc

    FILE_LOGGER.info(
        "Serving file",
        extra={"event": "file_serving", "path": resolved_path.as_posix(), "bytes": size},
    )
    return streamed_response(FileBody(file_handle, size), size)
