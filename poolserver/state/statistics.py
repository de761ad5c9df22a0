"""Running request statistics shared by every worker."""

import threading
from dataclasses import dataclass

STATS_BODY_FORMAT = (
    "Requests: {requests}\n"
    "Header bytes: {header_bytes}\n"
    "Body bytes: {body_bytes}\n"
    "Errors: {errors}\n"
    "Error bytes: {error_bytes}"
)


@dataclass(frozen=True)
class StatsSnapshot:
    """Point-in-time copy of the five counters."""

    requests: int = 0
    header_bytes: int = 0
    body_bytes: int = 0
    errors: int = 0
    error_bytes: int = 0

    def render(self) -> bytes:
        """Format the counters as the stats response body."""
        return STATS_BODY_FORMAT.format(
            requests=self.requests,
            header_bytes=self.header_bytes,
            body_bytes=self.body_bytes,
            errors=self.errors,
            error_bytes=self.error_bytes,
        ).encode()


class StatisticsCounters:
    """Five monotonically growing counters behind a single lock.

    Each method is one logical update and takes the lock exactly once.
    Streamed responses update header bytes, body bytes and the request
    count in separate steps, so a concurrent snapshot may observe a
    response that is only partly accounted for.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._requests = 0
        self._header_bytes = 0
        self._body_bytes = 0
        self._errors = 0
        self._error_bytes = 0

    def record_response(self, header_bytes: int, body_bytes: int) -> None:
        """Account for a fully sent fixed-body success response."""
        with self._lock:
            self._requests += 1
            self._header_bytes += header_bytes
            self._body_bytes += body_bytes

    def record_header(self, header_bytes: int) -> None:
        with self._lock:
            self._header_bytes += header_bytes

    def record_body_chunk(self, body_bytes: int) -> None:
        with self._lock:
            self._body_bytes += body_bytes

    def record_request(self) -> None:
        with self._lock:
            self._requests += 1

    def record_error(self, error_bytes: int) -> None:
        """Account for a fully sent error response."""
        with self._lock:
            self._errors += 1
            self._error_bytes += error_bytes

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return StatsSnapshot(
                requests=self._requests,
                header_bytes=self._header_bytes,
                body_bytes=self._body_bytes,
                errors=self._errors,
                error_bytes=self._error_bytes,
            )
