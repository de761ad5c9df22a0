"""The single buffer shared by write and read commands."""

import threading

from poolserver.bootstrap.config import STORED_BUFFER_CAPACITY, STORED_BUFFER_SENTINEL


class StoredBuffer:
    """Holds the last payload submitted by a write, guarded by its own lock."""

    def __init__(
        self,
        capacity: int = STORED_BUFFER_CAPACITY,
        initial: bytes = STORED_BUFFER_SENTINEL,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._lock = threading.Lock()
        self._data = bytes(initial[:capacity])

    @property
    def capacity(self) -> int:
        return self._capacity

    def replace(self, payload: bytes) -> bytes:
        """Atomically overwrite the buffer, truncating to capacity.

        Returns the bytes actually stored.
        """
        stored = bytes(payload[: self._capacity])
        with self._lock:
            self._data = stored
        return stored

    def snapshot(self) -> bytes:
        """Return the current contents."""
        with self._lock:
            return self._data
