"""Bounded FIFO hand-off between the acceptor and the worker pool."""

import socket
import threading
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ConnectionHandle:
    """An accepted client connection owned by exactly one component at a time."""

    client_socket: socket.socket
    client_address: tuple[str, int]

    @property
    def client(self) -> str:
        return f"{self.client_address[0]}:{self.client_address[1]}"


class BoundedConnectionQueue:
    """Fixed-capacity ring buffer with semaphore admission control.

    ``_free`` counts empty slots and ``_filled`` counts queued handles.
    Producers wait on ``_free`` and consumers on ``_filled``, outside the
    index lock, so blocking happens exactly at the full and empty
    boundaries. The index lock only covers head/tail manipulation.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._slots: list[Optional[ConnectionHandle]] = [None] * capacity
        self._head = 0
        self._tail = 0
        self._count = 0
        self._index_lock = threading.Lock()
        self._free = threading.Semaphore(capacity)
        self._filled = threading.Semaphore(0)

    @property
    def capacity(self) -> int:
        return self._capacity

    def enqueue(self, handle: ConnectionHandle, timeout: Optional[float] = None) -> bool:
        """Insert at the tail, blocking while the queue is full.

        Returns False only if ``timeout`` elapses before a slot frees up.
        """
        if not self._free.acquire(timeout=timeout):
            return False
        with self._index_lock:
            assert self._count < self._capacity, "free slot granted on a full queue"
            self._slots[self._tail] = handle
            self._tail = (self._tail + 1) % self._capacity
            self._count += 1
        self._filled.release()
        return True

    def dequeue(self, timeout: Optional[float] = None) -> Optional[ConnectionHandle]:
        """Remove from the head, blocking while the queue is empty.

        Returns None only if ``timeout`` elapses before an item arrives.
        """
        if not self._filled.acquire(timeout=timeout):
            return None
        with self._index_lock:
            assert self._count > 0, "item granted on an empty queue"
            handle = self._slots[self._head]
            self._slots[self._head] = None
            self._head = (self._head + 1) % self._capacity
            self._count -= 1
        self._free.release()
        return handle

    def size(self) -> int:
        with self._index_lock:
            return self._count

    def free_slots(self) -> int:
        with self._index_lock:
            return self._capacity - self._count
